from __future__ import annotations


class FlockInvariantError(RuntimeError):
    """Raised when the per-tick snapshot-then-mutate ordering has been broken."""
