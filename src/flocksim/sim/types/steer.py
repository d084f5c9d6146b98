from __future__ import annotations

from enum import Enum


class SteerInput(str, Enum):
    NONE = "none"
    LEFT = "left"
    RIGHT = "right"

    @classmethod
    def parse(cls, value: str | None) -> "SteerInput":
        if value is None:
            return cls.NONE
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown steer input: {value!r}") from None
