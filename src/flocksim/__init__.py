"""2D boids flock simulation."""

__version__ = "0.1.0"
