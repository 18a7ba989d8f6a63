"""Restaurant point-of-sale and kitchen display backend."""

__version__ = "0.1.0"
