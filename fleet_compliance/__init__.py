"""Fleet document compliance engine."""

__version__ = "1.0.0"
