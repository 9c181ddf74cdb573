"""FinHome personal and household finance API."""

__version__ = "0.1.0"
