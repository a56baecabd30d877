"""Flow Balance personal finance backend."""

__version__ = "0.1.0"
