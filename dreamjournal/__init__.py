"""Dream journal core: theme extraction, narrative generation and alarm scheduling."""

__version__ = "1.0.0"
