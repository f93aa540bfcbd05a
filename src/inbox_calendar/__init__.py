"""Turn scheduling emails into calendar events, exactly once per thread."""

__version__ = "0.1.0"
