"""tasktank: a small task tracking and scheduling store."""

__version__ = "0.1.0"
