"""tli - a Things 3 inbox CLI for Linux."""

__version__ = "0.1.0"
