"""HR announcement distribution service."""

__version__ = "0.1.0"
