"""Version information for pharma-sync."""

__version__ = "0.3.0"
