"""Configuration, color parsing and catalog access for coverhue."""

__version__ = "0.1.0"
