"""healthchat -- tool-using conversation client for health data."""

__version__ = "0.1.0"
