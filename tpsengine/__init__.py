"""Core pieces of a small third-person shooter engine and a playable demo."""

__version__ = "0.1.0"