"""contextpilot - conversation context management for AI coding assistants."""

__version__ = "0.1.0"
