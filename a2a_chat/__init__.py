"""Terminal chat client for agents speaking the A2A task protocol."""

__version__ = "0.1.0"
