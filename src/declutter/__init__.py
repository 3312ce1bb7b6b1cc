"""declutter - find and remove wasteful files, on demand or on a schedule."""

__version__ = "0.1.0"
