"""VortexBoard: collaborative task board REST API."""

__version__ = "1.0.0"
