"""versus: head-to-head performance comparison of two command-line tools."""

__version__ = "0.1.0"
