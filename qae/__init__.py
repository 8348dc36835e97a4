"""qae - search file names, file contents and git history in one pass."""

__version__ = "0.4.0"
