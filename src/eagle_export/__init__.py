"""Eagle Export - incremental export of an Eagle library into a plain directory tree."""

__version__ = "0.1.0"
