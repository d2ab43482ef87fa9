"""Flight Login — login screen client with lockout and remember-me."""

__version__ = "1.0.0"
