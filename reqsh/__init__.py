"""reqsh - HTTP requests from the command line, with saved calls and templates."""

__version__ = "0.1.0"
