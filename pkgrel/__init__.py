"""Release automation for DESCRIPTION-based packages hosted on GitHub."""

__version__ = "0.3.0"
