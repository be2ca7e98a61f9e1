"""Technology detection and topic reconciliation for source repositories."""

__version__ = "0.1.0"
