"""Local face login: enrolled descriptor store, nearest-neighbor matcher and enrollment."""

__version__ = "0.1.0"
