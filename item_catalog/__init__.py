"""Item catalog web service: content-addressed image storage and item repository."""

__version__ = "0.1.0"
