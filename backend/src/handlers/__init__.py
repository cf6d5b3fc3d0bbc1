"""Lambda handlers for the TaskFlow feedback API."""

from .api_handler import api_handler

__all__ = ["api_handler"]
