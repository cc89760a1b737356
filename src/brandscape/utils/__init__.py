"""Utility functions for the Brandscape application."""

from .logging import get_logger, setup_logging
from .text import clean_title, strip_suffixes

__all__ = ["get_logger", "setup_logging", "clean_title", "strip_suffixes"]
