"""Utility functions for qclust."""

from qclust.utils.logging_config import setup_logging, get_logger
from qclust.utils.validation import validate_against_exact

__all__ = ["setup_logging", "get_logger", "validate_against_exact"]
