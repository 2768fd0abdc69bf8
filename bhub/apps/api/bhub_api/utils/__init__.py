"""Utility functions and helpers."""

from bhub_api.utils.logging import JSONFormatter, configure_json_logging
from bhub_api.utils.sanitize import mask_email, sanitize_obj, sanitize_str

__all__ = [
    "JSONFormatter",
    "configure_json_logging",
    "mask_email",
    "sanitize_obj",
    "sanitize_str",
]
