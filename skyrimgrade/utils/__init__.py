"""Utility functions module."""

from .masking import mask_database_url, mask_sensitive, mask_sensitive_dict

__all__ = [
    "mask_database_url",
    "mask_sensitive",
    "mask_sensitive_dict",
]
