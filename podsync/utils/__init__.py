"""Utility modules for podsync."""

from .url_utils import (
    deduplicate_preserving_order,
    sanitize_url,
    sanitize_urls,
)

__all__ = [
    'deduplicate_preserving_order',
    'sanitize_url',
    'sanitize_urls',
]
