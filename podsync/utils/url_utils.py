"""Helpers for cleaning podcast URL lists submitted by clients."""

from typing import Iterable, List, Tuple

ALLOWED_SCHEMES = ("http://", "https://")


def deduplicate_preserving_order(items: Iterable) -> List:
    """
    Deduplicate a sequence while preserving the original order.

    Args:
        items: Iterable of hashable items

    Returns:
        List with duplicates removed, original order preserved

    Examples:
        >>> deduplicate_preserving_order(['A', 'B', 'A', 'C', 'B'])
        ['A', 'B', 'C']
        >>> deduplicate_preserving_order([])
        []
    """
    if not items:
        return []

    seen = set()
    result = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


def sanitize_url(url: str) -> str:
    """
    Neutralize a podcast URL that is not plain HTTP(S).

    The URL is otherwise treated as opaque: it is neither parsed nor
    normalized.

    Returns:
        str: The URL unchanged if it starts with http:// or https://, otherwise "".
    """
    if not url:
        return ""
    if url.startswith(ALLOWED_SCHEMES):
        return url
    return ""


def sanitize_urls(urls: Iterable[str]) -> Tuple[List[str], List[Tuple[str, str]]]:
    """
    Sanitize a list of URLs and record every rewrite.

    Args:
        urls: URLs as submitted by the client

    Returns:
        Tuple of (sanitized URLs in input order, list of (original, rewritten) pairs
        for each URL that was changed). Rewritten entries stay in the first list
        as empty strings so callers can see the positions.
    """
    sanitized = []
    updates = []

    for url in urls:
        clean = sanitize_url(url)
        if clean != url:
            updates.append((url, clean))
        sanitized.append(clean)

    return sanitized, updates
