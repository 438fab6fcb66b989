"""Slug generation utilities for export file naming.

Examples:
    >>> create_slug("Whiskey Sour")
    'whiskey-sour'

    >>> create_slug("Piña Colada")
    'pina-colada'

    >>> create_slug("  Death & Co. #2 ")
    'death-co-2'
"""

import re
import unicodedata


def create_slug(name: str) -> str:
    """Generate a file-name-safe slug from a cocktail name.

    Algorithm:
        1. Normalize Unicode to NFD (decompose accented characters)
        2. Encode to ASCII, ignoring non-ASCII characters
        3. Convert to lowercase
        4. Replace every run of non-alphanumeric characters with one hyphen
        5. Strip leading/trailing hyphens

    Args:
        name: Display name to convert

    Returns:
        Lowercase hyphenated slug; empty string if nothing survives
    """
    if not name:
        return ""
    normalized = unicodedata.normalize("NFD", name)
    ascii_name = normalized.encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", ascii_name.lower())
    return slug.strip("-")
