"""
Matching keys for recipe transfer.

Catalog entities are matched across instances by display name (or, for
units, by abbreviation). The key is the lower-cased name and nothing else:
whitespace and accents are preserved so that the key stays a faithful
image of the name.
"""

from typing import Optional


def normalize_key(name: Optional[str]) -> str:
    """
    Produce the matching key for a display name.

    Example:
        >>> normalize_key("White Rum")
        'white rum'
        >>> normalize_key(None)
        ''
    """
    if not name:
        return ""
    return name.lower()
