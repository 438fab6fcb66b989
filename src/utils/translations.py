"""Helpers for the name_translations column.

Translated display names are stored as a JSON object in a text column
(e.g. '{"fr": "Citron vert"}'). These helpers convert between the stored
text and the dictionary exposed to callers.
"""

import json
import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


def encode_translations(value: Any) -> Optional[str]:
    """Convert a translations payload into its stored representation.

    Args:
        value: Dict of locale -> name, an already-encoded JSON string, or None

    Returns:
        JSON text, or None for empty payloads
    """
    if not value:
        return None
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, sort_keys=True)


def decode_translations(raw: Optional[str]) -> Optional[Dict[str, str]]:
    """Parse a stored translations value.

    Unparseable text decodes to None rather than raising.
    """
    if raw is None or raw == "":
        return None
    if isinstance(raw, dict):
        return raw
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        logger.debug(f"Ignoring malformed name_translations value: {raw!r}")
        return None
    return value if isinstance(value, dict) else None
