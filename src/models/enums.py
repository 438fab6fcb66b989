"""
Enumerations for cocktail composition.

This module contains enums used by cocktail-related models:
- SourceType: What kind of catalog entity an ingredient line draws from
"""

from enum import Enum


class SourceType(str, Enum):
    """
    Source of a cocktail ingredient line.

    Values:
        BOTTLE: A specific bottle (e.g., "Havana Club 3")
        CATEGORY: Any bottle of a category (e.g., "White Rum")
        INGREDIENT: A non-bottle ingredient (e.g., "Lime", "Mint")
    """

    BOTTLE = "BOTTLE"
    CATEGORY = "CATEGORY"
    INGREDIENT = "INGREDIENT"
