"""
Models package for the Bar Catalog application.

Exports all SQLAlchemy models for easy importing.
"""

from .base import Base, BaseModel
from .enums import SourceType
from .category_type import CategoryType
from .category import Category
from .unit import Unit
from .bottle import Bottle
from .ingredient import Ingredient
from .cocktail import (
    Cocktail,
    CocktailIngredient,
    CocktailPreferredBottle,
    CocktailInstruction,
)

__all__ = [
    "Base",
    "BaseModel",
    "SourceType",
    "CategoryType",
    "Category",
    "Unit",
    "Bottle",
    "Ingredient",
    "Cocktail",
    "CocktailIngredient",
    "CocktailPreferredBottle",
    "CocktailInstruction",
]
