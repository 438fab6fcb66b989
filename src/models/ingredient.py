"""
Ingredient model for non-bottle cocktail ingredients.

Ingredients cover everything that is not poured from a tracked bottle
(e.g., "Lime", "Mint", "Sugar syrup").
"""

from sqlalchemy import Boolean, Column, String, Text

from .base import BaseModel


class Ingredient(BaseModel):
    """
    Ingredient model.

    Attributes:
        name: Ingredient name, unique
        icon: Optional icon identifier or emoji
        is_available: Whether the bar currently has it
        name_translations: JSON text of locale -> display name
    """

    __tablename__ = "ingredients"

    name = Column(String(200), nullable=False, unique=True, index=True)
    icon = Column(String(50), nullable=True)
    is_available = Column(Boolean, nullable=False, default=True)
    name_translations = Column(Text, nullable=True)

    def __repr__(self) -> str:
        """String representation of ingredient."""
        return f"Ingredient(id={self.id}, name='{self.name}')"
