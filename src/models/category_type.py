"""
CategoryType model for grouping bottle categories.

A category type (e.g., "SPIRIT", "LIQUEUR", "WINE") classifies categories
and carries the color used when rendering them.
"""

from sqlalchemy import Column, String, Text

from .base import BaseModel


class CategoryType(BaseModel):
    """
    CategoryType model representing a kind of category.

    Attributes:
        name: Upper-case type name (e.g., "SPIRIT"), unique
        color: Display color name (e.g., "amber", "gray")
        name_translations: JSON text of locale -> display name
    """

    __tablename__ = "category_types"

    name = Column(String(100), nullable=False, unique=True, index=True)
    color = Column(String(50), nullable=False, default="gray")
    name_translations = Column(Text, nullable=True)

    def __repr__(self) -> str:
        """String representation of category type."""
        return f"CategoryType(id={self.id}, name='{self.name}', color='{self.color}')"
