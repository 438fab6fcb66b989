"""
Category model for bottle categories.

Categories group interchangeable bottles (e.g., "White Rum", "London Dry Gin")
and can be referenced directly by cocktail ingredient lines.
"""

from sqlalchemy import Column, Integer, String, Text
from sqlalchemy.orm import relationship

from .base import BaseModel


class Category(BaseModel):
    """
    Category model.

    Attributes:
        name: Category name, unique
        type: Name of the CategoryType this category belongs to
        desired_stock: Number of bottles the bar wants to keep on hand
        name_translations: JSON text of locale -> display name
    """

    __tablename__ = "categories"

    name = Column(String(200), nullable=False, unique=True, index=True)
    type = Column(String(100), nullable=False, index=True)
    desired_stock = Column(Integer, nullable=False, default=1)
    name_translations = Column(Text, nullable=True)

    # Relationships
    bottles = relationship("Bottle", back_populates="category", lazy="select")

    def __repr__(self) -> str:
        """String representation of category."""
        return f"Category(id={self.id}, name='{self.name}', type='{self.type}')"
