"""
Bottle model for the bar's physical bottles.

Each bottle belongs to exactly one category. A category cannot be deleted
while bottles still reference it.
"""

from typing import Any, Dict

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from .base import BaseModel


class Bottle(BaseModel):
    """
    Bottle model.

    Attributes:
        name: Bottle name, unique (e.g., "Havana Club 3")
        category_id: Foreign key to Category
        purchase_price: Price paid, optional
        capacity_ml: Bottle capacity in milliliters
        remaining_percent: Estimated fill level, 0-100
        opened_at: When the bottle was opened, if ever
        alcohol_percentage: ABV, optional
        is_apero: Served as an aperitif
        is_digestif: Served as a digestif
    """

    __tablename__ = "bottles"

    name = Column(String(200), nullable=False, unique=True, index=True)
    category_id = Column(
        Integer, ForeignKey("categories.id", ondelete="RESTRICT"), nullable=False
    )

    # Stock information
    purchase_price = Column(Float, nullable=True)
    capacity_ml = Column(Integer, nullable=False)
    remaining_percent = Column(Integer, nullable=False, default=100)
    opened_at = Column(DateTime, nullable=True)

    # Serving information
    alcohol_percentage = Column(Float, nullable=True)
    is_apero = Column(Boolean, nullable=False, default=False)
    is_digestif = Column(Boolean, nullable=False, default=False)

    # Relationships
    category = relationship("Category", back_populates="bottles", lazy="joined")

    __table_args__ = (Index("idx_bottle_category", "category_id"),)

    def __repr__(self) -> str:
        """String representation of bottle."""
        return f"Bottle(id={self.id}, name='{self.name}', category_id={self.category_id})"

    def to_dict(self, include_relationships: bool = False) -> Dict[str, Any]:
        """
        Convert bottle to dictionary, always including its category.

        Args:
            include_relationships: Unused beyond the category, kept for API consistency

        Returns:
            Dictionary representation with a nested "category" entry
        """
        result = super().to_dict(False)
        result["category"] = self.category.to_dict() if self.category else None
        return result
