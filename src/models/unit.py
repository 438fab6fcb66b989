"""
Unit model for measurement units used in cocktail recipes.

Units are matched across catalogs by abbreviation (e.g., "cl", "dash"),
so the abbreviation is the unique key rather than the display name.
"""

from sqlalchemy import Column, Float, String, Text

from .base import BaseModel


class Unit(BaseModel):
    """
    Unit model.

    Attributes:
        name: Display name (e.g., "Centiliter")
        abbreviation: Short form, unique (e.g., "cl")
        conversion_factor_to_ml: Milliliters per unit, None for count units
        name_translations: JSON text of locale -> display name
    """

    __tablename__ = "units"

    name = Column(String(100), nullable=False)
    abbreviation = Column(String(20), nullable=False, unique=True, index=True)
    conversion_factor_to_ml = Column(Float, nullable=True)
    name_translations = Column(Text, nullable=True)

    def __repr__(self) -> str:
        """String representation of unit."""
        return f"Unit(id={self.id}, abbreviation='{self.abbreviation}')"
