"""
Cocktail models for composed recipes.

This module contains:
- Cocktail: Main cocktail model with metadata
- CocktailIngredient: One ingredient line of a cocktail (bottle, category or ingredient)
- CocktailPreferredBottle: Bottles suggested for a category line
- CocktailInstruction: One preparation step
"""

from sqlalchemy import (
    Boolean,
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .base import BaseModel
from .enums import SourceType


class Cocktail(BaseModel):
    """
    Cocktail model.

    Attributes:
        name: Cocktail name, unique (case-sensitive)
        description: Short description, optional
        notes: Free-form notes, optional
        image_path: Path of an uploaded image, optional
        tags: Tags joined with TAG_SEPARATOR (e.g., "sour,classic")
        is_available: Whether the cocktail is shown as available
    """

    __tablename__ = "cocktails"

    name = Column(String(200), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    image_path = Column(String(500), nullable=True)
    tags = Column(Text, nullable=True)
    is_available = Column(Boolean, nullable=False, default=True)

    # Relationships
    ingredients = relationship(
        "CocktailIngredient",
        back_populates="cocktail",
        cascade="all, delete-orphan",
        order_by="CocktailIngredient.position",
        lazy="selectin",
    )
    instructions = relationship(
        "CocktailInstruction",
        back_populates="cocktail",
        cascade="all, delete-orphan",
        order_by="CocktailInstruction.step_number",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        """String representation of cocktail."""
        return f"Cocktail(id={self.id}, name='{self.name}')"


class CocktailIngredient(BaseModel):
    """
    One ingredient line of a cocktail.

    Exactly one of bottle_id, category_id or ingredient_id is meaningful,
    selected by source_type. The referenced id may be None when the source
    could not be resolved (e.g., a skipped bottle with no usable category).

    Attributes:
        cocktail_id: Foreign key to Cocktail
        quantity: Amount of the unit
        unit_id: Foreign key to Unit, optional
        source_type: SourceType value
        bottle_id: Foreign key to Bottle for BOTTLE lines
        category_id: Foreign key to Category for CATEGORY lines
        ingredient_id: Foreign key to Ingredient for INGREDIENT lines
        position: Zero-based order within the cocktail
    """

    __tablename__ = "cocktail_ingredients"

    cocktail_id = Column(
        Integer, ForeignKey("cocktails.id", ondelete="CASCADE"), nullable=False
    )
    quantity = Column(Float, nullable=False)
    unit_id = Column(Integer, ForeignKey("units.id", ondelete="SET NULL"), nullable=True)

    # Source of the line
    source_type = Column(String(20), nullable=False, default=SourceType.INGREDIENT.value)
    bottle_id = Column(Integer, ForeignKey("bottles.id", ondelete="SET NULL"), nullable=True)
    category_id = Column(
        Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True
    )
    ingredient_id = Column(
        Integer, ForeignKey("ingredients.id", ondelete="SET NULL"), nullable=True
    )

    position = Column(Integer, nullable=False, default=0)

    # Relationships
    cocktail = relationship("Cocktail", back_populates="ingredients")
    unit = relationship("Unit", lazy="joined")
    bottle = relationship("Bottle", lazy="joined")
    category = relationship("Category", lazy="joined")
    ingredient = relationship("Ingredient", lazy="joined")
    preferred_bottles = relationship(
        "CocktailPreferredBottle",
        back_populates="cocktail_ingredient",
        cascade="all, delete-orphan",
        order_by="CocktailPreferredBottle.id",
        lazy="selectin",
    )

    __table_args__ = (
        Index("idx_cocktail_ingredient_cocktail", "cocktail_id"),
        Index("idx_cocktail_ingredient_position", "cocktail_id", "position"),
    )

    def __repr__(self) -> str:
        """String representation of cocktail ingredient."""
        return (
            f"CocktailIngredient(cocktail_id={self.cocktail_id}, "
            f"source_type='{self.source_type}', position={self.position})"
        )


class CocktailPreferredBottle(BaseModel):
    """Bottle suggested for a CATEGORY ingredient line."""

    __tablename__ = "cocktail_preferred_bottles"

    cocktail_ingredient_id = Column(
        Integer, ForeignKey("cocktail_ingredients.id", ondelete="CASCADE"), nullable=False
    )
    bottle_id = Column(Integer, ForeignKey("bottles.id", ondelete="CASCADE"), nullable=False)

    # Relationships
    cocktail_ingredient = relationship("CocktailIngredient", back_populates="preferred_bottles")
    bottle = relationship("Bottle", lazy="joined")

    __table_args__ = (
        UniqueConstraint(
            "cocktail_ingredient_id", "bottle_id", name="uq_preferred_bottle_line"
        ),
    )

    def __repr__(self) -> str:
        """String representation of preferred bottle."""
        return (
            f"CocktailPreferredBottle(cocktail_ingredient_id={self.cocktail_ingredient_id}, "
            f"bottle_id={self.bottle_id})"
        )


class CocktailInstruction(BaseModel):
    """
    One preparation step of a cocktail.

    Attributes:
        cocktail_id: Foreign key to Cocktail
        step_number: One-based step order
        text: Instruction text
    """

    __tablename__ = "cocktail_instructions"

    cocktail_id = Column(
        Integer, ForeignKey("cocktails.id", ondelete="CASCADE"), nullable=False
    )
    step_number = Column(Integer, nullable=False)
    text = Column(Text, nullable=False)

    # Relationships
    cocktail = relationship("Cocktail", back_populates="instructions")

    __table_args__ = (Index("idx_cocktail_instruction_cocktail", "cocktail_id"),)

    def __repr__(self) -> str:
        """String representation of instruction."""
        return f"CocktailInstruction(cocktail_id={self.cocktail_id}, step_number={self.step_number})"
