"""Services package - Business logic layer for Bar Catalog.

This package contains all service modules that provide business logic
and database operations for the application.

Architecture:
- Services: Stateless functions organized by domain (unit, category, bottle, ingredient, cocktail)
- Transactions: Managed via session_scope() context manager
- Exceptions: Consistent error handling via ServiceError hierarchy
- Validation: Input validation before database operations

Service Modules:
- unit_service: Measurement units, matched across catalogs by abbreviation
- category_service: Categories and category types
- bottle_service: Bottles and their categories
- ingredient_service: Non-bottle ingredients
- cocktail_service: Cocktails with ingredient lines and instructions
- recipe_transfer: Portable recipe export, import preview and import confirm

Infrastructure:
- exceptions: Custom exception classes for service layer errors
- database: Session management and database utilities
- logging_utils: Structured operation logging
"""

# Service modules
from . import (
    database,
    unit_service,
    category_service,
    bottle_service,
    ingredient_service,
    cocktail_service,
)

# Exceptions
from .exceptions import (
    ServiceError,
    ValidationError,
    NotFoundError,
    CocktailNotFound,
    CategoryNotFound,
    CategoryTypeNotFound,
    BottleNotFound,
    UnitNotFound,
    IngredientNotFound,
    ConflictError,
    EntityInUse,
    DatabaseError,
)

__all__ = [
    "database",
    "unit_service",
    "category_service",
    "bottle_service",
    "ingredient_service",
    "cocktail_service",
    "ServiceError",
    "ValidationError",
    "NotFoundError",
    "CocktailNotFound",
    "CategoryNotFound",
    "CategoryTypeNotFound",
    "BottleNotFound",
    "UnitNotFound",
    "IngredientNotFound",
    "ConflictError",
    "EntityInUse",
    "DatabaseError",
]
