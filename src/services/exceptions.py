"""Service layer exception classes for Bar Catalog.

This module defines all custom exceptions used by the service layer to provide
consistent error handling across the application. Every exception carries an
``http_status_code`` so an outer surface (CLI, web layer) can map it without
knowing the concrete class.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError (400)
    ├── NotFoundError (404)
    │   ├── CocktailNotFound
    │   ├── CategoryNotFound
    │   ├── CategoryTypeNotFound
    │   ├── BottleNotFound
    │   ├── UnitNotFound
    │   └── IngredientNotFound
    ├── ConflictError (409)
    │   └── EntityInUse
    └── DatabaseError (500)
"""

from typing import Any, Dict, List, Optional


class ServiceError(Exception):
    """Base exception for all service layer errors.

    Args:
        message: Human-readable error message
        correlation_id: Optional correlation ID for tracing
        **context: Additional structured context for logging

    HTTP Status: 500 Internal Server Error (unless overridden)
    """

    http_status_code = 500

    def __init__(self, message: str, correlation_id: Optional[str] = None, **context: Any):
        self.message = message
        self.correlation_id = correlation_id
        self.context: Dict[str, Any] = context
        super().__init__(message)


class ValidationError(ServiceError):
    """Raised when data validation fails.

    Args:
        errors: List of validation messages

    Example:
        >>> raise ValidationError(["Name is required"])
        ValidationError: Validation failed: Name is required
    """

    http_status_code = 400

    def __init__(self, errors: List[str], correlation_id: Optional[str] = None):
        self.errors = errors
        error_msg = "; ".join(errors)
        super().__init__(f"Validation failed: {error_msg}", correlation_id=correlation_id)


class NotFoundError(ServiceError):
    """Base for lookups that found no row.

    HTTP Status: 404 Not Found
    """

    http_status_code = 404


class CocktailNotFound(NotFoundError):
    """Raised when a cocktail cannot be found by ID.

    Example:
        >>> raise CocktailNotFound(12)
        CocktailNotFound: Cocktail with ID 12 not found
    """

    def __init__(self, cocktail_id: int):
        self.cocktail_id = cocktail_id
        super().__init__(f"Cocktail with ID {cocktail_id} not found", cocktail_id=cocktail_id)


class CategoryNotFound(NotFoundError):
    """Raised when a category cannot be found by ID."""

    def __init__(self, category_id: int):
        self.category_id = category_id
        super().__init__(f"Category with ID {category_id} not found", category_id=category_id)


class CategoryTypeNotFound(NotFoundError):
    """Raised when a category type cannot be found by ID."""

    def __init__(self, category_type_id: int):
        self.category_type_id = category_type_id
        super().__init__(
            f"Category type with ID {category_type_id} not found",
            category_type_id=category_type_id,
        )


class BottleNotFound(NotFoundError):
    """Raised when a bottle cannot be found by ID."""

    def __init__(self, bottle_id: int):
        self.bottle_id = bottle_id
        super().__init__(f"Bottle with ID {bottle_id} not found", bottle_id=bottle_id)


class UnitNotFound(NotFoundError):
    """Raised when a unit cannot be found by ID."""

    def __init__(self, unit_id: int):
        self.unit_id = unit_id
        super().__init__(f"Unit with ID {unit_id} not found", unit_id=unit_id)


class IngredientNotFound(NotFoundError):
    """Raised when an ingredient cannot be found by ID."""

    def __init__(self, ingredient_id: int):
        self.ingredient_id = ingredient_id
        super().__init__(
            f"Ingredient with ID {ingredient_id} not found", ingredient_id=ingredient_id
        )


class ConflictError(ServiceError):
    """Raised when a write collides with existing data (e.g., a duplicate name).

    HTTP Status: 409 Conflict
    """

    http_status_code = 409


class EntityInUse(ConflictError):
    """Raised when attempting to delete an entity that still has dependents.

    Args:
        entity_type: Kind of entity being deleted (e.g., "category")
        identifier: Name or ID of the entity
        dependencies: Dictionary of dependency counts {entity_type: count}

    Example:
        >>> raise EntityInUse("category", "White Rum", {"bottles": 3})
        EntityInUse: Cannot delete category 'White Rum': used in 3 bottles
    """

    def __init__(self, entity_type: str, identifier: Any, dependencies: Dict[str, int]):
        self.entity_type = entity_type
        self.identifier = identifier
        self.dependencies = dependencies

        details = ", ".join(
            f"{count} {dep_type}" for dep_type, count in dependencies.items() if count > 0
        )

        super().__init__(
            f"Cannot delete {entity_type} '{identifier}': used in {details}",
            entity_type=entity_type,
            dependencies=dependencies,
        )


class DatabaseError(ServiceError):
    """Raised when a database operation fails.

    The message is opaque to callers; the underlying exception is kept for logs.
    """

    http_status_code = 500

    def __init__(
        self,
        message: str,
        original_error: Optional[Exception] = None,
        correlation_id: Optional[str] = None,
    ):
        self.original_error = original_error
        super().__init__(f"Database error: {message}", correlation_id=correlation_id)
