"""
Category Service - CRUD operations for categories and category types.

Categories group interchangeable bottles; each category declares a type
(e.g., "SPIRIT") that must exist as a CategoryType. Creating or retyping a
category guarantees its type exists, creating it with the default color
when needed.

Session Management Pattern:
- All functions accept optional `session` parameter
- If session is provided, use it directly (allows callers to manage transactions)
- If session is None, create a new session_scope for the operation
"""

from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from src.models.bottle import Bottle
from src.models.category import Category
from src.models.category_type import CategoryType
from src.services.database import session_scope
from src.services.exceptions import (
    CategoryNotFound,
    CategoryTypeNotFound,
    ConflictError,
    EntityInUse,
    ValidationError,
)
from src.services.logging_utils import get_service_logger, log_operation
from src.utils.constants import DEFAULT_CATEGORY_TYPE_COLOR, DEFAULT_DESIRED_STOCK
from src.utils.translations import encode_translations

logger = get_service_logger(__name__)


# ============================================================================
# Validation
# ============================================================================


def _validate_category_data(data: Dict[str, Any], partial: bool = False) -> None:
    """Validate category fields, raising ValidationError with every problem found."""
    errors = []

    for field in ("name", "type"):
        if field in data or not partial:
            value = data.get(field)
            if not isinstance(value, str) or not value.strip():
                errors.append(f"Category {field} is required")

    desired_stock = data.get("desired_stock")
    if desired_stock is not None:
        if isinstance(desired_stock, bool) or not isinstance(desired_stock, int) or desired_stock < 0:
            errors.append("Desired stock must be a non-negative integer")

    if errors:
        raise ValidationError(errors)


# ============================================================================
# Category Types
# ============================================================================


def list_category_types(session: Optional[Session] = None) -> List[CategoryType]:
    """
    List all category types ordered by name.

    Args:
        session: Optional database session

    Returns:
        List of CategoryType objects
    """

    def _impl(sess: Session) -> List[CategoryType]:
        return sess.query(CategoryType).order_by(CategoryType.name).all()

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def ensure_category_type(type_name: str, session: Optional[Session] = None) -> CategoryType:
    """
    Return the category type with this name, creating it if absent.

    New types get DEFAULT_CATEGORY_TYPE_COLOR.

    Args:
        type_name: Exact type name (e.g., "SPIRIT", "CUSTOM_X")
        session: Optional database session

    Returns:
        Existing or newly created CategoryType
    """

    def _impl(sess: Session) -> CategoryType:
        category_type = sess.query(CategoryType).filter(CategoryType.name == type_name).first()
        if category_type is not None:
            return category_type

        category_type = CategoryType(name=type_name, color=DEFAULT_CATEGORY_TYPE_COLOR)
        sess.add(category_type)
        sess.flush()
        log_operation(
            logger,
            operation="ensure_category_type",
            outcome="created",
            category_type=type_name,
        )
        return category_type

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def create_category_type(
    name: str,
    color: str = DEFAULT_CATEGORY_TYPE_COLOR,
    name_translations: Optional[Dict[str, str]] = None,
    session: Optional[Session] = None,
) -> CategoryType:
    """
    Create a new category type.

    The name is stored upper-cased.

    Raises:
        ValidationError: If name is empty
        ConflictError: If a type with this name already exists
    """
    if not name or not name.strip():
        raise ValidationError(["Category type name cannot be empty"])
    type_name = name.strip().upper()

    def _impl(sess: Session) -> CategoryType:
        existing = sess.query(CategoryType).filter(CategoryType.name == type_name).first()
        if existing:
            raise ConflictError(
                f"Category type '{type_name}' already exists", category_type=type_name
            )

        category_type = CategoryType(
            name=type_name,
            color=color or DEFAULT_CATEGORY_TYPE_COLOR,
            name_translations=encode_translations(name_translations),
        )
        sess.add(category_type)
        sess.flush()
        return category_type

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def update_category_type(
    category_type_id: int,
    color: Optional[str] = None,
    name_translations: Optional[Dict[str, str]] = None,
    session: Optional[Session] = None,
) -> CategoryType:
    """
    Update a category type's color and translations.

    The name is immutable because categories refer to the type by name.

    Raises:
        CategoryTypeNotFound: If the type doesn't exist
    """

    def _impl(sess: Session) -> CategoryType:
        category_type = (
            sess.query(CategoryType).filter(CategoryType.id == category_type_id).first()
        )
        if category_type is None:
            raise CategoryTypeNotFound(category_type_id)

        if color is not None:
            category_type.color = color
        if name_translations is not None:
            category_type.name_translations = encode_translations(name_translations)

        sess.flush()
        return category_type

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def delete_category_type(category_type_id: int, session: Optional[Session] = None) -> None:
    """
    Delete a category type.

    Raises:
        CategoryTypeNotFound: If the type doesn't exist
        EntityInUse: If categories still use the type
    """

    def _impl(sess: Session) -> None:
        category_type = (
            sess.query(CategoryType).filter(CategoryType.id == category_type_id).first()
        )
        if category_type is None:
            raise CategoryTypeNotFound(category_type_id)

        category_count = (
            sess.query(Category).filter(Category.type == category_type.name).count()
        )
        if category_count > 0:
            raise EntityInUse("category type", category_type.name, {"categories": category_count})

        sess.delete(category_type)

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


# ============================================================================
# Categories
# ============================================================================


def list_categories(
    category_type: Optional[str] = None, session: Optional[Session] = None
) -> List[Category]:
    """
    List categories ordered by name.

    Args:
        category_type: Optional type name filter
        session: Optional database session

    Returns:
        List of Category objects
    """

    def _impl(sess: Session) -> List[Category]:
        query = sess.query(Category)
        if category_type is not None:
            query = query.filter(Category.type == category_type)
        return query.order_by(Category.name).all()

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def get_category(category_id: int, session: Optional[Session] = None) -> Category:
    """
    Get a category by ID.

    Raises:
        CategoryNotFound: If category doesn't exist
    """

    def _impl(sess: Session) -> Category:
        category = sess.query(Category).filter(Category.id == category_id).first()
        if category is None:
            raise CategoryNotFound(category_id)
        return category

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def create_category(data: Dict[str, Any], session: Optional[Session] = None) -> Category:
    """
    Create a new category.

    Args:
        data: Dictionary with name, type, and optionally desired_stock and
              name_translations (dict)
        session: Optional database session

    Returns:
        Created Category instance

    Raises:
        ValidationError: If name or type is missing
        ConflictError: If a category with this name already exists
    """
    _validate_category_data(data)
    name = data["name"].strip()
    type_name = data["type"].strip()

    def _impl(sess: Session) -> Category:
        existing = sess.query(Category).filter(Category.name == name).first()
        if existing:
            raise ConflictError(f"Category '{name}' already exists", category_name=name)

        ensure_category_type(type_name, session=sess)

        desired_stock = data.get("desired_stock")
        category = Category(
            name=name,
            type=type_name,
            desired_stock=DEFAULT_DESIRED_STOCK if desired_stock is None else desired_stock,
            name_translations=encode_translations(data.get("name_translations")),
        )
        sess.add(category)
        sess.flush()
        return category

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def update_category(
    category_id: int, data: Dict[str, Any], session: Optional[Session] = None
) -> Category:
    """
    Update a category's fields.

    Only keys present in data are changed. A new type is created if needed.

    Raises:
        CategoryNotFound: If category doesn't exist
        ValidationError: If a supplied field is invalid
        ConflictError: If the new name belongs to another category
    """
    _validate_category_data(data, partial=True)

    def _impl(sess: Session) -> Category:
        category = get_category(category_id, session=sess)

        if "name" in data:
            name = data["name"].strip()
            clash = (
                sess.query(Category)
                .filter(Category.name == name, Category.id != category_id)
                .first()
            )
            if clash:
                raise ConflictError(f"Category '{name}' already exists", category_name=name)
            category.name = name

        if "type" in data:
            type_name = data["type"].strip()
            ensure_category_type(type_name, session=sess)
            category.type = type_name

        if data.get("desired_stock") is not None:
            category.desired_stock = data["desired_stock"]
        if "name_translations" in data:
            category.name_translations = encode_translations(data["name_translations"])

        sess.flush()
        return category

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def delete_category(category_id: int, session: Optional[Session] = None) -> None:
    """
    Delete a category.

    Raises:
        CategoryNotFound: If category doesn't exist
        EntityInUse: If bottles still belong to the category
    """

    def _impl(sess: Session) -> None:
        category = get_category(category_id, session=sess)

        bottle_count = sess.query(Bottle).filter(Bottle.category_id == category_id).count()
        if bottle_count > 0:
            raise EntityInUse("category", category.name, {"bottles": bottle_count})

        sess.delete(category)

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)
