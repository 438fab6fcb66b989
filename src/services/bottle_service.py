"""
Bottle Service - CRUD operations for bottles.

Every bottle belongs to a category; the category must exist when the bottle
is created or moved.

Session Management Pattern:
- All functions accept optional `session` parameter
- If session is provided, use it directly (allows callers to manage transactions)
- If session is None, create a new session_scope for the operation
"""

from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from src.models.bottle import Bottle
from src.models.category import Category
from src.services.category_service import get_category
from src.services.database import session_scope
from src.services.exceptions import BottleNotFound, ConflictError, ValidationError
from src.utils.constants import DEFAULT_REMAINING_PERCENT

# Fields copied verbatim from the input dictionary when present
OPTIONAL_FIELDS = (
    "purchase_price",
    "opened_at",
    "alcohol_percentage",
    "is_apero",
    "is_digestif",
)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _validate_bottle_data(data: Dict[str, Any], partial: bool = False) -> None:
    """Validate bottle fields, raising ValidationError with every problem found."""
    errors = []

    if "name" in data or not partial:
        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            errors.append("Bottle name is required")

    if "category_id" in data or not partial:
        if not isinstance(data.get("category_id"), int):
            errors.append("Bottle category is required")

    if "capacity_ml" in data or not partial:
        capacity = data.get("capacity_ml")
        if not _is_number(capacity) or capacity <= 0:
            errors.append("Bottle capacity must be a positive number")

    remaining = data.get("remaining_percent")
    if remaining is not None and (not _is_number(remaining) or not 0 <= remaining <= 100):
        errors.append("Remaining percent must be between 0 and 100")

    for field in ("purchase_price", "alcohol_percentage"):
        value = data.get(field)
        if value is not None and (not _is_number(value) or value < 0):
            errors.append(f"Bottle {field.replace('_', ' ')} must be a non-negative number")

    if errors:
        raise ValidationError(errors)


def list_bottles(
    category_id: Optional[int] = None,
    category_type: Optional[str] = None,
    session: Optional[Session] = None,
) -> List[Bottle]:
    """
    List bottles ordered by name.

    Args:
        category_id: Optional category filter
        category_type: Optional category type filter (e.g., "SPIRIT")
        session: Optional database session

    Returns:
        List of Bottle objects with their category loaded
    """

    def _impl(sess: Session) -> List[Bottle]:
        query = sess.query(Bottle)
        if category_id is not None:
            query = query.filter(Bottle.category_id == category_id)
        if category_type is not None:
            query = query.join(Category, Bottle.category_id == Category.id).filter(
                Category.type == category_type
            )
        return query.order_by(Bottle.name).all()

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def get_bottle(bottle_id: int, session: Optional[Session] = None) -> Bottle:
    """
    Get a bottle by ID.

    Raises:
        BottleNotFound: If bottle doesn't exist
    """

    def _impl(sess: Session) -> Bottle:
        bottle = sess.query(Bottle).filter(Bottle.id == bottle_id).first()
        if bottle is None:
            raise BottleNotFound(bottle_id)
        return bottle

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def create_bottle(data: Dict[str, Any], session: Optional[Session] = None) -> Bottle:
    """
    Create a new bottle.

    Args:
        data: Dictionary with name, category_id, capacity_ml and optionally
              remaining_percent, purchase_price, opened_at, alcohol_percentage,
              is_apero, is_digestif
        session: Optional database session

    Returns:
        Created Bottle instance

    Raises:
        ValidationError: If required fields are missing or invalid
        CategoryNotFound: If the category doesn't exist
        ConflictError: If a bottle with this name already exists
    """
    _validate_bottle_data(data)
    name = data["name"].strip()

    def _impl(sess: Session) -> Bottle:
        existing = sess.query(Bottle).filter(Bottle.name == name).first()
        if existing:
            raise ConflictError(f"Bottle '{name}' already exists", bottle_name=name)

        category = get_category(data["category_id"], session=sess)

        remaining = data.get("remaining_percent")
        bottle = Bottle(
            name=name,
            category=category,
            capacity_ml=data["capacity_ml"],
            remaining_percent=DEFAULT_REMAINING_PERCENT if remaining is None else remaining,
        )
        for field in OPTIONAL_FIELDS:
            if data.get(field) is not None:
                setattr(bottle, field, data[field])

        sess.add(bottle)
        sess.flush()
        return bottle

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def update_bottle(bottle_id: int, data: Dict[str, Any], session: Optional[Session] = None) -> Bottle:
    """
    Update a bottle's fields.

    Only keys present in data are changed.

    Raises:
        BottleNotFound: If bottle doesn't exist
        CategoryNotFound: If the new category doesn't exist
        ValidationError: If a supplied field is invalid
        ConflictError: If the new name belongs to another bottle
    """
    _validate_bottle_data(data, partial=True)

    def _impl(sess: Session) -> Bottle:
        bottle = get_bottle(bottle_id, session=sess)

        if "name" in data:
            name = data["name"].strip()
            clash = sess.query(Bottle).filter(Bottle.name == name, Bottle.id != bottle_id).first()
            if clash:
                raise ConflictError(f"Bottle '{name}' already exists", bottle_name=name)
            bottle.name = name

        if "category_id" in data:
            bottle.category = get_category(data["category_id"], session=sess)

        for field in ("capacity_ml", "remaining_percent") + OPTIONAL_FIELDS:
            if field in data:
                setattr(bottle, field, data[field])

        sess.flush()
        return bottle

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def delete_bottle(bottle_id: int, session: Optional[Session] = None) -> None:
    """
    Delete a bottle.

    Ingredient lines pointing at the bottle lose their reference; preferred
    bottle entries are removed with it.

    Raises:
        BottleNotFound: If bottle doesn't exist
    """

    def _impl(sess: Session) -> None:
        bottle = get_bottle(bottle_id, session=sess)
        sess.delete(bottle)

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)
