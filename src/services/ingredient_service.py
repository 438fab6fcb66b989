"""
Ingredient Service - CRUD operations for non-bottle ingredients.

Session Management Pattern:
- All functions accept optional `session` parameter
- If session is provided, use it directly (allows callers to manage transactions)
- If session is None, create a new session_scope for the operation
"""

from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from src.models.ingredient import Ingredient
from src.services.database import session_scope
from src.services.exceptions import ConflictError, IngredientNotFound, ValidationError
from src.utils.translations import encode_translations


def _validate_ingredient_data(data: Dict[str, Any], partial: bool = False) -> None:
    if "name" in data or not partial:
        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ValidationError(["Ingredient name is required"])


def list_ingredients(
    available_only: bool = False, session: Optional[Session] = None
) -> List[Ingredient]:
    """
    List ingredients ordered by name.

    Args:
        available_only: If True, only return ingredients marked available
        session: Optional database session

    Returns:
        List of Ingredient objects
    """

    def _impl(sess: Session) -> List[Ingredient]:
        query = sess.query(Ingredient)
        if available_only:
            query = query.filter(Ingredient.is_available.is_(True))
        return query.order_by(Ingredient.name).all()

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def get_ingredient(ingredient_id: int, session: Optional[Session] = None) -> Ingredient:
    """
    Get an ingredient by ID.

    Raises:
        IngredientNotFound: If ingredient doesn't exist
    """

    def _impl(sess: Session) -> Ingredient:
        ingredient = sess.query(Ingredient).filter(Ingredient.id == ingredient_id).first()
        if ingredient is None:
            raise IngredientNotFound(ingredient_id)
        return ingredient

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def create_ingredient(data: Dict[str, Any], session: Optional[Session] = None) -> Ingredient:
    """
    Create a new ingredient.

    Args:
        data: Dictionary with name and optionally icon, is_available and
              name_translations (dict)
        session: Optional database session

    Returns:
        Created Ingredient instance

    Raises:
        ValidationError: If name is missing
        ConflictError: If an ingredient with this name already exists
    """
    _validate_ingredient_data(data)
    name = data["name"].strip()

    def _impl(sess: Session) -> Ingredient:
        existing = sess.query(Ingredient).filter(Ingredient.name == name).first()
        if existing:
            raise ConflictError(f"Ingredient '{name}' already exists", ingredient_name=name)

        is_available = data.get("is_available")
        ingredient = Ingredient(
            name=name,
            icon=data.get("icon"),
            is_available=True if is_available is None else bool(is_available),
            name_translations=encode_translations(data.get("name_translations")),
        )
        sess.add(ingredient)
        sess.flush()
        return ingredient

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def update_ingredient(
    ingredient_id: int, data: Dict[str, Any], session: Optional[Session] = None
) -> Ingredient:
    """
    Update an ingredient's fields.

    Raises:
        IngredientNotFound: If ingredient doesn't exist
        ValidationError: If the new name is empty
        ConflictError: If the new name belongs to another ingredient
    """
    _validate_ingredient_data(data, partial=True)

    def _impl(sess: Session) -> Ingredient:
        ingredient = get_ingredient(ingredient_id, session=sess)

        if "name" in data:
            name = data["name"].strip()
            clash = (
                sess.query(Ingredient)
                .filter(Ingredient.name == name, Ingredient.id != ingredient_id)
                .first()
            )
            if clash:
                raise ConflictError(f"Ingredient '{name}' already exists", ingredient_name=name)
            ingredient.name = name

        if "icon" in data:
            ingredient.icon = data["icon"]
        if data.get("is_available") is not None:
            ingredient.is_available = bool(data["is_available"])
        if "name_translations" in data:
            ingredient.name_translations = encode_translations(data["name_translations"])

        sess.flush()
        return ingredient

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def delete_ingredient(ingredient_id: int, session: Optional[Session] = None) -> None:
    """
    Delete an ingredient.

    Raises:
        IngredientNotFound: If ingredient doesn't exist
    """

    def _impl(sess: Session) -> None:
        ingredient = get_ingredient(ingredient_id, session=sess)
        sess.delete(ingredient)

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)
