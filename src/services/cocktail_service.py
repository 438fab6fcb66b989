"""
Cocktail Service - CRUD operations for cocktails and their composition.

A cocktail owns an ordered list of ingredient lines and an ordered list of
instruction steps. Both collections are replace-only: creating or updating
them always rebuilds the whole list, assigning positions 0..n-1 to
ingredient lines and step numbers 1..n to instructions from input order.

Ingredient line input shape:
    {
        "quantity": 4.5,
        "unit_id": 1,                       # optional
        "source_type": "BOTTLE" | "CATEGORY" | "INGREDIENT",
        "bottle_id": 3,                     # BOTTLE lines
        "category_id": 2,                   # CATEGORY lines
        "ingredient_id": 7,                 # INGREDIENT lines
        "preferred_bottle_ids": [3, 4],     # CATEGORY lines, optional
    }

The referenced id of a line may be None (an unresolved source).

Session Management Pattern:
- All functions accept optional `session` parameter
- If session is provided, use it directly (allows callers to manage transactions)
- If session is None, create a new session_scope for the operation
"""

from typing import Any, Dict, List, Optional, Union

from sqlalchemy.orm import Session

from src.models.bottle import Bottle
from src.models.category import Category
from src.models.cocktail import (
    Cocktail,
    CocktailIngredient,
    CocktailInstruction,
    CocktailPreferredBottle,
)
from src.models.enums import SourceType
from src.models.ingredient import Ingredient
from src.models.unit import Unit
from src.services.database import session_scope
from src.services.exceptions import CocktailNotFound, ConflictError, ValidationError
from src.services.logging_utils import get_service_logger
from src.utils.constants import TAG_SEPARATOR

logger = get_service_logger(__name__)

SCALAR_FIELDS = ("description", "notes", "image_path")

# Source type -> (id field, referenced model)
SOURCE_REFERENCES = {
    SourceType.BOTTLE.value: ("bottle_id", Bottle),
    SourceType.CATEGORY.value: ("category_id", Category),
    SourceType.INGREDIENT.value: ("ingredient_id", Ingredient),
}


# ============================================================================
# Tags
# ============================================================================


def split_tags(raw: Optional[str]) -> List[str]:
    """
    Split the stored tag column into a list.

    Entries are trimmed and empty entries dropped; order is preserved.

    Example:
        >>> split_tags(" sour, classic,,")
        ['sour', 'classic']
    """
    if not raw:
        return []
    return [tag.strip() for tag in raw.split(TAG_SEPARATOR) if tag.strip()]


def join_tags(tags: Union[None, str, List[str]]) -> Optional[str]:
    """
    Join tags into the stored column format.

    Accepts a list or an already-joined string. Returns None when no tag remains.
    """
    if tags is None:
        return None
    if isinstance(tags, str):
        tags = tags.split(TAG_SEPARATOR)
    cleaned = [str(tag).strip() for tag in tags if str(tag).strip()]
    return TAG_SEPARATOR.join(cleaned) if cleaned else None


# ============================================================================
# Validation and builders
# ============================================================================


def _is_positive_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0


def _validate_cocktail_data(data: Dict[str, Any], partial: bool = False) -> None:
    """Validate cocktail fields and line shapes, collecting every error."""
    errors = []

    if "name" in data or not partial:
        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            errors.append("Cocktail name is required")

    for index, line in enumerate(data.get("ingredients") or []):
        if not _is_positive_number(line.get("quantity")):
            errors.append(f"Ingredient line {index + 1}: quantity must be a positive number")
        if line.get("source_type") not in SOURCE_REFERENCES:
            errors.append(f"Ingredient line {index + 1}: invalid source type {line.get('source_type')!r}")

    for index, step in enumerate(data.get("instructions") or []):
        text = step.get("text") if isinstance(step, dict) else step
        if not isinstance(text, str) or not text.strip():
            errors.append(f"Instruction {index + 1}: text is required")

    if errors:
        raise ValidationError(errors)


def _check_reference(sess: Session, model, ref_id: Optional[int], label: str, errors: List[str]) -> None:
    if ref_id is not None and sess.get(model, ref_id) is None:
        errors.append(f"{label} with ID {ref_id} does not exist")


def _build_ingredient_lines(sess: Session, lines: List[Dict[str, Any]]) -> List[CocktailIngredient]:
    """
    Build ingredient line rows, positioned 0..n-1 in input order.

    Raises:
        ValidationError: If a referenced unit, bottle, category or ingredient does not exist
    """
    errors: List[str] = []
    rows = []

    for position, line in enumerate(lines):
        source_type = line["source_type"]
        id_field, model = SOURCE_REFERENCES[source_type]
        ref_id = line.get(id_field)

        _check_reference(sess, Unit, line.get("unit_id"), "Unit", errors)
        _check_reference(sess, model, ref_id, model.__name__, errors)

        row = CocktailIngredient(
            quantity=line["quantity"],
            unit_id=line.get("unit_id"),
            source_type=source_type,
            position=position,
        )
        setattr(row, id_field, ref_id)

        if source_type == SourceType.CATEGORY.value:
            seen = set()
            for bottle_id in line.get("preferred_bottle_ids") or []:
                if bottle_id in seen:
                    continue
                seen.add(bottle_id)
                _check_reference(sess, Bottle, bottle_id, "Bottle", errors)
                row.preferred_bottles.append(CocktailPreferredBottle(bottle_id=bottle_id))

        rows.append(row)

    if errors:
        raise ValidationError(errors)
    return rows


def _build_instructions(steps: List[Any]) -> List[CocktailInstruction]:
    """Build instruction rows numbered 1..n in input order."""
    rows = []
    for step_number, step in enumerate(steps, start=1):
        text = step.get("text") if isinstance(step, dict) else step
        rows.append(CocktailInstruction(step_number=step_number, text=text.strip()))
    return rows


def _load_cocktail(sess: Session, cocktail_id: int) -> Cocktail:
    """Reload a cocktail with every relationship populated from the database."""
    sess.expire_all()
    cocktail = sess.query(Cocktail).filter(Cocktail.id == cocktail_id).first()
    if cocktail is None:
        raise CocktailNotFound(cocktail_id)
    return cocktail


# ============================================================================
# Read shape
# ============================================================================


def _line_to_dict(line: CocktailIngredient) -> Dict[str, Any]:
    return {
        "id": line.id,
        "position": line.position,
        "quantity": line.quantity,
        "source_type": line.source_type,
        "unit_id": line.unit_id,
        "unit": line.unit.to_dict() if line.unit else None,
        "bottle_id": line.bottle_id,
        "bottle": line.bottle.to_dict() if line.bottle else None,
        "category_id": line.category_id,
        "category": line.category.to_dict() if line.category else None,
        "ingredient_id": line.ingredient_id,
        "ingredient": line.ingredient.to_dict() if line.ingredient else None,
        "preferred_bottles": [
            preferred.bottle.to_dict() for preferred in line.preferred_bottles if preferred.bottle
        ],
    }


def cocktail_to_dict(cocktail: Cocktail) -> Dict[str, Any]:
    """
    Convert a cocktail and its composition to a dictionary.

    Ingredient lines are ordered by position and instructions by step
    number. Tags are returned as a list.

    Args:
        cocktail: Cocktail with relationships loaded (or an open session)

    Returns:
        Dictionary with scalar fields, "tags", "ingredients" and "instructions"
    """
    result = {
        "id": cocktail.id,
        "name": cocktail.name,
        "description": cocktail.description,
        "notes": cocktail.notes,
        "image_path": cocktail.image_path,
        "tags": split_tags(cocktail.tags),
        "is_available": cocktail.is_available,
        "created_at": cocktail.created_at.isoformat() if cocktail.created_at else None,
        "updated_at": cocktail.updated_at.isoformat() if cocktail.updated_at else None,
    }
    lines = sorted(cocktail.ingredients, key=lambda line: line.position)
    result["ingredients"] = [_line_to_dict(line) for line in lines]
    steps = sorted(cocktail.instructions, key=lambda step: step.step_number)
    result["instructions"] = [
        {"id": step.id, "step_number": step.step_number, "text": step.text} for step in steps
    ]
    return result


# ============================================================================
# CRUD Operations
# ============================================================================


def list_cocktails(available_only: bool = False, session: Optional[Session] = None) -> List[Cocktail]:
    """
    List cocktails ordered by name.

    Args:
        available_only: If True, only return cocktails marked available
        session: Optional database session

    Returns:
        List of Cocktail objects
    """

    def _impl(sess: Session) -> List[Cocktail]:
        query = sess.query(Cocktail)
        if available_only:
            query = query.filter(Cocktail.is_available.is_(True))
        return query.order_by(Cocktail.name).all()

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def get_cocktail(cocktail_id: int, session: Optional[Session] = None) -> Cocktail:
    """
    Get a cocktail by ID with ingredients, preferred bottles and instructions loaded.

    Raises:
        CocktailNotFound: If cocktail doesn't exist
    """

    def _impl(sess: Session) -> Cocktail:
        cocktail = sess.query(Cocktail).filter(Cocktail.id == cocktail_id).first()
        if cocktail is None:
            raise CocktailNotFound(cocktail_id)
        return cocktail

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def find_cocktail_by_name(name: str, session: Optional[Session] = None) -> Optional[Cocktail]:
    """
    Find a cocktail by exact, case-sensitive name.

    Returns:
        Cocktail if found, None otherwise
    """

    def _impl(sess: Session) -> Optional[Cocktail]:
        return sess.query(Cocktail).filter(Cocktail.name == name).first()

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def create_cocktail(data: Dict[str, Any], session: Optional[Session] = None) -> Cocktail:
    """
    Create a cocktail with its ingredient lines and instructions.

    Args:
        data: Dictionary with name and optionally description, notes,
              image_path, tags (list or joined string), is_available,
              ingredients (list of line dicts) and instructions (list of
              strings or {"text": ...} dicts)
        session: Optional database session

    Returns:
        Created Cocktail instance with relationships loaded

    Raises:
        ValidationError: If fields are invalid or a referenced row is missing
        ConflictError: If a cocktail with this name already exists
    """
    _validate_cocktail_data(data)
    name = data["name"].strip()

    def _impl(sess: Session) -> Cocktail:
        existing = sess.query(Cocktail).filter(Cocktail.name == name).first()
        if existing:
            raise ConflictError(f"Cocktail '{name}' already exists", cocktail_name=name)

        is_available = data.get("is_available")
        cocktail = Cocktail(
            name=name,
            tags=join_tags(data.get("tags")),
            is_available=True if is_available is None else bool(is_available),
        )
        for field in SCALAR_FIELDS:
            setattr(cocktail, field, data.get(field))

        cocktail.ingredients = _build_ingredient_lines(sess, data.get("ingredients") or [])
        cocktail.instructions = _build_instructions(data.get("instructions") or [])

        sess.add(cocktail)
        sess.flush()
        logger.debug(
            f"Created cocktail '{cocktail.name}' (ID: {cocktail.id}) with "
            f"{len(cocktail.ingredients)} ingredient(s)"
        )
        return _load_cocktail(sess, cocktail.id)

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def update_cocktail(
    cocktail_id: int, data: Dict[str, Any], session: Optional[Session] = None
) -> Cocktail:
    """
    Update a cocktail.

    Scalar fields present in data are patched. When "ingredients" or
    "instructions" is present the whole collection is replaced.

    Raises:
        CocktailNotFound: If cocktail doesn't exist
        ValidationError: If a supplied field is invalid
        ConflictError: If the new name belongs to another cocktail
    """
    _validate_cocktail_data(data, partial=True)

    def _impl(sess: Session) -> Cocktail:
        cocktail = get_cocktail(cocktail_id, session=sess)

        if "name" in data:
            name = data["name"].strip()
            clash = (
                sess.query(Cocktail)
                .filter(Cocktail.name == name, Cocktail.id != cocktail_id)
                .first()
            )
            if clash:
                raise ConflictError(f"Cocktail '{name}' already exists", cocktail_name=name)
            cocktail.name = name

        for field in SCALAR_FIELDS:
            if field in data:
                setattr(cocktail, field, data[field])
        if "tags" in data:
            cocktail.tags = join_tags(data["tags"])
        if data.get("is_available") is not None:
            cocktail.is_available = bool(data["is_available"])

        if "ingredients" in data:
            new_lines = _build_ingredient_lines(sess, data["ingredients"] or [])
            cocktail.ingredients.clear()
            sess.flush()
            cocktail.ingredients.extend(new_lines)
        if "instructions" in data:
            cocktail.instructions.clear()
            sess.flush()
            cocktail.instructions.extend(_build_instructions(data["instructions"] or []))

        sess.flush()
        return _load_cocktail(sess, cocktail.id)

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def delete_cocktail(cocktail_id: int, session: Optional[Session] = None) -> None:
    """
    Delete a cocktail together with its ingredient lines and instructions.

    Raises:
        CocktailNotFound: If cocktail doesn't exist
    """

    def _impl(sess: Session) -> None:
        cocktail = get_cocktail(cocktail_id, session=sess)
        sess.delete(cocktail)

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)
