"""Unit Service - CRUD operations for measurement units.

Units are identified across catalogs by their abbreviation, so the
abbreviation is unique and is the field used for lookups by the recipe
import matcher.

All functions accept an optional session parameter to support being called from
other service functions that need to maintain transactional atomicity.

Example Usage:
    >>> from src.services.unit_service import create_unit, get_unit_by_abbreviation
    >>> unit = create_unit({"name": "Centiliter", "abbreviation": "cl",
    ...                     "conversion_factor_to_ml": 10})
    >>> get_unit_by_abbreviation("cl").name
    'Centiliter'
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..models.cocktail import CocktailIngredient
from ..models.unit import Unit
from ..utils.constants import DEFAULT_UNITS
from ..utils.translations import encode_translations
from .database import session_scope
from .exceptions import ConflictError, EntityInUse, UnitNotFound, ValidationError

# Configure logging
logger = logging.getLogger(__name__)


def _validate_unit_data(data: Dict[str, Any], partial: bool = False) -> None:
    """Validate unit fields, raising ValidationError with every problem found."""
    errors = []

    for field in ("name", "abbreviation"):
        if field in data or not partial:
            value = data.get(field)
            if not isinstance(value, str) or not value.strip():
                errors.append(f"Unit {field} is required")

    factor = data.get("conversion_factor_to_ml")
    if factor is not None:
        if isinstance(factor, bool) or not isinstance(factor, (int, float)) or factor <= 0:
            errors.append("Unit conversion factor must be a positive number")

    if errors:
        raise ValidationError(errors)


def list_units(session: Optional[Session] = None) -> List[Unit]:
    """Get all units ordered by name.

    Args:
        session: Optional database session. If None, creates a new session.

    Returns:
        List of Unit objects
    """

    def _impl(sess: Session) -> List[Unit]:
        return sess.query(Unit).order_by(Unit.name).all()

    if session is not None:
        return _impl(session)
    with session_scope() as sess:
        return _impl(sess)


def get_unit(unit_id: int, session: Optional[Session] = None) -> Unit:
    """Get a unit by ID.

    Raises:
        UnitNotFound: If the unit doesn't exist
    """

    def _impl(sess: Session) -> Unit:
        unit = sess.query(Unit).filter(Unit.id == unit_id).first()
        if unit is None:
            raise UnitNotFound(unit_id)
        return unit

    if session is not None:
        return _impl(session)
    with session_scope() as sess:
        return _impl(sess)


def get_unit_by_abbreviation(abbreviation: str, session: Optional[Session] = None) -> Optional[Unit]:
    """Get a unit by its exact abbreviation.

    Args:
        abbreviation: Unit abbreviation (e.g., "cl"), case-sensitive
        session: Optional database session. If None, creates a new session.

    Returns:
        Unit object if found, None otherwise.
    """

    def _impl(sess: Session) -> Optional[Unit]:
        return sess.query(Unit).filter(Unit.abbreviation == abbreviation).first()

    if session is not None:
        return _impl(session)
    with session_scope() as sess:
        return _impl(sess)


def create_unit(data: Dict[str, Any], session: Optional[Session] = None) -> Unit:
    """Create a new unit.

    Args:
        data: Dictionary with name, abbreviation, and optionally
              conversion_factor_to_ml and name_translations (dict)
        session: Optional database session

    Returns:
        Created Unit instance

    Raises:
        ValidationError: If required fields are missing or invalid
        ConflictError: If the abbreviation is already used
    """
    _validate_unit_data(data)
    abbreviation = data["abbreviation"].strip()

    def _impl(sess: Session) -> Unit:
        existing = sess.query(Unit).filter(Unit.abbreviation == abbreviation).first()
        if existing:
            raise ConflictError(
                f"Unit with abbreviation '{abbreviation}' already exists",
                abbreviation=abbreviation,
            )

        unit = Unit(
            name=data["name"].strip(),
            abbreviation=abbreviation,
            conversion_factor_to_ml=data.get("conversion_factor_to_ml"),
            name_translations=encode_translations(data.get("name_translations")),
        )
        sess.add(unit)
        sess.flush()
        logger.debug(f"Created unit '{unit.abbreviation}' (ID: {unit.id})")
        return unit

    if session is not None:
        return _impl(session)
    with session_scope() as sess:
        return _impl(sess)


def update_unit(unit_id: int, data: Dict[str, Any], session: Optional[Session] = None) -> Unit:
    """Update a unit's fields.

    Only keys present in data are changed.

    Raises:
        UnitNotFound: If the unit doesn't exist
        ValidationError: If a supplied field is invalid
        ConflictError: If the new abbreviation belongs to another unit
    """
    _validate_unit_data(data, partial=True)

    def _impl(sess: Session) -> Unit:
        unit = get_unit(unit_id, session=sess)

        if "abbreviation" in data:
            abbreviation = data["abbreviation"].strip()
            clash = (
                sess.query(Unit)
                .filter(Unit.abbreviation == abbreviation, Unit.id != unit_id)
                .first()
            )
            if clash:
                raise ConflictError(
                    f"Unit with abbreviation '{abbreviation}' already exists",
                    abbreviation=abbreviation,
                )
            unit.abbreviation = abbreviation

        if "name" in data:
            unit.name = data["name"].strip()
        if "conversion_factor_to_ml" in data:
            unit.conversion_factor_to_ml = data["conversion_factor_to_ml"]
        if "name_translations" in data:
            unit.name_translations = encode_translations(data["name_translations"])

        sess.flush()
        return unit

    if session is not None:
        return _impl(session)
    with session_scope() as sess:
        return _impl(sess)


def delete_unit(unit_id: int, session: Optional[Session] = None) -> None:
    """Delete a unit.

    Raises:
        UnitNotFound: If the unit doesn't exist
        EntityInUse: If cocktail ingredient lines still use the unit
    """

    def _impl(sess: Session) -> None:
        unit = get_unit(unit_id, session=sess)

        line_count = (
            sess.query(CocktailIngredient).filter(CocktailIngredient.unit_id == unit_id).count()
        )
        if line_count > 0:
            raise EntityInUse("unit", unit.abbreviation, {"cocktail ingredients": line_count})

        sess.delete(unit)

    if session is not None:
        return _impl(session)
    with session_scope() as sess:
        return _impl(sess)


def seed_units(session: Optional[Session] = None) -> int:
    """Seed the default bar units when the units table is empty.

    Safe to call on every startup.

    Returns:
        Number of units created (0 if units already existed)
    """

    def _impl(sess: Session) -> int:
        if sess.query(Unit).count() > 0:
            return 0

        for unit_data in DEFAULT_UNITS:
            sess.add(
                Unit(
                    name=unit_data["name"],
                    abbreviation=unit_data["abbreviation"],
                    conversion_factor_to_ml=unit_data["conversion_factor_to_ml"],
                )
            )
        sess.flush()
        return len(DEFAULT_UNITS)

    if session is not None:
        return _impl(session)
    with session_scope() as sess:
        return _impl(sess)
