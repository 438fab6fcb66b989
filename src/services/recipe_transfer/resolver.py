"""
Import resolver (confirm).

Applies caller-approved resolutions to a portable recipe and creates the
cocktail. Processing runs in fixed dependency order, each step filling an
explicit key -> catalog ID map consumed by the later steps:

    1. units        (use_existing | create)
    2. categories   (use_existing | create; create ensures the category type)
    3. bottles      (use_existing | create | skip; create needs a resolved category)
    4. ingredients  (use_existing | create)
    5. ingredient line materialization with the fallback chain
       BOTTLE -> CATEGORY -> unresolved INGREDIENT
    6. cocktail creation

Steps 1-6 share one transaction: any failure rolls back every entity the
confirm created.

Resolution wire shape:
    {
        "units": {"cl": {"action": "use_existing", "existingId": 1}},
        "categories": {"white rum": {"action": "create",
                                     "data": {"name": "White Rum", "type": "SPIRIT"}}},
        "bottles": {"havana club 3": {"action": "skip"}},
        "ingredients": {}
    }
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.models.bottle import Bottle
from src.models.category import Category
from src.models.enums import SourceType
from src.models.ingredient import Ingredient
from src.models.unit import Unit
from src.services import (
    bottle_service,
    category_service,
    cocktail_service,
    ingredient_service,
    unit_service,
)
from src.services.database import session_scope
from src.services.exceptions import (
    ConflictError,
    DatabaseError,
    ServiceError,
    ValidationError,
)
from src.services.logging_utils import get_service_logger, log_operation
from src.services.recipe_transfer.document import (
    BottleSource,
    IngredientLine,
    PortableRecipeDocument,
    coerce_document,
)
from src.services.recipe_transfer.keys import normalize_key
from src.services.recipe_transfer.matcher import REFERENCE_KINDS, ImportPreview
from src.utils.constants import (
    DEFAULT_BOTTLE_CAPACITY_ML,
    DEFAULT_CATEGORY_TYPE,
    DEFAULT_DESIRED_STOCK,
    DEFAULT_REMAINING_PERCENT,
)

logger = get_service_logger(__name__)

KIND_MODELS = {
    "units": Unit,
    "categories": Category,
    "bottles": Bottle,
    "ingredients": Ingredient,
}


# ============================================================================
# Enums and Data Classes
# ============================================================================


class ResolutionAction(str, Enum):
    """Caller's decision for one referenced entity."""

    USE_EXISTING = "use_existing"  # Map to an existing catalog row
    CREATE = "create"  # Create a new row from the supplied data
    SKIP = "skip"  # Leave unresolved (bottles only)


@dataclass
class Resolution:
    """
    Resolution for one matching key.

    Attributes:
        action: The resolution action
        existing_id: Catalog ID (USE_EXISTING)
        data: Creation payload in wire (camelCase) shape (CREATE)
    """

    action: ResolutionAction
    existing_id: Optional[int] = None
    data: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"action": self.action.value}
        if self.existing_id is not None:
            result["existingId"] = self.existing_id
        if self.data is not None:
            result["data"] = self.data
        return result


@dataclass
class ImportResolutions:
    """Resolutions per reference kind, keyed by normalized matching key."""

    units: Dict[str, Resolution] = field(default_factory=dict)
    categories: Dict[str, Resolution] = field(default_factory=dict)
    bottles: Dict[str, Resolution] = field(default_factory=dict)
    ingredients: Dict[str, Resolution] = field(default_factory=dict)

    def for_kind(self, kind: str) -> Dict[str, Resolution]:
        if kind not in REFERENCE_KINDS:
            raise ValueError(f"Unknown reference kind: {kind}")
        return getattr(self, kind)

    def to_dict(self) -> Dict[str, Any]:
        return {
            kind: {key: resolution.to_dict() for key, resolution in self.for_kind(kind).items()}
            for kind in REFERENCE_KINDS
        }


@dataclass
class ResolvedSource:
    """Outcome of the fallback chain for one ingredient line."""

    source_type: SourceType
    ref_id: Optional[int] = None


# ============================================================================
# Parsing and defaults
# ============================================================================


def _parse_resolution(kind: str, key: str, payload: Any, errors: List[str]) -> Optional[Resolution]:
    label = f"{kind}[{key!r}]"
    if not isinstance(payload, dict):
        errors.append(f"{label} must be an object")
        return None

    try:
        action = ResolutionAction(payload.get("action"))
    except ValueError:
        errors.append(f"{label}: unknown action {payload.get('action')!r}")
        return None

    if action == ResolutionAction.SKIP and kind != "bottles":
        errors.append(f"{label}: skip is only allowed for bottles")
        return None

    existing_id = payload.get("existingId")
    if action == ResolutionAction.USE_EXISTING and (
        isinstance(existing_id, bool) or not isinstance(existing_id, int)
    ):
        errors.append(f"{label}: use_existing requires an integer existingId")
        return None

    data = payload.get("data")
    if data is not None and not isinstance(data, dict):
        errors.append(f"{label}: data must be an object")
        return None

    return Resolution(action=action, existing_id=existing_id, data=data)


def parse_resolutions(payload: Optional[Dict[str, Any]]) -> ImportResolutions:
    """
    Parse resolutions from their wire shape.

    Keys are normalized, so "Rum" and "rum" address the same entity.

    Raises:
        ValidationError: On unknown actions, skip outside bottles, or malformed entries
    """
    resolutions = ImportResolutions()
    if not payload:
        return resolutions
    if not isinstance(payload, dict):
        raise ValidationError(["Resolutions must be an object"])

    errors: List[str] = []
    for kind in REFERENCE_KINDS:
        entries = payload.get(kind) or {}
        if not isinstance(entries, dict):
            errors.append(f"{kind} must be an object keyed by matching key")
            continue
        for key, entry in entries.items():
            resolution = _parse_resolution(kind, key, entry, errors)
            if resolution is not None:
                resolutions.for_kind(kind)[normalize_key(key)] = resolution

    if errors:
        raise ValidationError(errors)
    return resolutions


def _default_create_data(kind: str, ref: Dict[str, Any]) -> Dict[str, Any]:
    """Creation payload for a missing reference, filling catalog defaults."""
    if kind == "units":
        return {
            "name": ref.get("name") or ref.get("abbreviation"),
            "abbreviation": ref.get("abbreviation"),
            "conversionFactorToMl": ref.get("conversionFactorToMl"),
            "nameTranslations": ref.get("nameTranslations"),
        }
    if kind == "categories":
        desired_stock = ref.get("desiredStock")
        return {
            "name": ref.get("name"),
            "type": ref.get("type") or DEFAULT_CATEGORY_TYPE,
            "desiredStock": DEFAULT_DESIRED_STOCK if desired_stock is None else desired_stock,
            "nameTranslations": ref.get("nameTranslations"),
        }
    if kind == "bottles":
        return {
            "name": ref.get("name"),
            "categoryName": ref.get("categoryName"),
            "capacityMl": DEFAULT_BOTTLE_CAPACITY_ML,
            "remainingPercent": DEFAULT_REMAINING_PERCENT,
        }
    return {
        "name": ref.get("name"),
        "icon": ref.get("icon"),
        "nameTranslations": ref.get("nameTranslations"),
    }


def build_default_resolutions(preview: ImportPreview) -> ImportResolutions:
    """
    Resolutions that reuse every matched entity and create every missing one.

    Args:
        preview: Result of preview_import for the same document

    Returns:
        ImportResolutions covering every key in the preview
    """
    resolutions = ImportResolutions()
    for kind in REFERENCE_KINDS:
        for match in preview.results(kind):
            if match.is_matched:
                resolution = Resolution(
                    action=ResolutionAction.USE_EXISTING,
                    existing_id=match.existing_match["id"],
                )
            else:
                resolution = Resolution(
                    action=ResolutionAction.CREATE,
                    data=_default_create_data(kind, match.ref),
                )
            resolutions.for_kind(kind)[match.key] = resolution
    return resolutions


# ============================================================================
# Entity resolution steps
# ============================================================================


def _validate_required_fields(data: Dict[str, Any], required_fields: List[str], kind: str) -> None:
    missing = [name for name in required_fields if not data.get(name)]
    if missing:
        raise ValidationError([f"Cannot create {kind}: missing required fields: {', '.join(missing)}"])


def _check_existing_ids(sess: Session, resolutions: ImportResolutions) -> None:
    """Reject use_existing resolutions whose ID is not in the catalog."""
    errors = []
    for kind in REFERENCE_KINDS:
        model = KIND_MODELS[kind]
        for key, resolution in resolutions.for_kind(kind).items():
            if resolution.action != ResolutionAction.USE_EXISTING:
                continue
            if sess.get(model, resolution.existing_id) is None:
                errors.append(
                    f"{kind}[{key!r}]: {model.__name__} with ID {resolution.existing_id} does not exist"
                )
    if errors:
        raise ValidationError(errors)


def _pending_creates(resolutions: Dict[str, Resolution], kind: str):
    """Yield (key, resolution) pairs, leaving out create resolutions that carry no data."""
    for key, resolution in resolutions.items():
        if resolution.action == ResolutionAction.CREATE and resolution.data is None:
            log_operation(
                logger,
                f"resolve_{kind}",
                "create_without_data",
                level=logging.WARNING,
                key=key,
            )
            continue
        yield key, resolution


def resolve_units(sess: Session, resolutions: ImportResolutions) -> Dict[str, int]:
    """Step 1: unit abbreviation key -> unit ID."""
    unit_ids: Dict[str, int] = {}
    for key, resolution in _pending_creates(resolutions.units, "units"):
        if resolution.action == ResolutionAction.USE_EXISTING:
            unit_ids[key] = resolution.existing_id
            continue
        data = resolution.data
        _validate_required_fields(data, ["name", "abbreviation"], "unit")
        unit = unit_service.create_unit(
            {
                "name": data["name"],
                "abbreviation": data["abbreviation"],
                "conversion_factor_to_ml": data.get("conversionFactorToMl"),
                "name_translations": data.get("nameTranslations"),
            },
            session=sess,
        )
        unit_ids[key] = unit.id
    return unit_ids


def resolve_categories(sess: Session, resolutions: ImportResolutions) -> Dict[str, int]:
    """Step 2: category name key -> category ID. Creation ensures the category type."""
    category_ids: Dict[str, int] = {}
    for key, resolution in _pending_creates(resolutions.categories, "categories"):
        if resolution.action == ResolutionAction.USE_EXISTING:
            category_ids[key] = resolution.existing_id
            continue
        data = resolution.data
        _validate_required_fields(data, ["name", "type"], "category")
        category = category_service.create_category(
            {
                "name": data["name"],
                "type": data["type"],
                "desired_stock": data.get("desiredStock"),
                "name_translations": data.get("nameTranslations"),
            },
            session=sess,
        )
        category_ids[key] = category.id
    return category_ids


def resolve_bottles(
    sess: Session, resolutions: ImportResolutions, category_ids: Dict[str, int]
) -> Dict[str, int]:
    """
    Step 3: bottle name key -> bottle ID.

    A created bottle takes its category from category_ids; when that
    category is unresolved the bottle is not created. Skipped bottles stay
    out of the map.
    """
    bottle_ids: Dict[str, int] = {}
    for key, resolution in _pending_creates(resolutions.bottles, "bottles"):
        if resolution.action == ResolutionAction.SKIP:
            continue
        if resolution.action == ResolutionAction.USE_EXISTING:
            bottle_ids[key] = resolution.existing_id
            continue

        data = resolution.data
        _validate_required_fields(data, ["name", "categoryName"], "bottle")
        category_id = category_ids.get(normalize_key(data["categoryName"]))
        if category_id is None:
            log_operation(
                logger,
                "resolve_bottles",
                "category_unresolved",
                level=logging.WARNING,
                bottle_key=key,
                category_name=data["categoryName"],
            )
            continue

        capacity = data.get("capacityMl")
        bottle = bottle_service.create_bottle(
            {
                "name": data["name"],
                "category_id": category_id,
                "capacity_ml": DEFAULT_BOTTLE_CAPACITY_ML if capacity is None else capacity,
                "remaining_percent": data.get("remainingPercent"),
                "purchase_price": data.get("purchasePrice"),
                "alcohol_percentage": data.get("alcoholPercentage"),
            },
            session=sess,
        )
        bottle_ids[key] = bottle.id
    return bottle_ids


def resolve_ingredients(sess: Session, resolutions: ImportResolutions) -> Dict[str, int]:
    """Step 4: ingredient name key -> ingredient ID."""
    ingredient_ids: Dict[str, int] = {}
    for key, resolution in _pending_creates(resolutions.ingredients, "ingredients"):
        if resolution.action == ResolutionAction.USE_EXISTING:
            ingredient_ids[key] = resolution.existing_id
            continue
        data = resolution.data
        _validate_required_fields(data, ["name"], "ingredient")
        ingredient = ingredient_service.create_ingredient(
            {
                "name": data["name"],
                "icon": data.get("icon"),
                "name_translations": data.get("nameTranslations"),
            },
            session=sess,
        )
        ingredient_ids[key] = ingredient.id
    return ingredient_ids


# ============================================================================
# Line materialization
# ============================================================================


def resolve_line_source(
    line: IngredientLine,
    category_ids: Dict[str, int],
    bottle_ids: Dict[str, int],
    ingredient_ids: Dict[str, int],
) -> ResolvedSource:
    """
    Decide the stored source of one ingredient line.

    BOTTLE lines widen when their bottle is unresolved: first to the
    bottle's category, then to an INGREDIENT line with no reference.
    CATEGORY and INGREDIENT lines keep their type, with a None reference
    when unresolved. Lines are never dropped.
    """
    key = normalize_key(line.source_name)

    if line.source_type == SourceType.BOTTLE:
        bottle_id = bottle_ids.get(key)
        if bottle_id is not None:
            return ResolvedSource(SourceType.BOTTLE, bottle_id)
        detail = line.source_detail
        if isinstance(detail, BottleSource):
            category_id = category_ids.get(normalize_key(detail.category_name))
            if category_id is not None:
                return ResolvedSource(SourceType.CATEGORY, category_id)
        return ResolvedSource(SourceType.INGREDIENT, None)

    if line.source_type == SourceType.CATEGORY:
        return ResolvedSource(SourceType.CATEGORY, category_ids.get(key))

    return ResolvedSource(SourceType.INGREDIENT, ingredient_ids.get(key))


def materialize_lines(
    document: PortableRecipeDocument,
    unit_ids: Dict[str, int],
    category_ids: Dict[str, int],
    bottle_ids: Dict[str, int],
    ingredient_ids: Dict[str, int],
) -> Tuple[List[Dict[str, Any]], int]:
    """
    Step 5: convert document lines into cocktail_service line dicts.

    Returns:
        (line dicts in document order, number of lines whose source was widened)
    """
    lines = []
    widened = 0

    for line in document.recipe.ingredient_lines:
        unit_id = unit_ids.get(normalize_key(line.unit.abbreviation)) if line.unit else None
        resolved = resolve_line_source(line, category_ids, bottle_ids, ingredient_ids)
        if resolved.source_type != line.source_type:
            widened += 1

        line_data: Dict[str, Any] = {
            "quantity": line.quantity,
            "unit_id": unit_id,
            "source_type": resolved.source_type.value,
        }
        if resolved.source_type == SourceType.BOTTLE:
            line_data["bottle_id"] = resolved.ref_id
        elif resolved.source_type == SourceType.CATEGORY:
            line_data["category_id"] = resolved.ref_id
            preferred_ids = []
            for preferred in line.preferred_bottles:
                bottle_id = bottle_ids.get(normalize_key(preferred.name))
                if bottle_id is not None and bottle_id not in preferred_ids:
                    preferred_ids.append(bottle_id)
            line_data["preferred_bottle_ids"] = preferred_ids
        else:
            line_data["ingredient_id"] = resolved.ref_id

        lines.append(line_data)

    return lines, widened


# ============================================================================
# Confirm
# ============================================================================


def _confirm(
    sess: Session, document: PortableRecipeDocument, resolutions: ImportResolutions
) -> Dict[str, Any]:
    _check_existing_ids(sess, resolutions)

    unit_ids = resolve_units(sess, resolutions)
    category_ids = resolve_categories(sess, resolutions)
    bottle_ids = resolve_bottles(sess, resolutions, category_ids)
    ingredient_ids = resolve_ingredients(sess, resolutions)

    lines, widened = materialize_lines(
        document, unit_ids, category_ids, bottle_ids, ingredient_ids
    )
    if widened:
        logger.info(f"{widened} ingredient line(s) of '{document.recipe.name}' fell back to a wider source")

    recipe = document.recipe
    cocktail = cocktail_service.create_cocktail(
        {
            "name": recipe.name,
            "description": recipe.description,
            "notes": recipe.notes,
            "tags": recipe.tags,
            "ingredients": lines,
            "instructions": [step.text for step in recipe.instruction_steps],
        },
        session=sess,
    )
    return cocktail_service.cocktail_to_dict(cocktail)


def confirm_import(
    document: Union[Dict[str, Any], PortableRecipeDocument],
    resolutions: Union[None, Dict[str, Any], ImportResolutions] = None,
    session: Optional[Session] = None,
) -> Dict[str, Any]:
    """
    Create the cocktail described by a portable recipe.

    Everything runs in one transaction: with no session a new session_scope
    is opened and rolled back on any failure; with a session the caller owns
    commit and rollback.

    Args:
        document: Wire dict or parsed document
        resolutions: ImportResolutions or their wire shape; keys without a
            resolution are left unresolved
        session: Optional database session

    Returns:
        The stored cocktail in cocktail_service.cocktail_to_dict shape

    Raises:
        ValidationError: Malformed document or resolutions, unknown
            existing IDs, incomplete create payloads
        ConflictError: Cocktail name or another unique value already taken
        DatabaseError: Any other failure
    """
    parsed = coerce_document(document)
    if not isinstance(resolutions, ImportResolutions):
        resolutions = parse_resolutions(resolutions)
    cocktail_name = parsed.recipe.name

    try:
        if session is not None:
            result = _confirm(session, parsed, resolutions)
        else:
            with session_scope() as sess:
                result = _confirm(sess, parsed, resolutions)
    except ServiceError as e:
        log_operation(
            logger,
            "confirm_import",
            "rejected",
            level=logging.WARNING,
            cocktail_name=cocktail_name,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise
    except IntegrityError as e:
        log_operation(
            logger,
            "confirm_import",
            "conflict",
            level=logging.WARNING,
            cocktail_name=cocktail_name,
            error=str(e),
        )
        if "cocktails.name" in str(e):
            raise ConflictError(
                f"Cocktail '{cocktail_name}' already exists", cocktail_name=cocktail_name
            )
        raise ConflictError(
            "Import conflicts with existing catalog data", cocktail_name=cocktail_name
        )
    except Exception as e:
        log_operation(
            logger,
            "confirm_import",
            "error",
            level=logging.ERROR,
            cocktail_name=cocktail_name,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise DatabaseError(f"Failed to import cocktail '{cocktail_name}'", original_error=e)

    log_operation(
        logger,
        "confirm_import",
        "success",
        cocktail_id=result["id"],
        cocktail_name=cocktail_name,
        line_count=len(result["ingredients"]),
    )
    return result
