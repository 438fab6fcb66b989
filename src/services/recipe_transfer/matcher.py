"""
Import matcher (preview).

Collects every catalog entity a portable recipe references and reports,
for each one, whether a same-named entity already exists in this catalog.
Preview never writes; it is safe to call repeatedly.

Matching rules:
- Units match on abbreviation, categories, bottles and ingredients on name.
- Matching is case-insensitive through normalize_key.
- When several lines reference the same key, the first occurrence supplies
  the reconstruction payload ("ref").
- The cocktail-name check is an exact, case-sensitive lookup.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.models.bottle import Bottle
from src.models.category import Category
from src.models.enums import SourceType
from src.models.ingredient import Ingredient
from src.models.unit import Unit
from src.services import cocktail_service
from src.services.database import session_scope
from src.services.exceptions import DatabaseError, ValidationError
from src.services.logging_utils import get_service_logger, log_operation
from src.services.recipe_transfer.document import (
    BottleSource,
    CategorySource,
    IngredientSource,
    PortableRecipeDocument,
    coerce_document,
)
from src.services.recipe_transfer.keys import normalize_key

logger = get_service_logger(__name__)

MATCHED = "matched"
MISSING = "missing"

# Reference kinds in dependency order
REFERENCE_KINDS = ("units", "categories", "bottles", "ingredients")


# ============================================================================
# Data Classes
# ============================================================================


@dataclass
class MatchResult:
    """
    Match outcome for one referenced entity.

    Attributes:
        key: Normalized matching key; resolutions are addressed by it
        ref: Reconstruction payload taken from the document (wire shape)
        existing_match: Matching catalog row as a dict, or None
        status: "matched" or "missing"
    """

    key: str
    ref: Dict[str, Any]
    existing_match: Optional[Dict[str, Any]] = None
    status: str = MISSING

    @property
    def is_matched(self) -> bool:
        return self.status == MATCHED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "ref": self.ref,
            "existingMatch": self.existing_match,
            "status": self.status,
        }


@dataclass
class CocktailSummary:
    name: str
    description: Optional[str]
    tags: List[str]
    already_exists: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "tags": list(self.tags),
            "alreadyExists": self.already_exists,
        }


@dataclass
class ImportPreview:
    """Preview result: the cocktail summary plus one result list per kind."""

    cocktail: CocktailSummary
    units: List[MatchResult] = field(default_factory=list)
    categories: List[MatchResult] = field(default_factory=list)
    bottles: List[MatchResult] = field(default_factory=list)
    ingredients: List[MatchResult] = field(default_factory=list)

    def results(self, kind: str) -> List[MatchResult]:
        """Match results for one of REFERENCE_KINDS."""
        if kind not in REFERENCE_KINDS:
            raise ValueError(f"Unknown reference kind: {kind}")
        return getattr(self, kind)

    @property
    def missing_count(self) -> int:
        return sum(
            1 for kind in REFERENCE_KINDS for result in self.results(kind) if not result.is_matched
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"cocktail": self.cocktail.to_dict()}
        for kind in REFERENCE_KINDS:
            result[kind] = [match.to_dict() for match in self.results(kind)]
        return result


# ============================================================================
# Reference collection
# ============================================================================


def _add_ref(refs: Dict[str, Dict[str, Any]], key: str, ref: Dict[str, Any]) -> None:
    """Insert ref under key unless the key is empty or already present."""
    if key and key not in refs:
        refs[key] = ref


def collect_references(document: PortableRecipeDocument) -> Dict[str, Dict[str, Dict[str, Any]]]:
    """
    Walk the ingredient lines once and collect deduplicated references.

    Returns:
        {kind: {key: ref}} for each of REFERENCE_KINDS, in first-seen order
    """
    refs: Dict[str, Dict[str, Dict[str, Any]]] = {kind: {} for kind in REFERENCE_KINDS}

    for line in document.recipe.ingredient_lines:
        if line.unit is not None:
            _add_ref(refs["units"], normalize_key(line.unit.abbreviation), line.unit.to_dict())

        detail = line.source_detail
        if line.source_type == SourceType.BOTTLE:
            category_name = detail.category_name if isinstance(detail, BottleSource) else ""
            _add_ref(
                refs["bottles"],
                normalize_key(line.source_name),
                {"name": line.source_name, "categoryName": category_name},
            )
            if isinstance(detail, BottleSource):
                _add_ref(
                    refs["categories"],
                    normalize_key(detail.category_name),
                    {
                        "name": detail.category_name,
                        "type": detail.category_type,
                        "nameTranslations": detail.category_name_translations,
                    },
                )
        elif line.source_type == SourceType.CATEGORY:
            detail = detail if isinstance(detail, CategorySource) else CategorySource()
            _add_ref(
                refs["categories"],
                normalize_key(line.source_name),
                {"name": line.source_name, **detail.to_dict()},
            )
        elif line.source_type == SourceType.INGREDIENT:
            detail = detail if isinstance(detail, IngredientSource) else IngredientSource()
            _add_ref(
                refs["ingredients"],
                normalize_key(line.source_name),
                {"name": line.source_name, **detail.to_dict()},
            )

        for preferred in line.preferred_bottles:
            _add_ref(
                refs["bottles"],
                normalize_key(preferred.name),
                {"name": preferred.name, "categoryName": preferred.category_name},
            )
            _add_ref(
                refs["categories"],
                normalize_key(preferred.category_name),
                {"name": preferred.category_name},
            )

    return refs


# ============================================================================
# Matching
# ============================================================================


def _index_rows(rows: Iterable[Any], field_of: Callable[[Any], str]) -> Dict[str, Any]:
    """Index catalog rows by normalized field; the first row wins on duplicates."""
    index: Dict[str, Any] = {}
    for row in rows:
        index.setdefault(normalize_key(field_of(row)), row)
    return index


def _match(refs: Dict[str, Dict[str, Any]], index: Dict[str, Any]) -> List[MatchResult]:
    results = []
    for key, ref in refs.items():
        row = index.get(key)
        results.append(
            MatchResult(
                key=key,
                ref=ref,
                existing_match=row.to_dict() if row is not None else None,
                status=MATCHED if row is not None else MISSING,
            )
        )
    return results


def build_preview(document: PortableRecipeDocument, session: Session) -> ImportPreview:
    """Compute the preview for a validated document against the session's catalog."""
    refs = collect_references(document)

    indexes = {
        "units": _index_rows(session.query(Unit).all(), lambda row: row.abbreviation),
        "categories": _index_rows(session.query(Category).all(), lambda row: row.name),
        "bottles": _index_rows(session.query(Bottle).all(), lambda row: row.name),
        "ingredients": _index_rows(session.query(Ingredient).all(), lambda row: row.name),
    }

    recipe = document.recipe
    summary = CocktailSummary(
        name=recipe.name,
        description=recipe.description,
        tags=list(recipe.tags),
        already_exists=cocktail_service.find_cocktail_by_name(recipe.name, session=session)
        is not None,
    )

    return ImportPreview(
        cocktail=summary,
        **{kind: _match(refs[kind], indexes[kind]) for kind in REFERENCE_KINDS},
    )


def preview_import(
    document: Union[Dict[str, Any], PortableRecipeDocument],
    session: Optional[Session] = None,
) -> ImportPreview:
    """
    Preview the import of a portable recipe.

    Args:
        document: Wire dict or parsed document
        session: Optional database session

    Returns:
        ImportPreview with one MatchResult per distinct referenced entity

    Raises:
        ValidationError: If the document is malformed or of another version;
            raised before the catalog is read
        DatabaseError: If reading the catalog fails
    """
    try:
        parsed = coerce_document(document)
    except ValidationError as e:
        log_operation(logger, "preview_import", "invalid_document", errors=e.errors)
        raise

    try:
        if session is not None:
            preview = build_preview(parsed, session)
        else:
            with session_scope() as sess:
                preview = build_preview(parsed, sess)
    except SQLAlchemyError as e:
        log_operation(
            logger,
            "preview_import",
            "error",
            level=logging.ERROR,
            cocktail_name=parsed.recipe.name,
            error=str(e),
        )
        raise DatabaseError("Failed to read catalog for import preview", original_error=e)

    log_operation(
        logger,
        "preview_import",
        "success",
        cocktail_name=parsed.recipe.name,
        already_exists=preview.cocktail.already_exists,
        missing_count=preview.missing_count,
    )
    return preview
