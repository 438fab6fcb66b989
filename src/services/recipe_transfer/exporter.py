"""
Recipe exporter.

Projects a stored cocktail and its relations into a portable recipe
document. Export has no side effects on the catalog; a line whose
referenced entity is missing is emitted with an empty name and detail
instead of failing the whole export.
"""

import json
import logging
import zipfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.models.cocktail import Cocktail, CocktailIngredient
from src.models.enums import SourceType
from src.models.unit import Unit
from src.services import cocktail_service
from src.services.database import session_scope
from src.services.exceptions import CocktailNotFound, DatabaseError
from src.services.logging_utils import get_service_logger, log_operation
from src.services.recipe_transfer.document import (
    BottleSource,
    CategorySource,
    IngredientLine,
    IngredientSource,
    InstructionStep,
    PortableRecipe,
    PortableRecipeDocument,
    PreferredBottleRef,
    SourceDetail,
    UnitDescriptor,
)
from src.services.recipe_transfer.keys import normalize_key
from src.utils.constants import EXPORT_ARCHIVE_PREFIX, EXPORT_FILE_PREFIX
from src.utils.datetime_utils import to_iso_utc, utc_now
from src.utils.slug_utils import create_slug
from src.utils.translations import decode_translations

logger = get_service_logger(__name__)


# ============================================================================
# Projection
# ============================================================================


def _unit_descriptor(unit: Optional[Unit]) -> Optional[UnitDescriptor]:
    if unit is None:
        return None
    return UnitDescriptor(
        name=unit.name,
        abbreviation=unit.abbreviation,
        conversion_factor_to_ml=unit.conversion_factor_to_ml,
        name_translations=decode_translations(unit.name_translations),
    )


def _line_source(line: CocktailIngredient):
    """Return (source_type, source_name, source_detail) for a stored line."""
    try:
        source_type = SourceType(line.source_type)
    except ValueError:
        return SourceType.INGREDIENT, "", None

    if source_type == SourceType.BOTTLE and line.bottle is not None:
        category = line.bottle.category
        detail: SourceDetail = BottleSource(
            category_name=category.name if category else "",
            category_type=category.type if category else None,
            category_name_translations=(
                decode_translations(category.name_translations) if category else None
            ),
        )
        return source_type, line.bottle.name, detail

    if source_type == SourceType.CATEGORY and line.category is not None:
        detail = CategorySource(
            type=line.category.type,
            desired_stock=line.category.desired_stock,
            name_translations=decode_translations(line.category.name_translations),
        )
        return source_type, line.category.name, detail

    if source_type == SourceType.INGREDIENT and line.ingredient is not None:
        detail = IngredientSource(
            icon=line.ingredient.icon,
            name_translations=decode_translations(line.ingredient.name_translations),
        )
        return source_type, line.ingredient.name, detail

    logger.warning(
        f"Ingredient line {line.id} of cocktail {line.cocktail_id} has no "
        f"{source_type.value.lower()}; exporting it without a source"
    )
    return source_type, "", None


def _preferred_bottles(line: CocktailIngredient) -> List[PreferredBottleRef]:
    fallback_category = line.category.name if line.category else ""
    refs = []
    seen = set()

    for preferred in line.preferred_bottles:
        bottle = preferred.bottle
        if bottle is None:
            continue
        key = normalize_key(bottle.name)
        if key in seen:
            continue
        seen.add(key)
        category_name = bottle.category.name if bottle.category else fallback_category
        refs.append(PreferredBottleRef(name=bottle.name, category_name=category_name))

    return refs


def build_document(cocktail: Cocktail, exported_at: Optional[str] = None) -> PortableRecipeDocument:
    """
    Build the portable document for a loaded cocktail.

    Args:
        cocktail: Cocktail with ingredients, preferred bottles and instructions
            reachable (loaded or inside an open session)
        exported_at: ISO timestamp; defaults to now

    Returns:
        PortableRecipeDocument with formatVersion 1
    """
    lines = []
    for position, line in enumerate(sorted(cocktail.ingredients, key=lambda item: item.position)):
        source_type, source_name, detail = _line_source(line)
        lines.append(
            IngredientLine(
                source_type=source_type,
                source_name=source_name,
                source_detail=detail,
                quantity=line.quantity,
                unit=_unit_descriptor(line.unit),
                position=position,
                preferred_bottles=_preferred_bottles(line),
            )
        )

    steps = [
        InstructionStep(step_number=step.step_number, text=step.text)
        for step in sorted(cocktail.instructions, key=lambda item: item.step_number)
    ]

    recipe = PortableRecipe(
        name=cocktail.name,
        description=cocktail.description,
        notes=cocktail.notes,
        tags=cocktail_service.split_tags(cocktail.tags),
        ingredient_lines=lines,
        instruction_steps=steps,
    )
    return PortableRecipeDocument(
        recipe=recipe,
        exported_at=exported_at or to_iso_utc(utc_now()),
    )


def export_recipe(cocktail_id: int, session: Optional[Session] = None) -> Dict[str, Any]:
    """
    Export one cocktail as a portable recipe document.

    Args:
        cocktail_id: ID of the cocktail to export
        session: Optional database session

    Returns:
        The document in its wire (camelCase dict) shape

    Raises:
        CocktailNotFound: If the cocktail doesn't exist
        DatabaseError: If reading the catalog fails
    """

    def _impl(sess: Session) -> Dict[str, Any]:
        cocktail = cocktail_service.get_cocktail(cocktail_id, session=sess)
        return build_document(cocktail).to_dict()

    try:
        if session is not None:
            document = _impl(session)
        else:
            with session_scope() as sess:
                document = _impl(sess)
    except CocktailNotFound:
        log_operation(logger, "export_recipe", "not_found", cocktail_id=cocktail_id)
        raise
    except SQLAlchemyError as e:
        log_operation(
            logger,
            "export_recipe",
            "error",
            level=logging.ERROR,
            cocktail_id=cocktail_id,
            error=str(e),
        )
        raise DatabaseError(f"Failed to export cocktail {cocktail_id}", original_error=e)

    log_operation(
        logger,
        "export_recipe",
        "success",
        cocktail_id=cocktail_id,
        line_count=len(document["recipe"]["ingredientLines"]),
    )
    return document


# ============================================================================
# Files
# ============================================================================


def export_filename(cocktail_name: str) -> str:
    """
    File name for an exported recipe.

    Example:
        >>> export_filename("Piña Colada")
        'cocktail-pina-colada.json'
    """
    slug = create_slug(cocktail_name) or "recipe"
    return f"{EXPORT_FILE_PREFIX}-{slug}.json"


def _dump(document: Dict[str, Any]) -> str:
    return json.dumps(document, indent=2, ensure_ascii=False)


def write_recipe_file(cocktail_id: int, output_dir: Union[str, Path] = ".") -> Path:
    """
    Export one cocktail to a JSON file in output_dir.

    Returns:
        Path of the written file
    """
    document = export_recipe(cocktail_id)
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)

    path = directory / export_filename(document["recipe"]["name"])
    with open(path, "w", encoding="utf-8") as f:
        f.write(_dump(document))

    logger.info(f"Wrote recipe export to {path}")
    return path


def default_archive_name() -> str:
    """Archive name for today, e.g. cocktails-export-2024-05-01.zip."""
    return f"{EXPORT_ARCHIVE_PREFIX}-{utc_now().date().isoformat()}.zip"


def export_recipes_archive(
    cocktail_ids: Sequence[int], output_path: Optional[Union[str, Path]] = None
) -> Path:
    """
    Export several cocktails into one ZIP archive, one JSON member each.

    All documents are built before the archive is written, so a missing
    cocktail leaves no partial archive behind.

    Args:
        cocktail_ids: IDs of the cocktails to export
        output_path: Archive path; defaults to default_archive_name() in the
            current directory

    Returns:
        Path of the written archive

    Raises:
        CocktailNotFound: If any cocktail doesn't exist
    """
    documents = [export_recipe(cocktail_id) for cocktail_id in cocktail_ids]
    path = Path(output_path) if output_path else Path(default_archive_name())
    path.parent.mkdir(parents=True, exist_ok=True)

    used_names = set()
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for document in documents:
            base = export_filename(document["recipe"]["name"])[: -len(".json")]
            member = f"{base}.json"
            suffix = 2
            while member in used_names:
                member = f"{base}-{suffix}.json"
                suffix += 1
            used_names.add(member)
            archive.writestr(member, _dump(document))

    log_operation(logger, "export_recipes_archive", "success", path=str(path), count=len(documents))
    return path
