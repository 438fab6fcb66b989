"""
Recipe transfer services: portable export and import of cocktails.

This module provides:
- Export of a stored cocktail to a versioned, ID-free document
- Import preview matching document references against the catalog
- Import confirm applying resolutions and creating the cocktail atomically
- Loading documents from .json files and .zip archives

Usage:
    from src.services.recipe_transfer import (
        export_recipe,
        preview_import,
        build_default_resolutions,
        confirm_import,
    )

    document = export_recipe(cocktail_id)
    preview = preview_import(document)
    cocktail = confirm_import(document, build_default_resolutions(preview))
"""

from .keys import normalize_key
from .document import (
    BottleSource,
    CategorySource,
    IngredientLine,
    IngredientSource,
    InstructionStep,
    PortableRecipe,
    PortableRecipeDocument,
    PreferredBottleRef,
    UnitDescriptor,
    coerce_document,
    parse_document,
    validate_document,
)
from .exporter import (
    build_document,
    export_filename,
    export_recipe,
    export_recipes_archive,
    write_recipe_file,
)
from .matcher import (
    REFERENCE_KINDS,
    CocktailSummary,
    ImportPreview,
    MatchResult,
    collect_references,
    preview_import,
)
from .resolver import (
    ImportResolutions,
    Resolution,
    ResolutionAction,
    ResolvedSource,
    build_default_resolutions,
    confirm_import,
    parse_resolutions,
    resolve_line_source,
)
from .loader import load_documents

__all__ = [
    "normalize_key",
    "BottleSource",
    "CategorySource",
    "IngredientLine",
    "IngredientSource",
    "InstructionStep",
    "PortableRecipe",
    "PortableRecipeDocument",
    "PreferredBottleRef",
    "UnitDescriptor",
    "coerce_document",
    "parse_document",
    "validate_document",
    "build_document",
    "export_filename",
    "export_recipe",
    "export_recipes_archive",
    "write_recipe_file",
    "REFERENCE_KINDS",
    "CocktailSummary",
    "ImportPreview",
    "MatchResult",
    "collect_references",
    "preview_import",
    "ImportResolutions",
    "Resolution",
    "ResolutionAction",
    "ResolvedSource",
    "build_default_resolutions",
    "confirm_import",
    "parse_resolutions",
    "resolve_line_source",
    "load_documents",
]
