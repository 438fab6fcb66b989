"""
Portable Recipe Document model.

A portable recipe document is the versioned, ID-free serialization of one
cocktail. Every catalog reference inside it is a display name plus enough
detail to recreate the referenced entity in another catalog.

Wire shape (version 1):
    {
        "formatVersion": 1,
        "exportedAt": "2024-05-01T12:00:00.000Z",
        "recipe": {
            "name": "Daiquiri",
            "description": null,
            "notes": null,
            "tags": ["sour", "classic"],
            "ingredientLines": [
                {
                    "sourceType": "CATEGORY",
                    "sourceName": "White Rum",
                    "sourceDetail": {"type": "SPIRIT", "desiredStock": 1, "nameTranslations": null},
                    "quantity": 6,
                    "unit": {"name": "Centilitre", "abbreviation": "cl",
                             "conversionFactorToMl": 10, "nameTranslations": null},
                    "position": 0,
                    "preferredBottles": [{"name": "Havana Club 3", "categoryName": "White Rum"}]
                }
            ],
            "instructionSteps": [{"stepNumber": 1, "text": "Shake with ice"}]
        }
    }

sourceDetail depends on sourceType:
    BOTTLE     -> {categoryName, categoryType, categoryNameTranslations}
    CATEGORY   -> {type, desiredStock, nameTranslations}
    INGREDIENT -> {icon, nameTranslations}
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from src.models.enums import SourceType
from src.services.exceptions import ValidationError
from src.utils.constants import PORTABLE_FORMAT_VERSION

SOURCE_TYPES = {source_type.value for source_type in SourceType}


# ============================================================================
# Source detail variants
# ============================================================================


@dataclass
class BottleSource:
    """Detail carried by a BOTTLE line: the bottle's category."""

    category_name: str = ""
    category_type: Optional[str] = None
    category_name_translations: Optional[Dict[str, str]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "categoryName": self.category_name,
            "categoryType": self.category_type,
            "categoryNameTranslations": self.category_name_translations,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BottleSource":
        return cls(
            category_name=data.get("categoryName") or "",
            category_type=data.get("categoryType"),
            category_name_translations=data.get("categoryNameTranslations"),
        )


@dataclass
class CategorySource:
    """Detail carried by a CATEGORY line."""

    type: Optional[str] = None
    desired_stock: Optional[int] = None
    name_translations: Optional[Dict[str, str]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "desiredStock": self.desired_stock,
            "nameTranslations": self.name_translations,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CategorySource":
        return cls(
            type=data.get("type"),
            desired_stock=data.get("desiredStock"),
            name_translations=data.get("nameTranslations"),
        )


@dataclass
class IngredientSource:
    """Detail carried by an INGREDIENT line."""

    icon: Optional[str] = None
    name_translations: Optional[Dict[str, str]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"icon": self.icon, "nameTranslations": self.name_translations}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "IngredientSource":
        return cls(icon=data.get("icon"), name_translations=data.get("nameTranslations"))


SourceDetail = Union[BottleSource, CategorySource, IngredientSource]

DETAIL_TYPES = {
    SourceType.BOTTLE: BottleSource,
    SourceType.CATEGORY: CategorySource,
    SourceType.INGREDIENT: IngredientSource,
}


# ============================================================================
# Document parts
# ============================================================================


@dataclass
class UnitDescriptor:
    """Full description of a unit; units are never referenced by ID."""

    name: str
    abbreviation: str
    conversion_factor_to_ml: Optional[float] = None
    name_translations: Optional[Dict[str, str]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "abbreviation": self.abbreviation,
            "conversionFactorToMl": self.conversion_factor_to_ml,
            "nameTranslations": self.name_translations,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UnitDescriptor":
        return cls(
            name=data.get("name") or data["abbreviation"],
            abbreviation=data["abbreviation"],
            conversion_factor_to_ml=data.get("conversionFactorToMl"),
            name_translations=data.get("nameTranslations"),
        )


@dataclass
class PreferredBottleRef:
    """A bottle suggested for a CATEGORY line, identified by name."""

    name: str
    category_name: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "categoryName": self.category_name}


@dataclass
class IngredientLine:
    """
    One ingredient line of a portable recipe.

    Attributes:
        source_type: Which kind of catalog entity the line draws from
        source_name: Display name of the referenced entity ("" if unknown)
        source_detail: Variant payload matching source_type, None if unknown
        quantity: Positive amount
        unit: Unit descriptor, None when the line has no unit
        position: Zero-based order
        preferred_bottles: Suggested bottles (CATEGORY lines)
    """

    source_type: SourceType
    source_name: str
    quantity: float
    source_detail: Optional[SourceDetail] = None
    unit: Optional[UnitDescriptor] = None
    position: int = 0
    preferred_bottles: List[PreferredBottleRef] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sourceType": self.source_type.value,
            "sourceName": self.source_name,
            "sourceDetail": self.source_detail.to_dict() if self.source_detail else {},
            "quantity": self.quantity,
            "unit": self.unit.to_dict() if self.unit else None,
            "position": self.position,
            "preferredBottles": [ref.to_dict() for ref in self.preferred_bottles],
        }


@dataclass
class InstructionStep:
    step_number: int
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {"stepNumber": self.step_number, "text": self.text}


@dataclass
class PortableRecipe:
    """The recipe payload of a document."""

    name: str
    description: Optional[str] = None
    notes: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    ingredient_lines: List[IngredientLine] = field(default_factory=list)
    instruction_steps: List[InstructionStep] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "notes": self.notes,
            "tags": list(self.tags),
            "ingredientLines": [line.to_dict() for line in self.ingredient_lines],
            "instructionSteps": [step.to_dict() for step in self.instruction_steps],
        }


@dataclass
class PortableRecipeDocument:
    """Versioned envelope around one portable recipe."""

    recipe: PortableRecipe
    exported_at: Optional[str] = None
    format_version: int = PORTABLE_FORMAT_VERSION

    def to_dict(self) -> Dict[str, Any]:
        return {
            "formatVersion": self.format_version,
            "exportedAt": self.exported_at,
            "recipe": self.recipe.to_dict(),
        }


# ============================================================================
# Validation and parsing
# ============================================================================


def _is_positive_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0


def _is_optional_string(value: Any) -> bool:
    return value is None or isinstance(value, str)


def _is_preferred_ref(ref: Any) -> bool:
    return (
        isinstance(ref, dict)
        and isinstance(ref.get("name"), str)
        and bool(ref["name"])
        and _is_optional_string(ref.get("categoryName"))
    )


def _validate_line(index: int, line: Any, errors: List[str]) -> None:
    label = f"recipe.ingredientLines[{index}]"
    if not isinstance(line, dict):
        errors.append(f"{label} must be an object")
        return

    if line.get("sourceType") not in SOURCE_TYPES:
        errors.append(f"{label}.sourceType must be one of {sorted(SOURCE_TYPES)}")
    if not _is_positive_number(line.get("quantity")):
        errors.append(f"{label}.quantity must be a positive number")
    if not _is_optional_string(line.get("sourceName")):
        errors.append(f"{label}.sourceName must be a string")

    detail = line.get("sourceDetail")
    if detail is not None and not isinstance(detail, dict):
        errors.append(f"{label}.sourceDetail must be an object")
    elif detail:
        for key in ("categoryName", "categoryType", "type"):
            if not _is_optional_string(detail.get(key)):
                errors.append(f"{label}.sourceDetail.{key} must be a string")

    unit = line.get("unit")
    if unit is not None:
        if not isinstance(unit, dict):
            errors.append(f"{label}.unit must be an object")
        elif not isinstance(unit.get("abbreviation"), str) or not unit["abbreviation"]:
            errors.append(f"{label}.unit.abbreviation is required")
        elif not _is_optional_string(unit.get("name")):
            errors.append(f"{label}.unit.name must be a string")

    preferred = line.get("preferredBottles")
    if preferred is not None:
        if not isinstance(preferred, list):
            errors.append(f"{label}.preferredBottles must be a list")
        elif any(not _is_preferred_ref(ref) for ref in preferred):
            errors.append(f"{label}.preferredBottles entries need a string name")


def validate_document(data: Any) -> None:
    """
    Validate a wire document.

    The format version is checked first and alone: a document with an
    unsupported version is rejected without looking at anything else.

    Raises:
        ValidationError: With every problem found
    """
    if not isinstance(data, dict):
        raise ValidationError(["Document must be a JSON object"])

    version = data.get("formatVersion")
    if isinstance(version, bool) or version != PORTABLE_FORMAT_VERSION:
        raise ValidationError(
            [f"Unsupported formatVersion: {version!r} (expected {PORTABLE_FORMAT_VERSION})"]
        )

    recipe = data.get("recipe")
    if not isinstance(recipe, dict):
        raise ValidationError(["recipe is required"])

    errors: List[str] = []
    name = recipe.get("name")
    if not isinstance(name, str) or not name.strip():
        errors.append("recipe.name is required")

    tags = recipe.get("tags")
    if tags is not None and not isinstance(tags, list):
        errors.append("recipe.tags must be a list")

    lines = recipe.get("ingredientLines")
    if lines is not None:
        if not isinstance(lines, list):
            errors.append("recipe.ingredientLines must be a list")
        else:
            for index, line in enumerate(lines):
                _validate_line(index, line, errors)

    steps = recipe.get("instructionSteps")
    if steps is not None:
        if not isinstance(steps, list):
            errors.append("recipe.instructionSteps must be a list")
        else:
            for index, step in enumerate(steps):
                text = step.get("text") if isinstance(step, dict) else None
                if not isinstance(text, str) or not text.strip():
                    errors.append(f"recipe.instructionSteps[{index}].text is required")

    if errors:
        raise ValidationError(errors)


def _parse_line(index: int, data: Dict[str, Any]) -> IngredientLine:
    source_type = SourceType(data["sourceType"])
    detail_data = data.get("sourceDetail") or {}
    detail = DETAIL_TYPES[source_type].from_dict(detail_data) if detail_data else None
    unit_data = data.get("unit")
    position = data.get("position")

    return IngredientLine(
        source_type=source_type,
        source_name=data.get("sourceName") or "",
        source_detail=detail,
        quantity=data["quantity"],
        unit=UnitDescriptor.from_dict(unit_data) if unit_data else None,
        position=position if isinstance(position, int) else index,
        preferred_bottles=[
            PreferredBottleRef(name=ref["name"], category_name=ref.get("categoryName") or "")
            for ref in data.get("preferredBottles") or []
        ],
    )


def parse_document(data: Dict[str, Any]) -> PortableRecipeDocument:
    """
    Validate a wire document and convert it to dataclasses.

    Raises:
        ValidationError: If the document is malformed or of another version
    """
    validate_document(data)
    recipe = data["recipe"]

    return PortableRecipeDocument(
        format_version=data["formatVersion"],
        exported_at=data.get("exportedAt"),
        recipe=PortableRecipe(
            name=recipe["name"].strip(),
            description=recipe.get("description"),
            notes=recipe.get("notes"),
            tags=[str(tag) for tag in recipe.get("tags") or []],
            ingredient_lines=[
                _parse_line(index, line)
                for index, line in enumerate(recipe.get("ingredientLines") or [])
            ],
            instruction_steps=[
                InstructionStep(
                    step_number=step.get("stepNumber") or index + 1,
                    text=step["text"],
                )
                for index, step in enumerate(recipe.get("instructionSteps") or [])
            ],
        ),
    )


def coerce_document(document: Union[Dict[str, Any], PortableRecipeDocument]) -> PortableRecipeDocument:
    """
    Accept either a wire dict or a parsed document and return a validated document.

    Raises:
        ValidationError: If the document is malformed or of another version
    """
    if isinstance(document, PortableRecipeDocument):
        validate_document(document.to_dict())
        return document
    return parse_document(document)
