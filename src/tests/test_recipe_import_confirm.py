"""Tests for import confirm (applying resolutions and creating the cocktail)."""

import pytest
from sqlalchemy.exc import IntegrityError

from src.services import (
    bottle_service,
    category_service,
    cocktail_service,
    ingredient_service,
    unit_service,
)
from src.services.exceptions import ConflictError, DatabaseError, ValidationError
from src.services.recipe_transfer import (
    build_default_resolutions,
    confirm_import,
    export_recipe,
    parse_resolutions,
    preview_import,
)
from src.services.recipe_transfer.resolver import ResolutionAction
from src.tests.recipe_builders import bottle_line, category_line, ingredient_line, unit_ref


def import_with_defaults(document):
    return confirm_import(document, build_default_resolutions(preview_import(document)))


# ============================================================================
# Resolution parsing
# ============================================================================


class TestParseResolutions:
    """Tests for parse_resolutions()."""

    def test_keys_are_normalized(self):
        resolutions = parse_resolutions(
            {"categories": {"White RUM": {"action": "use_existing", "existingId": 3}}}
        )
        resolution = resolutions.categories["white rum"]
        assert resolution.action == ResolutionAction.USE_EXISTING
        assert resolution.existing_id == 3

    def test_empty_payload(self):
        resolutions = parse_resolutions(None)
        assert resolutions.to_dict() == {
            "units": {},
            "categories": {},
            "bottles": {},
            "ingredients": {},
        }

    def test_unknown_action_rejected(self):
        with pytest.raises(ValidationError, match="unknown action"):
            parse_resolutions({"units": {"cl": {"action": "merge"}}})

    def test_skip_only_for_bottles(self):
        parse_resolutions({"bottles": {"havana club 3": {"action": "skip"}}})
        with pytest.raises(ValidationError, match="skip is only allowed for bottles"):
            parse_resolutions({"ingredients": {"lime": {"action": "skip"}}})

    def test_use_existing_needs_integer_id(self):
        with pytest.raises(ValidationError, match="integer existingId"):
            parse_resolutions({"units": {"cl": {"action": "use_existing", "existingId": "1"}}})


# ============================================================================
# Round trips
# ============================================================================


class TestRoundTrip:
    """Export then import within one catalog."""

    def test_reimport_maps_to_existing_entities(self, daiquiri, white_rum, havana, lime):
        document = export_recipe(daiquiri.id)
        cocktail_service.delete_cocktail(daiquiri.id)

        result = import_with_defaults(document)

        assert result["name"] == "Daiquiri"
        assert result["description"] == "Rum sour"
        assert result["notes"] == "Serve very cold"
        assert result["tags"] == ["sour", "classic"]

        lines = result["ingredients"]
        assert [line["source_type"] for line in lines] == ["CATEGORY", "INGREDIENT", "BOTTLE"]
        assert lines[0]["category_id"] == white_rum.id
        assert [bottle["id"] for bottle in lines[0]["preferred_bottles"]] == [havana.id]
        assert lines[1]["ingredient_id"] == lime.id
        assert lines[2]["bottle_id"] == havana.id
        assert [line["unit"]["abbreviation"] for line in lines] == ["cl", "cl", "dash"]
        assert [step["text"] for step in result["instructions"]] == [
            "Shake with ice",
            "Double strain into a coupe",
        ]

        assert len(category_service.list_categories()) == 1
        assert len(bottle_service.list_bottles()) == 1
        assert len(ingredient_service.list_ingredients()) == 1

    def test_reexport_is_stable(self, daiquiri):
        first = export_recipe(daiquiri.id)
        cocktail_service.delete_cocktail(daiquiri.id)
        imported = import_with_defaults(first)
        second = export_recipe(imported["id"])

        assert second["recipe"] == first["recipe"]

    def test_import_into_empty_catalog_creates_references(self, test_db, make_recipe_document):
        document = make_recipe_document(
            name="Mojito",
            tags=["highball"],
            lines=[
                bottle_line("Plantation 3 Stars", "Aged Rum", category_type="CUSTOM_X"),
                ingredient_line("Mint", icon="leaf", quantity=8, unit=unit_ref("leaf", "Leaf", None)),
            ],
            steps=[{"stepNumber": 1, "text": "Muddle the mint"}],
        )

        result = import_with_defaults(document)

        assert {unit.abbreviation for unit in unit_service.list_units()} == {"cl", "leaf"}
        category = category_service.list_categories()[0]
        assert category.name == "Aged Rum"
        assert category.type == "CUSTOM_X"
        assert category.desired_stock == 1
        custom_type = [t for t in category_service.list_category_types() if t.name == "CUSTOM_X"]
        assert custom_type[0].color == "gray"

        bottle = bottle_service.list_bottles()[0]
        assert bottle.name == "Plantation 3 Stars"
        assert bottle.category_id == category.id
        assert bottle.capacity_ml == 700
        assert bottle.remaining_percent == 100

        lines = result["ingredients"]
        assert lines[0]["bottle_id"] == bottle.id
        assert lines[1]["ingredient"]["icon"] == "leaf"
        assert result["tags"] == ["highball"]


# ============================================================================
# Fallback chain
# ============================================================================


class TestFallback:
    """Tests for BOTTLE -> CATEGORY -> INGREDIENT widening."""

    def test_skipped_bottle_widens_to_category(self, white_rum, make_recipe_document):
        document = make_recipe_document(lines=[bottle_line("Unknown Bottle", "White Rum")])

        result = confirm_import(
            document,
            {
                "bottles": {"Unknown Bottle": {"action": "skip"}},
                "categories": {"White Rum": {"action": "use_existing", "existingId": white_rum.id}},
            },
        )

        line = result["ingredients"][0]
        assert line["source_type"] == "CATEGORY"
        assert line["category_id"] == white_rum.id
        assert line["bottle_id"] is None
        assert bottle_service.list_bottles() == []

    def test_skipped_bottle_without_category_widens_to_ingredient(self, test_db, make_recipe_document):
        document = make_recipe_document(lines=[bottle_line("Unknown Bottle", "White Rum")])

        result = confirm_import(document, {"bottles": {"unknown bottle": {"action": "skip"}}})

        line = result["ingredients"][0]
        assert line["source_type"] == "INGREDIENT"
        assert line["ingredient_id"] is None
        assert line["quantity"] == 4
        assert line["unit_id"] is None

    def test_bottle_with_unresolved_category_is_not_created(self, test_db, make_recipe_document):
        document = make_recipe_document(lines=[bottle_line("Unknown Bottle", "White Rum")])

        result = confirm_import(
            document,
            {
                "bottles": {
                    "unknown bottle": {
                        "action": "create",
                        "data": {"name": "Unknown Bottle", "categoryName": "White Rum"},
                    }
                }
            },
        )

        assert bottle_service.list_bottles() == []
        assert result["ingredients"][0]["source_type"] == "INGREDIENT"

    def test_unresolved_category_and_ingredient_lines_keep_type(self, test_db, make_recipe_document):
        document = make_recipe_document(
            lines=[category_line("Gin"), ingredient_line("Lime", position=1)]
        )

        result = confirm_import(document)

        lines = result["ingredients"]
        assert [line["source_type"] for line in lines] == ["CATEGORY", "INGREDIENT"]
        assert lines[0]["category_id"] is None
        assert lines[1]["ingredient_id"] is None

    def test_create_without_data_leaves_reference_unresolved(self, test_db, make_recipe_document):
        document = make_recipe_document(lines=[ingredient_line("Lime")])

        result = confirm_import(document, {"ingredients": {"lime": {"action": "create"}}})

        assert ingredient_service.list_ingredients() == []
        assert result["ingredients"][0]["ingredient_id"] is None


# ============================================================================
# Ordering
# ============================================================================


class TestOrdering:
    """Positions and step numbers are reassigned contiguously."""

    def test_renumbering(self, test_db, make_recipe_document):
        document = make_recipe_document(
            lines=[
                ingredient_line("Lime", quantity=3, position=5),
                ingredient_line("Sugar", quantity=1, position=9),
            ],
            steps=[{"stepNumber": 3, "text": "Stir"}, {"stepNumber": 7, "text": "Serve"}],
        )

        result = import_with_defaults(document)

        assert [line["position"] for line in result["ingredients"]] == [0, 1]
        assert [line["ingredient"]["name"] for line in result["ingredients"]] == ["Lime", "Sugar"]
        assert [(s["step_number"], s["text"]) for s in result["instructions"]] == [
            (1, "Stir"),
            (2, "Serve"),
        ]

    def test_steps_without_numbers(self, test_db, make_recipe_document):
        document = make_recipe_document(steps=[{"text": "Shake"}, {"text": "Strain"}])

        result = confirm_import(document)

        assert [(s["step_number"], s["text"]) for s in result["instructions"]] == [
            (1, "Shake"),
            (2, "Strain"),
        ]


# ============================================================================
# Rejections and atomicity
# ============================================================================


class TestRejections:
    """Failures leave the catalog untouched."""

    def test_unsupported_version(self, test_db, make_recipe_document):
        document = make_recipe_document(lines=[category_line("Gin")])
        document["formatVersion"] = 2

        with pytest.raises(ValidationError, match="Unsupported formatVersion"):
            confirm_import(document)
        assert cocktail_service.list_cocktails() == []

    def test_existing_cocktail_name(self, daiquiri):
        document = export_recipe(daiquiri.id)

        with pytest.raises(ConflictError, match="Daiquiri"):
            import_with_defaults(document)
        assert len(cocktail_service.list_cocktails()) == 1

    def test_unknown_existing_id_rejected_before_writes(self, test_db, make_recipe_document):
        document = make_recipe_document(lines=[category_line("Gin")])

        with pytest.raises(ValidationError, match="Unit with ID 999 does not exist"):
            confirm_import(
                document,
                {
                    "units": {"cl": {"action": "use_existing", "existingId": 999}},
                    "categories": {
                        "gin": {"action": "create", "data": {"name": "Gin", "type": "SPIRIT"}}
                    },
                },
            )
        assert category_service.list_categories() == []

    def test_incomplete_create_payload(self, test_db, make_recipe_document):
        document = make_recipe_document(lines=[category_line("Gin")])

        with pytest.raises(ValidationError, match="missing required fields"):
            confirm_import(
                document, {"categories": {"gin": {"action": "create", "data": {"type": "SPIRIT"}}}}
            )

    def test_failure_rolls_back_created_entities(self, test_db, make_recipe_document, monkeypatch):
        document = make_recipe_document(
            lines=[bottle_line("Plantation 3 Stars", "Aged Rum"), ingredient_line("Lime")],
            steps=[{"stepNumber": 1, "text": "Shake"}],
        )
        resolutions = build_default_resolutions(preview_import(document))

        def fail(steps):
            raise RuntimeError("disk full")

        monkeypatch.setattr(cocktail_service, "_build_instructions", fail)

        with pytest.raises(DatabaseError, match="Imported"):
            confirm_import(document, resolutions)

        assert unit_service.list_units() == []
        assert category_service.list_categories() == []
        assert category_service.list_category_types() == []
        assert bottle_service.list_bottles() == []
        assert ingredient_service.list_ingredients() == []
        assert cocktail_service.list_cocktails() == []

    def test_existing_category_create_conflicts(self, white_rum, make_recipe_document):
        document = make_recipe_document(lines=[category_line("White Rum")])

        with pytest.raises(ConflictError, match="White Rum"):
            confirm_import(
                document,
                {
                    "units": {
                        "cl": {
                            "action": "create",
                            "data": {"name": "Centilitre", "abbreviation": "cl"},
                        }
                    },
                    "categories": {
                        "white rum": {
                            "action": "create",
                            "data": {"name": "White Rum", "type": "SPIRIT"},
                        }
                    },
                },
            )

        assert unit_service.list_units() == []
        assert len(category_service.list_categories()) == 1
        assert cocktail_service.list_cocktails() == []

    @pytest.mark.parametrize(
        "constraint, message",
        [
            ("UNIQUE constraint failed: cocktails.name", "Cocktail 'Imported' already exists"),
            ("UNIQUE constraint failed: ingredients.name", "conflicts with existing catalog data"),
        ],
    )
    def test_unique_violation_is_conflict(
        self, test_db, make_recipe_document, monkeypatch, constraint, message
    ):
        document = make_recipe_document(lines=[ingredient_line("Lime")])
        resolutions = build_default_resolutions(preview_import(document))

        def collide(data, session=None):
            raise IntegrityError("INSERT INTO cocktails", {}, Exception(constraint))

        monkeypatch.setattr(cocktail_service, "create_cocktail", collide)

        with pytest.raises(ConflictError, match=message):
            confirm_import(document, resolutions)

        assert ingredient_service.list_ingredients() == []

    def test_non_string_names_rejected(self, test_db, make_recipe_document):
        document = make_recipe_document(lines=[ingredient_line("Lime")])
        document["recipe"]["ingredientLines"][0]["sourceName"] = 123

        with pytest.raises(ValidationError, match="sourceName must be a string"):
            confirm_import(document)
        assert ingredient_service.list_ingredients() == []
