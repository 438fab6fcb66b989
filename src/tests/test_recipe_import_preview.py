"""Tests for import preview (matching document references against the catalog)."""

import pytest

from src.services import bottle_service, category_service, unit_service
from src.services.exceptions import ValidationError
from src.services.recipe_transfer import export_recipe, preview_import
from src.services.recipe_transfer.matcher import MATCHED, MISSING, collect_references
from src.services.recipe_transfer.document import parse_document
from src.tests.recipe_builders import bottle_line, category_line, ingredient_line, unit_ref


class TestCollectReferences:
    """Tests for collect_references()."""

    def test_deduplicates_case_insensitively(self, make_recipe_document):
        document = parse_document(
            make_recipe_document(
                lines=[
                    category_line("Rum"),
                    bottle_line("Havana Club 3", "RUM", unit=unit_ref("CL")),
                    category_line("rum", category_type="LIQUEUR"),
                ]
            )
        )
        refs = collect_references(document)

        assert list(refs["categories"]) == ["rum"]
        assert refs["categories"]["rum"]["name"] == "Rum"
        assert refs["categories"]["rum"]["type"] == "SPIRIT"
        assert list(refs["units"]) == ["cl"]
        assert list(refs["bottles"]) == ["havana club 3"]

    def test_preferred_bottles_are_references(self, make_recipe_document):
        document = parse_document(
            make_recipe_document(
                lines=[
                    category_line(
                        "White Rum",
                        preferred=[{"name": "Havana Club 3", "categoryName": "Cuban Rum"}],
                    )
                ]
            )
        )
        refs = collect_references(document)

        assert refs["bottles"]["havana club 3"] == {
            "name": "Havana Club 3",
            "categoryName": "Cuban Rum",
        }
        assert set(refs["categories"]) == {"white rum", "cuban rum"}

    def test_empty_names_are_not_references(self, make_recipe_document):
        document = parse_document(
            make_recipe_document(
                lines=[{"sourceType": "INGREDIENT", "sourceName": "", "sourceDetail": {}, "quantity": 1}]
            )
        )
        refs = collect_references(document)
        assert all(not refs[kind] for kind in refs)


class TestPreviewImport:
    """Tests for preview_import()."""

    def test_own_export_matches_everything(self, daiquiri):
        preview = preview_import(export_recipe(daiquiri.id))

        assert preview.cocktail.name == "Daiquiri"
        assert preview.cocktail.already_exists is True
        assert preview.missing_count == 0
        assert [match.key for match in preview.units] == ["cl", "dash"]
        assert [match.key for match in preview.categories] == ["white rum"]
        assert [match.key for match in preview.bottles] == ["havana club 3"]
        assert [match.key for match in preview.ingredients] == ["lime"]
        assert preview.bottles[0].existing_match["name"] == "Havana Club 3"

    def test_missing_references(self, test_db, make_recipe_document):
        document = make_recipe_document(
            name="Mojito",
            lines=[
                category_line("White Rum"),
                ingredient_line("Mint", icon="leaf", unit=unit_ref("leaf", "Leaf", None)),
            ],
        )
        preview = preview_import(document)

        assert preview.cocktail.already_exists is False
        assert preview.missing_count == 4
        mint = preview.ingredients[0]
        assert mint.status == MISSING
        assert mint.existing_match is None
        assert mint.ref == {"name": "Mint", "icon": "leaf", "nameTranslations": None}

    def test_matching_ignores_case(self, white_rum, make_recipe_document):
        unit_service.seed_units()
        document = make_recipe_document(lines=[category_line("WHITE RUM", unit=unit_ref("CL"))])

        preview = preview_import(document)

        assert preview.categories[0].status == MATCHED
        assert preview.categories[0].existing_match["id"] == white_rum.id
        assert preview.units[0].status == MATCHED

    def test_cocktail_name_check_is_case_sensitive(self, daiquiri, make_recipe_document):
        assert preview_import(make_recipe_document(name="daiquiri")).cocktail.already_exists is False
        assert preview_import(make_recipe_document(name=" Daiquiri ")).cocktail.already_exists is True

    def test_preview_does_not_write(self, daiquiri, make_recipe_document):
        document = make_recipe_document(
            lines=[bottle_line("Plantation 3 Stars", "Aged Rum"), category_line("Gin")]
        )
        preview_import(document)
        preview_import(document)

        assert len(category_service.list_categories()) == 1
        assert len(bottle_service.list_bottles()) == 1

    def test_unsupported_version_rejected(self, daiquiri):
        document = export_recipe(daiquiri.id)
        document["formatVersion"] = 2

        with pytest.raises(ValidationError, match="Unsupported formatVersion"):
            preview_import(document)

    def test_to_dict_shape(self, daiquiri):
        result = preview_import(export_recipe(daiquiri.id)).to_dict()

        assert set(result) == {"cocktail", "units", "categories", "bottles", "ingredients"}
        assert result["cocktail"] == {
            "name": "Daiquiri",
            "description": "Rum sour",
            "tags": ["sour", "classic"],
            "alreadyExists": True,
        }
        assert set(result["bottles"][0]) == {"key", "ref", "existingMatch", "status"}
        assert result["bottles"][0]["status"] == "matched"

    def test_non_string_names_rejected(self, test_db, make_recipe_document):
        document = make_recipe_document(
            lines=[
                category_line(
                    "White Rum", preferred=[{"name": 5, "categoryName": "White Rum"}]
                )
            ]
        )

        with pytest.raises(ValidationError, match="preferredBottles entries need a string name"):
            preview_import(document)
