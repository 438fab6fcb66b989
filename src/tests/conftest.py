"""Pytest configuration and fixtures for service layer tests."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, scoped_session

from src.models import Base
from src.services.database import get_session_factory  # noqa: F401


@pytest.fixture(scope="function")
def test_db():
    """Provide a clean test database for each test function.

    This fixture:
    1. Creates an in-memory SQLite database
    2. Creates all tables
    3. Provides the database to the test
    4. Drops all tables after the test completes
    """
    engine = create_engine("sqlite:///:memory:", echo=False)

    Base.metadata.create_all(engine)

    session_factory = sessionmaker(bind=engine, expire_on_commit=False)
    Session = scoped_session(session_factory)

    # Monkey-patch the global session factory for tests
    import src.services.database as db_module

    original_get_session = db_module.get_session_factory
    db_module.get_session_factory = lambda: Session

    yield Session

    # Cleanup
    Session.remove()
    Base.metadata.drop_all(engine)

    db_module.get_session_factory = original_get_session


@pytest.fixture(scope="function")
def seeded_units(test_db):
    """Seed the default bar units and return them keyed by abbreviation."""
    from src.services import unit_service

    unit_service.seed_units()
    return {unit.abbreviation: unit for unit in unit_service.list_units()}


@pytest.fixture(scope="function")
def white_rum(test_db):
    """A SPIRIT category."""
    from src.services import category_service

    return category_service.create_category({"name": "White Rum", "type": "SPIRIT"})


@pytest.fixture(scope="function")
def havana(test_db, white_rum):
    """A bottle in the White Rum category."""
    from src.services import bottle_service

    return bottle_service.create_bottle(
        {"name": "Havana Club 3", "category_id": white_rum.id, "capacity_ml": 700}
    )


@pytest.fixture(scope="function")
def lime(test_db):
    """A non-bottle ingredient with translations."""
    from src.services import ingredient_service

    return ingredient_service.create_ingredient(
        {"name": "Lime", "icon": "lime", "name_translations": {"fr": "Citron vert"}}
    )


@pytest.fixture(scope="function")
def daiquiri(test_db, seeded_units, white_rum, havana, lime):
    """A cocktail using all three source types.

    Lines:
        0: 6 cl White Rum (CATEGORY, preferred bottle Havana Club 3)
        1: 3 cl Lime (INGREDIENT)
        2: 1 dash Havana Club 3 (BOTTLE)
    """
    from src.services import cocktail_service

    return cocktail_service.create_cocktail(
        {
            "name": "Daiquiri",
            "description": "Rum sour",
            "notes": "Serve very cold",
            "tags": ["sour", "classic"],
            "ingredients": [
                {
                    "quantity": 6,
                    "unit_id": seeded_units["cl"].id,
                    "source_type": "CATEGORY",
                    "category_id": white_rum.id,
                    "preferred_bottle_ids": [havana.id],
                },
                {
                    "quantity": 3,
                    "unit_id": seeded_units["cl"].id,
                    "source_type": "INGREDIENT",
                    "ingredient_id": lime.id,
                },
                {
                    "quantity": 1,
                    "unit_id": seeded_units["dash"].id,
                    "source_type": "BOTTLE",
                    "bottle_id": havana.id,
                },
            ],
            "instructions": ["Shake with ice", "Double strain into a coupe"],
        }
    )


@pytest.fixture
def make_recipe_document():
    """Factory for portable recipe documents in wire shape."""

    def _make(name="Imported", lines=None, steps=None, **recipe_fields):
        recipe = {
            "name": name,
            "description": None,
            "notes": None,
            "tags": [],
            "ingredientLines": lines or [],
            "instructionSteps": steps or [],
        }
        recipe.update(recipe_fields)
        return {
            "formatVersion": 1,
            "exportedAt": "2024-05-01T12:00:00.000Z",
            "recipe": recipe,
        }

    return _make
