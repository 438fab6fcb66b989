"""Tests for database engine, initialization and reset helpers."""

import pytest
from sqlalchemy import inspect, text

from src.services import database, unit_service
from src.services.database import (
    EXPECTED_TABLES,
    create_database_engine,
    init_database,
    reset_database,
)
from src.utils.config import reset_config


class TestEngine:
    """Tests for engine creation and initialization."""

    def test_memory_engine_creates_tables(self):
        engine = create_database_engine("sqlite:///:memory:")
        init_database(engine)

        tables = inspect(engine).get_table_names()
        for table in EXPECTED_TABLES + ["cocktail_ingredients", "cocktail_instructions"]:
            assert table in tables
        engine.dispose()

    def test_foreign_keys_enforced(self):
        engine = create_database_engine("sqlite:///:memory:")
        with engine.connect() as conn:
            assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1
        engine.dispose()


class TestInitializeAppDatabase:
    """Tests for initialize_app_database() against a file database."""

    @pytest.fixture
    def file_database(self, tmp_path, monkeypatch):
        database.close_connections()
        reset_config()
        monkeypatch.setenv("BAR_CATALOG_DATABASE_URL", f"sqlite:///{tmp_path / 'catalog.db'}")
        yield tmp_path / "catalog.db"
        database.close_connections()
        reset_config()

    def test_creates_and_seeds(self, file_database):
        database.initialize_app_database()

        assert file_database.exists()
        assert database.verify_database() is True
        assert len(unit_service.list_units()) == 9

    def test_second_run_does_not_reseed(self, file_database):
        database.initialize_app_database()
        database.initialize_app_database()

        assert len(unit_service.list_units()) == 9

    def test_reset_requires_confirmation(self, file_database):
        database.initialize_app_database()

        with pytest.raises(ValueError, match="confirm=True"):
            reset_database()
        assert len(unit_service.list_units()) == 9

        reset_database(confirm=True)
        assert unit_service.list_units() == []
