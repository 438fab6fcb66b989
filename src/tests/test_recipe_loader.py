"""Tests for loading portable recipe documents from files."""

import json
import logging
import zipfile

import pytest

from src.services.exceptions import ValidationError
from src.services.recipe_transfer import load_documents


@pytest.fixture
def document(make_recipe_document):
    return make_recipe_document(name="Gimlet")


class TestLoadJson:
    """Tests for single .json documents."""

    def test_valid_document(self, document, tmp_path):
        path = tmp_path / "cocktail-gimlet.json"
        path.write_text(json.dumps(document), encoding="utf-8")

        assert load_documents(path) == [document]

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ValidationError, match="Invalid JSON in broken.json"):
            load_documents(path)

    def test_invalid_document(self, document, tmp_path):
        document["formatVersion"] = 2
        path = tmp_path / "future.json"
        path.write_text(json.dumps(document), encoding="utf-8")

        with pytest.raises(ValidationError, match="Unsupported formatVersion"):
            load_documents(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_documents(tmp_path / "nope.json")

    def test_unsupported_extension(self, tmp_path):
        path = tmp_path / "recipe.txt"
        path.write_text("{}", encoding="utf-8")

        with pytest.raises(ValidationError, match="Unsupported file type"):
            load_documents(path)


class TestLoadArchive:
    """Tests for .zip archives."""

    def test_bad_members_are_skipped(self, document, tmp_path, caplog):
        invalid = dict(document, formatVersion=7)
        path = tmp_path / "export.zip"
        with zipfile.ZipFile(path, "w") as archive:
            archive.writestr("cocktail-gimlet.json", json.dumps(document))
            archive.writestr("broken.json", "{oops")
            archive.writestr("future.json", json.dumps(invalid))
            archive.writestr("README.txt", "not a recipe")

        with caplog.at_level(logging.WARNING, logger="bar_catalog.services.loader"):
            documents = load_documents(path)

        assert documents == [document]
        messages = [record.getMessage() for record in caplog.records]
        assert "load_documents: member_unreadable" in messages
        assert "load_documents: member_invalid" in messages

    def test_not_a_zip(self, tmp_path):
        path = tmp_path / "export.zip"
        path.write_bytes(b"plain bytes")

        with pytest.raises(ValidationError, match="Invalid ZIP archive"):
            load_documents(path)
