"""Tests for the recipe transfer CLI."""

import json
import zipfile

import pytest

import src.utils.recipe_transfer_cli as cli
from src.services import cocktail_service
from src.services.recipe_transfer import export_recipe
from src.utils.recipe_transfer_cli import (
    EXIT_CONFLICT,
    EXIT_INVALID_ARGS,
    EXIT_SUCCESS,
    build_parser,
    main,
)


@pytest.fixture(autouse=True)
def no_app_database(monkeypatch):
    """Keep the CLI on the test database."""
    monkeypatch.setattr(cli, "initialize_app_database", lambda: None)


def write_json(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestParser:
    """Tests for argument parsing."""

    def test_export_ids(self):
        args = build_parser().parse_args(["export", "1", "2", "-o", "out.zip"])
        assert args.cocktail_ids == [1, 2]
        assert args.output == "out.zip"

    def test_resolutions_and_auto_are_exclusive(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["import", "a.json", "--auto", "--resolutions", "r.json"])

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_import_needs_a_resolution_mode(self, capsys):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["import", "a.json"])
        assert "--resolutions" in capsys.readouterr().err


class TestExportCommand:
    """Tests for `export`."""

    def test_single_cocktail_writes_json(self, daiquiri, tmp_path, capsys):
        assert main(["export", str(daiquiri.id), "-o", str(tmp_path)]) == EXIT_SUCCESS

        assert (tmp_path / "cocktail-daiquiri.json").exists()
        assert "Exported 1 cocktail(s)" in capsys.readouterr().out

    def test_several_cocktails_write_archive(self, daiquiri, tmp_path):
        mojito = cocktail_service.create_cocktail({"name": "Mojito"})
        target = tmp_path / "backup.zip"

        assert main(["export", str(daiquiri.id), str(mojito.id), "-o", str(target)]) == EXIT_SUCCESS
        with zipfile.ZipFile(target) as archive:
            assert len(archive.namelist()) == 2

    def test_unknown_cocktail(self, test_db, tmp_path, capsys):
        assert main(["export", "404", "-o", str(tmp_path)]) == EXIT_INVALID_ARGS
        assert "404" in capsys.readouterr().err


class TestPreviewCommand:
    """Tests for `preview`."""

    def test_text_summary(self, daiquiri, tmp_path, capsys):
        path = write_json(tmp_path / "d.json", export_recipe(daiquiri.id))

        assert main(["preview", str(path)]) == EXIT_SUCCESS

        out = capsys.readouterr().out
        assert "Cocktail: Daiquiri (already exists)" in out
        assert "[matched] white rum" in out

    def test_json_output(self, test_db, tmp_path, capsys, make_recipe_document):
        path = write_json(tmp_path / "g.json", make_recipe_document(name="Gimlet"))

        assert main(["preview", str(path), "--json"]) == EXIT_SUCCESS

        previews = json.loads(capsys.readouterr().out)
        assert previews[0]["cocktail"]["name"] == "Gimlet"
        assert previews[0]["cocktail"]["alreadyExists"] is False

    def test_invalid_document(self, test_db, tmp_path, make_recipe_document):
        document = make_recipe_document()
        document["formatVersion"] = 2
        path = write_json(tmp_path / "future.json", document)

        assert main(["preview", str(path)]) == EXIT_INVALID_ARGS


class TestImportCommand:
    """Tests for `import`."""

    def test_auto_import(self, daiquiri, tmp_path, capsys):
        path = write_json(tmp_path / "d.json", export_recipe(daiquiri.id))
        cocktail_service.delete_cocktail(daiquiri.id)

        assert main(["import", str(path), "--auto"]) == EXIT_SUCCESS

        assert "Imported 'Daiquiri'" in capsys.readouterr().out
        assert cocktail_service.find_cocktail_by_name("Daiquiri") is not None

    def test_conflict_does_not_stop_other_documents(
        self, daiquiri, tmp_path, capsys, make_recipe_document
    ):
        path = tmp_path / "export.zip"
        with zipfile.ZipFile(path, "w") as archive:
            archive.writestr("a.json", json.dumps(export_recipe(daiquiri.id)))
            archive.writestr("b.json", json.dumps(make_recipe_document(name="Gimlet")))

        assert main(["import", str(path), "--auto"]) == EXIT_CONFLICT

        captured = capsys.readouterr()
        assert "Conflict: Daiquiri" in captured.err
        assert "Imported 1, conflicts 1, failed 0" in captured.out
        assert cocktail_service.find_cocktail_by_name("Gimlet") is not None

    def test_with_resolutions_file(self, white_rum, tmp_path, make_recipe_document):
        from src.tests.recipe_builders import category_line

        document = make_recipe_document(name="Rum Neat", lines=[category_line("White Rum")])
        path = write_json(tmp_path / "r.json", document)
        resolutions = write_json(
            tmp_path / "res.json",
            {"categories": {"white rum": {"action": "use_existing", "existingId": white_rum.id}}},
        )

        assert main(["import", str(path), "--resolutions", str(resolutions)]) == EXIT_SUCCESS

        cocktail = cocktail_service.find_cocktail_by_name("Rum Neat")
        assert cocktail.ingredients[0].category_id == white_rum.id

    def test_missing_file(self, test_db, tmp_path, capsys):
        assert main(["import", str(tmp_path / "nope.json"), "--auto"]) == EXIT_INVALID_ARGS
        assert "File not found" in capsys.readouterr().err
