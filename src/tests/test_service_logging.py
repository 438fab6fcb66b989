"""Tests for service logging helpers."""

import logging

from src.services.logging_utils import get_service_logger, log_operation


class TestGetServiceLogger:
    def test_prefixes_module_name(self):
        logger = get_service_logger("src.services.recipe_transfer.resolver")
        assert logger.name == "bar_catalog.services.resolver"

    def test_plain_name(self):
        assert get_service_logger("exporter").name == "bar_catalog.services.exporter"


class TestLogOperation:
    def test_message_and_extra(self, caplog):
        logger = get_service_logger("exporter")

        with caplog.at_level(logging.INFO, logger=logger.name):
            log_operation(logger, "export_recipe", "success", cocktail_id=3, line_count=2)

        record = caplog.records[-1]
        assert record.getMessage() == "export_recipe: success"
        assert record.levelno == logging.INFO
        assert record.operation == "export_recipe"
        assert record.outcome == "success"
        assert record.cocktail_id == 3
        assert record.line_count == 2

    def test_custom_level(self, caplog):
        logger = get_service_logger("resolver")

        with caplog.at_level(logging.WARNING, logger=logger.name):
            log_operation(logger, "resolve_bottles", "category_unresolved", level=logging.WARNING)
            log_operation(logger, "resolve_bottles", "success")

        assert [record.getMessage() for record in caplog.records] == [
            "resolve_bottles: category_unresolved"
        ]

    def test_unresolved_bottle_category_is_logged(self, test_db, caplog, make_recipe_document):
        from src.services.recipe_transfer import confirm_import
        from src.tests.recipe_builders import bottle_line

        document = make_recipe_document(lines=[bottle_line("Unknown Bottle", "White Rum")])
        resolutions = {
            "bottles": {
                "unknown bottle": {
                    "action": "create",
                    "data": {"name": "Unknown Bottle", "categoryName": "White Rum"},
                }
            }
        }

        with caplog.at_level(logging.WARNING, logger="bar_catalog.services.resolver"):
            confirm_import(document, resolutions)

        warnings = [r for r in caplog.records if r.getMessage() == "resolve_bottles: category_unresolved"]
        assert len(warnings) == 1
        assert warnings[0].bottle_key == "unknown bottle"
