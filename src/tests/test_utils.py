"""Tests for utility helpers: slugs, translations, timestamps and configuration."""

from datetime import datetime, timedelta, timezone

import pytest

from src.utils.config import Config, get_config, get_database_url, reset_config
from src.utils.datetime_utils import to_iso_utc, utc_now
from src.utils.slug_utils import create_slug
from src.utils.translations import decode_translations, encode_translations


class TestCreateSlug:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("Whiskey Sour", "whiskey-sour"),
            ("Piña Colada", "pina-colada"),
            ("  Death & Co. #2 ", "death-co-2"),
            ("Crème de Cassis", "creme-de-cassis"),
            ("", ""),
            ("!!!", ""),
        ],
    )
    def test_slugs(self, name, expected):
        assert create_slug(name) == expected


class TestTranslations:
    def test_encode(self):
        assert encode_translations({"fr": "Citron vert", "de": "Limette"}) == (
            '{"de": "Limette", "fr": "Citron vert"}'
        )
        assert encode_translations({}) is None
        assert encode_translations(None) is None
        assert encode_translations('{"fr": "Menthe"}') == '{"fr": "Menthe"}'

    def test_decode(self):
        assert decode_translations('{"fr": "Citron vert"}') == {"fr": "Citron vert"}
        assert decode_translations(None) is None
        assert decode_translations("") is None

    def test_decode_malformed(self):
        assert decode_translations("{not json") is None
        assert decode_translations('["fr"]') is None


class TestDatetimeUtils:
    def test_utc_now_is_aware(self):
        assert utc_now().tzinfo is not None

    def test_to_iso_utc(self):
        value = datetime(2024, 5, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)
        assert to_iso_utc(value) == "2024-05-01T12:00:00.123Z"

    def test_naive_and_offset_values(self):
        assert to_iso_utc(datetime(2024, 5, 1, 12, 0)) == "2024-05-01T12:00:00.000Z"
        paris = timezone(timedelta(hours=2))
        assert to_iso_utc(datetime(2024, 5, 1, 14, 0, tzinfo=paris)) == "2024-05-01T12:00:00.000Z"
        assert to_iso_utc(None) is None


class TestConfig:
    @pytest.fixture(autouse=True)
    def fresh_config(self, monkeypatch):
        monkeypatch.delenv("BAR_CATALOG_DATABASE_URL", raising=False)
        monkeypatch.delenv("BAR_CATALOG_ENV", raising=False)
        reset_config()
        yield
        reset_config()

    def test_database_url_override(self, monkeypatch):
        monkeypatch.setenv("BAR_CATALOG_DATABASE_URL", "sqlite:///:memory:")
        assert get_database_url() == "sqlite:///:memory:"

    def test_development_uses_project_data_dir(self):
        config = Config("development")
        assert config.is_development
        assert config.database_path.name == "bar_catalog.db"
        assert config.database_path.parent.name == "data"
        assert config.database_url.startswith("sqlite:///")

    def test_environment_variable_selects_environment(self, monkeypatch):
        monkeypatch.setenv("BAR_CATALOG_ENV", "development")
        assert get_config().environment == "development"

    def test_singleton_keeps_first_environment(self):
        first = get_config("development")
        assert get_config("production") is first
        assert first.environment == "development"
