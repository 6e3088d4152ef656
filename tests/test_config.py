import pytest

from translation_tables import DeleteBehavior, KeyNaming, TranslationConfigError, TranslationConfiguration
from translation_tables.config import parse_delete_behavior, translation_options


def test_defaults() -> None:
    config = TranslationConfiguration()

    assert config.suffix == "Translations"
    assert config.delete_behavior == DeleteBehavior.CASCADE
    assert config.require_language
    assert config.annotation_key("table") == "translations.table"


def test_from_env(monkeypatch) -> None:
    monkeypatch.setenv("TRANSLATIONS_TABLE_SUFFIX", "_i18n")
    monkeypatch.setenv("TRANSLATIONS_SCHEMA", "i18n")
    monkeypatch.setenv("TRANSLATIONS_DELETE_BEHAVIOR", "SET NULL")
    monkeypatch.setenv("TRANSLATIONS_KEY_NAMING", "snake")
    monkeypatch.setenv("TRANSLATIONS_REQUIRE_LANGUAGE", "false")

    config = TranslationConfiguration.from_env()

    assert config.suffix == "_i18n"
    assert config.translations_schema == "i18n"
    assert config.delete_behavior == DeleteBehavior.SET_NULL
    assert config.key_naming == KeyNaming.SNAKE
    assert not config.require_language


def test_from_env_rejects_unknown_naming(monkeypatch) -> None:
    monkeypatch.setenv("TRANSLATIONS_KEY_NAMING", "camel")

    with pytest.raises(TranslationConfigError):
        TranslationConfiguration.from_env()


def test_delete_behavior_sql() -> None:
    assert DeleteBehavior.SET_NULL.sql == "SET NULL"
    assert parse_delete_behavior("No Action") == DeleteBehavior.NO_ACTION
    assert parse_delete_behavior(DeleteBehavior.RESTRICT) is DeleteBehavior.RESTRICT


def test_translation_options_only_keeps_given_values() -> None:
    assert translation_options(table="t", delete_behavior=DeleteBehavior.RESTRICT) == {
        "translations.table": "t",
        "translations.delete_behavior": DeleteBehavior.RESTRICT,
    }
