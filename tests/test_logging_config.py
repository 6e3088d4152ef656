import json
import logging

from translation_tables.logging_config import HumanFormatter, JsonFormatter, ServiceFilter, configure_logging


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("translation_tables.composer", logging.INFO, __file__, 1, "Composed translation table", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_extra_fields() -> None:
    record = _record(entity="shop.Product", primary_key=["ProductId", "LanguageId"])
    ServiceFilter("composer").filter(record)

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "Composed translation table"
    assert payload["service"] == "composer"
    assert payload["entity"] == "shop.Product"
    assert payload["primary_key"] == ["ProductId", "LanguageId"]


def test_human_formatter_appends_fields() -> None:
    line = HumanFormatter().format(_record(table="ProductTranslations"))

    assert "Composed translation table" in line
    assert "table=ProductTranslations" in line


def test_configure_logging_installs_single_handler(monkeypatch) -> None:
    monkeypatch.delenv("LOG_SERVICE_NAME", raising=False)
    root = logging.getLogger()
    previous = list(root.handlers), root.level
    try:
        handler = configure_logging("tests", json_enabled=False, level_value="debug")

        assert root.handlers == [handler]
        assert isinstance(handler.formatter, HumanFormatter)
        assert root.level == logging.DEBUG

        configure_logging("tests", json_enabled=True, level_value="nonsense")
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
        assert root.level == logging.INFO
    finally:
        for h in list(root.handlers):
            root.removeHandler(h)
        for h in previous[0]:
            root.addHandler(h)
        root.setLevel(previous[1])
