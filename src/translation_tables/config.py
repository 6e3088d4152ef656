import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from .errors import TranslationConfigError


class DeleteBehavior(str, Enum):
    CASCADE = "cascade"
    RESTRICT = "restrict"
    SET_NULL = "set_null"
    SET_DEFAULT = "set_default"
    NO_ACTION = "no_action"

    @property
    def sql(self) -> str:
        """Value for the ``ON DELETE`` clause of a foreign key."""
        return self.value.replace("_", " ").upper()


class KeyNaming(str, Enum):
    # ProductId
    CONCAT = "concat"
    # product_id
    SNAKE = "snake"


# Per-entity annotation names, stored under ``TranslationConfiguration.annotation_prefix``
TABLE = "table"
SCHEMA = "schema"
SUFFIX = "suffix"
DELETE_BEHAVIOR = "delete_behavior"

ANNOTATION_PREFIX = "translations."

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class TranslationConfiguration:
    """Global options shared by every satellite table of one composition pass."""

    suffix: str = "Translations"
    translations_schema: Optional[str] = None
    delete_behavior: DeleteBehavior = DeleteBehavior.CASCADE
    key_naming: KeyNaming = KeyNaming.CONCAT
    require_language: bool = True
    annotation_prefix: str = ANNOTATION_PREFIX

    @classmethod
    def from_env(cls) -> "TranslationConfiguration":
        require = os.getenv("TRANSLATIONS_REQUIRE_LANGUAGE", "true").lower() in _TRUE_VALUES
        return cls(
            suffix=os.getenv("TRANSLATIONS_TABLE_SUFFIX", "Translations"),
            translations_schema=os.getenv("TRANSLATIONS_SCHEMA") or None,
            delete_behavior=parse_delete_behavior(os.getenv("TRANSLATIONS_DELETE_BEHAVIOR", "cascade")),
            key_naming=_parse_key_naming(os.getenv("TRANSLATIONS_KEY_NAMING", "concat")),
            require_language=require,
        )

    def annotation_key(self, name: str) -> str:
        return f"{self.annotation_prefix}{name}"


def parse_delete_behavior(value: Any, entity: Optional[str] = None) -> DeleteBehavior:
    if isinstance(value, DeleteBehavior):
        return value
    text = str(value or "").strip().lower().replace(" ", "_")
    try:
        return DeleteBehavior(text)
    except ValueError:
        raise TranslationConfigError(
            f"Unknown delete behavior {value!r}",
            entity=entity,
        ) from None


def _parse_key_naming(value: str) -> KeyNaming:
    try:
        return KeyNaming(value.strip().lower())
    except ValueError:
        raise TranslationConfigError(f"Unknown key naming {value!r}") from None


def translation_options(
    table: Optional[str] = None,
    schema: Optional[str] = None,
    suffix: Optional[str] = None,
    delete_behavior: Optional[Any] = None,
    prefix: str = ANNOTATION_PREFIX,
) -> Dict[str, Any]:
    """Build per-entity override annotations.

    Only the options that were given end up in the result, so the dict can be
    merged into an entity's existing annotations.
    """
    options: Dict[str, Any] = {}
    for name, value in (
        (TABLE, table),
        (SCHEMA, schema),
        (SUFFIX, suffix),
        (DELETE_BEHAVIOR, delete_behavior),
    ):
        if value is not None:
            options[f"{prefix}{name}"] = value
    return options
