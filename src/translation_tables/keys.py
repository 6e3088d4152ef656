import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

from .config import KeyNaming
from .errors import KeyShapeError
from .model import Column, EntityType

if TYPE_CHECKING:
    from .descriptors import TranslationDescriptor


@dataclass(frozen=True)
class KeyDescriptor:
    """One key column: storage type and name.

    ``column_type`` and ``sa_type`` only travel along for rendering and do not
    take part in equality.
    """

    type: type
    name: str
    column_type: Optional[str] = field(default=None, compare=False)
    sa_type: Any = field(default=None, compare=False, repr=False)

    def to_column(self) -> Column:
        return Column(
            name=self.name,
            python_type=self.type,
            column_type=self.column_type,
            sa_type=self.sa_type,
            nullable=False,
        )


@dataclass(frozen=True)
class ShadowKey:
    """Primary key column of a source entity mirrored onto a satellite."""

    column_name: str
    shadow_name: str
    storage_type: type
    column_type: Optional[str] = field(default=None, compare=False)
    sa_type: Any = field(default=None, compare=False, repr=False)

    def as_key_descriptor(self) -> KeyDescriptor:
        return KeyDescriptor(self.storage_type, self.shadow_name, self.column_type, self.sa_type)


def _snake(value: str) -> str:
    text = re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", value)
    text = re.sub(r"(?<=[A-Z])([A-Z][a-z])", r"_\1", text)
    return text.lower()


def shadow_name(prefix: str, column_name: str, naming: KeyNaming = KeyNaming.CONCAT) -> str:
    if naming == KeyNaming.SNAKE:
        return f"{_snake(prefix)}_{_snake(column_name)}"
    return f"{prefix}{column_name}"


def _ensure_unique(entity: EntityType, names: Iterable[str]) -> None:
    seen: Dict[str, int] = {}
    for name in names:
        seen[name] = seen.get(name, 0) + 1
    duplicates = sorted(n for n, count in seen.items() if count > 1)
    if duplicates:
        raise KeyShapeError(
            f"Shadow key columns of {entity.identity} collide: {', '.join(duplicates)}",
            entity=entity.identity,
            columns=duplicates,
        )


def derive_key(entity: EntityType, naming: KeyNaming = KeyNaming.CONCAT) -> List[ShadowKey]:
    """Mirror the primary key of ``entity`` as prefixed shadow columns."""
    columns = entity.primary_key_columns()
    if not columns or len(columns) != len(entity.primary_key):
        raise KeyShapeError(
            f"Entity {entity.identity} has no usable primary key",
            entity=entity.identity,
            columns=entity.primary_key,
        )
    keys = [
        ShadowKey(
            column_name=c.column_name,
            shadow_name=shadow_name(entity.name, c.column_name, naming),
            storage_type=c.python_type,
            column_type=c.column_type,
            sa_type=c.sa_type,
        )
        for c in columns
    ]
    _ensure_unique(entity, (k.shadow_name for k in keys))
    return keys


def record_source_keys(descriptor: "TranslationDescriptor", keys: Iterable[ShadowKey]) -> None:
    for key in keys:
        descriptor.keys_from_source_entity[key.column_name] = key.shadow_name


def derive_source_key(
    entity: EntityType,
    naming: KeyNaming = KeyNaming.CONCAT,
    descriptor: Optional["TranslationDescriptor"] = None,
) -> List[ShadowKey]:
    """Shadow key of a base entity as seen from its satellite table.

    When ``descriptor`` is given, the column -> shadow column mapping is
    recorded on it. Repeated calls for the same entity yield the same names.
    """
    keys = derive_key(entity, naming)
    if descriptor is not None:
        record_source_keys(descriptor, keys)
    return keys
