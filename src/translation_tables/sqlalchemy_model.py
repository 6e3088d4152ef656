"""Bridge between SQLModel/SQLAlchemy mapped classes and the model graph.

Mapped classes may carry per-entity overrides in a ``__translations__``
dict using the option names of ``translation_options``::

    class Product(SQLModel, table=True):
        __translations__ = {"table": "product_i18n", "delete_behavior": "restrict"}
"""

import datetime
import decimal
import uuid
from typing import Any, Dict, Iterable, Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKeyConstraint,
    Integer,
    LargeBinary,
    MetaData,
    Numeric,
    PrimaryKeyConstraint,
    String,
    Table,
    Time,
    Uuid,
    exc,
)
from sqlalchemy import Column as SAColumn
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import registry as sa_registry
from sqlalchemy.types import TypeDecorator, TypeEngine

from . import config as options
from .config import ANNOTATION_PREFIX, translation_options
from .errors import TranslationConfigError
from .model import Column, EntityType, ModelGraph, type_identity

_SA_TYPES: Dict[type, type] = {
    bool: Boolean,
    int: Integer,
    float: Float,
    decimal.Decimal: Numeric,
    str: String,
    bytes: LargeBinary,
    datetime.datetime: DateTime,
    datetime.date: Date,
    datetime.time: Time,
    uuid.UUID: Uuid,
}

_OPTION_NAMES = {options.TABLE, options.SCHEMA, options.SUFFIX, options.DELETE_BEHAVIOR}


def _python_type(sa_type: TypeEngine) -> type:
    while isinstance(sa_type, TypeDecorator):
        sa_type = sa_type.impl_instance
    try:
        return sa_type.python_type
    except NotImplementedError:
        return object


def _column_type_name(sa_type: TypeEngine) -> str:
    try:
        return str(sa_type)
    except exc.CompileError:
        return type(sa_type).__name__.upper()


def entity_from_mapped_class(cls: type, prefix: str = ANNOTATION_PREFIX) -> EntityType:
    """Describe one mapped class (SQLModel ``table=True`` or declarative)."""
    mapper = sa_inspect(cls)
    table = mapper.local_table
    columns = []
    by_column: Dict[str, str] = {}
    for prop in mapper.column_attrs:
        sa_column = prop.columns[0]
        if sa_column.table is not table:
            continue
        by_column[sa_column.name] = prop.key
        columns.append(
            Column(
                name=prop.key,
                python_type=_python_type(sa_column.type),
                column_name=sa_column.name,
                column_type=_column_type_name(sa_column.type),
                sa_type=sa_column.type,
                nullable=bool(sa_column.nullable) and not sa_column.primary_key,
            )
        )

    overrides = getattr(cls, "__translations__", None) or {}
    unknown = sorted(set(overrides) - _OPTION_NAMES)
    if unknown:
        raise TranslationConfigError(
            f"Unknown translation options on {type_identity(cls)}: {', '.join(unknown)}",
            entity=type_identity(cls),
            columns=unknown,
        )
    annotations = translation_options(prefix=prefix, **overrides)
    return EntityType.for_type(
        cls,
        table=table.name,
        schema=table.schema,
        columns=columns,
        primary_key=[by_column[c.name] for c in table.primary_key.columns if c.name in by_column],
        annotations=annotations,
    )


def model_from_classes(classes: Iterable[type], prefix: str = ANNOTATION_PREFIX) -> ModelGraph:
    return ModelGraph([entity_from_mapped_class(cls, prefix) for cls in classes])


def model_from_registry(registry: Optional[sa_registry] = None, prefix: str = ANNOTATION_PREFIX) -> ModelGraph:
    """Model graph of every class mapped in ``registry`` (SQLModel's by default)."""
    if registry is None:
        from sqlmodel.main import default_registry

        registry = default_registry
    classes = sorted((m.class_ for m in registry.mappers), key=lambda c: (c.__module__, c.__qualname__))
    return model_from_classes(classes, prefix)


def _sa_type(column: Column) -> Any:
    if column.sa_type is not None:
        return column.sa_type
    if column.python_type is int and column.column_type and "BIG" in column.column_type.upper():
        return BigInteger()
    return _SA_TYPES.get(column.python_type, String)()


def _qualified(entity: EntityType) -> str:
    return f"{entity.schema}.{entity.table}" if entity.schema else str(entity.table)


def to_metadata(model: ModelGraph, metadata: Optional[MetaData] = None) -> MetaData:
    """Record the composed model graph as SQLAlchemy tables.

    Tables of ``metadata`` that share a name with an entity of the graph are
    replaced by the composed version, so passing ``SQLModel.metadata`` drops
    the localized columns from the base tables. Nothing is emitted to a
    database; callers decide what to do with the resulting metadata.
    """
    metadata = metadata if metadata is not None else MetaData()
    for entity in model.entity_types():
        existing = metadata.tables.get(_qualified(entity))
        if existing is not None:
            metadata.remove(existing)
        items = [
            SAColumn(
                c.column_name,
                _sa_type(c),
                nullable=c.nullable and c.name not in entity.primary_key,
            )
            for c in entity.columns
        ]
        if entity.primary_key:
            items.append(PrimaryKeyConstraint(*[entity.find_column(n).column_name for n in entity.primary_key]))
        for rel in model.relationships_of(entity.identity):
            principal = model.get_entity(rel.principal)
            items.append(
                ForeignKeyConstraint(
                    [entity.find_column(n).column_name for n in rel.foreign_key],
                    [f"{_qualified(principal)}.{principal.find_column(n).column_name}" for n in rel.principal_key],
                    ondelete=rel.on_delete.sql,
                )
            )
        Table(entity.table, metadata, *items, schema=entity.schema)
    return metadata
