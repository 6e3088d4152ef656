"""Satellite table composition.

For every base entity with a translation carrier, a satellite entity is
planned first (all validation happens there) and only then applied to the
model graph, so an entity either gets a fully wired satellite or nothing.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from . import config as options
from .config import DeleteBehavior, parse_delete_behavior
from .context import CompositionContext
from .descriptors import TranslationDescriptor
from .errors import KeyShapeError, TranslationConfigError
from .keys import KeyDescriptor, ShadowKey, derive_key, record_source_keys
from .language import LanguageKey
from .model import Column, EntityType, ModelGraph, Relationship

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SatelliteMapping:
    """Mapping plan of one satellite table."""

    identity: str
    name: str
    base_identity: str
    table: str
    schema: Optional[str]
    source_keys: List[ShadowKey]
    language_keys: List[KeyDescriptor]
    properties: List[Column]
    on_delete: DeleteBehavior
    language_identity: Optional[str] = None
    language_principal_key: List[str] = field(default_factory=list)

    @property
    def primary_key(self) -> List[str]:
        return [k.shadow_name for k in self.source_keys] + [k.name for k in self.language_keys]

    @property
    def property_names(self) -> List[str]:
        return [p.name for p in self.properties]


class SatelliteComposer:
    def __init__(self, context: CompositionContext) -> None:
        self.context = context
        self.config = context.config
        # Language keys resolved by plan(), committed by apply()
        self._pending_language: Dict[str, LanguageKey] = {}

    def _annotation(self, entity: EntityType, name: str) -> Any:
        return entity.find_annotation(self.config.annotation_key(name))

    def table_name(self, entity: EntityType) -> str:
        table = self._annotation(entity, options.TABLE)
        if table is not None:
            return str(table)
        suffix = self._annotation(entity, options.SUFFIX)
        if suffix is None:
            suffix = self.config.suffix
        return f"{entity.table}{suffix}"

    def schema_name(self, entity: EntityType) -> Optional[str]:
        schema = self._annotation(entity, options.SCHEMA)
        if schema is not None:
            return str(schema)
        return self.context.language_table.translations_schema or entity.schema

    def delete_behavior(self, entity: EntityType) -> DeleteBehavior:
        value = self._annotation(entity, options.DELETE_BEHAVIOR)
        if value is None:
            return self.config.delete_behavior
        return parse_delete_behavior(value, entity=entity.identity)

    def localized_columns(self, entity: EntityType, descriptor: TranslationDescriptor) -> List[Column]:
        return [c for c in entity.columns if c.name in descriptor.property_names]

    def plan(
        self,
        model: ModelGraph,
        entity: EntityType,
        descriptor: TranslationDescriptor,
        language_entity: Any = None,
    ) -> Optional[SatelliteMapping]:
        """Validate and build the satellite mapping without touching the model.

        Returns None when the entity shares no property with its carrier.
        """
        localized = self.localized_columns(entity, descriptor)
        if not localized:
            return None

        source_keys = derive_key(entity, self.config.key_naming)
        in_key = sorted(c.name for c in localized if c.name in entity.primary_key)
        if in_key:
            raise KeyShapeError(
                f"Localized properties of {entity.identity} are part of its primary key",
                entity=entity.identity,
                columns=in_key,
            )

        if model.find_entity(descriptor.carrier_identity) is not None:
            raise TranslationConfigError(
                f"Translation entity {descriptor.carrier_identity} is already mapped",
                entity=descriptor.carrier_identity,
            )

        language = self.context.language.resolve(model, language_entity)
        on_delete = self.delete_behavior(entity)

        names = [k.shadow_name for k in source_keys] + language.names + [c.name for c in localized]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise KeyShapeError(
                f"Translation table for {entity.identity} has colliding columns: {', '.join(duplicates)}",
                entity=entity.identity,
                columns=duplicates,
            )

        language_entity_type = language.entity
        mapping = SatelliteMapping(
            identity=descriptor.carrier_identity,
            name=descriptor.carrier_name,
            base_identity=entity.identity,
            table=self.table_name(entity),
            schema=self.schema_name(entity),
            source_keys=source_keys,
            language_keys=list(language.keys),
            properties=[
                Column(
                    name=c.name,
                    python_type=c.python_type,
                    column_name=c.column_name,
                    column_type=c.column_type,
                    sa_type=c.sa_type,
                    nullable=c.nullable,
                )
                for c in localized
            ],
            on_delete=on_delete,
            language_identity=language_entity_type.identity if language_entity_type else None,
            language_principal_key=list(language_entity_type.primary_key) if language_entity_type else [],
        )
        self._pending_language[mapping.identity] = language
        return mapping

    def apply(self, model: ModelGraph, mapping: SatelliteMapping, descriptor: TranslationDescriptor) -> None:
        satellite = model.add_entity(
            EntityType(
                identity=mapping.identity,
                name=mapping.name,
                table=mapping.table,
                schema=mapping.schema,
                clr_type=descriptor.carrier,
            )
        )
        for key in mapping.source_keys:
            model.add_property(
                satellite.identity,
                Column(
                    name=key.shadow_name,
                    python_type=key.storage_type,
                    column_type=key.column_type,
                    sa_type=key.sa_type,
                    nullable=False,
                ),
            )
        model.add_relationship(
            Relationship(
                dependent=satellite.identity,
                principal=mapping.base_identity,
                foreign_key=[k.shadow_name for k in mapping.source_keys],
                principal_key=list(model.get_entity(mapping.base_identity).primary_key),
                on_delete=mapping.on_delete,
            )
        )

        for key in mapping.language_keys:
            model.add_property(satellite.identity, key.to_column())
        if mapping.language_identity is not None and mapping.language_keys:
            model.add_relationship(
                Relationship(
                    dependent=satellite.identity,
                    principal=mapping.language_identity,
                    foreign_key=[k.name for k in mapping.language_keys],
                    principal_key=list(mapping.language_principal_key),
                    on_delete=mapping.on_delete,
                )
            )

        model.set_primary_key(satellite.identity, mapping.primary_key)

        for column in mapping.properties:
            model.add_property(satellite.identity, column)
        for column in mapping.properties:
            model.ignore_property(mapping.base_identity, column.name)

        record_source_keys(descriptor, mapping.source_keys)
        descriptor.keys_from_language_entity = list(mapping.language_keys)
        language = self._pending_language.pop(mapping.identity, None)
        if language is not None:
            self.context.language.commit(language)
        self.context.satellites.append(mapping)

    def compose(
        self,
        model: ModelGraph,
        entity: EntityType,
        descriptor: TranslationDescriptor,
        language_entity: Any = None,
    ) -> Optional[SatelliteMapping]:
        mapping = self.plan(model, entity, descriptor, language_entity)
        if mapping is None:
            logger.debug(
                "Entity has no localized properties, skipping",
                extra={"entity": entity.identity, "carrier": descriptor.carrier_identity},
            )
            return None
        self.apply(model, mapping, descriptor)
        logger.info(
            "Composed translation table",
            extra={
                "entity": entity.identity,
                "table": mapping.table,
                "schema": mapping.schema,
                "primary_key": mapping.primary_key,
                "properties": mapping.property_names,
                "on_delete": mapping.on_delete.value,
            },
        )
        return mapping


def compose_model(
    model: ModelGraph,
    context: CompositionContext,
    language_entity: Any = None,
) -> List[SatelliteMapping]:
    """Compose satellite tables for every translated entity of ``model``.

    The entity list is taken before anything is added, so satellites created
    during the pass are never visited. The first configuration error aborts
    the pass.
    """
    composer = SatelliteComposer(context)
    result: List[SatelliteMapping] = []
    for entity in list(model.entity_types()):
        descriptor = context.find_descriptor(entity.identity)
        if descriptor is None:
            continue
        try:
            mapping = composer.compose(model, entity, descriptor, language_entity)
        except TranslationConfigError as exc:
            logger.error(
                "Translation table composition failed",
                extra={"entity": exc.entity or entity.identity, "columns": list(exc.columns), "error": str(exc)},
            )
            raise
        if mapping is not None:
            result.append(mapping)
    return result
