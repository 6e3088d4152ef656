import logging
import threading
from dataclasses import dataclass, field
from typing import Any, List, Optional

from .config import TranslationConfiguration
from .errors import KeyShapeError, LanguageTableNotConfiguredError
from .keys import KeyDescriptor, derive_key
from .model import EntityType, ModelGraph

logger = logging.getLogger(__name__)


@dataclass
class LanguageTableConfiguration:
    """Key shape of the shared language table mirrored into every satellite."""

    primary_key: List[KeyDescriptor] = field(default_factory=list)
    translations_schema: Optional[str] = None
    # Identity of the language entity the shape was derived from
    entity: Optional[str] = None

    @property
    def is_shaped(self) -> bool:
        return bool(self.primary_key)

    def key_names(self) -> List[str]:
        return [k.name for k in self.primary_key]


@dataclass
class LanguageKey:
    """Language key resolved for one satellite, not yet written to shared state."""

    keys: List[KeyDescriptor]
    entity: Optional[EntityType] = None
    defining: bool = False

    @property
    def names(self) -> List[str]:
        return [k.name for k in self.keys]


class LanguageLinkPlanner:
    """Owns the language key shape shared by all satellites of a pass.

    The shape is written once, by the first satellite that supplies an
    explicit language entity (or up front through configuration), and read
    by every other satellite.
    """

    def __init__(
        self,
        config: TranslationConfiguration,
        language_table: Optional[LanguageTableConfiguration] = None,
    ) -> None:
        self.config = config
        self.language_table = language_table or LanguageTableConfiguration(
            translations_schema=config.translations_schema
        )
        if self.language_table.translations_schema is None:
            self.language_table.translations_schema = config.translations_schema
        self._lock = threading.Lock()

    def resolve(self, model: ModelGraph, language_entity: Any = None) -> LanguageKey:
        if language_entity is not None:
            entity = model.get_entity(language_entity)
            keys = [k.as_key_descriptor() for k in derive_key(entity, self.config.key_naming)]
            current = self.language_table
            if current.is_shaped and current.primary_key != keys:
                raise KeyShapeError(
                    f"Language entity {entity.identity} defines key "
                    f"{[k.name for k in keys]} but {current.key_names()} is already configured",
                    entity=entity.identity,
                    columns=[k.name for k in keys],
                )
            return LanguageKey(keys=keys, entity=entity, defining=current.entity != entity.identity)

        current = self.language_table
        if current.is_shaped:
            entity = model.find_entity(current.entity) if current.entity else None
            return LanguageKey(keys=list(current.primary_key), entity=entity)
        if not self.config.require_language:
            return LanguageKey(keys=[])
        raise LanguageTableNotConfiguredError("No language table configured")

    def resolve_language_key(self, model: ModelGraph, language_entity: Any = None) -> List[KeyDescriptor]:
        """Resolve and immediately record the language key shape."""
        resolved = self.resolve(model, language_entity)
        self.commit(resolved)
        return list(resolved.keys)

    def commit(self, resolved: LanguageKey) -> None:
        if not resolved.defining or resolved.entity is None:
            return
        with self._lock:
            current = self.language_table
            if current.is_shaped and current.primary_key != resolved.keys:
                raise KeyShapeError(
                    "Language key shape changed during composition",
                    entity=resolved.entity.identity,
                    columns=resolved.names,
                )
            self.language_table = LanguageTableConfiguration(
                primary_key=list(resolved.keys),
                translations_schema=current.translations_schema,
                entity=resolved.entity.identity,
            )
        logger.info(
            "Language table key configured",
            extra={"language_entity": resolved.entity.identity, "columns": resolved.names},
        )
