"""Satellite translation tables for SQLModel/SQLAlchemy models.

Localized properties of a base entity are moved into a synthesized table
keyed by the base entity key plus the shared language key.

Library modules only log through module loggers. Host applications that
want the JSON or human log format can call
``translation_tables.logging_config.configure_logging()`` at startup; the
library never installs handlers itself.
"""

from .composer import SatelliteComposer, SatelliteMapping, compose_model
from .config import DeleteBehavior, KeyNaming, TranslationConfiguration, translation_options
from .context import CompositionContext
from .descriptors import Translation, TranslationDescriptor, TranslationRegistry
from .errors import (
    AmbiguousTranslationError,
    KeyShapeError,
    LanguageTableNotConfiguredError,
    TranslationConfigError,
)
from .keys import KeyDescriptor, ShadowKey, derive_source_key, shadow_name
from .language import LanguageLinkPlanner, LanguageTableConfiguration
from .model import Column, EntityType, ModelGraph, Relationship

__all__ = [
    "AmbiguousTranslationError",
    "Column",
    "CompositionContext",
    "DeleteBehavior",
    "EntityType",
    "KeyDescriptor",
    "KeyNaming",
    "KeyShapeError",
    "LanguageLinkPlanner",
    "LanguageTableConfiguration",
    "LanguageTableNotConfiguredError",
    "ModelGraph",
    "Relationship",
    "SatelliteComposer",
    "SatelliteMapping",
    "ShadowKey",
    "Translation",
    "TranslationConfigError",
    "TranslationConfiguration",
    "TranslationDescriptor",
    "TranslationRegistry",
    "compose_model",
    "derive_source_key",
    "shadow_name",
    "translation_options",
]
