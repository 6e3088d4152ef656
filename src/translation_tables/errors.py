from __future__ import annotations

from typing import Iterable, Optional, Tuple


class TranslationConfigError(Exception):
    """Static configuration problem detected while composing translation tables."""

    def __init__(
        self,
        message: str,
        entity: Optional[str] = None,
        columns: Iterable[str] = (),
    ) -> None:
        super().__init__(message)
        self.entity = entity
        self.columns: Tuple[str, ...] = tuple(columns)


class AmbiguousTranslationError(TranslationConfigError):
    """Two carrier types claim the same base entity."""


class KeyShapeError(TranslationConfigError):
    """Missing primary key, colliding shadow columns or conflicting language key."""


class LanguageTableNotConfiguredError(TranslationConfigError):
    """Language key requested before any language table was configured."""
