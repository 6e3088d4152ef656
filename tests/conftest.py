import pytest

from translation_tables import (
    CompositionContext,
    KeyDescriptor,
    LanguageTableConfiguration,
    TranslationConfiguration,
)

from factories import CategoryTranslation, ProductTranslation, TagTranslation


@pytest.fixture
def config() -> TranslationConfiguration:
    return TranslationConfiguration()


@pytest.fixture
def context(config: TranslationConfiguration) -> CompositionContext:
    """Context without any language table configured."""
    return CompositionContext.from_carriers(
        [ProductTranslation, CategoryTranslation, TagTranslation],
        config=config,
    )


@pytest.fixture
def configured_context(config: TranslationConfiguration) -> CompositionContext:
    """Context whose language key shape is known up front: {LanguageId: int}."""
    return CompositionContext.from_carriers(
        [ProductTranslation, CategoryTranslation, TagTranslation],
        config=config,
        language_table=LanguageTableConfiguration(primary_key=[KeyDescriptor(int, "LanguageId")]),
    )
