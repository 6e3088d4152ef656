import pytest
from sqlalchemy import BigInteger, Column, Integer, MetaData, Table, create_engine, inspect
from sqlalchemy.orm import registry

from translation_tables import (
    CompositionContext,
    KeyNaming,
    TranslationConfigError,
    TranslationConfiguration,
    TranslationRegistry,
    compose_model,
)
from translation_tables.descriptors import translation_of
from translation_tables.model import type_identity
from translation_tables.sqlalchemy_model import (
    entity_from_mapped_class,
    model_from_classes,
    model_from_registry,
    to_metadata,
)

from sample_models import Article, ArticleTranslation, Counter, CounterTranslation, Locale, Page, PageTexts


def _context() -> CompositionContext:
    return CompositionContext.from_carriers(
        [ArticleTranslation, CounterTranslation],
        config=TranslationConfiguration(suffix="_translations", key_naming=KeyNaming.SNAKE),
    )


def test_entity_from_mapped_class_reads_table_and_key() -> None:
    entity = entity_from_mapped_class(Article)

    assert entity.identity == type_identity(Article)
    assert entity.name == "Article"
    assert entity.table == "articles"
    assert entity.primary_key == ["id"]
    assert entity.property_names == ["id", "slug", "title", "body"]
    assert entity.find_column("id").python_type is int
    assert entity.find_column("title").python_type is str
    assert entity.find_column("title").nullable
    assert entity.annotations == {"translations.delete_behavior": "restrict"}


def test_model_from_registry_includes_mapped_tables() -> None:
    from sqlmodel.main import default_registry

    model = model_from_registry(default_registry)

    assert model.find_entity(Article) is not None
    assert model.find_entity(Locale) is not None


def test_model_from_empty_registry() -> None:
    assert list(model_from_registry(registry()).entity_types()) == []


def test_composed_model_renders_satellite_tables() -> None:
    model = model_from_classes([Locale, Article, Counter])

    compose_model(model, _context(), language_entity=Locale)
    metadata = to_metadata(model)

    table = metadata.tables["articles_translations"]
    assert [c.name for c in table.primary_key.columns] == ["article_id", "locale_code"]
    assert {c.name for c in table.columns} == {"article_id", "locale_code", "title", "body"}
    assert set(metadata.tables["articles"].columns.keys()) == {"id", "slug"}

    ondelete = {next(iter(fk.column_keys)): fk.ondelete for fk in table.foreign_key_constraints}
    assert ondelete == {"article_id": "RESTRICT", "locale_code": "RESTRICT"}


def test_table_override_and_key_types_survive_rendering() -> None:
    model = model_from_classes([Locale, Article, Counter])

    compose_model(model, _context(), language_entity=Locale)
    metadata = to_metadata(model)

    table = metadata.tables["counter_labels"]
    assert isinstance(table.c.counter_id.type, BigInteger)
    assert table.c.locale_code.type.length == 8
    assert not table.c.counter_id.nullable
    assert set(metadata.tables["counters"].columns.keys()) == {"id"}


def test_rendered_metadata_creates_on_sqlite() -> None:
    model = model_from_classes([Locale, Article, Counter])
    compose_model(model, _context(), language_entity=Locale)
    metadata = to_metadata(model)
    engine = create_engine("sqlite://")

    metadata.create_all(engine)

    inspector = inspect(engine)
    assert set(inspector.get_table_names()) == {
        "locales",
        "articles",
        "articles_translations",
        "counters",
        "counter_labels",
    }
    pk = inspector.get_pk_constraint("articles_translations")
    assert pk["constrained_columns"] == ["article_id", "locale_code"]
    fks = inspector.get_foreign_keys("articles_translations")
    assert {fk["referred_table"] for fk in fks} == {"articles", "locales"}


def test_sqlmodel_carrier_is_discovered_and_composed() -> None:
    assert translation_of(PageTexts) is Page
    carriers = TranslationRegistry()
    found = carriers.discover([Locale, Page, PageTexts])
    assert found[type_identity(Page)].property_names == {"heading"}
    context = CompositionContext(
        config=TranslationConfiguration(suffix="_translations", key_naming=KeyNaming.SNAKE),
        registry=carriers,
    )
    model = model_from_classes([Locale, Page])

    [mapping] = compose_model(model, context, language_entity=Locale)

    assert mapping.identity == type_identity(PageTexts)
    assert mapping.table == "pages_translations"
    assert mapping.primary_key == ["page_id", "locale_code"]
    assert mapping.property_names == ["heading"]
    assert model.get_entity(Page).property_names == ["id"]


def test_rendering_replaces_tables_already_in_metadata() -> None:
    metadata = MetaData()
    Locale.__table__.to_metadata(metadata)
    Article.__table__.to_metadata(metadata)
    Table("audit", metadata, Column("id", Integer, primary_key=True))
    model = model_from_classes([Locale, Article])
    compose_model(model, _context(), language_entity=Locale)

    result = to_metadata(model, metadata)

    assert result is metadata
    assert set(metadata.tables) == {"locales", "articles", "articles_translations", "audit"}
    assert set(metadata.tables["articles"].columns.keys()) == {"id", "slug"}
    metadata.create_all(create_engine("sqlite://"))


def test_unknown_translation_option_is_a_configuration_error() -> None:
    mapper_registry = registry()

    @mapper_registry.mapped
    class Misspelled:
        __tablename__ = "misspelled"
        __translations__ = {"tabel": "misspelled_i18n", "schema": "i18n"}

        id = Column(Integer, primary_key=True)

    with pytest.raises(TranslationConfigError) as err:
        entity_from_mapped_class(Misspelled)

    assert err.value.entity == type_identity(Misspelled)
    assert err.value.columns == ("tabel",)
