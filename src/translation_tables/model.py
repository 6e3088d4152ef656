"""In-memory model graph the composer reads and mutates.

Hosts translate their ORM metadata into this graph (see
``translation_tables.sqlalchemy_model``), run the composition pass on it and
render the result back.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Set

from .config import DeleteBehavior
from .errors import TranslationConfigError


def type_identity(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


@dataclass
class Column:
    name: str
    python_type: type
    column_name: Optional[str] = None
    column_type: Optional[str] = None
    # SQLAlchemy TypeEngine when the column came from mapped metadata
    sa_type: Any = field(default=None, compare=False, repr=False)
    nullable: bool = True

    def __post_init__(self) -> None:
        if self.column_name is None:
            self.column_name = self.name


@dataclass
class Relationship:
    """Many-to-one link from ``dependent`` to ``principal`` over a composite key."""

    dependent: str
    principal: str
    foreign_key: List[str]
    principal_key: List[str]
    on_delete: DeleteBehavior = DeleteBehavior.CASCADE


@dataclass
class EntityType:
    identity: str
    name: str
    table: Optional[str] = None
    schema: Optional[str] = None
    columns: List[Column] = field(default_factory=list)
    primary_key: List[str] = field(default_factory=list)
    annotations: Dict[str, Any] = field(default_factory=dict)
    ignored: Set[str] = field(default_factory=set)
    clr_type: Optional[type] = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.table is None:
            self.table = self.name

    @classmethod
    def for_type(cls, python_type: type, **kwargs: Any) -> "EntityType":
        return cls(
            identity=type_identity(python_type),
            name=python_type.__name__,
            clr_type=python_type,
            **kwargs,
        )

    @property
    def property_names(self) -> List[str]:
        return [c.name for c in self.columns]

    def find_column(self, name: str) -> Optional[Column]:
        for column in self.columns:
            if column.name == name:
                return column
        return None

    def primary_key_columns(self) -> List[Column]:
        result: List[Column] = []
        for name in self.primary_key:
            column = self.find_column(name)
            if column is not None:
                result.append(column)
        return result

    def find_annotation(self, key: str) -> Any:
        return self.annotations.get(key)


class ModelGraph:
    """Mutable set of entity types and the relationships between them."""

    def __init__(self, entities: Optional[List[EntityType]] = None) -> None:
        self._entities: Dict[str, EntityType] = {}
        self._relationships: List[Relationship] = []
        for entity in entities or []:
            self.add_entity(entity)

    def entity_types(self) -> Iterator[EntityType]:
        return iter(self._entities.values())

    def find_entity(self, identity: Any) -> Optional[EntityType]:
        if isinstance(identity, EntityType):
            identity = identity.identity
        elif isinstance(identity, type):
            identity = type_identity(identity)
        return self._entities.get(identity)

    def get_entity(self, identity: Any) -> EntityType:
        entity = self.find_entity(identity)
        if entity is None:
            raise TranslationConfigError(f"Entity {identity!r} is not part of the model", entity=str(identity))
        return entity

    def add_entity(self, entity: EntityType) -> EntityType:
        if entity.identity in self._entities:
            raise TranslationConfigError(f"Entity {entity.identity} is already mapped", entity=entity.identity)
        self._entities[entity.identity] = entity
        return entity

    def add_property(self, identity: str, column: Column) -> Column:
        entity = self.get_entity(identity)
        if entity.find_column(column.name) is not None:
            raise TranslationConfigError(
                f"Property {column.name} already exists on {identity}",
                entity=identity,
                columns=[column.name],
            )
        entity.columns.append(column)
        entity.ignored.discard(column.name)
        return column

    def set_primary_key(self, identity: str, names: List[str]) -> None:
        entity = self.get_entity(identity)
        missing = [n for n in names if entity.find_column(n) is None]
        if missing:
            raise TranslationConfigError(
                f"Primary key of {identity} references unknown properties",
                entity=identity,
                columns=missing,
            )
        entity.primary_key = list(names)

    def add_relationship(self, relationship: Relationship) -> Relationship:
        self.get_entity(relationship.dependent)
        self.get_entity(relationship.principal)
        self._relationships.append(relationship)
        return relationship

    def ignore_property(self, identity: str, name: str) -> None:
        """Unmap a property; it is no longer persisted on the entity's table."""
        entity = self.get_entity(identity)
        entity.columns = [c for c in entity.columns if c.name != name]
        entity.ignored.add(name)

    def relationships_of(self, identity: str) -> List[Relationship]:
        return [r for r in self._relationships if r.dependent == identity]

    @property
    def relationships(self) -> List[Relationship]:
        return list(self._relationships)
