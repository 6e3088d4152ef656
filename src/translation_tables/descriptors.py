"""Carrier types and their discovery.

A carrier holds only the localized properties of one base entity::

    class ProductTranslation(Translation, translation_of=Product):
        name: str
        description: str

SQLModel and pydantic metaclasses swallow unknown class keywords, so carriers
built on them name the base entity in the class body instead::

    class ProductTexts(Translation, SQLModel):
        __translation_of__ = Product

        name: str
"""

import inspect
import logging
import typing
from dataclasses import dataclass, field
from typing import Callable, ClassVar, Dict, Iterable, Iterator, List, Optional, Set

from .errors import AmbiguousTranslationError, TranslationConfigError
from .keys import KeyDescriptor
from .model import type_identity

logger = logging.getLogger(__name__)

PLATFORM_MODULES = ("builtins", "typing", "abc", "sqlalchemy", "sqlmodel", "pydantic")


class Translation:
    """Capability marker naming the base entity type.

    The base is given either as the ``translation_of`` class keyword or as a
    ``__translation_of__`` attribute in the class body.
    """

    __translation_of__: ClassVar[Optional[type]] = None

    def __init_subclass__(cls, translation_of: Optional[type] = None, **kwargs) -> None:
        super().__init_subclass__(**kwargs)
        if translation_of is not None:
            cls.__translation_of__ = translation_of


def translation_of(carrier: type) -> Optional[type]:
    if not isinstance(carrier, type) or not issubclass(carrier, Translation):
        return None
    return carrier.__dict__.get("__translation_of__")


def localized_property_names(carrier: type) -> List[str]:
    """Names of the properties a carrier declares, in declaration order."""
    fields = getattr(carrier, "model_fields", None)
    if isinstance(fields, dict) and fields:
        return [name for name in fields if not name.startswith("_")]

    names: List[str] = []
    for klass in reversed(carrier.__mro__):
        if klass in (object, Translation):
            continue
        for name, hint in inspect.get_annotations(klass).items():
            if name.startswith("_") or name in names:
                continue
            if typing.get_origin(hint) is ClassVar:
                continue
            if isinstance(hint, str) and hint.split("[")[0].endswith("ClassVar"):
                continue
            names.append(name)
    return names


def is_platform_type(candidate: type) -> bool:
    root = (candidate.__module__ or "").split(".")[0]
    return root in PLATFORM_MODULES


@dataclass
class TranslationDescriptor:
    carrier: type
    base_identity: str
    property_names: Set[str]
    keys_from_source_entity: Dict[str, str] = field(default_factory=dict)
    keys_from_language_entity: List[KeyDescriptor] = field(default_factory=list)

    @classmethod
    def for_carrier(cls, carrier: type, base: Optional[type] = None) -> "TranslationDescriptor":
        base = base or translation_of(carrier)
        if base is None:
            raise TranslationConfigError(
                f"{type_identity(carrier)} does not declare which entity it translates",
                entity=type_identity(carrier),
            )
        return cls(
            carrier=carrier,
            base_identity=type_identity(base),
            property_names=set(localized_property_names(carrier)),
        )

    @property
    def carrier_identity(self) -> str:
        return type_identity(self.carrier)

    @property
    def carrier_name(self) -> str:
        return self.carrier.__name__


class TranslationRegistry:
    """Carrier -> base entity bindings, keyed by base type identity.

    A base type accepts a single carrier: a second claim raises
    ``AmbiguousTranslationError``.
    """

    def __init__(self) -> None:
        self._by_base: Dict[str, TranslationDescriptor] = {}

    def register(self, carrier: type, base: Optional[type] = None) -> TranslationDescriptor:
        descriptor = TranslationDescriptor.for_carrier(carrier, base)
        existing = self._by_base.get(descriptor.base_identity)
        if existing is not None:
            if existing.carrier is carrier:
                return existing
            raise AmbiguousTranslationError(
                f"{descriptor.base_identity} is translated by both "
                f"{existing.carrier_identity} and {descriptor.carrier_identity}",
                entity=descriptor.base_identity,
            )
        self._by_base[descriptor.base_identity] = descriptor
        logger.debug(
            "Registered translation carrier",
            extra={"carrier": descriptor.carrier_identity, "base": descriptor.base_identity},
        )
        return descriptor

    def discover(
        self,
        candidate_types: Iterable[type],
        exclude: Optional[Callable[[type], bool]] = None,
    ) -> Dict[str, TranslationDescriptor]:
        skip = exclude or is_platform_type
        for candidate in candidate_types:
            if skip(candidate):
                continue
            if translation_of(candidate) is None:
                if isinstance(candidate, type) and issubclass(candidate, Translation) and candidate is not Translation:
                    logger.warning(
                        "Translation subclass does not name its base entity, skipping",
                        extra={"carrier": type_identity(candidate)},
                    )
                continue
            self.register(candidate)
        return self.descriptors()

    def discover_subclasses(self, exclude: Optional[Callable[[type], bool]] = None) -> Dict[str, TranslationDescriptor]:
        """Discover every loaded ``Translation`` subclass."""
        return self.discover(_walk_subclasses(Translation), exclude)

    def find(self, base_identity: str) -> Optional[TranslationDescriptor]:
        return self._by_base.get(base_identity)

    def descriptors(self) -> Dict[str, TranslationDescriptor]:
        return dict(self._by_base)

    def __contains__(self, base_identity: object) -> bool:
        return base_identity in self._by_base

    def __len__(self) -> int:
        return len(self._by_base)


def _walk_subclasses(root: type) -> Iterator[type]:
    seen: Set[type] = set()
    stack = list(root.__subclasses__())
    while stack:
        klass = stack.pop(0)
        if klass in seen:
            continue
        seen.add(klass)
        yield klass
        stack.extend(klass.__subclasses__())
