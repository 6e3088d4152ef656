from typing import TYPE_CHECKING, Dict, Iterable, List, Optional

from .config import TranslationConfiguration
from .descriptors import TranslationDescriptor, TranslationRegistry
from .language import LanguageLinkPlanner, LanguageTableConfiguration

if TYPE_CHECKING:
    from .composer import SatelliteMapping


class CompositionContext:
    """State threaded through one composition pass.

    Holds the global options, the discovered carriers and the language key
    planner, so a pass never depends on module-level state.
    """

    def __init__(
        self,
        config: Optional[TranslationConfiguration] = None,
        registry: Optional[TranslationRegistry] = None,
        language_table: Optional[LanguageTableConfiguration] = None,
    ) -> None:
        self.config = config or TranslationConfiguration()
        self.registry = registry or TranslationRegistry()
        self.language = LanguageLinkPlanner(self.config, language_table)
        self.satellites: List["SatelliteMapping"] = []

    @classmethod
    def from_carriers(
        cls,
        carriers: Iterable[type],
        config: Optional[TranslationConfiguration] = None,
        language_table: Optional[LanguageTableConfiguration] = None,
    ) -> "CompositionContext":
        registry = TranslationRegistry()
        for carrier in carriers:
            registry.register(carrier)
        return cls(config=config, registry=registry, language_table=language_table)

    @property
    def language_table(self) -> LanguageTableConfiguration:
        return self.language.language_table

    @property
    def descriptors(self) -> Dict[str, TranslationDescriptor]:
        return self.registry.descriptors()

    def find_descriptor(self, base_identity: str) -> Optional[TranslationDescriptor]:
        return self.registry.find(base_identity)
