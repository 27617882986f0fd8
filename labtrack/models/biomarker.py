from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType

from labtrack.schemas.biomarker import ReferenceRange


class Polarity(str, Enum):
    HIGHER_IS_BETTER = "higher"
    LOWER_IS_BETTER = "lower"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class BiomarkerReference:
    """Static description of one tracked biomarker.

    ``low``/``high`` are the classification bounds. ``display_range`` is what
    gets stored on recorded values and shown next to them. ``label`` is a regex
    fragment for the report label; entries without one are tracked but never
    read from report text.
    """

    name: str
    category: str
    unit: str
    high: float
    low: float | None = None
    label: str | None = None
    aliases: tuple[str, ...] = ()
    polarity: Polarity = Polarity.NEUTRAL
    display_range: ReferenceRange | None = None


class BiomarkerCatalog:
    """Read-only, ordered set of tracked biomarkers keyed by standard name."""

    def __init__(self, references: Iterable[BiomarkerReference]):
        ordered: dict[str, BiomarkerReference] = {}
        for reference in references:
            if reference.name in ordered:
                raise ValueError(f"Duplicate biomarker in catalog: {reference.name}")
            ordered[reference.name] = reference
        self._references = MappingProxyType(ordered)

    def __contains__(self, name: object) -> bool:
        return name in self._references

    def __iter__(self) -> Iterator[BiomarkerReference]:
        return iter(self._references.values())

    def __len__(self) -> int:
        return len(self._references)

    def get(self, name: str) -> BiomarkerReference | None:
        return self._references.get(name)

    def names(self) -> list[str]:
        return list(self._references)

    def recognizable(self) -> list[BiomarkerReference]:
        return [reference for reference in self if reference.label]

    def polarity(self, name: str) -> Polarity:
        reference = self.get(name)
        return reference.polarity if reference else Polarity.NEUTRAL
