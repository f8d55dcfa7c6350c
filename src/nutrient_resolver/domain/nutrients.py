"""Nutrient domain models."""

from dataclasses import dataclass
from enum import StrEnum


class NutrientCategory(StrEnum):
    """Grouping used when rendering nutrients."""

    MACRO = "macro"
    VITAMIN = "vitamin"
    MINERAL = "mineral"
    AMINO_ACID = "amino_acid"
    OTHER = "other"


@dataclass(frozen=True)
class NutrientMetadata:
    """Registry entry for one canonical nutrient."""

    label: str
    unit: str
    clinical_path: str
    aliases: tuple[str, ...]
    category: NutrientCategory
    parent: str | None = None


@dataclass(frozen=True)
class NormalizedNutrientValue:
    """A nutrient reading mapped onto the canonical vocabulary.

    ``key`` is None when the source name could not be normalized; the value
    is kept either way.
    """

    key: str | None
    raw_name: str
    value: float
    unit: str | None
