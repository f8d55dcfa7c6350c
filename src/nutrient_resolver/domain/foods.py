"""Food search and lookup domain models."""

from dataclasses import dataclass, field
from enum import StrEnum

from nutrient_resolver.domain.nutrients import NormalizedNutrientValue


class DataSourceMode(StrEnum):
    """Which family of stores a search or lookup reads from."""

    FOUNDATION = "foundation"
    BRANDED = "branded"


class SourceTag(StrEnum):
    """Coarse origin of a search result."""

    USER_PRIVATE = "UserPrivate"
    CURATED = "Curated"
    BULK = "Bulk"


class Provenance(StrEnum):
    """Fine-grained origin of a food row."""

    FOUNDATION = "Foundation"
    NCCDB = "NCCDB"
    USDA = "USDA"
    CNF = "CNF"
    IFCDB = "IFCDB"
    BRANDED = "Branded"
    USER = "User"

    @property
    def priority(self) -> int:
        """Rank used for ordering; lower ranks are more trusted."""
        return SOURCE_PRIORITY[self]

    @property
    def tag(self) -> SourceTag:
        """Source tag this provenance reports as."""
        if self is Provenance.USER:
            return SourceTag.USER_PRIVATE
        if self is Provenance.FOUNDATION:
            return SourceTag.CURATED
        return SourceTag.BULK


SOURCE_PRIORITY: dict[Provenance, int] = {
    Provenance.FOUNDATION: 0,
    Provenance.NCCDB: 1,
    Provenance.USDA: 2,
    Provenance.CNF: 3,
    Provenance.IFCDB: 4,
    Provenance.BRANDED: 5,
    Provenance.USER: 6,
}

_CREATOR_PROVENANCE: tuple[tuple[str, Provenance], ...] = (
    ("nccdb", Provenance.NCCDB),
    ("usda", Provenance.USDA),
    ("cnf", Provenance.CNF),
    ("ifcdb", Provenance.IFCDB),
)


def provenance_from_creator(creator: str | None) -> Provenance:
    """Map a bulk-store creator string to a provenance."""
    lowered = (creator or "").lower()
    for needle, provenance in _CREATOR_PROVENANCE:
        if needle in lowered:
            return provenance
    return Provenance.BRANDED


@dataclass(frozen=True)
class SearchResult:
    """A food search hit in the shape shared by every store."""

    code: str
    name: str
    brand: str | None
    category: str | None
    quality_grade: str | None
    popularity: int
    provenance: Provenance

    @property
    def source(self) -> SourceTag:
        """Coarse source tag of the hit."""
        return self.provenance.tag


@dataclass(frozen=True)
class BrandedRow:
    """Search row from the bulk branded-product store."""

    code: str
    name: str
    brand: str | None
    category: str | None
    grade: str | None
    popularity: int
    creator: str | None

    def to_search_result(self) -> SearchResult:
        return SearchResult(
            code=self.code,
            name=self.name,
            brand=self.brand,
            category=self.category,
            quality_grade=self.grade,
            popularity=self.popularity,
            provenance=provenance_from_creator(self.creator),
        )


@dataclass(frozen=True)
class CuratedRow:
    """Search row from the curated whole-food store."""

    id: int
    description: str
    category: str | None

    def to_search_result(self) -> SearchResult:
        return SearchResult(
            code=str(self.id),
            name=self.description,
            brand=None,
            category=self.category,
            quality_grade=None,
            popularity=0,
            provenance=Provenance.FOUNDATION,
        )


@dataclass(frozen=True)
class PrivateRow:
    """Search row from the user's private food store."""

    id: str
    name: str
    brand: str | None

    def to_search_result(self) -> SearchResult:
        return SearchResult(
            code=self.id,
            name=self.name,
            brand=self.brand,
            category="Custom",
            quality_grade="unknown",
            popularity=0,
            provenance=Provenance.USER,
        )


@dataclass(frozen=True)
class RawNutrient:
    """Nutrient reading exactly as a store reports it."""

    name: str
    value: float | None
    unit: str | None


@dataclass(frozen=True)
class BrandedProduct:
    """Full product record from the bulk branded-product store."""

    code: str
    name: str
    brand: str | None
    creator: str | None
    nutrients: list[RawNutrient]
    serving_size: str | None = None


@dataclass(frozen=True)
class CuratedFood:
    """Full food record from the curated whole-food store."""

    id: int
    description: str
    category: str | None
    nutrients: list[RawNutrient]
    serving_size: str | None = None


@dataclass(frozen=True)
class PrivateFood:
    """A user-created food with its stored nutrient map."""

    id: str
    name: str
    brand: str | None
    nutrients: dict[str, float]


@dataclass(frozen=True)
class FoodNutrientProfile:
    """Normalized nutrients of one food, per 100 g/ml unless scaled."""

    code: str
    name: str
    brand: str | None
    source: SourceTag
    nutrients: tuple[NormalizedNutrientValue, ...] = field(default_factory=tuple)
    serving_size: str | None = None
    quantity_g: float = 100.0
