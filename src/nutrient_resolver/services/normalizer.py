"""Nutrient name normalization onto canonical registry keys."""

from dataclasses import dataclass, field

from nutrient_resolver.domain.registry import NutrientRegistry, default_registry


@dataclass(frozen=True)
class _FuzzyRule:
    contains: str
    key: str
    excludes: tuple[str, ...] = ()

    def matches(self, name: str) -> bool:
        if self.contains not in name:
            return False
        return not any(word in name for word in self.excludes)


# Evaluated in order; the first matching rule wins.
FUZZY_RULES: tuple[_FuzzyRule, ...] = (
    _FuzzyRule("fiber", "fiber"),
    _FuzzyRule("protein", "protein"),
    _FuzzyRule("fat", "fat", excludes=("saturated", "trans")),
    _FuzzyRule("sugar", "sugar", excludes=("added", "alcohol")),
    _FuzzyRule("carbohydrate", "carbohydrate"),
)


@dataclass
class NameNormalizer:
    """Map nutrient names from any source to canonical keys.

    Exact key and alias matches are tried first; a short list of substring
    rules catches close variants. This is best effort: unknown names map to
    None rather than raising.
    """

    registry: NutrientRegistry = field(default_factory=default_registry)
    _index: dict[str, str] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        index: dict[str, str] = {}
        for key, metadata in self.registry.all_entries():
            index.setdefault(key.lower(), key)
            for alias in metadata.aliases:
                index.setdefault(alias.strip().lower(), key)
        self._index = index

    def normalize(self, raw_name: str | None) -> str | None:
        """Return the canonical key for a raw nutrient name, if any."""
        if not raw_name:
            return None
        name = raw_name.strip().lower()
        if not name:
            return None
        exact = self._index.get(name)
        if exact is not None:
            return exact
        for rule in FUZZY_RULES:
            if rule.matches(name) and rule.key in self.registry:
                return rule.key
        return None
