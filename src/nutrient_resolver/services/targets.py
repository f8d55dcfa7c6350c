"""Resolve nutrient names from any source to the user's effective targets."""

from collections.abc import Mapping
from dataclasses import dataclass, field

from nutrient_resolver.domain.goals import Goal
from nutrient_resolver.domain.registry import NutrientRegistry, default_registry
from nutrient_resolver.services.normalizer import NameNormalizer


@dataclass
class TargetResolver:
    """Look up targets by raw nutrient name, custom goal first."""

    metrics: Mapping[str, object] | None
    goals: Mapping[str, Goal] = field(default_factory=dict)
    registry: NutrientRegistry = field(default_factory=default_registry)
    normalizer: NameNormalizer | None = None

    def __post_init__(self) -> None:
        if self.normalizer is None:
            self.normalizer = NameNormalizer(self.registry)

    def _key(self, nutrient_name: str) -> str | None:
        if self.metrics is None or self.normalizer is None:
            return None
        return self.normalizer.normalize(nutrient_name)

    def resolve_target(self, nutrient_name: str) -> float | None:
        key = self._key(nutrient_name)
        if key is None:
            return None
        goal = self.goals.get(key)
        if goal is not None and goal.target is not None:
            return goal.target
        return self.registry.clinical_value(self.metrics or {}, key)

    def resolve_goal(self, nutrient_name: str) -> Goal | None:
        """Return the effective goal; range fields only come from custom goals."""
        key = self._key(nutrient_name)
        if key is None:
            return None
        goal = self.goals.get(key) or Goal()
        target = goal.target
        if target is None:
            target = self.registry.clinical_value(self.metrics or {}, key)
        return Goal(target=target, min=goal.min, max=goal.max)
