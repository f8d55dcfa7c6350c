"""Hierarchical nutrient goals with upward propagation."""

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Protocol

from nutrient_resolver.domain.goals import (
    Goal,
    GoalUpdate,
    GoalValidationError,
    PropagationNotice,
    UnknownNutrientError,
)
from nutrient_resolver.domain.registry import NutrientRegistry, default_registry
from nutrient_resolver.services.macros import (
    MacroState,
    initial_macro_state,
    macro_targets,
)
from nutrient_resolver.services.targets import TargetResolver

_logger = logging.getLogger(__name__)


def format_amount(value: float) -> str:
    """Render a number without a trailing ``.0`` for whole values."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def validate_goal(
    registry: NutrientRegistry,
    key: str,
    goal: Goal,
    current_goals: Mapping[str, Goal],
) -> str | None:
    """Return the first rule a proposed goal breaks, or None when it is valid.

    Range checks skip zero values so that a cleared field does not block an
    edit. Parent checks only consider custom parent targets; children are
    checked against their custom targets.
    """
    target, minimum, maximum = goal.target, goal.min, goal.max

    if (
        minimum is not None
        and maximum is not None
        and minimum > maximum
        and (minimum > 0 or maximum > 0)
    ):
        return "Minimum cannot be greater than Maximum."
    if target is not None and minimum is not None and target < minimum and target > 0:
        return "Target cannot be less than Minimum."
    if target is not None and maximum is not None and target > maximum and maximum > 0:
        return "Target cannot be greater than Maximum."

    parent = registry.parent_of(key)
    if parent is not None and target is not None:
        parent_goal = current_goals.get(parent)
        parent_target = parent_goal.target if parent_goal else None
        if parent_target is not None and target > parent_target:
            return f"Cannot exceed {parent} target ({format_amount(parent_target)}g)."

    if target is not None:
        for child in registry.children_of(key):
            child_goal = current_goals.get(child)
            child_target = child_goal.target if child_goal else None
            if child_target is not None and target < child_target:
                return (
                    f"Cannot be less than {child} target "
                    f"({format_amount(child_target)}g)."
                )
    return None


@dataclass
class GoalHierarchyEngine:
    """Per-session goal overlay on top of clinical baselines.

    Accepted updates walk up the parent chain and raise any parent whose
    effective target (custom, else baseline) is now below its child.
    """

    metrics: Mapping[str, object] = field(default_factory=dict)
    goals_overlay: dict[str, Goal] = field(default_factory=dict)
    registry: NutrientRegistry = field(default_factory=default_registry)

    @property
    def goals(self) -> dict[str, Goal]:
        """Snapshot of the custom goal overlay."""
        return dict(self.goals_overlay)

    def baseline(self, key: str) -> float | None:
        return self.registry.clinical_value(self.metrics, key)

    def effective_target(self, key: str) -> float | None:
        """Return the custom target for a key, else its clinical baseline."""
        goal = self.goals_overlay.get(key)
        if goal is not None and goal.target is not None:
            return goal.target
        return self.baseline(key)

    def propose_update(self, key: str, goal: Goal) -> GoalUpdate:
        """Validate and apply a goal, propagating increases to parents.

        Raises GoalValidationError without touching the overlay when a rule
        is broken.
        """
        if key not in self.registry:
            raise UnknownNutrientError(key)
        error = validate_goal(self.registry, key, goal, self.goals_overlay)
        if error is not None:
            raise GoalValidationError(key, error)

        next_goals = dict(self.goals_overlay)
        if goal.is_empty:
            # Clearing every field drops the custom goal.
            next_goals.pop(key, None)
        else:
            next_goals[key] = goal
        notices: list[PropagationNotice] = []

        current = key
        for parent in self.registry.ancestors(key):
            child_target = next_goals.get(current, Goal()).target
            if child_target is None:
                break
            parent_goal = next_goals.get(parent, Goal())
            parent_target = parent_goal.target
            if parent_target is None:
                parent_target = self.baseline(parent)
            if parent_target is None or child_target <= parent_target:
                break
            next_goals[parent] = replace(parent_goal, target=child_target)
            notice = PropagationNotice(
                parent=parent, child=current, new_target=child_target
            )
            notices.append(notice)
            _logger.info(
                "%s (goal increased to %sg)",
                notice.message,
                format_amount(child_target),
            )
            current = parent

        self.goals_overlay = next_goals
        return GoalUpdate(goals=dict(next_goals), notices=notices)

    def apply_macro_targets(
        self, energy: float, carbs: float, protein: float, fat: float
    ) -> dict[str, Goal]:
        """Replace the four macro goals with plain targets."""
        next_goals = dict(self.goals_overlay)
        next_goals["energy"] = Goal(target=energy)
        next_goals["carbohydrate"] = Goal(target=carbs)
        next_goals["protein"] = Goal(target=protein)
        next_goals["fat"] = Goal(target=fat)
        self.goals_overlay = next_goals
        return dict(next_goals)


class GoalRepository(Protocol):
    """Persistence interface for a user's goal overlay."""

    def get_goals(self, user_id: str) -> dict[str, Goal]:
        """Return the stored overlay, empty when unset."""

    def save_goals(self, user_id: str, goals: Mapping[str, Goal]) -> None:
        """Replace the stored overlay."""


class ClinicalMetricsProvider(Protocol):
    """Source of a user's computed DRI record."""

    def get_metrics(self, user_id: str) -> dict[str, object] | None:
        """Return the DRI metrics record, if computed."""


@dataclass
class GoalService:
    """Load a user's goals, run updates through the engine and persist them."""

    goal_repository: GoalRepository
    metrics_provider: ClinicalMetricsProvider
    registry: NutrientRegistry = field(default_factory=default_registry)

    async def _load(
        self, user_id: str
    ) -> tuple[dict[str, Goal], dict[str, object] | None]:
        goals, metrics = await asyncio.gather(
            asyncio.to_thread(self.goal_repository.get_goals, user_id),
            asyncio.to_thread(self.metrics_provider.get_metrics, user_id),
        )
        return dict(goals), metrics

    async def load_engine(self, user_id: str) -> GoalHierarchyEngine:
        goals, metrics = await self._load(user_id)
        return GoalHierarchyEngine(
            metrics=metrics or {},
            goals_overlay=goals,
            registry=self.registry,
        )

    async def target_resolver(self, user_id: str) -> TargetResolver:
        """Return a resolver for raw nutrient names over the user's targets."""
        goals, metrics = await self._load(user_id)
        return TargetResolver(metrics=metrics, goals=goals, registry=self.registry)

    async def get_goals(self, user_id: str) -> dict[str, Goal]:
        return await asyncio.to_thread(self.goal_repository.get_goals, user_id)

    async def update_goal(self, user_id: str, key: str, goal: Goal) -> GoalUpdate:
        """Apply one goal edit and persist the accepted overlay."""
        engine = await self.load_engine(user_id)
        update = engine.propose_update(key, goal)
        await asyncio.to_thread(self.goal_repository.save_goals, user_id, update.goals)
        return update

    async def apply_macro_targets(  # noqa: PLR0913
        self,
        user_id: str,
        energy: float,
        carbs: float,
        protein: float,
        fat: float,
    ) -> dict[str, Goal]:
        engine = await self.load_engine(user_id)
        goals = engine.apply_macro_targets(energy, carbs, protein, fat)
        await asyncio.to_thread(self.goal_repository.save_goals, user_id, goals)
        return goals

    async def macro_state(self, user_id: str) -> MacroState:
        """Seed the macro editor from the user's targets."""
        engine = await self.load_engine(user_id)
        return initial_macro_state(engine.metrics, engine.goals, self.registry)

    async def apply_macro_state(
        self, user_id: str, state: MacroState
    ) -> dict[str, Goal]:
        """Save the macro editor's grams and energy as goal targets."""
        targets = macro_targets(state)
        return await self.apply_macro_targets(
            user_id,
            energy=targets["energy"],
            carbs=targets["carbohydrate"],
            protein=targets["protein"],
            fat=targets["fat"],
        )

    async def resolved_targets(self, user_id: str) -> dict[str, float]:
        """Return every key's effective target, skipping keys with neither."""
        engine = await self.load_engine(user_id)
        targets: dict[str, float] = {}
        for key in self.registry:
            value = engine.effective_target(key)
            if value is not None:
                targets[key] = value
        return targets
