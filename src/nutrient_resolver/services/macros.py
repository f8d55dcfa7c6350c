"""Percent/gram macro ratio editing.

Carbohydrate and protein count 4 kcal per gram, fat 9. Editing a percentage
rebalances the other two so the three always sum to 100; the rounding
remainder lands on the first unchanged field in carbs, protein, fat order.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass, replace

from nutrient_resolver.domain.goals import Goal
from nutrient_resolver.domain.registry import NutrientRegistry, default_registry

MACRO_FIELDS = ("carbs", "protein", "fat")
KCAL_PER_GRAM = {"carbs": 4, "protein": 4, "fat": 9}
GOAL_KEYS = {"carbs": "carbohydrate", "protein": "protein", "fat": "fat"}


@dataclass(frozen=True)
class MacroShare:
    grams: float
    pct: float


@dataclass(frozen=True)
class MacroState:
    """Energy goal and the gram/percent split of the three macros."""

    energy: float
    carbs: MacroShare
    protein: MacroShare
    fat: MacroShare

    def share(self, name: str) -> MacroShare:
        if name not in MACRO_FIELDS:
            raise ValueError(f"Unknown macro field: {name}")
        return getattr(self, name)

    def with_share(self, name: str, share: MacroShare) -> "MacroState":
        if name not in MACRO_FIELDS:
            raise ValueError(f"Unknown macro field: {name}")
        return replace(self, **{name: share})


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _grams_for(energy: float, pct: float, name: str) -> int:
    return round_half_up(energy * (pct / 100) / KCAL_PER_GRAM[name])


def _pct_for(energy: float, grams: float, name: str) -> int:
    if not energy:
        return 0
    return round_half_up(grams * KCAL_PER_GRAM[name] / energy * 100)


def sync_grams(state: MacroState) -> MacroState:
    """Recompute grams from percentages and energy."""
    for name in MACRO_FIELDS:
        share = state.share(name)
        state = state.with_share(
            name, replace(share, grams=_grams_for(state.energy, share.pct, name))
        )
    return state


def sync_percentages(state: MacroState) -> MacroState:
    """Recompute percentages from grams and energy."""
    for name in MACRO_FIELDS:
        share = state.share(name)
        state = state.with_share(
            name, replace(share, pct=_pct_for(state.energy, share.grams, name))
        )
    return state


def rebalance(state: MacroState, changed_field: str) -> MacroState:
    """Rebalance after ``changed_field``'s percentage was edited.

    The second unchanged field takes its proportional share of what is left,
    rounded; the first takes the exact remainder. When both unchanged fields
    are at zero the split is even, with the odd point going to the first.
    """
    changed = state.share(changed_field)
    first, second = (name for name in MACRO_FIELDS if name != changed_field)
    remaining = 100 - changed.pct
    second_pct = state.share(second).pct
    others_total = state.share(first).pct + second_pct
    if others_total > 0:
        new_second = round_half_up(second_pct / others_total * remaining)
    else:
        new_second = math.floor(remaining / 2)
    new_first = remaining - new_second

    state = state.with_share(first, replace(state.share(first), pct=new_first))
    state = state.with_share(second, replace(state.share(second), pct=new_second))
    return sync_grams(state)


def set_energy(state: MacroState, energy: float) -> MacroState:
    """Change the energy goal, keeping percentages."""
    return sync_grams(replace(state, energy=energy))


def set_grams(state: MacroState, name: str, grams: float) -> MacroState:
    """Change one macro's grams, recomputing every percentage."""
    state = state.with_share(name, replace(state.share(name), grams=grams))
    return sync_percentages(state)


def set_percentage(state: MacroState, name: str, pct: float) -> MacroState:
    state = state.with_share(name, replace(state.share(name), pct=pct))
    return rebalance(state, name)


def initial_macro_state(
    metrics: Mapping[str, object],
    goals: Mapping[str, Goal],
    registry: NutrientRegistry | None = None,
) -> MacroState:
    """Seed the editor from custom targets, falling back to baselines."""
    if registry is None:
        registry = default_registry()

    def current(key: str) -> float:
        goal = goals.get(key)
        if goal is not None and goal.target is not None:
            return goal.target
        value = registry.clinical_value(metrics, key)
        return value if value is not None else 0.0

    energy = current("energy")
    shares = {}
    for name in MACRO_FIELDS:
        grams = current(GOAL_KEYS[name])
        shares[name] = MacroShare(grams=grams, pct=_pct_for(energy, grams, name))
    return MacroState(energy=energy, **shares)


def macro_targets(state: MacroState) -> dict[str, float]:
    """Return goal keys and targets to apply from an editor state."""
    return {
        "energy": state.energy,
        "carbohydrate": state.carbs.grams,
        "protein": state.protein.grams,
        "fat": state.fat.grams,
    }
