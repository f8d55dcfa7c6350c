"""Nutrient goal domain models."""

from collections.abc import Mapping
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Goal:
    """A user-set target and range for one nutrient; unset fields are None."""

    target: float | None = None
    min: float | None = None
    max: float | None = None

    @property
    def is_empty(self) -> bool:
        return self.target is None and self.min is None and self.max is None

    def to_dict(self) -> dict[str, float]:
        """Return the set fields only, in the stored JSON shape."""
        payload: dict[str, float] = {}
        if self.target is not None:
            payload["target"] = self.target
        if self.min is not None:
            payload["min"] = self.min
        if self.max is not None:
            payload["max"] = self.max
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> "Goal":
        return cls(
            target=_optional_number(payload.get("target")),
            min=_optional_number(payload.get("min")),
            max=_optional_number(payload.get("max")),
        )


def _optional_number(value: object) -> float | None:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    return float(value)


@dataclass(frozen=True)
class PropagationNotice:
    """Informational note that a parent target was raised to fit a child."""

    parent: str
    child: str
    new_target: float

    @property
    def message(self) -> str:
        return f"Updated {self.parent} target to match {self.child}"


@dataclass(frozen=True)
class GoalUpdate:
    """Accepted goal overlay after an update, with any propagation notices."""

    goals: dict[str, Goal]
    notices: list[PropagationNotice] = field(default_factory=list)


class GoalValidationError(Exception):
    """Raised when a proposed goal breaks a range or hierarchy rule."""

    def __init__(self, key: str, message: str) -> None:
        super().__init__(message)
        self.key = key
        self.message = message


class UnknownNutrientError(Exception):
    """Raised when a goal references a key missing from the registry."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Unknown nutrient: {key}")
        self.key = key


def goals_from_payload(payload: Mapping[str, object] | None) -> dict[str, Goal]:
    """Parse a stored ``{key: {target, min, max}}`` map, skipping bad entries."""
    if not payload:
        return {}
    goals: dict[str, Goal] = {}
    for key, raw in payload.items():
        if isinstance(raw, Mapping):
            goals[str(key)] = Goal.from_dict(raw)
    return goals


def goals_to_payload(goals: Mapping[str, Goal]) -> dict[str, dict[str, float]]:
    return {key: goal.to_dict() for key, goal in goals.items()}
