"""Pydantic models for API request bodies."""

from typing import Literal

from pydantic import BaseModel

from nutrient_resolver.domain.goals import Goal
from nutrient_resolver.services.macros import MacroShare, MacroState


class GoalPayload(BaseModel):
    """Goal edit; omitted fields are unset."""

    target: float | None = None
    min: float | None = None
    max: float | None = None

    def to_goal(self) -> Goal:
        return Goal(target=self.target, min=self.min, max=self.max)


class MacroSharePayload(BaseModel):
    grams: float
    pct: float

    def to_share(self) -> MacroShare:
        return MacroShare(grams=self.grams, pct=self.pct)


class MacroStatePayload(BaseModel):
    """Macro editor state: energy goal and the split of the three macros."""

    energy: float
    carbs: MacroSharePayload
    protein: MacroSharePayload
    fat: MacroSharePayload

    def to_state(self) -> MacroState:
        return MacroState(
            energy=self.energy,
            carbs=self.carbs.to_share(),
            protein=self.protein.to_share(),
            fat=self.fat.to_share(),
        )


class MacroRebalancePayload(MacroStatePayload):
    """Editor state after one percentage field was changed."""

    changed_field: str


class MacroEditPayload(MacroStatePayload):
    """One edit in the macro editor.

    ``field`` is ``energy`` or a macro name; macro edits set either grams or
    a percentage, chosen by ``unit``.
    """

    field: str
    value: float
    unit: Literal["g", "pct"] = "pct"
