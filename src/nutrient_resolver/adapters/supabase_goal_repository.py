"""Supabase repository for user nutrient goals."""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from nutrient_resolver.domain.goals import Goal, goals_from_payload, goals_to_payload
from nutrient_resolver.services.goals import GoalRepository


@dataclass
class SupabaseGoalRepository(GoalRepository):
    """Stores the goal overlay as JSON on the user row."""

    client: Client

    def get_goals(self, user_id: str) -> dict[str, Goal]:
        response = (
            self.client.table("users")
            .select("goals")
            .eq("id", user_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return {}
        raw = response.data[0].get("goals")
        return goals_from_payload(raw if isinstance(raw, Mapping) else None)

    def save_goals(self, user_id: str, goals: Mapping[str, Goal]) -> None:
        """Replace the stored overlay."""
        response = (
            self.client.table("users")
            .update(
                {
                    "goals": goals_to_payload(goals),
                    "updated_at": datetime.now(tz=UTC).isoformat(),
                }
            )
            .eq("id", user_id)
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to save goals")
