"""Supabase repository exposing stored DRI metrics."""

from dataclasses import dataclass

from supabase import Client

from nutrient_resolver.services.goals import ClinicalMetricsProvider


@dataclass
class SupabaseClinicalMetricsRepository(ClinicalMetricsProvider):
    """Reads the DRI record computed for a user's profile."""

    client: Client

    def get_metrics(self, user_id: str) -> dict[str, object] | None:
        response = (
            self.client.table("users")
            .select("dri_metrics")
            .eq("id", user_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        metrics = response.data[0].get("dri_metrics")
        return metrics if isinstance(metrics, dict) else None
