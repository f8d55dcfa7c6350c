"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from supabase import create_client

from nutrient_resolver.adapters.fdc_client import HttpxFdcClient
from nutrient_resolver.adapters.foundation_store import JsonFoundationFoodStore
from nutrient_resolver.adapters.off_client import HttpxOpenFoodFactsClient
from nutrient_resolver.adapters.supabase_clinical_metrics_repository import (
    SupabaseClinicalMetricsRepository,
)
from nutrient_resolver.adapters.supabase_custom_food_repository import (
    SupabaseCustomFoodRepository,
)
from nutrient_resolver.adapters.supabase_goal_repository import (
    SupabaseGoalRepository,
)
from nutrient_resolver.config import Settings
from nutrient_resolver.domain.registry import NutrientRegistry, default_registry
from nutrient_resolver.services.cache import InMemoryCache
from nutrient_resolver.services.foods import FoodService, NutrientProfileBuilder
from nutrient_resolver.services.goals import GoalService
from nutrient_resolver.services.normalizer import NameNormalizer
from nutrient_resolver.services.search import FoodSearchService
from nutrient_resolver.services.stores import CuratedFoodStore


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    registry: NutrientRegistry
    normalizer: NameNormalizer
    search_service: FoodSearchService
    food_service: FoodService
    goal_service: GoalService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    registry = default_registry()
    registry.validate()
    normalizer = NameNormalizer(registry)

    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    custom_food_repository = SupabaseCustomFoodRepository(supabase_client)
    goal_repository = SupabaseGoalRepository(supabase_client)
    metrics_repository = SupabaseClinicalMetricsRepository(supabase_client)

    off_client = HttpxOpenFoodFactsClient.create(resolved_settings.off_base_url)
    fdc_client: HttpxFdcClient | None = None
    curated_store: CuratedFoodStore
    if resolved_settings.foundation_json_path:
        curated_store = JsonFoundationFoodStore(
            path=Path(resolved_settings.foundation_json_path),
            cache=InMemoryCache(),
            ttl_seconds=resolved_settings.dataset_ttl_seconds,
        )
    else:
        fdc_client = HttpxFdcClient.create(
            api_key=resolved_settings.fdc_api_key or "DEMO_KEY",
            base_url=resolved_settings.fdc_base_url,
        )
        curated_store = fdc_client

    search_service = FoodSearchService(
        branded_store=off_client,
        curated_store=curated_store,
        private_store=custom_food_repository,
        timeout_seconds=resolved_settings.search_timeout_seconds,
    )
    food_service = FoodService(
        branded_store=off_client,
        curated_store=curated_store,
        private_store=custom_food_repository,
        builder=NutrientProfileBuilder(registry=registry, normalizer=normalizer),
    )
    goal_service = GoalService(
        goal_repository=goal_repository,
        metrics_provider=metrics_repository,
        registry=registry,
    )

    async def close_resources() -> None:
        await off_client.close()
        if fdc_client is not None:
            await fdc_client.close()

    return AppContainer(
        settings=resolved_settings,
        registry=registry,
        normalizer=normalizer,
        search_service=search_service,
        food_service=food_service,
        goal_service=goal_service,
        close_resources=close_resources,
    )
