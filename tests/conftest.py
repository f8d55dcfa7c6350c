"""Shared test fixtures."""

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field

import pytest

from nutrient_resolver.config import Settings
from nutrient_resolver.containers import AppContainer
from nutrient_resolver.domain.foods import (
    BrandedProduct,
    BrandedRow,
    CuratedFood,
    CuratedRow,
    PrivateFood,
    PrivateRow,
    RawNutrient,
)
from nutrient_resolver.domain.goals import Goal
from nutrient_resolver.domain.registry import default_registry
from nutrient_resolver.services.foods import FoodService
from nutrient_resolver.services.goals import (
    ClinicalMetricsProvider,
    GoalRepository,
    GoalService,
)
from nutrient_resolver.services.normalizer import NameNormalizer
from nutrient_resolver.services.search import FoodSearchService
from nutrient_resolver.services.stores import (
    BrandedFoodStore,
    CuratedFoodStore,
    PrivateFoodStore,
)

USER_ID = "user-1"


def dri_metrics() -> dict[str, object]:
    """Return a DRI record in the stored shape."""
    return {
        "bmr": 1650,
        "tee": 2000,
        "bmi": 22.5,
        "weight": 70,
        "nutrients": {
            "carbohydrate": {
                "total": {"recommended": 300, "unit": "g"},
                "starch": {"recommended": 150, "unit": "g"},
                "fiber": {
                    "total": {"recommended": 30, "unit": "g"},
                    "soluble": {"recommended": 10, "unit": "g"},
                    "insoluble": {"recommended": 20, "unit": "g"},
                },
                "sugar": {
                    "total": {"recommended": 50, "unit": "g"},
                    "added": {"recommended": 25, "unit": "g"},
                },
            },
            "protein": {
                "total": {"recommended": 100, "unit": "g"},
                "leucine": {"recommended": 2.7, "unit": "g"},
            },
            "fat": {
                "total": {"recommended": 70, "unit": "g"},
                "saturated": {"recommended": 20, "unit": "g"},
            },
            "water": {"recommended": 2700, "unit": "ml"},
            "vitaminC": {"recommended": 90, "unit": "mg"},
            "sodium": {"recommended": 1500, "unit": "mg"},
        },
    }


@dataclass
class FakeBrandedStore(BrandedFoodStore):
    """Branded store returning canned rows."""

    rows: list[BrandedRow] = field(default_factory=list)
    products: dict[str, BrandedProduct] = field(default_factory=dict)
    error: Exception | None = None
    delay_seconds: float = 0.0
    queries: list[str] = field(default_factory=list)

    async def search_branded(self, query: str, limit: int) -> list[BrandedRow]:
        self.queries.append(query)
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if self.error is not None:
            raise self.error
        return self.rows[:limit]

    async def get_branded_by_id(self, code: str) -> BrandedProduct | None:
        if self.error is not None:
            raise self.error
        return self.products.get(code)


@dataclass
class FakeCuratedStore(CuratedFoodStore):
    """Curated store returning canned rows."""

    rows: list[CuratedRow] = field(default_factory=list)
    foods: dict[int, CuratedFood] = field(default_factory=dict)
    error: Exception | None = None
    queries: list[str] = field(default_factory=list)

    async def search_curated(self, query: str, limit: int) -> list[CuratedRow]:
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return self.rows[:limit]

    async def get_curated_by_id(self, food_id: int) -> CuratedFood | None:
        if self.error is not None:
            raise self.error
        return self.foods.get(food_id)


@dataclass
class FakePrivateStore(PrivateFoodStore):
    """Per-user store keyed by user id."""

    rows: dict[str, list[PrivateRow]] = field(default_factory=dict)
    foods: dict[tuple[str, str], PrivateFood] = field(default_factory=dict)
    error: Exception | None = None
    queries: list[tuple[str, str]] = field(default_factory=list)

    def search_private(self, user_id: str, query: str, limit: int) -> list[PrivateRow]:
        self.queries.append((user_id, query))
        if self.error is not None:
            raise self.error
        return self.rows.get(user_id, [])[:limit]

    def get_private_by_id(self, user_id: str, food_id: str) -> PrivateFood | None:
        if self.error is not None:
            raise self.error
        return self.foods.get((user_id, food_id))


@dataclass
class InMemoryGoalRepository(GoalRepository):
    """In-memory goal repository for tests."""

    goals: dict[str, dict[str, Goal]] = field(default_factory=dict)
    saves: int = 0

    def get_goals(self, user_id: str) -> dict[str, Goal]:
        return dict(self.goals.get(user_id, {}))

    def save_goals(self, user_id: str, goals: Mapping[str, Goal]) -> None:
        self.saves += 1
        self.goals[user_id] = dict(goals)


@dataclass
class InMemoryMetricsProvider(ClinicalMetricsProvider):
    """In-memory DRI metrics provider for tests."""

    metrics: dict[str, dict[str, object]] = field(default_factory=dict)

    def get_metrics(self, user_id: str) -> dict[str, object] | None:
        return self.metrics.get(user_id)


def sample_branded_rows() -> list[BrandedRow]:
    return [
        BrandedRow(
            code="3017620422003",
            name="Hazelnut spread",
            brand="Nutella",
            category="Spreads",
            grade="e",
            popularity=5000,
            creator="openfoodfacts-contributors",
        ),
        BrandedRow(
            code="0001",
            name="Apple",
            brand=None,
            category="Fresh fruits",
            grade="a",
            popularity=10,
            creator="usda-ndb-import",
        ),
    ]


def sample_branded_product() -> BrandedProduct:
    return BrandedProduct(
        code="3017620422003",
        name="Hazelnut spread",
        brand="Nutella",
        creator="openfoodfacts-contributors",
        nutrients=[
            RawNutrient(name="energy", value=2255, unit="kJ"),
            RawNutrient(name="energy-kcal", value=539, unit="kcal"),
            RawNutrient(name="proteins", value=6.3, unit="g"),
            RawNutrient(name="sugars", value=56.3, unit="g"),
            RawNutrient(name="sodium", value=0.0428, unit="g"),
            RawNutrient(name="nova-group", value=4, unit="g"),
        ],
        serving_size="15 g",
    )


def sample_curated_food() -> CuratedFood:
    return CuratedFood(
        id=2346404,
        description="Apples, raw, with skin",
        category="Fruits and Fruit Juices",
        nutrients=[
            RawNutrient(name="Protein", value=0.17, unit="g"),
            RawNutrient(name="Carbohydrate, by difference", value=13.8, unit="g"),
            RawNutrient(name="Vitamin C, total ascorbic acid", value=4.6, unit="mg"),
            RawNutrient(name="Fiber, total dietary", value=2.4, unit="g"),
        ],
        serving_size="1 medium (182g)",
    )


@pytest.fixture
def metrics() -> dict[str, object]:
    return dri_metrics()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        fdc_api_key="fdc-key",
    )


@pytest.fixture
def branded_store() -> FakeBrandedStore:
    product = sample_branded_product()
    return FakeBrandedStore(
        rows=sample_branded_rows(), products={product.code: product}
    )


@pytest.fixture
def curated_store() -> FakeCuratedStore:
    food = sample_curated_food()
    return FakeCuratedStore(
        rows=[CuratedRow(id=food.id, description=food.description, category=food.category)],
        foods={food.id: food},
    )


@pytest.fixture
def private_store() -> FakePrivateStore:
    return FakePrivateStore(
        rows={USER_ID: [PrivateRow(id="custom-1", name="My apple pie", brand=None)]},
        foods={
            (USER_ID, "custom-1"): PrivateFood(
                id="custom-1",
                name="My apple pie",
                brand=None,
                nutrients={"protein": 2.5, "fat": 11.0, "mystery": 1.0},
            )
        },
    )


@pytest.fixture
def goal_repository() -> InMemoryGoalRepository:
    return InMemoryGoalRepository()


@pytest.fixture
def metrics_provider(metrics: dict[str, object]) -> InMemoryMetricsProvider:
    return InMemoryMetricsProvider(metrics={USER_ID: metrics})


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    branded_store: FakeBrandedStore,
    curated_store: FakeCuratedStore,
    private_store: FakePrivateStore,
    goal_repository: InMemoryGoalRepository,
    metrics_provider: InMemoryMetricsProvider,
) -> AppContainer:
    registry = default_registry()
    search_service = FoodSearchService(
        branded_store=branded_store,
        curated_store=curated_store,
        private_store=private_store,
        timeout_seconds=settings.search_timeout_seconds,
    )
    food_service = FoodService(
        branded_store=branded_store,
        curated_store=curated_store,
        private_store=private_store,
    )
    goal_service = GoalService(
        goal_repository=goal_repository,
        metrics_provider=metrics_provider,
        registry=registry,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        registry=registry,
        normalizer=NameNormalizer(registry),
        search_service=search_service,
        food_service=food_service,
        goal_service=goal_service,
        close_resources=close_resources,
    )
