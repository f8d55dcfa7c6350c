"""Tests for multi-source food search."""

import asyncio
import random

from nutrient_resolver.domain.foods import (
    BrandedRow,
    DataSourceMode,
    Provenance,
    SearchResult,
    SourceTag,
)
from nutrient_resolver.services.search import (
    DEFAULT_CATEGORY_RANK,
    EXACT_MATCH,
    NO_MATCH,
    PREFIX_MATCH,
    SUBSTRING_MATCH,
    WORD_MATCH,
    FoodSearchService,
    category_rank,
    rank_results,
    relevance_rank,
)
from tests.conftest import USER_ID, FakeBrandedStore, FakeCuratedStore, FakePrivateStore


def _service(branded, curated, private, timeout: float | None = 5.0) -> FoodSearchService:
    return FoodSearchService(
        branded_store=branded,
        curated_store=curated,
        private_store=private,
        timeout_seconds=timeout,
    )


def _result(
    name: str,
    provenance: Provenance = Provenance.BRANDED,
    category: str | None = None,
    popularity: int = 0,
    code: str | None = None,
) -> SearchResult:
    return SearchResult(
        code=code or name,
        name=name,
        brand=None,
        category=category,
        quality_grade=None,
        popularity=popularity,
        provenance=provenance,
    )


def test_foundation_mode_only_queries_curated_store(
    branded_store: FakeBrandedStore,
    curated_store: FakeCuratedStore,
    private_store: FakePrivateStore,
) -> None:
    service = _service(branded_store, curated_store, private_store)

    results = asyncio.run(
        service.search("apple", data_source=DataSourceMode.FOUNDATION, user_id=USER_ID)
    )

    assert [result.source for result in results] == [SourceTag.CURATED]
    assert branded_store.queries == []
    assert private_store.queries == []


def test_branded_mode_skips_private_store_without_user(
    branded_store: FakeBrandedStore,
    curated_store: FakeCuratedStore,
    private_store: FakePrivateStore,
) -> None:
    service = _service(branded_store, curated_store, private_store)

    results = asyncio.run(service.search("apple"))

    assert private_store.queries == []
    assert curated_store.queries == []
    assert all(result.source is SourceTag.BULK for result in results)


def test_private_results_come_first_and_survive_truncation(
    branded_store: FakeBrandedStore,
    curated_store: FakeCuratedStore,
    private_store: FakePrivateStore,
) -> None:
    service = _service(branded_store, curated_store, private_store)

    results = asyncio.run(service.search("apple", limit=1, user_id=USER_ID))

    assert len(results) == 1
    assert results[0].code == "custom-1"
    assert results[0].source is SourceTag.USER_PRIVATE
    assert results[0].category == "Custom"
    assert results[0].quality_grade == "unknown"


def test_shared_results_are_ordered_by_source_priority(
    branded_store: FakeBrandedStore,
    curated_store: FakeCuratedStore,
    private_store: FakePrivateStore,
) -> None:
    service = _service(branded_store, curated_store, private_store)

    results = asyncio.run(service.search("apple", user_id=USER_ID))

    assert [result.code for result in results] == [
        "custom-1",
        "0001",
        "3017620422003",
    ]
    assert results[1].provenance is Provenance.USDA


def test_failing_store_is_treated_as_empty(
    curated_store: FakeCuratedStore,
    private_store: FakePrivateStore,
) -> None:
    branded = FakeBrandedStore(error=RuntimeError("boom"))
    service = _service(branded, curated_store, private_store)

    outcome = asyncio.run(service.search_detailed("apple", user_id=USER_ID))

    assert [result.code for result in outcome.results] == ["custom-1"]
    assert outcome.failed_sources == ("branded",)


def test_timed_out_lookups_are_finished_before_returning(
    curated_store: FakeCuratedStore,
) -> None:
    branded = FakeBrandedStore(delay_seconds=2.0)
    service = _service(branded, curated_store, None, timeout=0.1)

    async def run() -> set[asyncio.Task]:
        await service.search_detailed("apple")
        return asyncio.all_tasks() - {asyncio.current_task()}

    assert asyncio.run(run()) == set()


def test_slow_store_is_dropped_after_timeout(
    curated_store: FakeCuratedStore,
    private_store: FakePrivateStore,
) -> None:
    branded = FakeBrandedStore(
        rows=[
            BrandedRow(
                code="slow",
                name="Slow apple",
                brand=None,
                category=None,
                grade=None,
                popularity=1,
                creator=None,
            )
        ],
        delay_seconds=2.0,
    )
    service = _service(branded, curated_store, private_store, timeout=0.3)

    outcome = asyncio.run(service.search_detailed("apple", user_id=USER_ID))

    assert [result.code for result in outcome.results] == ["custom-1"]
    assert outcome.failed_sources == ("branded",)


def test_blank_query_and_zero_limit_return_nothing(
    branded_store: FakeBrandedStore,
    curated_store: FakeCuratedStore,
    private_store: FakePrivateStore,
) -> None:
    service = _service(branded_store, curated_store, private_store)

    assert asyncio.run(service.search("   ")) == []
    assert asyncio.run(service.search("apple", limit=0)) == []
    assert branded_store.queries == []


def test_rank_results_is_independent_of_arrival_order() -> None:
    results = [
        _result("Apple juice", popularity=900),
        _result("Apple", category="Fresh fruits", popularity=5),
        _result("Green apple", provenance=Provenance.NCCDB),
        _result("Apple pie", popularity=900, code="b"),
        _result("Apple pie", popularity=900, code="a"),
        _result("Apple, raw", provenance=Provenance.FOUNDATION, category="Fruits"),
    ]
    expected = rank_results(results, "apple")

    shuffled = list(results)
    random.Random(7).shuffle(shuffled)

    assert rank_results(shuffled, "apple") == expected
    assert [result.name for result in expected][:3] == [
        "Apple, raw",
        "Green apple",
        "Apple",
    ]
    assert [result.code for result in expected][-2:] == ["a", "b"]


def test_category_rank_matches_whole_words() -> None:
    assert category_rank("Fresh fruits") == 0
    assert category_rank("Whole grains") == 1
    assert category_rank("Vegetables and Vegetable Products") == 2
    assert category_rank("Rawhide chews") == DEFAULT_CATEGORY_RANK
    assert category_rank(None) == DEFAULT_CATEGORY_RANK


def test_relevance_rank_tiers() -> None:
    assert relevance_rank(_result("Apple"), "apple") == EXACT_MATCH
    assert relevance_rank(_result("Apple pie"), "apple") == PREFIX_MATCH
    assert relevance_rank(_result("Green apple"), "apple") == WORD_MATCH
    assert relevance_rank(_result("Pineapple"), "apple") == SUBSTRING_MATCH
    assert relevance_rank(_result("Banana"), "apple") == NO_MATCH
