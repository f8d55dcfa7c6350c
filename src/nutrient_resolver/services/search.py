"""Food search across private, curated and branded stores."""

import asyncio
import logging
import re
from collections.abc import Awaitable, Iterable
from dataclasses import dataclass

from nutrient_resolver.domain.foods import DataSourceMode, SearchResult, SourceTag
from nutrient_resolver.services.stores import (
    BrandedFoodStore,
    CuratedFoodStore,
    PrivateFoodStore,
)

_logger = logging.getLogger(__name__)

# Whole-food categories outrank generic product categories.
_CATEGORY_RANKS: tuple[tuple[re.Pattern[str], int], ...] = (
    (re.compile(r"\braw\b"), 0),
    (re.compile(r"\bfresh\b"), 0),
    (re.compile(r"\bwhole\b"), 1),
    (re.compile(r"\bfruits?\b"), 2),
    (re.compile(r"\bvegetables?\b"), 2),
)
DEFAULT_CATEGORY_RANK = 3

EXACT_MATCH = 0
PREFIX_MATCH = 1
WORD_MATCH = 2
SUBSTRING_MATCH = 3
BRAND_MATCH = 4
NO_MATCH = 5


@dataclass(frozen=True)
class SearchOutcome:
    """Ranked results plus the stores that failed to answer."""

    results: list[SearchResult]
    failed_sources: tuple[str, ...] = ()


def category_rank(category: str | None) -> int:
    """Return the ordinal rank of a category string."""
    if not category:
        return DEFAULT_CATEGORY_RANK
    lowered = category.lower()
    ranks = [rank for pattern, rank in _CATEGORY_RANKS if pattern.search(lowered)]
    return min(ranks, default=DEFAULT_CATEGORY_RANK)


def relevance_rank(result: SearchResult, query: str) -> int:
    """Rank how closely a result's name or brand matches the query."""
    needle = query.strip().lower()
    if not needle:
        return NO_MATCH
    name = result.name.strip().lower()
    if name == needle:
        return EXACT_MATCH
    if name.startswith(needle):
        return PREFIX_MATCH
    if re.search(rf"\b{re.escape(needle)}\b", name):
        return WORD_MATCH
    if needle in name:
        return SUBSTRING_MATCH
    if result.brand and needle in result.brand.lower():
        return BRAND_MATCH
    return NO_MATCH


def rank_results(results: Iterable[SearchResult], query: str) -> list[SearchResult]:
    """Sort results by source, category, relevance, then popularity.

    Name and code close the ordering so the output only depends on the set of
    rows, never on the order stores answered in.
    """
    return sorted(
        results,
        key=lambda result: (
            result.provenance.priority,
            category_rank(result.category),
            relevance_rank(result, query),
            -result.popularity,
            result.name.lower(),
            result.code,
        ),
    )


def merge_results(
    results: Iterable[SearchResult], query: str, limit: int
) -> list[SearchResult]:
    """Place private results first, rank the rest and truncate."""
    private: list[SearchResult] = []
    shared: list[SearchResult] = []
    for result in results:
        if result.source is SourceTag.USER_PRIVATE:
            private.append(result)
        else:
            shared.append(result)
    merged = rank_results(private, query) + rank_results(shared, query)
    return merged[: max(limit, 0)]


@dataclass
class FoodSearchService:
    """Query every applicable store concurrently and merge the results.

    A store that raises or does not answer within ``timeout_seconds`` counts
    as empty; the search itself never fails because of one store.
    """

    branded_store: BrandedFoodStore
    curated_store: CuratedFoodStore
    private_store: PrivateFoodStore | None = None
    timeout_seconds: float | None = 5.0

    async def search(
        self,
        query: str,
        limit: int = 10,
        data_source: DataSourceMode = DataSourceMode.BRANDED,
        user_id: str | None = None,
    ) -> list[SearchResult]:
        """Return up to ``limit`` ranked results."""
        outcome = await self.search_detailed(query, limit, data_source, user_id)
        return outcome.results

    async def search_detailed(
        self,
        query: str,
        limit: int = 10,
        data_source: DataSourceMode = DataSourceMode.BRANDED,
        user_id: str | None = None,
    ) -> SearchOutcome:
        """Return ranked results and the names of stores that failed."""
        cleaned = query.strip()
        if not cleaned or limit <= 0:
            return SearchOutcome(results=[])

        lookups: dict[str, Awaitable[list[SearchResult]]] = {}
        if data_source is DataSourceMode.FOUNDATION:
            lookups["curated"] = self._search_curated(cleaned, limit)
        else:
            if user_id and self.private_store is not None:
                lookups["private"] = self._search_private(user_id, cleaned, limit)
            lookups["branded"] = self._search_branded(cleaned, limit)

        collected, failed = await self._collect(lookups)
        return SearchOutcome(
            results=merge_results(collected, cleaned, limit),
            failed_sources=failed,
        )

    async def _collect(
        self, lookups: dict[str, Awaitable[list[SearchResult]]]
    ) -> tuple[list[SearchResult], tuple[str, ...]]:
        tasks = {
            asyncio.ensure_future(lookup): name for name, lookup in lookups.items()
        }
        try:
            done, pending = await asyncio.wait(tasks, timeout=self.timeout_seconds)
        finally:
            leftover = [task for task in tasks if not task.done()]
            for task in leftover:
                task.cancel()
            if leftover:
                await asyncio.gather(*leftover, return_exceptions=True)

        collected: list[SearchResult] = []
        failed: list[str] = []
        for task in pending:
            _logger.warning("Food search %s store timed out", tasks[task])
            failed.append(tasks[task])
        for task in done:
            if task.cancelled():
                failed.append(tasks[task])
                continue
            exc = task.exception()
            if exc is not None:
                _logger.warning("Food search %s store failed: %s", tasks[task], exc)
                failed.append(tasks[task])
                continue
            collected.extend(task.result())
        return collected, tuple(sorted(failed))

    async def _search_branded(self, query: str, limit: int) -> list[SearchResult]:
        rows = await self.branded_store.search_branded(query, limit)
        return [row.to_search_result() for row in rows]

    async def _search_curated(self, query: str, limit: int) -> list[SearchResult]:
        rows = await self.curated_store.search_curated(query, limit)
        return [row.to_search_result() for row in rows]

    async def _search_private(
        self, user_id: str, query: str, limit: int
    ) -> list[SearchResult]:
        if self.private_store is None:
            return []
        rows = await asyncio.to_thread(
            self.private_store.search_private, user_id, query, limit
        )
        return [row.to_search_result() for row in rows]
