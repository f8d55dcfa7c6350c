"""Curated food store backed by the USDA Foundation Foods JSON dataset."""

import asyncio
import json
import logging
import time
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path

from pydantic import ValidationError

from nutrient_resolver.adapters.fdc_models import FoundationFoodModel
from nutrient_resolver.domain.foods import CuratedFood, CuratedRow
from nutrient_resolver.services.cache import Cache, InMemoryCache
from nutrient_resolver.services.stores import CuratedFoodStore

_logger = logging.getLogger(__name__)

_CACHE_KEY = "foundation:dataset"


@dataclass(frozen=True)
class FoundationDataset:
    """Parsed foods plus an index by FDC id."""

    foods: list[FoundationFoodModel]
    by_id: dict[int, FoundationFoodModel]


def load_foundation_dataset(path: Path) -> FoundationDataset:
    """Read and validate the dataset; rows that fail validation are skipped."""
    started = time.monotonic()
    with path.open(encoding="utf-8") as handle:
        payload = json.load(handle)

    foods: list[FoundationFoodModel] = []
    for item in payload.get("FoundationFoods", []):
        try:
            foods.append(FoundationFoodModel.model_validate(item))
        except ValidationError as exc:
            _logger.warning("Skipping invalid foundation food: %s", exc)
    elapsed_ms = (time.monotonic() - started) * 1000
    _logger.info("Loaded %s foundation foods in %.0fms", len(foods), elapsed_ms)
    return FoundationDataset(foods=foods, by_id={food.fdc_id: food for food in foods})


def match_score(food: FoundationFoodModel, query: str) -> int:
    """Score a food description against a lowercase query; 0 means no match."""
    description = food.description.lower()
    if description == query:
        return 100
    if description.startswith(query):
        return 80
    if f" {query}" in description or f"{query} " in description:
        return 60
    if query in description:
        return 40
    if food.category and query in food.category.lower():
        return 20
    return 0


@dataclass
class JsonFoundationFoodStore(CuratedFoodStore):
    """Foundation foods loaded once from disk and kept in the dataset cache."""

    path: Path
    cache: Cache = field(default_factory=InMemoryCache)
    ttl_seconds: int | None = None

    async def search_curated(self, query: str, limit: int) -> list[CuratedRow]:
        """Return the best description matches, highest score first."""
        needle = query.strip().lower()
        if not needle or limit <= 0:
            return []
        dataset = await self._dataset()
        scored = [(match_score(food, needle), food) for food in dataset.foods]
        matches = [(score, food) for score, food in scored if score > 0]
        matches.sort(key=lambda item: item[0], reverse=True)
        return [food.to_row() for _, food in matches[:limit]]

    async def get_curated_by_id(self, food_id: int) -> CuratedFood | None:
        dataset = await self._dataset()
        food = dataset.by_id.get(food_id)
        return food.to_food() if food else None

    def invalidate(self) -> None:
        """Drop the loaded dataset so the next call reads the file again."""
        self.cache.invalidate(_CACHE_KEY)

    async def _dataset(self) -> FoundationDataset:
        return await asyncio.to_thread(
            self.cache.get_or_load,
            _CACHE_KEY,
            partial(load_foundation_dataset, self.path),
            self.ttl_seconds,
        )
