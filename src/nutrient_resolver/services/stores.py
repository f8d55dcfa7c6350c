"""Interfaces for the food stores the engine reads from."""

from typing import Protocol

from nutrient_resolver.domain.foods import (
    BrandedProduct,
    BrandedRow,
    CuratedFood,
    CuratedRow,
    PrivateFood,
    PrivateRow,
)


class BrandedFoodStore(Protocol):
    """Bulk store of branded, packaged products."""

    async def search_branded(self, query: str, limit: int) -> list[BrandedRow]:
        """Search products by name or brand."""

    async def get_branded_by_id(self, code: str) -> BrandedProduct | None:
        """Return a product by barcode, if present."""


class CuratedFoodStore(Protocol):
    """Curated store of whole foods with detailed nutrient data."""

    async def search_curated(self, query: str, limit: int) -> list[CuratedRow]:
        """Search foods by description."""

    async def get_curated_by_id(self, food_id: int) -> CuratedFood | None:
        """Return a food by id, if present."""


class PrivateFoodStore(Protocol):
    """Per-user store of custom foods."""

    def search_private(self, user_id: str, query: str, limit: int) -> list[PrivateRow]:
        """Search a user's foods by name or brand."""

    def get_private_by_id(self, user_id: str, food_id: str) -> PrivateFood | None:
        """Return one of a user's foods, if present."""
