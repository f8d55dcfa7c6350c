"""USDA FoodData Central API client restricted to Foundation foods."""

from dataclasses import dataclass

import httpx

from nutrient_resolver.adapters.fdc_models import (
    FdcSearchResponse,
    FoundationFoodModel,
)
from nutrient_resolver.domain.foods import CuratedFood, CuratedRow
from nutrient_resolver.services.stores import CuratedFoodStore

FOUNDATION_DATA_TYPE = "Foundation"


@dataclass
class HttpxFdcClient(CuratedFoodStore):
    """HTTPX-backed curated food store."""

    api_key: str
    base_url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 15

    @classmethod
    def create(cls, api_key: str, base_url: str) -> "HttpxFdcClient":
        """Create an FDC client with a managed httpx session."""
        return cls(api_key=api_key, base_url=base_url, http_client=httpx.AsyncClient())

    async def search_curated(self, query: str, limit: int) -> list[CuratedRow]:
        """Search Foundation foods by description."""
        url = f"{self.base_url}/foods/search"
        response = await self.http_client.post(
            url,
            params={"api_key": self.api_key},
            json={
                "query": query,
                "pageSize": limit,
                "dataType": [FOUNDATION_DATA_TYPE],
            },
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        payload = FdcSearchResponse.model_validate(response.json())
        return [
            food.to_row()
            for food in payload.foods
            if food.data_type in (None, FOUNDATION_DATA_TYPE)
        ][:limit]

    async def get_curated_by_id(self, food_id: int) -> CuratedFood | None:
        """Fetch a Foundation food by FDC id."""
        url = f"{self.base_url}/food/{food_id}"
        response = await self.http_client.get(
            url,
            params={"api_key": self.api_key},
            timeout=self.timeout_seconds,
        )
        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        response.raise_for_status()
        food = FoundationFoodModel.model_validate(response.json())
        if food.data_type not in (None, FOUNDATION_DATA_TYPE):
            return None
        return food.to_food()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
