"""Open Food Facts API client serving as the bulk branded-product store."""

from dataclasses import dataclass

import httpx
from pydantic import BaseModel, ConfigDict, Field

from nutrient_resolver.domain.foods import BrandedProduct, BrandedRow, RawNutrient
from nutrient_resolver.services.stores import BrandedFoodStore

_SEARCH_FIELDS = (
    "code,product_name,brands,categories,nutriscore_grade,unique_scans_n,creator"
)
_PER_100G_SUFFIX = "_100g"
# Open Food Facts reports per-100 g values in grams except for energy.
_ENERGY_UNITS = {"energy-kcal": "kcal", "energy-kj": "kJ", "energy": "kJ"}


class OffProduct(BaseModel):
    """Product fields used from Open Food Facts responses."""

    model_config = ConfigDict(extra="ignore")

    code: str
    product_name: str | None = None
    brands: str | None = None
    categories: str | None = None
    nutriscore_grade: str | None = None
    unique_scans_n: int | None = None
    creator: str | None = None
    serving_size: str | None = None
    nutriments: dict[str, object] = Field(default_factory=dict)

    def to_row(self) -> BrandedRow:
        return BrandedRow(
            code=self.code,
            name=self.product_name or "",
            brand=self.brands,
            category=self.categories,
            grade=self.nutriscore_grade,
            popularity=self.unique_scans_n or 0,
            creator=self.creator,
        )

    def to_product(self) -> BrandedProduct:
        return BrandedProduct(
            code=self.code,
            name=self.product_name or "",
            brand=self.brands,
            creator=self.creator,
            nutrients=parse_nutriments(self.nutriments),
            serving_size=self.serving_size,
        )


class OffSearchResponse(BaseModel):
    products: list[OffProduct] = Field(default_factory=list)


class OffProductResponse(BaseModel):
    status: int = 0
    product: OffProduct | None = None


def parse_nutriments(nutriments: dict[str, object]) -> list[RawNutrient]:
    """Turn the flat ``<name>_100g`` nutriment map into raw readings."""
    readings: list[RawNutrient] = []
    for key, value in nutriments.items():
        if not key.endswith(_PER_100G_SUFFIX):
            continue
        if isinstance(value, bool) or not isinstance(value, int | float):
            continue
        name = key[: -len(_PER_100G_SUFFIX)]
        readings.append(
            RawNutrient(
                name=name, value=float(value), unit=_ENERGY_UNITS.get(name, "g")
            )
        )
    return readings


@dataclass
class HttpxOpenFoodFactsClient(BrandedFoodStore):
    """HTTPX-backed branded product store."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 15

    @classmethod
    def create(cls, base_url: str) -> "HttpxOpenFoodFactsClient":
        """Create a client with a managed httpx session."""
        return cls(base_url=base_url, http_client=httpx.AsyncClient())

    async def search_branded(self, query: str, limit: int) -> list[BrandedRow]:
        """Search products by name or brand."""
        response = await self.http_client.get(
            f"{self.base_url}/cgi/search.pl",
            params={
                "search_terms": query,
                "page_size": limit,
                "json": 1,
                "fields": _SEARCH_FIELDS,
            },
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        payload = OffSearchResponse.model_validate(response.json())
        return [product.to_row() for product in payload.products if product.code]

    async def get_branded_by_id(self, code: str) -> BrandedProduct | None:
        """Fetch a product by barcode."""
        response = await self.http_client.get(
            f"{self.base_url}/api/v2/product/{code}.json",
            timeout=self.timeout_seconds,
        )
        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        response.raise_for_status()
        payload = OffProductResponse.model_validate(response.json())
        if payload.status != 1 or payload.product is None:
            return None
        return payload.product.to_product()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
