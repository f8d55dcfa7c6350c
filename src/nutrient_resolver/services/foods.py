"""Food detail lookups producing normalized nutrient profiles."""

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field, replace

from nutrient_resolver.domain.foods import (
    BrandedProduct,
    CuratedFood,
    DataSourceMode,
    FoodNutrientProfile,
    PrivateFood,
    RawNutrient,
    SourceTag,
)
from nutrient_resolver.domain.nutrients import NormalizedNutrientValue
from nutrient_resolver.domain.registry import NutrientRegistry, default_registry
from nutrient_resolver.domain.units import (
    can_convert,
    convert_nutrient_value,
    grams_for_quantity,
    scaling_factor,
)
from nutrient_resolver.services.normalizer import NameNormalizer
from nutrient_resolver.services.stores import (
    BrandedFoodStore,
    CuratedFoodStore,
    PrivateFoodStore,
)

_logger = logging.getLogger(__name__)


@dataclass
class NutrientProfileBuilder:
    """Turn raw store readings into canonical keys and units."""

    registry: NutrientRegistry = field(default_factory=default_registry)
    normalizer: NameNormalizer | None = None

    def __post_init__(self) -> None:
        if self.normalizer is None:
            self.normalizer = NameNormalizer(self.registry)

    def normalize(self, raw: RawNutrient) -> NormalizedNutrientValue:
        """Normalize one reading; unknown names keep their raw unit."""
        key = self.normalizer.normalize(raw.name) if self.normalizer else None
        value = raw.value if raw.value is not None else 0.0
        metadata = self.registry.get(key) if key else None
        if metadata is None:
            return NormalizedNutrientValue(
                key=key, raw_name=raw.name, value=value, unit=raw.unit
            )
        if raw.unit is None:
            return NormalizedNutrientValue(
                key=key, raw_name=raw.name, value=value, unit=metadata.unit
            )
        if not can_convert(raw.unit, metadata.unit):
            # Energy units and mass/volume pairs keep their own unit.
            return NormalizedNutrientValue(
                key=key, raw_name=raw.name, value=value, unit=raw.unit
            )
        converted = convert_nutrient_value(value, raw.unit, metadata.unit)
        return NormalizedNutrientValue(
            key=key, raw_name=raw.name, value=converted, unit=metadata.unit
        )

    def normalize_all(
        self, raw_nutrients: Iterable[RawNutrient]
    ) -> tuple[NormalizedNutrientValue, ...]:
        return tuple(self.normalize(raw) for raw in raw_nutrients)

    def from_branded(self, product: BrandedProduct) -> FoodNutrientProfile:
        return FoodNutrientProfile(
            code=product.code,
            name=product.name,
            brand=product.brand,
            source=SourceTag.BULK,
            nutrients=self.normalize_all(product.nutrients),
            serving_size=product.serving_size,
        )

    def from_curated(self, food: CuratedFood) -> FoodNutrientProfile:
        return FoodNutrientProfile(
            code=str(food.id),
            name=food.description,
            brand=None,
            source=SourceTag.CURATED,
            nutrients=self.normalize_all(food.nutrients),
            serving_size=food.serving_size,
        )

    def from_private(self, food: PrivateFood) -> FoodNutrientProfile:
        # Stored values are already per 100 g in canonical units.
        raw = [
            RawNutrient(name=name, value=float(value), unit=None)
            for name, value in food.nutrients.items()
        ]
        return FoodNutrientProfile(
            code=food.id,
            name=food.name,
            brand=food.brand,
            source=SourceTag.USER_PRIVATE,
            nutrients=self.normalize_all(raw),
        )


def _is_unit(unit: str, expected: str) -> bool:
    return unit.strip().lower() == expected.strip().lower()


def scale_profile(
    profile: FoodNutrientProfile, quantity: float, unit: str = "g"
) -> FoodNutrientProfile:
    """Scale a per-100 g profile to a requested quantity."""
    grams = grams_for_quantity(quantity, unit)
    if not profile.quantity_g:
        factor = 0.0
    else:
        # An already scaled profile is first taken back to its 100 g base.
        factor = scaling_factor(quantity, unit) * (100.0 / profile.quantity_g)
    scaled = tuple(
        replace(nutrient, value=round(nutrient.value * factor, 2))
        for nutrient in profile.nutrients
    )
    return replace(profile, nutrients=scaled, quantity_g=grams)


@dataclass(frozen=True)
class ExtractedNutrients:
    """Canonical key -> value, plus the keys whose value kept a foreign unit."""

    values: dict[str, float]
    unconverted: dict[str, str] = field(default_factory=dict)


def extract_nutrients(
    profile: FoodNutrientProfile, registry: NutrientRegistry | None = None
) -> ExtractedNutrients:
    """Flatten a profile to one value per canonical key.

    Readings in the canonical unit win. A key that only has readings in
    another unit (water reported in grams, energy only in kJ) takes the first
    of them unconverted, and its unit is recorded in ``unconverted``.
    Unmapped rows are skipped.
    """
    if registry is None:
        registry = default_registry()
    values: dict[str, float] = {}
    fallbacks: dict[str, NormalizedNutrientValue] = {}
    for nutrient in profile.nutrients:
        if nutrient.key is None or nutrient.key in values:
            continue
        metadata = registry.get(nutrient.key)
        if metadata and nutrient.unit and not _is_unit(nutrient.unit, metadata.unit):
            fallbacks.setdefault(nutrient.key, nutrient)
            continue
        values[nutrient.key] = nutrient.value

    unconverted: dict[str, str] = {}
    for key, nutrient in fallbacks.items():
        if key in values:
            continue
        values[key] = nutrient.value
        unconverted[key] = nutrient.unit or ""
    return ExtractedNutrients(values=values, unconverted=unconverted)


@dataclass
class FoodService:
    """Resolve a food id to its normalized nutrient profile."""

    branded_store: BrandedFoodStore
    curated_store: CuratedFoodStore
    private_store: PrivateFoodStore | None = None
    builder: NutrientProfileBuilder = field(default_factory=NutrientProfileBuilder)

    async def get_food(
        self,
        code: str,
        data_source: DataSourceMode = DataSourceMode.BRANDED,
        user_id: str | None = None,
    ) -> FoodNutrientProfile | None:
        """Return a food profile, checking private foods first in branded mode."""
        if data_source is DataSourceMode.FOUNDATION:
            return await self._get_curated(code)

        if user_id and self.private_store is not None:
            try:
                private = await asyncio.to_thread(
                    self.private_store.get_private_by_id, user_id, code
                )
            except Exception as exc:
                _logger.warning("Food lookup: private store failed: %s", exc)
                private = None
            if private is not None:
                return self.builder.from_private(private)

        try:
            product = await self.branded_store.get_branded_by_id(code)
        except Exception as exc:
            _logger.warning(
                "Food lookup: branded store failed for %s: %s", code, exc
            )
            return None
        if product is None:
            _logger.info("Food lookup: no branded product for code=%s", code)
            return None
        return self.builder.from_branded(product)

    async def get_scaled_food(  # noqa: PLR0913
        self,
        code: str,
        quantity: float,
        unit: str = "g",
        data_source: DataSourceMode = DataSourceMode.BRANDED,
        user_id: str | None = None,
    ) -> FoodNutrientProfile | None:
        """Return a food profile scaled to the requested quantity."""
        profile = await self.get_food(code, data_source=data_source, user_id=user_id)
        if profile is None:
            return None
        return scale_profile(profile, quantity, unit)

    async def _get_curated(self, code: str) -> FoodNutrientProfile | None:
        try:
            food_id = int(code)
        except ValueError:
            _logger.info("Food lookup: invalid curated id %s", code)
            return None
        try:
            food = await self.curated_store.get_curated_by_id(food_id)
        except Exception as exc:
            _logger.warning(
                "Food lookup: curated store failed for %s: %s", food_id, exc
            )
            return None
        if food is None:
            _logger.info("Food lookup: curated food %s not found", food_id)
            return None
        return self.builder.from_curated(food)
