"""Pydantic models for USDA FoodData Central Foundation payloads."""

from pydantic import BaseModel, ConfigDict, Field

from nutrient_resolver.domain.foods import CuratedFood, CuratedRow, RawNutrient


class FdcNutrientInfo(BaseModel):
    """Nutrient definition nested in a food nutrient entry."""

    id: int | None = None
    name: str
    unit_name: str | None = Field(default=None, alias="unitName")


class FdcFoodNutrient(BaseModel):
    """Amount of one nutrient in a food, per 100 g."""

    nutrient: FdcNutrientInfo
    amount: float | None = 0.0


class FdcMeasureUnit(BaseModel):
    name: str
    abbreviation: str | None = None


class FdcFoodPortion(BaseModel):
    """Household portion with its gram weight, when the dataset records one."""

    value: float | None = None
    amount: float | None = None
    measure_unit: FdcMeasureUnit | None = Field(default=None, alias="measureUnit")
    gram_weight: float | None = Field(default=None, alias="gramWeight")

    def describe(self) -> str | None:
        if self.gram_weight is None:
            return None
        quantity = self.amount if self.amount is not None else self.value
        if quantity is None:
            quantity = 1
        unit = self.measure_unit.name if self.measure_unit else "portion"
        return f"{_compact(quantity)} {unit} ({_compact(self.gram_weight)}g)"


class FdcFoodCategory(BaseModel):
    description: str


class FoundationFoodModel(BaseModel):
    """A Foundation food record as published in the USDA dataset."""

    model_config = ConfigDict(extra="ignore")

    fdc_id: int = Field(alias="fdcId")
    description: str
    data_type: str | None = Field(default=None, alias="dataType")
    food_category: FdcFoodCategory | None = Field(default=None, alias="foodCategory")
    food_nutrients: list[FdcFoodNutrient] = Field(
        default_factory=list, alias="foodNutrients"
    )
    food_portions: list[FdcFoodPortion] = Field(
        default_factory=list, alias="foodPortions"
    )

    @property
    def category(self) -> str | None:
        return self.food_category.description if self.food_category else None

    def to_row(self) -> CuratedRow:
        return CuratedRow(
            id=self.fdc_id, description=self.description, category=self.category
        )

    def to_food(self) -> CuratedFood:
        nutrients = [
            RawNutrient(
                name=entry.nutrient.name,
                value=entry.amount,
                unit=entry.nutrient.unit_name,
            )
            for entry in self.food_nutrients
        ]
        servings = [portion.describe() for portion in self.food_portions]
        serving = next((text for text in servings if text), None)
        return CuratedFood(
            id=self.fdc_id,
            description=self.description,
            category=self.category,
            nutrients=nutrients,
            serving_size=serving,
        )


class FdcSearchFood(BaseModel):
    """Abridged food entry returned by the FDC search endpoint."""

    model_config = ConfigDict(extra="ignore")

    fdc_id: int = Field(alias="fdcId")
    description: str
    data_type: str | None = Field(default=None, alias="dataType")
    food_category: str | None = Field(default=None, alias="foodCategory")

    def to_row(self) -> CuratedRow:
        return CuratedRow(
            id=self.fdc_id, description=self.description, category=self.food_category
        )


class FdcSearchResponse(BaseModel):
    foods: list[FdcSearchFood] = Field(default_factory=list)


def _compact(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return str(value)
