"""Unit conversion for nutrient values and food quantities."""

from types import MappingProxyType

MASS_TO_GRAMS = MappingProxyType(
    {
        "g": 1.0,
        "gram": 1.0,
        "grams": 1.0,
        "mg": 0.001,
        "milligram": 0.001,
        "milligrams": 0.001,
        "mcg": 0.000001,
        "µg": 0.000001,
        "μg": 0.000001,
        "ug": 0.000001,
        "microgram": 0.000001,
        "micrograms": 0.000001,
        "kg": 1000.0,
        "kilogram": 1000.0,
        "kilograms": 1000.0,
        "oz": 28.35,
        "ounce": 28.35,
        "ounces": 28.35,
        "lb": 453.592,
        "pound": 453.592,
        "pounds": 453.592,
    }
)

VOLUME_TO_MILLILITERS = MappingProxyType(
    {
        "ml": 1.0,
        "milliliter": 1.0,
        "milliliters": 1.0,
        "l": 1000.0,
        "liter": 1000.0,
        "liters": 1000.0,
        "cup": 236.588,
        "tbsp": 14.787,
        "tsp": 4.929,
    }
)

# Serving quantities are scaled against a 100 g base; volumes count as water.
_QUANTITY_TO_GRAMS = MappingProxyType(
    {
        **MASS_TO_GRAMS,
        "ml": 1.0,
        "cup": 236.588,
        "tbsp": 14.787,
        "tsp": 4.929,
    }
)


def normalize_unit(unit: str) -> str:
    """Return the lookup form of a unit string."""
    return unit.strip().lower()


def convert_nutrient_value(
    value: float | None, from_unit: str | None, to_unit: str | None
) -> float | None:
    """Convert a value between units of the same dimension.

    Unknown units and mass/volume pairs return the value unchanged so the
    caller keeps the original reading instead of a bogus conversion.
    """
    if value is None or not from_unit or not to_unit:
        return value
    source = normalize_unit(from_unit)
    target = normalize_unit(to_unit)
    if source == target:
        return value
    for table in (MASS_TO_GRAMS, VOLUME_TO_MILLILITERS):
        if source in table and target in table:
            return value * table[source] / table[target]
    return value


def grams_for_quantity(quantity: float, unit: str) -> float:
    """Return the gram weight of a quantity, treating unknown units as grams."""
    factor = _QUANTITY_TO_GRAMS.get(normalize_unit(unit), 1.0)
    return quantity * factor


def scaling_factor(quantity: float, unit: str) -> float:
    """Return the multiplier from a per-100 g profile to the requested amount."""
    return grams_for_quantity(quantity, unit) / 100.0


def can_convert(from_unit: str | None, to_unit: str | None) -> bool:
    """Return True when both units are known and share a dimension."""
    if not from_unit or not to_unit:
        return False
    source = normalize_unit(from_unit)
    target = normalize_unit(to_unit)
    if source == target:
        return True
    return any(
        source in table and target in table
        for table in (MASS_TO_GRAMS, VOLUME_TO_MILLILITERS)
    )
