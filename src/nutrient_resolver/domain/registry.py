"""Canonical nutrient registry.

The registry is a read-only table built once per process. Every data source
maps its nutrient names onto these keys, goals are keyed by them, and the
``parent`` links form the hierarchy that goal propagation walks.
"""

from collections.abc import Iterator, Mapping
from functools import lru_cache
from types import MappingProxyType

from nutrient_resolver.domain.nutrients import NutrientCategory, NutrientMetadata

TOP_LEVEL_ENERGY_PATH = "tee"

MACRO = NutrientCategory.MACRO
VITAMIN = NutrientCategory.VITAMIN
MINERAL = NutrientCategory.MINERAL
AMINO_ACID = NutrientCategory.AMINO_ACID
OTHER = NutrientCategory.OTHER


class RegistryError(Exception):
    """Raised when registry definitions are inconsistent."""


def _entry(
    label: str,
    unit: str,
    clinical_path: str,
    aliases: tuple[str, ...],
    category: NutrientCategory,
    parent: str | None = None,
) -> NutrientMetadata:
    return NutrientMetadata(
        label=label,
        unit=unit,
        clinical_path=clinical_path,
        aliases=aliases,
        category=category,
        parent=parent,
    )


def _amino_acid(label: str, path_name: str, *aliases: str) -> NutrientMetadata:
    return _entry(
        label,
        "g",
        f"nutrients.protein.{path_name}",
        aliases,
        AMINO_ACID,
        parent="protein",
    )


def _sugar(label: str, path_name: str, *aliases: str) -> NutrientMetadata:
    return _entry(
        label,
        "g",
        f"nutrients.carbohydrate.sugar.{path_name}",
        aliases,
        MACRO,
        parent="sugar",
    )


NUTRIENT_DEFINITIONS: dict[str, NutrientMetadata] = {
    # Energy
    "energy": _entry(
        "Energy",
        "kcal",
        TOP_LEVEL_ENERGY_PATH,
        ("energy", "energy-kcal", "Energy", "Energy-kcal", "energy_kCal"),
        MACRO,
    ),
    # Carbohydrate group
    "carbohydrate": _entry(
        "Carbohydrate",
        "g",
        "nutrients.carbohydrate.total",
        (
            "carbohydrates",
            "carbohydrates_100g",
            "Carbohydrate, by difference",
            "Carbohydrate, by summation",
            "carbohydrate",
        ),
        MACRO,
    ),
    "starch": _entry(
        "Starch",
        "g",
        "nutrients.carbohydrate.starch",
        ("starch", "Starch"),
        MACRO,
        parent="carbohydrate",
    ),
    "fiber": _entry(
        "Dietary Fiber",
        "g",
        "nutrients.carbohydrate.fiber.total",
        (
            "fiber",
            "Fiber, total dietary",
            "Total dietary fiber (AOAC 2011.25)",
            "fiber_total",
        ),
        MACRO,
        parent="carbohydrate",
    ),
    "fiber_soluble": _entry(
        "Soluble Fiber",
        "g",
        "nutrients.carbohydrate.fiber.soluble",
        ("fiber_soluble", "Fiber, soluble"),
        MACRO,
        parent="fiber",
    ),
    "fiber_insoluble": _entry(
        "Insoluble Fiber",
        "g",
        "nutrients.carbohydrate.fiber.insoluble",
        ("fiber_insoluble", "Fiber, insoluble"),
        MACRO,
        parent="fiber",
    ),
    "sugar": _entry(
        "Total Sugars",
        "g",
        "nutrients.carbohydrate.sugar.total",
        ("sugars", "Sugars, Total", "Total Sugars", "sugars_100g"),
        MACRO,
        parent="carbohydrate",
    ),
    "sugar_added": _sugar(
        "Added Sugars",
        "added",
        "added_sugar",
        "added sugars",
        "Sugars, added",
        "sugars_added",
        "addedSugar",
    ),
    "sugar_alcohol": _sugar(
        "Sugar Alcohol", "alcohol", "sugar_alcohol", "Sugar alcohols"
    ),
    "fructose": _sugar("Fructose", "fructose", "fructose", "Fructose"),
    "sucrose": _sugar("Sucrose", "sucrose", "sucrose", "Sucrose"),
    "glucose": _sugar("Glucose", "glucose", "glucose", "Glucose"),
    "lactose": _sugar("Lactose", "lactose", "lactose", "Lactose"),
    "maltose": _sugar("Maltose", "maltose", "maltose", "Maltose"),
    "galactose": _sugar("Galactose", "galactose", "galactose", "Galactose"),
    # Protein group
    "protein": _entry(
        "Protein",
        "g",
        "nutrients.protein.total",
        ("protein", "proteins", "Protein"),
        MACRO,
    ),
    "alanine": _amino_acid("Alanine", "alanine", "alanine", "Alanine"),
    "arginine": _amino_acid("Arginine", "arginine", "arginine", "Arginine"),
    "aspartic_acid": _amino_acid(
        "Aspartic Acid", "asparticAcid", "aspartic_acid", "Aspartic acid", "asparticacid"
    ),
    "cystine": _amino_acid("Cystine", "cystine", "cystine", "Cystine"),
    "glutamic_acid": _amino_acid(
        "Glutamic Acid", "glutamicAcid", "glutamic_acid", "Glutamic acid", "glutamicacid"
    ),
    "glutamine": _amino_acid("Glutamine", "glutamine", "glutamine", "Glutamine"),
    "glycine": _amino_acid("Glycine", "glycine", "glycine", "Glycine"),
    "histidine": _amino_acid("Histidine", "histidine", "histidine", "Histidine"),
    "hydroxyproline": _amino_acid(
        "Hydroxyproline", "hydroxyproline", "hydroxyproline", "Hydroxyproline"
    ),
    "isoleucine": _amino_acid("Isoleucine", "isoleucine", "isoleucine", "Isoleucine"),
    "leucine": _amino_acid("Leucine", "leucine", "leucine", "Leucine"),
    "lysine": _amino_acid("Lysine", "lysine", "lysine", "Lysine"),
    "methionine": _amino_acid("Methionine", "methionine", "methionine", "Methionine"),
    "phenylalanine": _amino_acid(
        "Phenylalanine", "phenylalanine", "phenylalanine", "Phenylalanine"
    ),
    "proline": _amino_acid("Proline", "proline", "proline", "Proline"),
    "serine": _amino_acid("Serine", "serine", "serine", "Serine"),
    "threonine": _amino_acid("Threonine", "threonine", "threonine", "Threonine"),
    "tryptophan": _amino_acid("Tryptophan", "tryptophan", "tryptophan", "Tryptophan"),
    "tyrosine": _amino_acid("Tyrosine", "tyrosine", "tyrosine", "Tyrosine"),
    "valine": _amino_acid("Valine", "valine", "valine", "Valine"),
    # Fat group
    "fat": _entry(
        "Total Fat",
        "g",
        "nutrients.fat.total",
        ("fat", "Total lipid (fat)", "Total fat (NLEA)", "total fat", "FAT"),
        MACRO,
    ),
    "fat_saturated": _entry(
        "Saturated Fat",
        "g",
        "nutrients.fat.saturated",
        (
            "fat_saturated",
            "Fatty acids, total saturated",
            "saturated-fat",
            "saturated fat",
        ),
        MACRO,
        parent="fat",
    ),
    "fat_trans": _entry(
        "Trans Fat",
        "g",
        "nutrients.fat.trans",
        ("fat_trans", "Fatty acids, total trans", "trans-fat", "trans fat"),
        MACRO,
        parent="fat",
    ),
    "fat_monounsaturated": _entry(
        "Monounsaturated Fat",
        "g",
        "nutrients.fat.monounsaturated",
        (
            "fat_monounsaturated",
            "Fatty acids, total monounsaturated",
            "monounsaturated",
        ),
        MACRO,
        parent="fat",
    ),
    "fat_polyunsaturated": _entry(
        "Polyunsaturated Fat",
        "g",
        "nutrients.fat.polyunsaturated",
        (
            "fat_polyunsaturated",
            "Fatty acids, total polyunsaturated",
            "polyunsaturated",
        ),
        MACRO,
        parent="fat",
    ),
    "omega3": _entry(
        "Omega-3",
        "g",
        "nutrients.fat.omega3",
        (
            "omega3",
            "omega-3",
            "alpha-linolenic",
            "PUFA 18:3 n-3 c,c,c (ALA)",
            "PUFA 20:5 n-3 (EPA)",
            "PUFA 22:6 n-3 (DHA)",
        ),
        MACRO,
        parent="fat",
    ),
    "omega6": _entry(
        "Omega-6",
        "g",
        "nutrients.fat.omega6",
        ("omega6", "omega-6", "linoleic", "PUFA 18:2 n-6 c,c", "PUFA 20:4 n-6"),
        MACRO,
        parent="fat",
    ),
    "cholesterol": _entry(
        "Cholesterol",
        "mg",
        "nutrients.fat.cholesterol",
        ("cholesterol", "Cholesterol"),
        MACRO,
        parent="fat",
    ),
    # Water
    "water": _entry("Water", "ml", "nutrients.water", ("water", "Water"), MACRO),
    # Vitamins
    "vitamin_a": _entry(
        "Vitamin A",
        "mcg",
        "nutrients.vitaminA",
        ("vitamin-a", "Vitamin A, RAE", "Vitamin A"),
        VITAMIN,
    ),
    "vitamin_c": _entry(
        "Vitamin C",
        "mg",
        "nutrients.vitaminC",
        ("vitamin-c", "Vitamin C, total ascorbic acid", "Vitamin C", "VITAMIN C"),
        VITAMIN,
    ),
    "vitamin_d": _entry(
        "Vitamin D",
        "mcg",
        "nutrients.vitaminD",
        ("vitamin-d", "Vitamin D (D2 + D3)", "Vitamin D"),
        VITAMIN,
    ),
    "vitamin_e": _entry(
        "Vitamin E",
        "mg",
        "nutrients.vitaminE",
        ("vitamin-e", "Vitamin E (alpha-tocopherol)", "Vitamin E"),
        VITAMIN,
    ),
    "vitamin_k": _entry(
        "Vitamin K",
        "mcg",
        "nutrients.vitaminK",
        ("vitamin-k", "Vitamin K (phylloquinone)", "Vitamin K", "VITAMIN K"),
        VITAMIN,
    ),
    "thiamin": _entry(
        "Thiamin (B1)", "mg", "nutrients.thiamin", ("thiamin", "Thiamin"), VITAMIN
    ),
    "riboflavin": _entry(
        "Riboflavin (B2)",
        "mg",
        "nutrients.riboflavin",
        ("riboflavin", "Riboflavin"),
        VITAMIN,
    ),
    "niacin": _entry(
        "Niacin (B3)", "mg", "nutrients.niacin", ("niacin", "Niacin"), VITAMIN
    ),
    "vitamin_b6": _entry(
        "Vitamin B6",
        "mg",
        "nutrients.vitaminB6",
        ("vitamin-b6", "Vitamin B-6"),
        VITAMIN,
    ),
    "folate": _entry(
        "Folate",
        "mcg",
        "nutrients.folate",
        ("folate", "folic-acid", "Folate, total"),
        VITAMIN,
    ),
    "vitamin_b12": _entry(
        "Vitamin B12",
        "mcg",
        "nutrients.vitaminB12",
        ("vitamin-b12", "Vitamin B-12"),
        VITAMIN,
    ),
    "choline": _entry(
        "Choline", "g", "nutrients.choline", ("choline", "Choline, total"), VITAMIN
    ),
    "pantothenic_acid": _entry(
        "Pantothenic Acid",
        "mg",
        "nutrients.pantothenicAcid",
        ("pantothenic-acid", "Pantothenic acid"),
        VITAMIN,
    ),
    "biotin": _entry("Biotin", "mcg", "nutrients.biotin", ("biotin", "Biotin"), VITAMIN),
    # Minerals
    "calcium": _entry(
        "Calcium", "mg", "nutrients.calcium", ("calcium", "Calcium, Ca"), MINERAL
    ),
    "chloride": _entry(
        "Chloride", "g", "nutrients.chloride", ("chloride", "Chloride, Cl"), MINERAL
    ),
    "chromium": _entry(
        "Chromium", "mcg", "nutrients.chromium", ("chromium", "Chromium, Cr"), MINERAL
    ),
    "copper": _entry(
        "Copper", "mcg", "nutrients.copper", ("copper", "Copper, Cu"), MINERAL
    ),
    "fluoride": _entry(
        "Fluoride", "mg", "nutrients.fluoride", ("fluoride", "Fluoride, F"), MINERAL
    ),
    "iodine": _entry("Iodine", "mcg", "nutrients.iodine", ("iodine", "Iodine, I"), MINERAL),
    "iron": _entry("Iron", "mg", "nutrients.iron", ("iron", "Iron, Fe"), MINERAL),
    "magnesium": _entry(
        "Magnesium",
        "mg",
        "nutrients.magnesium",
        ("magnesium", "Magnesium, Mg"),
        MINERAL,
    ),
    "manganese": _entry(
        "Manganese",
        "mg",
        "nutrients.manganese",
        ("manganese", "Manganese, Mn"),
        MINERAL,
    ),
    "molybdenum": _entry(
        "Molybdenum",
        "mcg",
        "nutrients.molybdenum",
        ("molybdenum", "Molybdenum, Mo"),
        MINERAL,
    ),
    "phosphorus": _entry(
        "Phosphorus",
        "mg",
        "nutrients.phosphorus",
        ("phosphorus", "Phosphorus, P"),
        MINERAL,
    ),
    "potassium": _entry(
        "Potassium",
        "mg",
        "nutrients.potassium",
        ("potassium", "Potassium, K"),
        MINERAL,
    ),
    "selenium": _entry(
        "Selenium", "mcg", "nutrients.selenium", ("selenium", "Selenium, Se"), MINERAL
    ),
    "sodium": _entry("Sodium", "mg", "nutrients.sodium", ("sodium", "Sodium, Na"), MINERAL),
    "zinc": _entry("Zinc", "mg", "nutrients.zinc", ("zinc", "Zinc, Zn"), MINERAL),
    # Carotenoids and other compounds
    "beta_carotene": _entry(
        "Beta-carotene",
        "mcg",
        "nutrients.vitaminA",
        ("beta-carotene", "Carotene, beta", "Beta-carotene"),
        VITAMIN,
    ),
    "lycopene": _entry(
        "Lycopene", "mcg", "nutrients.other.lycopene", ("lycopene", "Lycopene"), OTHER
    ),
    "lutein_zeaxanthin": _entry(
        "Lutein + Zeaxanthin",
        "mcg",
        "nutrients.other.luteinZeaxanthin",
        ("lutein_zeaxanthin", "Lutein + zeaxanthin", "Lutein + Zeaxanthin"),
        OTHER,
    ),
}


class NutrientRegistry:
    """Immutable lookup over nutrient definitions and their hierarchy."""

    def __init__(self, definitions: Mapping[str, NutrientMetadata]) -> None:
        self._entries: Mapping[str, NutrientMetadata] = MappingProxyType(
            dict(definitions)
        )
        parent_of: dict[str, str] = {}
        hierarchy: dict[str, list[str]] = {}
        for key, metadata in self._entries.items():
            if metadata.parent is None:
                continue
            parent_of[key] = metadata.parent
            hierarchy.setdefault(metadata.parent, []).append(key)
        self._parent_of: Mapping[str, str] = MappingProxyType(parent_of)
        self._hierarchy: Mapping[str, tuple[str, ...]] = MappingProxyType(
            {parent: tuple(children) for parent, children in hierarchy.items()}
        )

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> NutrientMetadata | None:
        """Return metadata for a canonical key, if defined."""
        return self._entries.get(key)

    def all_entries(self) -> list[tuple[str, NutrientMetadata]]:
        """Return every entry in definition order."""
        return list(self._entries.items())

    def by_category(self) -> dict[NutrientCategory, list[str]]:
        """Group keys by category, keeping definition order inside each group."""
        grouped: dict[NutrientCategory, list[str]] = {}
        for key, metadata in self._entries.items():
            grouped.setdefault(metadata.category, []).append(key)
        return grouped

    @property
    def hierarchy(self) -> Mapping[str, tuple[str, ...]]:
        """Parent key to its children, in definition order."""
        return self._hierarchy

    def parent_of(self, key: str) -> str | None:
        return self._parent_of.get(key)

    def children_of(self, key: str) -> tuple[str, ...]:
        return self._hierarchy.get(key, ())

    def ancestors(self, key: str) -> list[str]:
        """Return the parent chain of a key, nearest first."""
        chain: list[str] = []
        current = self._parent_of.get(key)
        while current is not None and current not in chain:
            chain.append(current)
            current = self._parent_of.get(current)
        return chain

    def roots(self) -> list[str]:
        """Keys without a parent, in definition order."""
        return [key for key in self._entries if key not in self._parent_of]

    def clinical_value(self, metrics: Mapping[str, object], key: str) -> float | None:
        """Resolve the recommended baseline for a key from a DRI record.

        Returns None when the key is unknown or any path segment is missing.
        """
        metadata = self._entries.get(key)
        if metadata is None or not metadata.clinical_path:
            return None
        if metadata.clinical_path == TOP_LEVEL_ENERGY_PATH:
            return _as_number(metrics.get(TOP_LEVEL_ENERGY_PATH))

        current: object = metrics
        for part in metadata.clinical_path.split("."):
            if not isinstance(current, Mapping) or part not in current:
                return None
            current = current[part]
        if not isinstance(current, Mapping):
            return None
        return _as_number(current.get("recommended"))

    def validate(self) -> None:
        """Check that parents exist and that no key is its own ancestor."""
        for key, parent in self._parent_of.items():
            if parent not in self._entries:
                raise RegistryError(f"{key} references unknown parent {parent}")
        for key in self._entries:
            seen = {key}
            current = self._parent_of.get(key)
            while current is not None:
                if current in seen:
                    raise RegistryError(f"Cycle in nutrient hierarchy at {key}")
                seen.add(current)
                current = self._parent_of.get(current)


def _as_number(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    return None


@lru_cache(maxsize=1)
def default_registry() -> NutrientRegistry:
    """Return the process-wide registry built from the static definitions."""
    return NutrientRegistry(NUTRIENT_DEFINITIONS)
