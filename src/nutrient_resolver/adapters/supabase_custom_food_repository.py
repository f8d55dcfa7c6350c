"""Supabase implementation of the user-private food store."""

from dataclasses import dataclass

from supabase import Client

from nutrient_resolver.domain.foods import PrivateFood, PrivateRow
from nutrient_resolver.services.stores import PrivateFoodStore


@dataclass
class SupabaseCustomFoodRepository(PrivateFoodStore):
    """Supabase-backed store of user-created foods."""

    client: Client

    def search_private(self, user_id: str, query: str, limit: int) -> list[PrivateRow]:
        """Search a user's foods by name, then by brand."""
        pattern = f"%{escape_like(query)}%"
        rows: dict[str, PrivateRow] = {}
        for column in ("name", "brand"):
            response = (
                self.client.table("custom_foods")
                .select("id, name, brand")
                .eq("user_id", user_id)
                .ilike(column, pattern)
                .limit(limit)
                .execute()
            )
            for row in response.data or []:
                parsed = _parse_row(row)
                rows.setdefault(parsed.id, parsed)
        return list(rows.values())[:limit]

    def get_private_by_id(self, user_id: str, food_id: str) -> PrivateFood | None:
        """Return one of the user's foods with its nutrient map."""
        response = (
            self.client.table("custom_foods")
            .select("*")
            .eq("user_id", user_id)
            .eq("id", food_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        parsed = _parse_row(row)
        return PrivateFood(
            id=parsed.id,
            name=parsed.name,
            brand=parsed.brand,
            nutrients=_parse_nutriments(row.get("nutriments")),
        )


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so user input matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _parse_row(row: dict[str, object]) -> PrivateRow:
    brand = row.get("brand")
    return PrivateRow(
        id=str(row["id"]),
        name=str(row.get("name") or ""),
        brand=str(brand) if brand else None,
    )


def _parse_nutriments(raw: object) -> dict[str, float]:
    """Keep numeric entries of a stored nutrient map."""
    if not isinstance(raw, dict):
        return {}
    return {
        str(key): float(value)
        for key, value in raw.items()
        if isinstance(value, int | float) and not isinstance(value, bool)
    }
