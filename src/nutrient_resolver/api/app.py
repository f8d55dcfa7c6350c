"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict

from fastapi import FastAPI, Header, HTTPException, Query, Request, status

from nutrient_resolver.api.models import (
    GoalPayload,
    MacroEditPayload,
    MacroRebalancePayload,
    MacroStatePayload,
)
from nutrient_resolver.app_logging import configure_logging
from nutrient_resolver.containers import AppContainer
from nutrient_resolver.domain.foods import (
    DataSourceMode,
    FoodNutrientProfile,
    SearchResult,
)
from nutrient_resolver.domain.goals import (
    GoalUpdate,
    GoalValidationError,
    UnknownNutrientError,
    goals_to_payload,
)
from nutrient_resolver.services.foods import extract_nutrients
from nutrient_resolver.services.macros import (
    MACRO_FIELDS,
    MacroState,
    rebalance,
    set_energy,
    set_grams,
    set_percentage,
)


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/nutrients")
    async def list_nutrients(request: Request) -> dict[str, object]:
        """Return the canonical nutrient registry."""
        state_container: AppContainer = request.app.state.container
        return {
            "nutrients": [
                {"key": key, **asdict(metadata)}
                for key, metadata in state_container.registry.all_entries()
            ]
        }

    @app.get("/nutrients/hierarchy")
    async def nutrient_hierarchy(request: Request) -> dict[str, object]:
        """Return the parent tree and the keys grouped by category."""
        registry = request.app.state.container.registry
        return {
            "roots": registry.roots(),
            "children": {
                parent: list(children)
                for parent, children in registry.hierarchy.items()
            },
            "categories": {
                category.value: keys
                for category, keys in registry.by_category().items()
            },
        }

    @app.get("/nutrients/normalize")
    async def normalize_nutrient(name: str, request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        return {"name": name, "key": state_container.normalizer.normalize(name)}

    @app.get("/foods/search")
    async def search_foods(
        request: Request,
        q: str,
        limit: int = 10,
        data_source: DataSourceMode = DataSourceMode.BRANDED,
        x_user_id: str | None = Header(default=None),
    ) -> dict[str, object]:
        """Search every applicable store and return merged results."""
        state_container: AppContainer = request.app.state.container
        outcome = await state_container.search_service.search_detailed(
            q, limit=limit, data_source=data_source, user_id=x_user_id
        )
        if outcome.failed_sources:
            logger.info(
                "Search for %r answered without: %s",
                q,
                ", ".join(outcome.failed_sources),
            )
        return {
            "results": [_search_result_payload(result) for result in outcome.results],
            "failed_sources": list(outcome.failed_sources),
        }

    @app.get("/foods/{code}")
    async def get_food(  # noqa: PLR0913
        code: str,
        request: Request,
        data_source: DataSourceMode = DataSourceMode.BRANDED,
        quantity: float | None = None,
        unit: str = "g",
        x_user_id: str | None = Header(default=None),
    ) -> dict[str, object]:
        """Return a food's normalized nutrients, optionally scaled."""
        state_container: AppContainer = request.app.state.container
        food_service = state_container.food_service
        if quantity is None:
            profile = await food_service.get_food(
                code, data_source=data_source, user_id=x_user_id
            )
        else:
            profile = await food_service.get_scaled_food(
                code, quantity, unit, data_source=data_source, user_id=x_user_id
            )
        if profile is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return _profile_payload(profile, state_container)

    @app.get("/goals")
    async def get_goals(
        request: Request, x_user_id: str | None = Header(default=None)
    ) -> dict[str, object]:
        user_id = _require_user(x_user_id)
        state_container: AppContainer = request.app.state.container
        goals = await state_container.goal_service.get_goals(user_id)
        return {"goals": goals_to_payload(goals)}

    @app.get("/goals/targets")
    async def get_targets(
        request: Request,
        name: list[str] | None = Query(default=None),
        x_user_id: str | None = Header(default=None),
    ) -> dict[str, object]:
        """Return effective targets, for every nutrient or the named ones.

        Names may be any source spelling; they are normalized first.
        """
        user_id = _require_user(x_user_id)
        state_container: AppContainer = request.app.state.container
        if not name:
            targets = await state_container.goal_service.resolved_targets(user_id)
            return {"targets": targets}
        resolver = await state_container.goal_service.target_resolver(user_id)
        goals: dict[str, dict[str, float] | None] = {}
        for nutrient_name in name:
            goal = resolver.resolve_goal(nutrient_name)
            goals[nutrient_name] = goal.to_dict() if goal is not None else None
        return {
            "targets": {
                nutrient_name: resolver.resolve_target(nutrient_name)
                for nutrient_name in name
            },
            "goals": goals,
        }

    @app.put("/goals/macros")
    async def apply_macro_state(
        payload: MacroStatePayload,
        request: Request,
        x_user_id: str | None = Header(default=None),
    ) -> dict[str, object]:
        """Save the macro editor state as energy and macro targets."""
        user_id = _require_user(x_user_id)
        state_container: AppContainer = request.app.state.container
        goals = await state_container.goal_service.apply_macro_state(
            user_id, payload.to_state()
        )
        return {"goals": goals_to_payload(goals)}

    @app.put("/goals/{key}")
    async def update_goal(
        key: str,
        payload: GoalPayload,
        request: Request,
        x_user_id: str | None = Header(default=None),
    ) -> dict[str, object]:
        """Validate a goal edit, propagate it upward and persist the result."""
        user_id = _require_user(x_user_id)
        state_container: AppContainer = request.app.state.container
        try:
            update = await state_container.goal_service.update_goal(
                user_id, key, payload.to_goal()
            )
        except UnknownNutrientError as exc:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)
            ) from exc
        except GoalValidationError as exc:
            raise HTTPException(
                status_code=422,
                detail={"key": exc.key, "message": exc.message},
            ) from exc
        return _goal_update_payload(update)

    @app.post("/macros/rebalance")
    async def rebalance_macros(payload: MacroRebalancePayload) -> dict[str, object]:
        """Rebalance macro percentages after one field was edited."""
        if payload.changed_field not in MACRO_FIELDS:
            raise HTTPException(
                status_code=422,
                detail=f"Unknown macro field: {payload.changed_field}",
            )
        return asdict(rebalance(payload.to_state(), payload.changed_field))

    @app.get("/macros/state")
    async def get_macro_state(
        request: Request, x_user_id: str | None = Header(default=None)
    ) -> dict[str, object]:
        """Return the macro editor seeded from the user's targets."""
        user_id = _require_user(x_user_id)
        state_container: AppContainer = request.app.state.container
        state = await state_container.goal_service.macro_state(user_id)
        return asdict(state)

    @app.post("/macros/edit")
    async def edit_macros(payload: MacroEditPayload) -> dict[str, object]:
        """Apply one energy, gram or percentage edit to the editor state."""
        try:
            state = _apply_macro_edit(payload)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return asdict(state)

    return app


def _apply_macro_edit(payload: MacroEditPayload) -> MacroState:
    state = payload.to_state()
    if payload.field == "energy":
        return set_energy(state, payload.value)
    if payload.unit == "g":
        return set_grams(state, payload.field, payload.value)
    return set_percentage(state, payload.field, payload.value)


def _require_user(x_user_id: str | None) -> str:
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    return x_user_id


def _search_result_payload(result: SearchResult) -> dict[str, object]:
    return {
        "code": result.code,
        "name": result.name,
        "brand": result.brand,
        "category": result.category,
        "quality_grade": result.quality_grade,
        "popularity": result.popularity,
        "provenance": result.provenance.value,
        "source": result.source.value,
    }


def _profile_payload(
    profile: FoodNutrientProfile, container: AppContainer
) -> dict[str, object]:
    extracted = extract_nutrients(profile, container.registry)
    return {
        "code": profile.code,
        "name": profile.name,
        "brand": profile.brand,
        "source": profile.source.value,
        "serving_size": profile.serving_size,
        "quantity_g": profile.quantity_g,
        "nutrients": [asdict(nutrient) for nutrient in profile.nutrients],
        "values": extracted.values,
        "unconverted_units": extracted.unconverted,
    }


def _goal_update_payload(update: GoalUpdate) -> dict[str, object]:
    return {
        "goals": goals_to_payload(update.goals),
        "notices": [
            {
                "parent": notice.parent,
                "child": notice.child,
                "new_target": notice.new_target,
                "message": notice.message,
            }
            for notice in update.notices
        ],
    }
