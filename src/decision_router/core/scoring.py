"""Ranking helpers for disambiguating between several scored routes."""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError

from decision_router.core.combinators import RouterLike
from decision_router.core.deferred import cancel_pending, start_task
from decision_router.core.exceptions import InvalidRankingOptions
from decision_router.core.routing import ActionRoute, routerize


class TopOptions(BaseModel):
    max_results: Optional[int] = Field(default=None, ge=1, description="Keep at most this many routes.")
    tolerance: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Keep routes scoring within this distance of the best score.",
    )


async def rank(routable: Any, *routers: Optional[RouterLike]) -> list[ActionRoute]:
    """Resolve every router concurrently; return actionable routes, best first.

    Equal scores keep the order the routers were given in. If any router
    fails, the others are cancelled and the failure propagates.
    """
    candidates = [routerize(router) for router in routers if router is not None]
    tasks = [start_task(router.get_route(routable)) for router in candidates]
    try:
        routes = await asyncio.gather(*tasks)
    finally:
        await cancel_pending(tasks)
    actionable = [route for route in routes if isinstance(route, ActionRoute) and route.score > 0]
    return sorted(actionable, key=lambda route: route.score, reverse=True)


def top(
    routes: list[ActionRoute],
    *,
    max_results: Optional[int] = None,
    tolerance: float = 0.0,
) -> list[ActionRoute]:
    """Keep the leading `routes` (sorted best first) that are close to the best score."""
    try:
        options = TopOptions(max_results=max_results, tolerance=tolerance)
    except ValidationError as exc:
        raise InvalidRankingOptions(str(exc)) from exc

    if not routes:
        return []
    high_score = routes[0].score
    kept: list[ActionRoute] = []
    for route in routes:
        if options.max_results is not None and len(kept) >= options.max_results:
            break
        if route.score + options.tolerance < high_score:
            break
        kept.append(route)
    return kept
