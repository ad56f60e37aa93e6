"""Combinators that build routers out of routers, handlers and matchers."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from typing import Any, Optional, Union

from decision_router.core.deferred import cancel_pending, first_value, iterate, settle, start_task
from decision_router.core.match import NoMatch, normalize_match_result, normalize_predicate_result
from decision_router.core.routing import (
    ActionRoute,
    Handler,
    NoRoute,
    Router,
    combine_score,
    no_route,
    route_with_combined_score,
    routerize,
)

logger = logging.getLogger(__name__)

Matcher = Callable[[Any], Any]
Predicate = Callable[[Any], Any]
RouterLike = Union[Router, Handler]

_MIN_ROUTE = ActionRoute(
    action=lambda: logger.warning("best: the minimum route's action should never be called"),
    score=0.0,
)


def _routerize_all(routers: tuple[Optional[RouterLike], ...]) -> list[Router]:
    return [routerize(router) for router in routers if router is not None]


def first(*routers: Optional[RouterLike]) -> Router:
    """Try `routers` in order and return the first actionable route.

    Routers after the one that routes are never consulted.
    """
    candidates = _routerize_all(routers)

    async def get_route(routable: Any) -> ActionRoute | NoRoute:
        for i, router in enumerate(candidates):
            logger.debug("first: trying router #%d", i)
            route = await router.get_route(routable)
            logger.debug("first: router #%d returned %s", i, route.type)
            if isinstance(route, ActionRoute):
                return route
        return no_route("try_in_order")

    return Router(get_route)


def best(*routers: Optional[RouterLike]) -> Router:
    """Resolve `routers` concurrently and return the highest-scoring route.

    The first candidate to reach a score wins ties. A candidate scoring 1.0
    ends the search: candidates not yet started are skipped and the ones
    still in flight are cancelled. Each candidate runs eagerly until it first
    suspends, so a certain match that needs no I/O stops the search before
    the next candidate starts. Any candidate failure propagates.
    """
    candidates = _routerize_all(routers)

    async def get_route(routable: Any) -> ActionRoute | NoRoute:
        best_route = _MIN_ROUTE
        tasks: list[asyncio.Task] = []
        consumed: set[asyncio.Task] = set()

        def fold_settled() -> bool:
            nonlocal best_route
            for i, task in enumerate(tasks):
                if task in consumed or not task.done():
                    continue
                consumed.add(task)
                route = task.result()
                if not isinstance(route, ActionRoute):
                    logger.debug("best: router #%d returned no route", i)
                    continue
                logger.debug("best: router #%d returned score %s", i, route.score)
                if route.score > best_route.score:
                    best_route = route
                    if best_route.score >= 1.0:
                        return True
            return False

        try:
            for i, router in enumerate(candidates):
                logger.debug("best: trying router #%d", i)
                tasks.append(start_task(router.get_route(routable)))
                if fold_settled():
                    return best_route

            while len(consumed) < len(tasks):
                await asyncio.wait(
                    [task for task in tasks if task not in consumed],
                    return_when=asyncio.FIRST_COMPLETED,
                )
                if fold_settled():
                    return best_route
        finally:
            await cancel_pending(tasks)
            for task in tasks:
                if task not in consumed and not task.cancelled():
                    task.exception()

        if best_route.score > 0:
            return best_route
        return no_route("try_in_score_order")

    return Router(get_route)


def noop(handler: Handler) -> Router:
    """Run `handler` while routing, then decline to route."""

    async def get_route(routable: Any) -> ActionRoute | NoRoute:
        await settle(handler(routable))
        return no_route("noop")

    return Router(get_route)


async def _route_else(else_router: Optional[Router], routable: Any, reason: str) -> ActionRoute | NoRoute:
    if else_router is None:
        return no_route(reason)
    return await else_router.get_route(routable)


def if_match(*stages: Any, else_: Optional[RouterLike] = None) -> Router:
    """Chain matchers into a router: `if_match(m1, m2, ..., then)`.

    Each matcher receives the previous matcher's value (the first receives
    the routable); `then` is resolved against the last value. Match scores
    multiply along the chain and onto the resulting route. On the first
    failure, `else_` is resolved against the original routable, or a
    `NoRoute` carrying the failure's reason is returned.
    """
    if not stages:
        raise TypeError("if_match() needs at least a router or handler.")
    *matchers, then = stages
    then_router = routerize(then)
    else_router = routerize(else_) if else_ is not None else None

    async def get_route(routable: Any) -> ActionRoute | NoRoute:
        value = routable
        score = 1.0
        for i, matcher in enumerate(matchers):
            result = normalize_match_result(await first_value(matcher(value)), value)
            if isinstance(result, NoMatch):
                logger.debug("if_match: matcher #%d failed: %s", i, result.reason)
                return await _route_else(else_router, routable, result.reason)
            value = result.value
            score = combine_score(score, result.score)

        route = await then_router.get_route(value)
        if isinstance(route, ActionRoute):
            return route_with_combined_score(route, score)
        return route

    return Router(get_route)


def if_true(predicate: Predicate, then: RouterLike, else_: Optional[RouterLike] = None) -> Router:
    """Route to `then` when `predicate(routable)` holds, else to `else_`.

    Raises `InvalidPredicateResult` if the predicate returns anything but a
    boolean outcome.
    """
    then_router = routerize(then)
    else_router = routerize(else_) if else_ is not None else None

    async def get_route(routable: Any) -> ActionRoute | NoRoute:
        result = normalize_predicate_result(await first_value(predicate(routable)), routable)
        if isinstance(result, NoMatch):
            return await _route_else(else_router, routable, result.reason)
        route = await then_router.get_route(routable)
        if isinstance(route, ActionRoute):
            return route_with_combined_score(route, result.score)
        return route

    return Router(get_route)


def before(handler: Handler, router: RouterLike) -> Router:
    """Run `handler` right before the routed action. Scores are untouched."""
    inner = routerize(router)

    async def get_route(routable: Any) -> ActionRoute | NoRoute:
        route = await inner.get_route(routable)
        if isinstance(route, NoRoute):
            return route

        async def action():
            await settle(handler(routable))
            async for item in iterate(route.action()):
                yield item

        return route.model_copy(update={"action": action})

    return Router(get_route)


def after(handler: Handler, router: RouterLike) -> Router:
    """Run `handler` right after the routed action. Scores are untouched."""
    inner = routerize(router)

    async def get_route(routable: Any) -> ActionRoute | NoRoute:
        route = await inner.get_route(routable)
        if isinstance(route, NoRoute):
            return route

        async def action():
            async for item in iterate(route.action()):
                yield item
            await settle(handler(routable))

        return route.model_copy(update={"action": action})

    return Router(get_route)


def default(main: RouterLike, get_default_router: Callable[[str], RouterLike]) -> Router:
    """Fall back to `get_default_router(reason)` when `main` does not route.

    The fallback's route is returned as is; no score combination happens.
    """
    main_router = routerize(main)

    async def get_route(routable: Any) -> ActionRoute | NoRoute:
        route = await main_router.get_route(routable)
        if isinstance(route, ActionRoute):
            return route
        return await routerize(get_default_router(route.reason)).get_route(routable)

    return Router(get_route)


def switch(get_key: Callable[[Any], Any], routers: Mapping[Any, RouterLike]) -> Router:
    """Route through `routers[get_key(routable)]`."""
    by_key = {key: routerize(router) for key, router in routers.items()}

    async def get_route(routable: Any) -> ActionRoute | NoRoute:
        key = await first_value(get_key(routable))
        try:
            router = by_key.get(key)
        except TypeError:
            # unhashable keys cannot be in the mapping
            router = None
        if router is None:
            logger.debug("switch: no router for key %r", key)
            return no_route("key not found")
        return await router.get_route(routable)

    return Router(get_route)
