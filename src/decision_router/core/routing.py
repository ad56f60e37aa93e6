from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from decision_router.core.deferred import settle
from decision_router.core.events import RoutingEvent
from decision_router.core.exceptions import InvalidRoute
from decision_router.core.match import DEFAULT_REASON


Handler = Callable[[Any], Any]
Action = Callable[[], Any]


class ActionRoute(BaseModel):
    """A decision to run `action`, with a confidence score in [0, 1].

    Producing an `ActionRoute` never runs its action; see `run_route`.
    """

    model_config = ConfigDict(frozen=True)

    type: Literal["action"] = "action"
    action: Callable[[], Any] = Field(description="Zero-argument callable returning a deferred value.")
    score: float = Field(
        default=1.0,
        ge=0.0,
        le=1.0,
        description="Confidence in the route, 0.0-1.0.",
    )


class NoRoute(BaseModel):
    """A decision that nothing applies."""

    model_config = ConfigDict(frozen=True)

    type: Literal["no"] = "no"
    reason: str = Field(default=DEFAULT_REASON, description="Why no route was found.")


Route = Annotated[Union[ActionRoute, NoRoute], Field(discriminator="type")]

GetRoute = Callable[[Any], Awaitable[Union[ActionRoute, NoRoute]]]


def _check_score(score: float) -> float:
    if isinstance(score, bool) or not isinstance(score, (int, float)) or not 0.0 <= score <= 1.0:
        raise InvalidRoute(f"Route score must be a number in [0, 1], got {score!r}.")
    return float(score)


def action_route(action: Action, score: float = 1.0) -> ActionRoute:
    _check_score(score)
    try:
        return ActionRoute(action=action, score=score)
    except ValidationError as exc:
        raise InvalidRoute(str(exc)) from exc


def no_route(reason: str = DEFAULT_REASON) -> NoRoute:
    return NoRoute(reason=reason)


def combine_score(score: float, other_score: float) -> float:
    return score * other_score


def with_score(route: ActionRoute, score: float) -> ActionRoute:
    """Return `route` with `score`, or `route` itself if the score is unchanged."""
    if route.score == score:
        return route
    return route.model_copy(update={"score": _check_score(score)})


def route_with_combined_score(route: ActionRoute, new_score: float) -> ActionRoute:
    return with_score(route, combine_score(new_score, route.score))


class Router:
    """Resolves a routable to exactly one `ActionRoute` or `NoRoute`.

    Routers are built once from their children and are stateless between
    calls; `get_route` may be awaited concurrently for different routables.
    """

    def __init__(self, get_route: GetRoute) -> None:
        self._get_route = get_route

    async def get_route(self, routable: Any) -> ActionRoute | NoRoute:
        return await self._get_route(routable)

    @classmethod
    def do(cls, handler: Handler, score: float = 1.0) -> Router:
        """A router that always routes to `handler(routable)`."""
        score = _check_score(score)

        async def get_route(routable: Any) -> ActionRoute | NoRoute:
            return action_route(lambda: handler(routable), score)

        return cls(get_route)

    @classmethod
    def no(cls, reason: str = DEFAULT_REASON) -> Router:
        """A router that never routes."""

        async def get_route(routable: Any) -> ActionRoute | NoRoute:
            return no_route(reason)

        return cls(get_route)

    def before(self, handler: Handler) -> Router:
        from decision_router.core.combinators import before

        return before(handler, self)

    def after(self, handler: Handler) -> Router:
        from decision_router.core.combinators import after

        return after(handler, self)

    def default_to(self, get_default_router: Callable[[str], Router]) -> Router:
        from decision_router.core.combinators import default

        return default(self, get_default_router)


def routerize(router_or_handler: Router | Handler) -> Router:
    """Wrap a bare handler in `Router.do`; routers pass through untouched."""
    if isinstance(router_or_handler, Router):
        return router_or_handler
    if callable(router_or_handler):
        return Router.do(router_or_handler)
    raise TypeError(f"Expected a Router or a handler, got {type(router_or_handler).__name__}.")


def _emit(
    on_event: Optional[Callable[[RoutingEvent], None]],
    log: logging.Logger,
    event: RoutingEvent,
) -> None:
    if on_event:
        try:
            on_event(event)
        except Exception:
            # Observability hooks should not break routing.
            log.debug("Routing event hook failed", exc_info=True)
    if event.error:
        log.debug("routing.%s error=%s payload=%s", event.kind, event.error, event.payload)
    else:
        log.debug("routing.%s payload=%s", event.kind, event.payload)


async def run_route(
    routable: Any,
    router: Router | Handler,
    *,
    on_event: Optional[Callable[[RoutingEvent], None]] = None,
    logger: Optional[logging.Logger] = None,
) -> bool:
    """Resolve a route for `routable` and run its action.

    Returns True if an action ran to completion, False on a `NoRoute`.
    Failures raised by the action propagate after an `action_failed` event.
    """
    log = logger or logging.getLogger(__name__)
    route = await routerize(router).get_route(routable)

    if isinstance(route, NoRoute):
        _emit(on_event, log, RoutingEvent("no_route", {"reason": route.reason}, route=route))
        return False

    _emit(on_event, log, RoutingEvent("route_resolved", {"score": route.score}, route=route))
    try:
        results = await settle(route.action())
    except Exception as exc:
        _emit(on_event, log, RoutingEvent("action_failed", {"score": route.score}, route=route, error=exc))
        raise
    _emit(
        on_event,
        log,
        RoutingEvent("action_completed", {"score": route.score, "results": len(results)}, route=route),
    )
    return True
