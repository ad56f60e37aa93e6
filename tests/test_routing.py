from __future__ import annotations

import pytest
from pydantic import TypeAdapter

from decision_router.core import (
    ActionRoute,
    InvalidRoute,
    NoRoute,
    Route,
    Router,
    RoutingEvent,
    action_route,
    combine_score,
    no_route,
    route_with_combined_score,
    routerize,
    run_route,
    with_score,
)


def test_action_route_does_not_run_its_action() -> None:
    calls: list[str] = []
    route = action_route(lambda: calls.append("ran"))

    assert route.type == "action"
    assert route.score == 1.0
    assert calls == []


@pytest.mark.parametrize("score", [1.5, -0.1, "1"])
def test_action_route_rejects_bad_scores(score) -> None:
    with pytest.raises(InvalidRoute) as excinfo:
        action_route(lambda: None, score)
    assert isinstance(excinfo.value, ValueError)


def test_no_route_defaults_reason() -> None:
    route = no_route()
    assert route.type == "no"
    assert route.reason == "none"
    assert no_route("nothing here").reason == "nothing here"


def test_route_union_is_discriminated_on_type() -> None:
    adapter = TypeAdapter(Route)
    parsed = adapter.validate_python({"type": "no", "reason": "x"})
    assert parsed == NoRoute(reason="x")


def test_combine_score_multiplies() -> None:
    assert combine_score(0.5, 0.8) == pytest.approx(0.4)


def test_with_same_score_returns_same_instance() -> None:
    route = action_route(lambda: None, 0.6)
    assert with_score(route, 0.6) is route
    assert route_with_combined_score(route, 1.0) is route


def test_combined_score_copies_route() -> None:
    action = lambda: None  # noqa: E731
    route = action_route(action, 0.8)
    combined = route_with_combined_score(route, 0.5)

    assert combined is not route
    assert combined.score == pytest.approx(0.4)
    assert combined.action is action
    assert route.score == 0.8


def test_router_do_routes_handler_with_score() -> None:
    seen: list[str] = []
    router = Router.do(lambda routable: seen.append(routable), score=0.7)

    route = _run(router.get_route("hello"))
    assert isinstance(route, ActionRoute)
    assert route.score == 0.7
    assert seen == []

    route.action()
    assert seen == ["hello"]


def test_router_do_rejects_bad_score() -> None:
    with pytest.raises(InvalidRoute):
        Router.do(lambda routable: None, score=2)


def test_router_no_never_routes() -> None:
    route = _run(Router.no("closed").get_route("hello"))
    assert route == NoRoute(reason="closed")


def test_routerize() -> None:
    router = Router.no()
    assert routerize(router) is router
    assert isinstance(routerize(lambda routable: None), Router)
    with pytest.raises(TypeError):
        routerize(5)


def test_run_route_runs_action_and_emits_events() -> None:
    seen: list[str] = []
    events: list[RoutingEvent] = []

    routed = _run(run_route("hi", lambda routable: seen.append(routable), on_event=events.append))

    assert routed is True
    assert seen == ["hi"]
    assert [e.kind for e in events] == ["route_resolved", "action_completed"]


def test_run_route_returns_false_on_no_route() -> None:
    events: list[RoutingEvent] = []

    routed = _run(run_route("hi", Router.no("closed"), on_event=events.append))

    assert routed is False
    assert [e.kind for e in events] == ["no_route"]
    assert events[0].payload == {"reason": "closed"}


def test_run_route_drains_async_actions() -> None:
    seen: list[int] = []

    async def stream(routable):
        for i in range(3):
            seen.append(i)
            yield i

    assert _run(run_route("hi", stream)) is True
    assert seen == [0, 1, 2]


def test_run_route_propagates_action_failure() -> None:
    events: list[RoutingEvent] = []

    def explode(routable):
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError, match="boom"):
        _run(run_route("hi", explode, on_event=events.append))

    assert [e.kind for e in events] == ["route_resolved", "action_failed"]
    assert isinstance(events[-1].error, RuntimeError)


def test_run_route_ignores_failing_event_hook() -> None:
    def hook(event: RoutingEvent) -> None:
        raise ValueError("bad hook")

    assert _run(run_route("hi", lambda routable: None, on_event=hook)) is True


def _run(coro):
    import asyncio

    return asyncio.run(coro)
