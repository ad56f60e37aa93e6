from __future__ import annotations

import re
from dataclasses import dataclass

from decision_router.core import ActionRoute, NoRoute, first, match_regex, regex, run_route


@dataclass
class Message:
    text: str


def test_regex_returns_match_object() -> None:
    matcher = regex(r"play (.*)")
    match = matcher("play jazz")

    assert match is not None
    assert match.group(1) == "jazz"
    assert matcher("stop") is None
    assert matcher(42) is None


def test_regex_extracts_text_from_routable() -> None:
    matcher = regex(re.compile(r"hello", re.I), text=lambda message: message.text)
    assert matcher(Message("HELLO there")) is not None


def test_match_regex_routes_with_groups() -> None:
    seen: list[str] = []
    router = match_regex(r"my name is (\w+)", lambda m: seen.append(m.group(1)))

    assert _run(run_route("my name is Bill", router)) is True
    assert seen == ["Bill"]


def test_match_regex_without_match_uses_else() -> None:
    seen: list[str] = []
    router = match_regex(r"^bye$", lambda m: None, else_=lambda text: seen.append(text))

    route = _run(router.get_route("hello"))
    assert isinstance(route, ActionRoute)
    route.action()
    assert seen == ["hello"]
    assert isinstance(_run(match_regex(r"^bye$", lambda m: None).get_route("hi")), NoRoute)


def test_first_keeps_rule_order_for_overlapping_patterns() -> None:
    handled: list[str] = []
    router = first(
        match_regex(re.compile(r"play (.*)", re.I), lambda m: handled.append(f"h1:{m.group(1)}")),
        match_regex(re.compile(r"play random", re.I), lambda m: handled.append("h2")),
    )

    assert _run(run_route("play random", router)) is True
    assert handled == ["h1:random"]


def test_specific_rule_first_wins_when_listed_first() -> None:
    handled: list[str] = []
    router = first(
        match_regex(re.compile(r"play random", re.I), lambda m: handled.append("h2")),
        match_regex(re.compile(r"play (.*)", re.I), lambda m: handled.append("h1")),
    )

    _run(run_route("Play Random", router))
    assert handled == ["h2"]


def _run(coro):
    import asyncio

    return asyncio.run(coro)
