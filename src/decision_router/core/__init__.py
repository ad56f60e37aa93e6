"""Core routing, matching and scoring primitives for decision-router."""

from decision_router.core.combinators import (
    after,
    before,
    best,
    default,
    first,
    if_match,
    if_true,
    noop,
    switch,
)
from decision_router.core.deferred import Deferred, first_value, iterate, settle
from decision_router.core.events import RoutingEvent
from decision_router.core.exceptions import (
    DecisionRouterError,
    InvalidMatchResult,
    InvalidPredicateResult,
    InvalidRankingOptions,
    InvalidRoute,
    LuisError,
    LuisResponseError,
    NormalizationError,
    RoutingError,
)
from decision_router.core.match import (
    DEFAULT_REASON,
    Match,
    MatchResult,
    NoMatch,
    normalize_match_result,
    normalize_predicate_result,
)
from decision_router.core.matching import match_regex, regex
from decision_router.core.routing import (
    ActionRoute,
    NoRoute,
    Route,
    Router,
    action_route,
    combine_score,
    no_route,
    route_with_combined_score,
    routerize,
    run_route,
    with_score,
)
from decision_router.core.scoring import TopOptions, rank, top

__all__ = [
    "DecisionRouterError",
    "NormalizationError",
    "InvalidMatchResult",
    "InvalidPredicateResult",
    "RoutingError",
    "InvalidRoute",
    "InvalidRankingOptions",
    "LuisError",
    "LuisResponseError",
    "Deferred",
    "first_value",
    "iterate",
    "settle",
    "DEFAULT_REASON",
    "Match",
    "NoMatch",
    "MatchResult",
    "normalize_match_result",
    "normalize_predicate_result",
    "ActionRoute",
    "NoRoute",
    "Route",
    "Router",
    "action_route",
    "no_route",
    "combine_score",
    "with_score",
    "route_with_combined_score",
    "routerize",
    "run_route",
    "RoutingEvent",
    "first",
    "best",
    "noop",
    "if_match",
    "if_true",
    "before",
    "after",
    "default",
    "switch",
    "regex",
    "match_regex",
    "TopOptions",
    "rank",
    "top",
]
