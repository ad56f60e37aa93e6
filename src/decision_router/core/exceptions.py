"""Exception hierarchy for decision-router."""


class DecisionRouterError(Exception):
    """Base class for all decision-router errors."""


class NormalizationError(DecisionRouterError, TypeError):
    """A matcher or predicate returned something outside the normalization table."""


class InvalidMatchResult(NormalizationError):
    """A match-shaped result carried a bad `reason` or `score`."""


class InvalidPredicateResult(NormalizationError):
    """A predicate returned something other than a boolean outcome."""


class RoutingError(DecisionRouterError):
    """Base class for errors raised while building or ranking routes."""


class InvalidRoute(RoutingError, ValueError):
    """A route was built with a score outside [0, 1]."""


class InvalidRankingOptions(RoutingError, ValueError):
    """`top` was called with out-of-range options."""


class LuisError(DecisionRouterError):
    """Base class for LUIS adapter errors."""


class LuisResponseError(LuisError):
    """The NLU service returned a payload that could not be parsed."""
