from __future__ import annotations

import numbers
from collections.abc import Mapping
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from decision_router.core.exceptions import InvalidMatchResult, InvalidPredicateResult

DEFAULT_REASON = "none"


class Match(BaseModel):
    """Successful result of applying a matcher to a routable."""

    model_config = ConfigDict(frozen=True)

    type: Literal["match"] = "match"
    value: Any = Field(description="Whatever the matcher extracted from the routable.")
    score: float = Field(
        default=1.0,
        gt=0.0,
        le=1.0,
        description="Confidence in the match, (0.0-1.0].",
    )


class NoMatch(BaseModel):
    """Failed result of applying a matcher to a routable."""

    model_config = ConfigDict(frozen=True)

    type: Literal["no_match"] = "no_match"
    reason: str = Field(default=DEFAULT_REASON, description="Why nothing matched.")


MatchResult = Annotated[Union[Match, NoMatch], Field(discriminator="type")]


def _is_empty(value: Any) -> bool:
    return value is None or value is False


def _scored_match(value: Any, score: Any) -> Match | NoMatch:
    if score is None:
        return Match(value=value)
    if isinstance(score, bool) or not isinstance(score, numbers.Real):
        raise InvalidMatchResult(f"The score for a Match must be a number, got {score!r}.")
    if score == 0:
        return NoMatch()
    try:
        return Match(value=value, score=score)
    except ValidationError as exc:
        raise InvalidMatchResult(f"The score for a Match must be in (0, 1], got {score!r}.") from exc


def normalize_match_result(response: Any, routable: Any = None) -> Match | NoMatch:
    """Convert whatever a matcher returned into a `Match` or a `NoMatch`.

    - `None` / `False` -> `NoMatch` with the default reason.
    - `True` -> `Match` of `routable`, score 1.
    - `Match` / `NoMatch` -> itself (a `Match` of `None`/`False` is a `NoMatch`).
    - a mapping with a truthy `reason` -> `NoMatch`; the reason must be a string.
      An empty reason counts as absent.
    - a mapping with a `value` key -> `Match` of that value with its `score`
      (default 1). A non-numeric score is an error; a score of 0 is a `NoMatch`.
    - anything else -> `Match` of the response itself, score 1.
    """
    if isinstance(response, NoMatch):
        return response
    if isinstance(response, Match):
        return NoMatch() if _is_empty(response.value) else response
    if _is_empty(response):
        return NoMatch()
    if response is True:
        return Match(value=routable)

    if isinstance(response, Mapping):
        reason = response.get("reason")
        if reason:
            if not isinstance(reason, str):
                raise InvalidMatchResult(f"The reason for a NoMatch must be a string, got {reason!r}.")
            return NoMatch(reason=reason)
        if "value" in response:
            value = response["value"]
            if _is_empty(value):
                return NoMatch()
            return _scored_match(value, response.get("score"))

    return Match(value=response)


def normalize_predicate_result(response: Any, routable: Any = None) -> Match | NoMatch:
    """Like `normalize_match_result`, but only boolean outcomes are accepted.

    A successful predicate matches the routable itself.
    """
    if response is True:
        return Match(value=routable)
    if response is False or isinstance(response, NoMatch):
        return normalize_match_result(response, routable)

    if isinstance(response, (Match, Mapping)):
        if isinstance(response, Match) and response.value is False:
            return NoMatch()
        result = normalize_match_result(response, routable)
        if isinstance(result, NoMatch):
            return result
        if result.value is True:
            return Match(value=routable, score=result.score)
        raise InvalidPredicateResult(
            "When returning a Match from a predicate, the value must be True or False."
        )

    raise InvalidPredicateResult(
        "A predicate may only return True, False, a Match of True or False, or a NoMatch."
    )
