from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any, Optional, Protocol

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from decision_router.core import (
    ActionRoute,
    LuisResponseError,
    Match,
    NoMatch,
    NoRoute,
    Router,
    no_route,
    route_with_combined_score,
    routerize,
)
from decision_router.core.combinators import RouterLike

DEFAULT_ENDPOINT = "https://westus.api.cognitive.microsoft.com/luis/v2.0/apps"


class LuisIntent(BaseModel):
    intent: str
    score: float = Field(ge=0.0, le=1.0)


class LuisEntity(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    entity: str
    type: str
    start_index: int = Field(alias="startIndex")
    end_index: int = Field(alias="endIndex")
    score: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class LuisResponse(BaseModel):
    """Prediction returned by the LUIS v2 endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    query: str
    top_scoring_intent: Optional[LuisIntent] = Field(default=None, alias="topScoringIntent")
    intents: list[LuisIntent] = Field(default_factory=list)
    entities: list[LuisEntity] = Field(default_factory=list)

    def ranked_intents(self, threshold: float) -> list[LuisIntent]:
        """Intents scoring at least `threshold`, best first."""
        intents = self.intents or ([self.top_scoring_intent] if self.top_scoring_intent else [])
        kept = [intent for intent in intents if intent.score >= threshold and intent.score > 0]
        return sorted(kept, key=lambda intent: intent.score, reverse=True)


class LuisSettings(BaseModel):
    app_id: str = Field(min_length=1)
    subscription_key: str = Field(min_length=1)
    endpoint: str = DEFAULT_ENDPOINT
    score_threshold: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Intents scoring below this are ignored.",
    )
    timeout: float = Field(default=10.0, gt=0.0, description="HTTP timeout in seconds.")


class ResponseCache(Protocol):
    """Cache of LUIS responses keyed by utterance."""

    def get(self, utterance: str) -> Optional[LuisResponse]:  # pragma: no cover
        ...

    def set(self, utterance: str, response: LuisResponse) -> None:  # pragma: no cover
        ...


class InMemoryResponseCache:
    def __init__(self) -> None:
        self._responses: dict[str, LuisResponse] = {}

    def get(self, utterance: str) -> Optional[LuisResponse]:
        return self._responses.get(utterance)

    def set(self, utterance: str, response: LuisResponse) -> None:
        self._responses[utterance] = response


class LuisMatch(BaseModel):
    """Value produced by LUIS matchers: the routable plus what LUIS made of it."""

    model_config = ConfigDict(frozen=True)

    routable: Any
    response: LuisResponse
    intents: list[LuisIntent]
    intent: Optional[LuisIntent] = None

    @property
    def entities(self) -> list[LuisEntity]:
        return self.response.entities

    def find_entity(self, entity_type: str) -> list[LuisEntity]:
        return [entity for entity in self.entities if entity.type == entity_type]

    def entity_values(self, entity_type: str) -> list[str]:
        return [entity.entity for entity in self.find_entity(entity_type)]


class LuisClient:
    """Calls the LUIS endpoint, caching responses per utterance.

    Concurrent calls for the same uncached utterance may both reach the
    service; the last response stored wins.
    """

    def __init__(
        self,
        settings: LuisSettings,
        *,
        cache: Optional[ResponseCache] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.settings = settings
        self._cache = cache if cache is not None else InMemoryResponseCache()
        self._http_client = http_client
        self._logger = logger or logging.getLogger(__name__)

    async def call(self, utterance: str) -> LuisResponse:
        cached = self._cache.get(utterance)
        if cached is not None:
            self._logger.debug("luis.cache_hit utterance=%r", utterance)
            return cached

        url = f"{self.settings.endpoint.rstrip('/')}/{self.settings.app_id}"
        params = {"subscription-key": self.settings.subscription_key, "q": utterance}
        self._logger.debug("luis.request utterance=%r", utterance)
        if self._http_client is not None:
            response = await self._http_client.get(url, params=params, timeout=self.settings.timeout)
        else:
            async with httpx.AsyncClient(timeout=self.settings.timeout) as client:
                response = await client.get(url, params=params)
        response.raise_for_status()

        try:
            parsed = LuisResponse.model_validate(response.json())
        except (ValidationError, ValueError) as exc:
            raise LuisResponseError(f"Unexpected LUIS response for {utterance!r}: {exc}") from exc

        self._logger.debug(
            "luis.response utterance=%r top_intent=%s",
            utterance,
            parsed.top_scoring_intent.intent if parsed.top_scoring_intent else None,
        )
        self._cache.set(utterance, parsed)
        return parsed


def _utterance(routable: Any, text: Optional[Callable[[Any], str]]) -> str:
    utterance = text(routable) if text else routable
    if not isinstance(utterance, str):
        raise TypeError(
            f"LUIS needs a string utterance, got {type(utterance).__name__}; pass `text` to extract one."
        )
    return utterance


class LuisModel:
    """Matchers and routers backed by a `LuisClient`."""

    def __init__(self, client: LuisClient, *, score_threshold: Optional[float] = None) -> None:
        self._client = client
        self._threshold = (
            client.settings.score_threshold if score_threshold is None else score_threshold
        )

    async def _ranked(self, routable: Any, text: Optional[Callable[[Any], str]]):
        response = await self._client.call(_utterance(routable, text))
        return response, response.ranked_intents(self._threshold)

    def matcher(self, text: Optional[Callable[[Any], str]] = None):
        """Matcher scoring the routable by its top intent above the threshold."""

        async def match(routable: Any) -> Match | NoMatch:
            response, intents = await self._ranked(routable, text)
            if not intents:
                return NoMatch(reason="luis: no intent above threshold")
            value = LuisMatch(routable=routable, response=response, intents=intents)
            return Match(value=value, score=intents[0].score)

        return match

    def intent(self, name: str, text: Optional[Callable[[Any], str]] = None):
        """Matcher that succeeds when `name` is among the intents above the threshold."""

        async def match(routable: Any) -> Match | NoMatch:
            response, intents = await self._ranked(routable, text)
            for intent in intents:
                if intent.intent == name:
                    value = LuisMatch(routable=routable, response=response, intents=intents, intent=intent)
                    return Match(value=value, score=intent.score)
            return NoMatch(reason=f"luis: intent '{name}' not matched")

        return match

    def best(
        self,
        rules: Mapping[str, RouterLike],
        *,
        text: Optional[Callable[[Any], str]] = None,
    ) -> Router:
        """Route the highest-scoring intent that has a rule.

        The order of `rules` does not matter. Each rule is resolved against a
        `LuisMatch`, and its route score is multiplied by the intent score.
        """
        routers = {name: routerize(rule) for name, rule in rules.items()}

        async def get_route(routable: Any) -> ActionRoute | NoRoute:
            response, intents = await self._ranked(routable, text)
            for intent in intents:
                router = routers.get(intent.intent)
                if router is None:
                    continue
                value = LuisMatch(routable=routable, response=response, intents=intents, intent=intent)
                route = await router.get_route(value)
                if isinstance(route, ActionRoute):
                    return route_with_combined_score(route, intent.score)
            return no_route("luis: no rule for a matching intent")

        return Router(get_route)
