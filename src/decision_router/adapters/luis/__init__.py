"""LUIS adapter (optional dependency: httpx)."""

from decision_router.adapters.luis.client import (
    InMemoryResponseCache,
    LuisClient,
    LuisEntity,
    LuisIntent,
    LuisMatch,
    LuisModel,
    LuisResponse,
    LuisSettings,
    ResponseCache,
)

__all__ = [
    "InMemoryResponseCache",
    "LuisClient",
    "LuisEntity",
    "LuisIntent",
    "LuisMatch",
    "LuisModel",
    "LuisResponse",
    "LuisSettings",
    "ResponseCache",
]
