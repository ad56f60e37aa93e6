"""Routing observability events."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class RoutingEvent:
    """Structured event emitted while resolving a route and running its action."""

    kind: str
    payload: Dict[str, Any] = field(default_factory=dict)
    route: Optional[Any] = None
    error: Optional[BaseException] = None
