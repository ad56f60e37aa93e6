"""Text matchers built on `re`."""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import Any, Optional, Union

from decision_router.core.combinators import RouterLike, if_match
from decision_router.core.routing import Router


def regex(
    pattern: Union[str, re.Pattern],
    *,
    text: Optional[Callable[[Any], str]] = None,
) -> Callable[[Any], Optional[re.Match]]:
    """Matcher returning the `re.Match` of `pattern` searched in the routable.

    `text` extracts the string to search from a routable that is not a string.
    """
    compiled = re.compile(pattern) if isinstance(pattern, str) else pattern

    def matcher(routable: Any) -> Optional[re.Match]:
        subject = text(routable) if text else routable
        if not isinstance(subject, str):
            return None
        return compiled.search(subject)

    return matcher


def match_regex(
    pattern: Union[str, re.Pattern],
    then: RouterLike,
    else_: Optional[RouterLike] = None,
    *,
    text: Optional[Callable[[Any], str]] = None,
) -> Router:
    """Route to `then` with the `re.Match` when `pattern` matches.

    Rules are not reordered by specificity: inside `first`, a broad pattern
    listed earlier wins over a narrower one listed later.
    """
    return if_match(regex(pattern, text=text), then, else_=else_)
