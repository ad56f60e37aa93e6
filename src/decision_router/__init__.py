"""Composable, scored decision routing."""

from decision_router.core import *  # noqa: F401,F403
from decision_router.core import __all__

__version__ = "0.1.0"
