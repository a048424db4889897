from .Browser import Browser
from .Events import (
    ON_ERROR,
    ON_LOAD,
    ON_REQUEST,
    ON_RESPONSE,
    ON_UNLOAD,
    Event,
    EventArgs,
    EventTarget,
)

__all__ = [
    "ON_ERROR",
    "ON_LOAD",
    "ON_REQUEST",
    "ON_RESPONSE",
    "ON_UNLOAD",
    "Browser",
    "Event",
    "EventArgs",
    "EventTarget",
]
