"""
Config/Config.py — Browser configuration.

Holds the navigation policy flags (referer, meta-refresh, redirects), the
identity the browser presents to servers, and the transport settings handed
to httpx. One :class:`BrowserConfig` is passed to each
:class:`~Browser.Browser`; nothing here is shared between instances.
"""
from __future__ import annotations

import enum
import platform
from dataclasses import dataclass, field
from typing import Optional

NAME: str = "Surf"
VERSION: str = "1.0"


class Attribute(enum.Enum):
    """A navigation policy the browser can switch on or off."""

    SEND_REFERER = "send-referer"
    """Send the ``Referer`` header when the page a request comes from is known."""

    META_REFRESH_HANDLING = "meta-refresh"
    """Honour ``<meta http-equiv="refresh">`` after a page loads."""

    FOLLOW_REDIRECTS = "follow-redirects"
    """Follow ``Location`` headers instead of failing with RedirectBlocked."""


AttributeMap = dict[Attribute, bool]


def default_attributes() -> AttributeMap:
    """Return a fresh attribute map with every policy enabled."""
    return {
        Attribute.SEND_REFERER: True,
        Attribute.META_REFRESH_HANDLING: True,
        Attribute.FOLLOW_REDIRECTS: True,
    }


def create_user_agent(name: str = NAME, version: str = VERSION) -> str:
    """Build a user agent string, e.g. ``Surf/1.0 (Linux x86_64; Python 3.12.1)``."""
    system = platform.system() or "Unknown"
    machine = platform.machine() or "unknown"
    return f"{name}/{version} ({system} {machine}; Python {platform.python_version()})"


@dataclass
class BrowserConfig:
    """Settings for one browser session."""

    user_agent: str = field(default_factory=create_user_agent)
    """Value of the ``User-Agent`` header sent with every request."""

    attributes: AttributeMap = field(default_factory=default_attributes)
    """Policy flags keyed by :class:`Attribute`. Missing keys read as False."""

    headers: dict[str, str] = field(default_factory=dict)
    """Extra headers sent with every request."""

    history_max: int = 0
    """Maximum number of history entries; 0 keeps everything."""

    timeout: float = 30.0
    """Per-request timeout in seconds."""

    proxy: Optional[str] = None
    """Proxy URL routed through by the transport, e.g. ``http://127.0.0.1:8080``."""

    verify: bool = True
    """Verify TLS certificates."""

    trust_env: bool = True
    """Let httpx read proxy and certificate settings from the environment."""

    download_workers: int = 4
    """Maximum concurrent asset downloads in :meth:`Browser.save_page`."""

    def __post_init__(self) -> None:
        if self.history_max < 0:
            raise ValueError(f"history_max must be >= 0, got {self.history_max}")
        if self.download_workers < 1:
            raise ValueError(
                f"download_workers must be >= 1, got {self.download_workers}"
            )

    def enabled(self, attribute: Attribute) -> bool:
        """Return *True* if *attribute* is switched on."""
        return self.attributes.get(attribute, False)
