"""
Models/State.py — Snapshot of one completed navigation.
"""
from __future__ import annotations

from dataclasses import dataclass

import httpx
from bs4 import BeautifulSoup


@dataclass(frozen=True)
class State:
    """The request that was issued, the response it produced, and the parsed page.

    Created by the browser only after a successful request/response/parse
    cycle. The current page and every history entry are States.
    """

    request: httpx.Request
    """Request as issued (before any redirect)."""

    response: httpx.Response
    """Final response of the redirect chain."""

    dom: BeautifulSoup
    """Parsed document."""

    @property
    def url(self) -> httpx.URL:
        """Final URL of the page after redirects."""
        return self.response.url
