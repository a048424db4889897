"""
Models/Page.py — Summary record of a loaded page, as reported by the CLI.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass
class PageSummary:
    """One page visited during a CLI run."""

    url: str
    """Final URL after any redirects."""

    status_code: int
    """HTTP status of the final response."""

    title: str
    """Contents of ``<title>``, whitespace-trimmed."""

    forms: int = 0
    """Number of ``<form>`` elements on the page."""

    links: int = 0
    """Number of ``<a href>`` elements on the page."""

    action: str = "open"
    """What produced the page: ``open``, ``click``, ``submit``, ``refresh``."""

    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    """ISO-8601 UTC timestamp of the load."""
