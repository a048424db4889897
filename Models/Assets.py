"""
Models/Assets.py — Links and downloadable page assets.

Every ``url`` is absolute, resolved against the page that contained the
element.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional, Union


class AssetType(enum.Enum):
    """Kind of downloadable asset referenced by a page."""

    IMAGE = "image"
    STYLESHEET = "stylesheet"
    SCRIPT = "script"


@dataclass
class Link:
    """An ``<a href>`` element."""

    id: str
    url: str
    text: str
    """Text between the opening and closing anchor tags."""


@dataclass
class Image:
    """An ``<img src>`` element."""

    id: str
    url: str
    alt: str = ""
    title: str = ""

    asset_type = AssetType.IMAGE


@dataclass
class Stylesheet:
    """A ``<link rel="stylesheet" href>`` element."""

    id: str
    url: str
    media: str = "all"
    type: str = "text/css"

    asset_type = AssetType.STYLESHEET


@dataclass
class Script:
    """A ``<script src>`` element."""

    id: str
    url: str
    type: str = "text/javascript"

    asset_type = AssetType.SCRIPT


Asset = Union[Image, Stylesheet, Script]


@dataclass
class DownloadResult:
    """Outcome of downloading one asset during a bulk save."""

    asset: Asset
    path: Optional[str] = None
    """File the asset was written to; *None* when the download failed."""

    size: int = 0
    """Number of bytes written."""

    error: Optional[str] = None
    """Failure description, or *None* on success."""

    @property
    def ok(self) -> bool:
        return self.error is None
