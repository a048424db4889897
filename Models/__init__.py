from .Assets import Asset, AssetType, DownloadResult, Image, Link, Script, Stylesheet
from .Page import PageSummary
from .State import State

__all__ = [
    "Asset",
    "AssetType",
    "DownloadResult",
    "Image",
    "Link",
    "PageSummary",
    "Script",
    "State",
    "Stylesheet",
]
