from .Downloader import AssetDownloader

__all__ = ["AssetDownloader"]
