"""
Assets/Downloader.py — Concurrent download of page assets.

Each asset is an isolated unit of work: a failed download is recorded on
its :class:`DownloadResult` and never aborts the other downloads. At most
``workers`` downloads are in flight at once.
"""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path, PurePosixPath
from typing import IO, Iterable, Optional
from urllib.parse import unquote, urlsplit

import httpx

from Errors import BrowserError
from Models import Asset, DownloadResult

logger = logging.getLogger(__name__)


class AssetDownloader:
    """Downloads images, stylesheets and scripts through a shared httpx client."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        workers: int = 4,
        headers: Optional[dict[str, str]] = None,
    ) -> None:
        self.client = client
        self.workers = workers
        self.headers = headers or {}

    async def download(self, asset: Asset, out: IO[bytes]) -> int:
        """Stream *asset* into *out* and return the number of bytes written.

        Raises ``httpx.HTTPStatusError`` for 4xx/5xx responses.
        """
        written = 0
        async with self.client.stream("GET", asset.url, headers=self.headers) as response:
            response.raise_for_status()
            async for chunk in response.aiter_bytes():
                out.write(chunk)
                written += len(chunk)
        logger.debug("Downloaded %s (%d bytes)", asset.url, written)
        return written

    async def save_all(
        self,
        assets: Iterable[Asset],
        directory: Path,
        reserved: Iterable[str] = (),
    ) -> list[DownloadResult]:
        """Download every asset into *directory*; return one result per asset, in order.

        Names in *reserved* are never used as asset file names.
        """
        directory.mkdir(parents=True, exist_ok=True)
        taken: set[str] = set(reserved)
        jobs = [(asset, directory / self.file_name(asset, taken)) for asset in assets]
        semaphore = asyncio.Semaphore(self.workers)

        async def _bounded(asset: Asset, path: Path) -> DownloadResult:
            async with semaphore:
                return await self._save_one(asset, path, directory)

        results = await asyncio.gather(*[_bounded(asset, path) for asset, path in jobs])
        failed = sum(1 for result in results if not result.ok)
        logger.debug(
            "Saved %d/%d asset(s) to %s", len(results) - failed, len(results), directory
        )
        return list(results)

    async def _save_one(self, asset: Asset, path: Path, directory: Path) -> DownloadResult:
        if path.resolve().parent != directory.resolve():
            logger.warning("Refusing to save %s outside %s", asset.url, directory)
            return DownloadResult(asset=asset, error=f"Unsafe file name: {path.name!r}")
        try:
            with path.open("wb") as out:
                size = await self.download(asset, out)
        except (httpx.HTTPError, BrowserError, OSError) as exc:
            logger.debug("Download of %s failed: %s", asset.url, exc)
            path.unlink(missing_ok=True)
            return DownloadResult(asset=asset, error=f"{type(exc).__name__}: {exc}")
        return DownloadResult(asset=asset, path=str(path), size=size)

    @staticmethod
    def file_name(asset: Asset, taken: set[str]) -> str:
        """Derive a unique local file name for *asset* and record it in *taken*.

        Uses the last path segment of the asset URL, falling back to the asset
        type, and appends ``-1``, ``-2``, … on collisions.
        """
        segment = PurePosixPath(unquote(urlsplit(asset.url).path)).name
        if segment in (".", "..") or "/" in segment or "\\" in segment:
            segment = ""
        name = segment or asset.asset_type.value
        stem, dot, suffix = name.rpartition(".")
        if not dot:
            stem, suffix = name, ""
        candidate = name
        counter = 1
        while candidate in taken:
            candidate = f"{stem}-{counter}.{suffix}" if dot else f"{stem}-{counter}"
            counter += 1
        taken.add(candidate)
        return candidate
