"""
Browser/Browser.py — Stateful headless browser session.

A :class:`Browser` issues requests through an ``httpx.AsyncClient``, parses
each response with BeautifulSoup, and keeps exactly one current
:class:`~Models.State`. Every successful navigation pushes the previous
state onto the history jar and replaces the current one; a failed
navigation changes neither.

Navigation policy is driven by the :class:`~Config.Attribute` flags of the
session's :class:`~Config.BrowserConfig`:

- ``SEND_REFERER``          — send ``Referer`` when the originating page is known
                              (link clicks, form submissions, meta refresh)
- ``FOLLOW_REDIRECTS``      — otherwise the first redirect raises RedirectBlocked
- ``META_REFRESH_HANDLING`` — schedule a deferred reload/redirect for pages
                              carrying ``<meta http-equiv="refresh">``

One browser is one tab: calls on the same instance must not overlap.
"""
from __future__ import annotations

import asyncio
import logging
import re
from http.cookiejar import Cookie, CookieJar
from pathlib import Path
from typing import IO, Mapping, Optional, Sequence, Union
from urllib.parse import urlencode, urlsplit, urlunsplit
from urllib.request import Request as CookieRequest

import httpx
from bs4 import BeautifulSoup, Tag

from Assets import AssetDownloader
from Config import Attribute, AttributeMap, BrowserConfig
from Errors import (
    BrowserError,
    ElementNotFound,
    InvalidURL,
    LinkNotFound,
    PageNotLoaded,
    RedirectBlocked,
)
from Form import FileField, Form
from Jar import MemoryBookmarks, MemoryHistory
from Models import Asset, DownloadResult, Image, Link, Script, State, Stylesheet

from .Events import (
    ON_ERROR,
    ON_LOAD,
    ON_REQUEST,
    ON_RESPONSE,
    ON_UNLOAD,
    EventArgs,
    EventTarget,
)

logger = logging.getLogger(__name__)

FormData = Mapping[str, Union[str, Sequence[str]]]

# content attribute of a refresh meta tag: "5" or "5; url=/next"
_META_REFRESH_RE = re.compile(
    r"^\s*(\d+(?:\.\d+)?)\s*(?:[;,]\s*(?:url\s*=\s*)?(.*?))?\s*$",
    re.IGNORECASE,
)

# Headers of a previous request that must not be replayed on reload
_STALE_HEADERS: frozenset[str] = frozenset({"cookie", "content-length", "host"})


def _form_pairs(data: FormData) -> list[tuple[str, str]]:
    """Flatten *data* into ordered ``(name, value)`` pairs."""
    pairs: list[tuple[str, str]] = []
    for name, values in data.items():
        if isinstance(values, str):
            values = [values]
        pairs.extend((name, value) for value in values)
    return pairs


class Browser:
    """Headless browser session.

    Usage::

        async with Browser() as browser:
            await browser.open("https://example.com/login")
            form = browser.form("form#login")
            form.input("user", "admin")
            await form.submit()
            print(browser.title)
    """

    def __init__(
        self,
        config: Optional[BrowserConfig] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        history: Optional[MemoryHistory] = None,
        bookmarks: Optional[MemoryBookmarks] = None,
        cookie_jar: Optional[CookieJar] = None,
    ) -> None:
        self.config = config or BrowserConfig()
        self.history = history if history is not None else MemoryHistory(self.config.history_max)
        self.bookmarks = bookmarks if bookmarks is not None else MemoryBookmarks()
        self.events = EventTarget()
        self.state: Optional[State] = None

        self._refresh_task: Optional[asyncio.Task] = None
        self._client = httpx.AsyncClient(
            transport=transport,
            proxy=self.config.proxy,
            verify=self.config.verify,
            timeout=self.config.timeout,
            # An injected transport does its own routing; keep environment proxies away from it.
            trust_env=self.config.trust_env and transport is None,
            cookies=cookie_jar,
            follow_redirects=True,
            event_hooks={"response": [self._check_redirect]},
        )

    async def __aenter__(self) -> "Browser":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Cancel any pending meta refresh and close the transport."""
        self._cancel_refresh()
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def set_attribute(self, attribute: Attribute, value: bool) -> None:
        self.config.attributes[attribute] = value

    def set_attributes(self, attributes: AttributeMap) -> None:
        self.config.attributes = dict(attributes)

    def set_user_agent(self, user_agent: str) -> None:
        self.config.user_agent = user_agent

    def add_header(self, name: str, value: str) -> None:
        """Send header *name* with every subsequent request."""
        self.config.headers[name] = value

    def set_headers(self, headers: Mapping[str, str]) -> None:
        self.config.headers = dict(headers)

    @property
    def cookies(self) -> httpx.Cookies:
        """Cookie store shared by every request of this session."""
        return self._client.cookies

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    async def open(self, url: str) -> None:
        """Navigate to *url* with a GET request. No referer is sent."""
        await self._send_get(self._absolute_url(url), via=None)

    async def open_form(self, url: str, data: FormData, *, via: Optional[str] = None) -> None:
        """Replace the query string of *url* with the encoded *data* and GET it."""
        parts = urlsplit(self._absolute_url(url))
        target = urlunsplit(parts._replace(query=urlencode(_form_pairs(data))))
        await self._send_get(target, via)

    async def open_bookmark(self, name: str) -> None:
        """Navigate to the URL saved under bookmark *name*."""
        await self.open(self.bookmarks.read(name))

    async def post(
        self,
        url: str,
        content_type: str,
        body: Union[bytes, str],
        *,
        via: Optional[str] = None,
    ) -> None:
        """Navigate to *url* with a POST request carrying *body*."""
        request = self._build_request(
            "POST",
            self._absolute_url(url),
            via,
            content=body,
            headers={"Content-Type": content_type},
        )
        await self._send(request)

    async def post_form(self, url: str, data: FormData, *, via: Optional[str] = None) -> None:
        """POST *data* URL-encoded to *url*."""
        await self.post(
            url,
            "application/x-www-form-urlencoded",
            urlencode(_form_pairs(data)),
            via=via,
        )

    async def post_multipart(
        self,
        url: str,
        fields: FormData,
        files: Optional[Mapping[str, FileField]] = None,
        *,
        via: Optional[str] = None,
    ) -> None:
        """POST *fields* and *files* to *url* as ``multipart/form-data``."""
        # Plain fields are sent as filename-less parts so the body is
        # multipart even when no file is attached.
        parts: list[tuple[str, tuple]] = [
            (name, (None, value.encode())) for name, value in _form_pairs(fields)
        ]
        for name, upload in (files or {}).items():
            parts.append((name, (upload.filename, upload.data)))
        request = self._build_request("POST", self._absolute_url(url), via, files=parts)
        await self._send(request)

    async def click(self, selector: str) -> None:
        """Follow the anchor matched by *selector*, with the current page as referer."""
        matches = self.find(selector)
        if not matches:
            raise ElementNotFound(f"Element not found matching expr '{selector}'.")
        anchor = matches[0]
        if anchor.name != "a":
            raise ElementNotFound(f"Expr '{selector}' must match an anchor tag.")
        href = anchor.get("href")
        if href is None:
            raise LinkNotFound(f"No link found matching expr '{selector}'.")
        await self._send_get(self._absolute_url(self.resolve_url(href)), via=str(self.url))

    def back(self) -> bool:
        """Make the most recent history entry current.

        Returns *False*, leaving everything untouched, when the history is
        empty. The page being left is discarded, not kept for a forward step.
        """
        previous = self.history.pop()
        if previous is None:
            return False
        self._cancel_refresh()
        self.state = previous
        logger.debug("Back to %s — history=%d", previous.url, len(self.history))
        return True

    async def reload(self) -> None:
        """Re-issue the request that produced the current page."""
        if self.state is None:
            raise PageNotLoaded("Cannot reload, no request has succeeded yet.")
        previous = self.state.request
        headers = {
            name: value
            for name, value in previous.headers.items()
            if name.lower() not in _STALE_HEADERS
        }
        request = self._client.build_request(
            previous.method, previous.url, headers=headers, content=previous.content or None
        )
        await self._send(request)

    # ------------------------------------------------------------------
    # Bookmarks and cookies
    # ------------------------------------------------------------------

    def bookmark_page(self, name: str) -> None:
        """Save the current page URL as bookmark *name*."""
        self.bookmarks.save(name, str(self.url))

    def site_cookies(self) -> list[Cookie]:
        """Return the cookies the jar would send with a request to the current page URL.

        Applicability (domain, path segments, port, secure flag, expiry) is
        decided by the jar's own policy, the same check that builds the
        ``Cookie`` header.
        """
        request = CookieRequest(str(self.url))
        # CookieJar exposes no public per-request lookup.
        return list(self._client.cookies.jar._cookies_for_request(request))

    # ------------------------------------------------------------------
    # Current page
    # ------------------------------------------------------------------

    def _current(self) -> State:
        if self.state is None:
            raise PageNotLoaded("No page has been loaded.")
        return self.state

    @property
    def url(self) -> httpx.URL:
        """Final URL of the current page."""
        return self._current().url

    @property
    def status_code(self) -> int:
        return self._current().response.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self._current().response.headers

    @property
    def title(self) -> str:
        title = self._current().dom.title
        return title.get_text().strip() if title else ""

    @property
    def body(self) -> str:
        """Inner HTML of ``<body>``, or an empty string."""
        body = self._current().dom.body
        return body.decode_contents() if body else ""

    @property
    def dom(self) -> BeautifulSoup:
        return self._current().dom

    def find(self, selector: str) -> list[Tag]:
        """Return every element of the current page matching CSS *selector*."""
        return self._current().dom.select(selector)

    def download(self, out: IO[str]) -> int:
        """Write the serialized document to *out*; return the number of characters."""
        html = str(self._current().dom)
        out.write(html)
        return len(html)

    def resolve_url(self, url: str) -> str:
        """Resolve a possibly relative *url* against the current page URL."""
        try:
            return str(self.url.join(url))
        except httpx.InvalidURL as exc:
            raise InvalidURL(f"Cannot resolve '{url}': {exc}") from exc

    # ------------------------------------------------------------------
    # Forms
    # ------------------------------------------------------------------

    def form(self, selector: str) -> Form:
        """Extract the form matched by *selector* from the current page."""
        matches = self.find(selector)
        if not matches:
            raise ElementNotFound(f"Form not found matching expr '{selector}'.")
        if matches[0].name != "form":
            raise ElementNotFound(f"Expr '{selector}' does not match a form tag.")
        return Form(self, matches[0], str(self.url))

    def forms(self) -> list[Form]:
        """Extract every form of the current page, in document order."""
        page_url = str(self.url)
        return [Form(self, element, page_url) for element in self.find("form")]

    # ------------------------------------------------------------------
    # Links and assets
    # ------------------------------------------------------------------

    def _element_url(self, element: Tag, attribute: str) -> Optional[str]:
        try:
            return self.resolve_url(element[attribute])
        except InvalidURL as exc:
            logger.debug("Skipping <%s> with unusable %s: %s", element.name, attribute, exc)
            return None

    def links(self) -> list[Link]:
        """Every ``<a href>`` of the current page."""
        links: list[Link] = []
        for element in self.find("a[href]"):
            url = self._element_url(element, "href")
            if url is not None:
                links.append(Link(id=element.get("id", ""), url=url, text=element.get_text()))
        return links

    def images(self) -> list[Image]:
        """Every ``<img src>`` of the current page."""
        images: list[Image] = []
        for element in self.find("img[src]"):
            url = self._element_url(element, "src")
            if url is not None:
                images.append(
                    Image(
                        id=element.get("id", ""),
                        url=url,
                        alt=element.get("alt", ""),
                        title=element.get("title", ""),
                    )
                )
        return images

    def stylesheets(self) -> list[Stylesheet]:
        """Every ``<link rel="stylesheet" href>`` of the current page."""
        stylesheets: list[Stylesheet] = []
        for element in self.find("link[rel~=stylesheet][href]"):
            url = self._element_url(element, "href")
            if url is not None:
                stylesheets.append(
                    Stylesheet(
                        id=element.get("id", ""),
                        url=url,
                        media=element.get("media", "all"),
                        type=element.get("type", "text/css"),
                    )
                )
        return stylesheets

    def scripts(self) -> list[Script]:
        """Every ``<script src>`` of the current page."""
        scripts: list[Script] = []
        for element in self.find("script[src]"):
            url = self._element_url(element, "src")
            if url is not None:
                scripts.append(
                    Script(
                        id=element.get("id", ""),
                        url=url,
                        type=element.get("type", "text/javascript"),
                    )
                )
        return scripts

    def _downloader(self) -> AssetDownloader:
        headers = {"User-Agent": self.config.user_agent}
        if self.config.enabled(Attribute.SEND_REFERER):
            headers["Referer"] = str(self.url)
        return AssetDownloader(
            self._client, workers=self.config.download_workers, headers=headers
        )

    async def download_asset(self, asset: Asset, out: IO[bytes]) -> int:
        """Write the contents of *asset* to *out*; return the number of bytes."""
        return await self._downloader().download(asset, out)

    async def save_page(self, directory: Union[str, Path]) -> list[DownloadResult]:
        """Save the current document as ``index.html`` plus every image,
        stylesheet and script it references.

        Asset downloads run concurrently, bounded by
        ``config.download_workers``. Failures are reported per asset in the
        returned results instead of being raised.
        """
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        with (directory / "index.html").open("w", encoding="utf-8") as out:
            self.download(out)
        assets: list[Asset] = [*self.images(), *self.stylesheets(), *self.scripts()]
        return await self._downloader().save_all(assets, directory, reserved={"index.html"})

    # ------------------------------------------------------------------
    # Request building and dispatch
    # ------------------------------------------------------------------

    def _absolute_url(self, url: str) -> str:
        """Return *url* as an absolute http(s) URL, resolving against the current page."""
        try:
            parsed = httpx.URL(url)
        except httpx.InvalidURL as exc:
            raise InvalidURL(f"Cannot parse URL '{url}': {exc}") from exc
        if parsed.is_relative_url and self.state is not None:
            parsed = self.state.url.join(parsed)
        if parsed.scheme not in ("http", "https") or not parsed.host:
            raise InvalidURL(f"'{url}' is not an absolute http(s) URL.")
        return str(parsed)

    def _build_request(
        self,
        method: str,
        url: str,
        via: Optional[str],
        headers: Optional[Mapping[str, str]] = None,
        **kwargs,
    ) -> httpx.Request:
        """Assemble a request from the session defaults plus *headers*.

        ``Referer`` is set to *via* when one is given and SEND_REFERER is on.
        The body is read eagerly so the request can be replayed by reload().
        """
        merged = dict(self.config.headers)
        merged.update(headers or {})
        merged["User-Agent"] = self.config.user_agent
        if via and self.config.enabled(Attribute.SEND_REFERER):
            merged["Referer"] = via
        try:
            request = self._client.build_request(method, url, headers=merged, **kwargs)
        except httpx.InvalidURL as exc:
            raise InvalidURL(f"Cannot build request for '{url}': {exc}") from exc
        request.read()
        return request

    async def _send_get(self, url: str, via: Optional[str]) -> None:
        await self._send(self._build_request("GET", url, via))

    async def _send(self, request: httpx.Request) -> None:
        self._pre_send()
        logger.debug("%s %s", request.method, request.url)
        self.events.dispatch_event(ON_REQUEST, self, EventArgs({"request": request}))

        try:
            response = await self._client.send(request)
            dom = BeautifulSoup(response.text, "html.parser")
        except (httpx.HTTPError, RedirectBlocked) as exc:
            logger.debug("%s %s failed: %s", request.method, request.url, exc)
            self.events.dispatch_event(
                ON_ERROR, self, EventArgs({"request": request}, error=exc)
            )
            raise

        self.events.dispatch_event(
            ON_RESPONSE, self, EventArgs({"request": request, "response": response})
        )

        previous = self.state
        if previous is not None:
            self.events.dispatch_event(ON_UNLOAD, self, EventArgs({"state": previous}))
            self.history.push(previous)
        self.state = State(request=request, response=response, dom=dom)
        logger.debug(
            "Loaded %s (%d) — history=%d",
            response.url,
            response.status_code,
            len(self.history),
        )
        self._post_send()
        # The navigation is committed at this point: an exception from a load
        # listener reaches the caller, but state, history and any scheduled
        # refresh stay in place.
        self.events.dispatch_event(ON_LOAD, self, EventArgs({"state": self.state}))

    def _pre_send(self) -> None:
        self._cancel_refresh()

    def _post_send(self) -> None:
        if not self.config.enabled(Attribute.META_REFRESH_HANDLING):
            return
        meta = self._current().dom.find(
            "meta", attrs={"http-equiv": re.compile(r"^\s*refresh\s*$", re.IGNORECASE)}
        )
        if meta is None or meta.get("content") is None:
            return
        match = _META_REFRESH_RE.match(meta["content"])
        if match is None:
            logger.debug("Ignoring meta refresh with content %r", meta["content"])
            return
        delay = float(match.group(1))
        target = (match.group(2) or "").strip().strip("'\"") or None
        self._refresh_task = asyncio.create_task(self._meta_refresh(delay, target))
        logger.debug("Meta refresh scheduled in %.1fs (target=%s)", delay, target or "reload")

    def _cancel_refresh(self) -> None:
        task, self._refresh_task = self._refresh_task, None
        if task is not None and not task.done():
            task.cancel()
            logger.debug("Pending meta refresh cancelled")

    async def _meta_refresh(self, delay: float, target: Optional[str]) -> None:
        await asyncio.sleep(delay)
        # Detach before navigating so the navigation does not cancel this task.
        self._refresh_task = None
        page = str(self.url)
        try:
            if target is None:
                await self.reload()
            else:
                await self._send_get(self._absolute_url(self.resolve_url(target)), via=page)
        except (httpx.HTTPError, BrowserError) as exc:
            logger.warning("Meta refresh of %s failed: %s", page, exc)
            self.events.dispatch_event(ON_ERROR, self, EventArgs({"url": page}, error=exc))

    async def _check_redirect(self, response: httpx.Response) -> None:
        """Response hook run by httpx on every response of a redirect chain."""
        if not response.has_redirect_location:
            return
        location = str(response.url.join(response.headers["Location"]))
        if not self.config.enabled(Attribute.FOLLOW_REDIRECTS):
            await response.aclose()
            raise RedirectBlocked(location)
        logger.debug("Redirect %d: %s -> %s", response.status_code, response.url, location)
