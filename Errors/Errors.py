"""
Errors/Errors.py — Exception taxonomy raised by the browser and form model.

Transport failures are not wrapped: ``httpx.HTTPError`` subclasses reach the
caller unchanged.
"""
from __future__ import annotations


class BrowserError(Exception):
    """Base class for every error raised by this package."""


class InvalidURL(BrowserError):
    """A URL could not be parsed or is not an absolute http(s) URL."""


class PageNotLoaded(BrowserError):
    """An operation needs a loaded page but no request has succeeded yet."""


class ElementNotFound(BrowserError):
    """A selector, attribute or form control is absent or of the wrong type."""


class LinkNotFound(BrowserError):
    """An anchor was matched but carries no ``href`` attribute."""


class InvalidFormValue(BrowserError):
    """A form was submitted through an unknown button name or value."""


class NotSelectMultiple(ElementNotFound):
    """Several options were requested for a single-valued ``<select>``."""


class RedirectBlocked(BrowserError):
    """A redirect was received while redirect following is disabled."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Redirects are disabled. Cannot follow '{url}'.")
        self.url = url


class BookmarkError(BrowserError):
    """A bookmark name is already taken or does not exist."""
