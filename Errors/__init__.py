from .Errors import (
    BookmarkError,
    BrowserError,
    ElementNotFound,
    InvalidFormValue,
    InvalidURL,
    LinkNotFound,
    NotSelectMultiple,
    PageNotLoaded,
    RedirectBlocked,
)

__all__ = [
    "BookmarkError",
    "BrowserError",
    "ElementNotFound",
    "InvalidFormValue",
    "InvalidURL",
    "LinkNotFound",
    "NotSelectMultiple",
    "PageNotLoaded",
    "RedirectBlocked",
]
