"""
Form/Form.py — Structured, mutable view of a single HTML ``<form>``.

A :class:`Form` is built once from the live document by
:meth:`Browser.form` / :meth:`Browser.forms`. Extraction records the values
that are selected or checked in the markup at that moment; after that the
form is only changed through its own methods, never by re-parsing. Submitting
hands the encoded values back to the browser, which turns them into a new
navigation.

Controls considered during extraction, in document order:

- ``<input>`` (text-like, hidden, checkbox, radio, file, submit)
- ``<button>`` with ``type="submit"`` (the default)
- ``<textarea>``
- ``<select>`` and its ``<option>`` children

Any control bearing a ``disabled`` attribute, and any control without a
``name``, is skipped.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import IO, TYPE_CHECKING, Optional, Union

import httpx
from bs4 import Tag

from Errors import ElementNotFound, InvalidFormValue, InvalidURL, NotSelectMultiple

if TYPE_CHECKING:
    from Browser import Browser

logger = logging.getLogger(__name__)

MULTIPART = "multipart/form-data"
URLENCODED = "application/x-www-form-urlencoded"

# <input> types that never contribute a value to a submission
_SKIP_INPUT_TYPES: frozenset[str] = frozenset({"reset", "button", "image"})

FileData = Union[bytes, IO[bytes]]


@dataclass
class FileField:
    """Payload pending for an ``<input type="file">``."""

    filename: str = ""
    data: FileData = b""


@dataclass
class SelectOptions:
    """Metadata of one ``<select>`` control."""

    multiple: bool = False
    values: dict[str, str] = field(default_factory=dict)
    """Option value -> label."""

    labels: dict[str, str] = field(default_factory=dict)
    """Option label -> value."""


class Form:
    """A form extracted from the current page.

    ``fields`` maps each control name to its ordered list of values. Names are
    unique keys, values are never de-duplicated, so repeated checkboxes and
    select-multiple controls keep every selected value.
    """

    def __init__(self, browser: "Browser", element: Tag, page_url: str) -> None:
        self._browser = browser
        self.element = element
        self.page_url = page_url
        """URL of the page that produced this form; sent as the referer."""

        self.method: str = (element.get("method") or "GET").upper()
        self.action: str = self._resolve_action(element.get("action") or page_url)
        self.enctype: str = (element.get("enctype") or URLENCODED).lower()

        self.fields: dict[str, list[str]] = {}
        self.buttons: dict[str, list[str]] = {}
        self.checkboxes: dict[str, str] = {}
        """Checkbox name -> declared value, for every checkbox in the form."""
        self.selects: dict[str, SelectOptions] = {}
        self.files: dict[str, FileField] = {}

        self._serialize()

    def _resolve_action(self, action: str) -> str:
        try:
            return str(httpx.URL(self.page_url).join(action))
        except httpx.InvalidURL as exc:
            raise InvalidURL(f"Cannot resolve form action '{action}': {exc}") from exc

    def __repr__(self) -> str:
        return f"<Form {self.method} {self.action} fields={list(self.fields)}>"

    @property
    def dom(self) -> Tag:
        """The ``<form>`` element this form was extracted from."""
        return self.element

    # ------------------------------------------------------------------
    # Extraction
    # ------------------------------------------------------------------

    def _serialize(self) -> None:
        for el in self.element.find_all(["input", "button", "textarea", "select"]):
            if el.has_attr("disabled"):
                continue
            name = el.get("name")
            if not name:
                continue

            if el.name == "select":
                self._add_select(name, el)
            elif el.name == "textarea":
                self._add_field(name, el.get_text())
            elif el.name == "button":
                if (el.get("type") or "submit").lower() == "submit":
                    self.buttons.setdefault(name, []).append(el.get("value", ""))
            else:
                self._add_input(name, el)

        logger.debug(
            "Extracted form %s %s: %d field(s), %d button(s), %d select(s), %d file(s)",
            self.method,
            self.action,
            len(self.fields),
            len(self.buttons),
            len(self.selects),
            len(self.files),
        )

    def _add_input(self, name: str, el: Tag) -> None:
        itype = (el.get("type") or "text").lower()
        checked = el.has_attr("checked")

        if itype == "submit":
            self.buttons.setdefault(name, []).append(el.get("value", ""))
        elif itype == "checkbox":
            value = el.get("value", "on")
            self.checkboxes.setdefault(name, value)
            if checked:
                self._add_field(name, value)
        elif itype == "radio":
            # last checked radio of a group wins
            if checked:
                self.fields[name] = [el.get("value", "on")]
        elif itype == "file":
            self.files[name] = FileField()
        elif itype not in _SKIP_INPUT_TYPES:
            self._add_field(name, el.get("value", ""))

    def _add_select(self, name: str, el: Tag) -> None:
        options = SelectOptions(multiple=el.has_attr("multiple"))
        found_selected = False
        for option in el.find_all("option"):
            label = option.get_text().strip()
            value = option.get("value", label)
            options.values.setdefault(value, label)
            options.labels.setdefault(label, value)
            if not option.has_attr("selected"):
                continue
            # A single select honours only the first selected option.
            if found_selected and not options.multiple:
                continue
            self._add_field(name, value)
            found_selected = True
        self.selects[name] = options

    def _add_field(self, name: str, value: str) -> None:
        self.fields.setdefault(name, []).append(value)

    # ------------------------------------------------------------------
    # Field access
    # ------------------------------------------------------------------

    def value(self, name: str) -> str:
        """Return the first value of field *name*."""
        if name not in self.fields:
            raise ElementNotFound(f"No input found with name '{name}'.")
        return self.fields[name][0]

    def input(self, name: str, value: str) -> None:
        """Replace the value of an existing field."""
        if name not in self.fields:
            raise ElementNotFound(f"No input found with name '{name}'.")
        self.fields[name][0] = value

    def set(self, name: str, value: str) -> None:
        """Like :meth:`input`, but adds the field when the form lacks it."""
        if name not in self.fields:
            self.fields[name] = [value]
            return
        self.input(name, value)

    def remove(self, name: str) -> None:
        """Drop field *name* entirely. Absent names are ignored."""
        self.fields.pop(name, None)

    def remove_value(self, name: str, value: str) -> None:
        """Remove one instance of *value* from field *name*.

        The field disappears once its last value is removed.
        """
        if name not in self.fields:
            raise ElementNotFound(f"No input found with name '{name}'.")
        values = self.fields[name]
        if value in values:
            values.remove(value)
        if not values:
            del self.fields[name]

    # ------------------------------------------------------------------
    # Checkboxes
    # ------------------------------------------------------------------

    def _checkbox(self, name: str) -> str:
        if name not in self.checkboxes:
            raise ElementNotFound(f"No checkbox found with name '{name}'.")
        return self.checkboxes[name]

    def check(self, name: str) -> None:
        """Check the checkbox *name*, submitting its declared value."""
        self.fields[name] = [self._checkbox(name)]

    def uncheck(self, name: str) -> None:
        self._checkbox(name)
        self.fields.pop(name, None)

    def is_checked(self, name: str) -> bool:
        self._checkbox(name)
        return name in self.fields

    # ------------------------------------------------------------------
    # Selects
    # ------------------------------------------------------------------

    def _select(self, name: str, requested: tuple[str, ...]) -> SelectOptions:
        options = self.selects.get(name)
        if options is None:
            raise ElementNotFound(f"No select element found with name '{name}'.")
        if len(requested) > 1 and not options.multiple:
            raise NotSelectMultiple(
                f"The select element with name '{name}' is not a select multiple."
            )
        return options

    def _replace_selection(self, name: str, values: list[str]) -> None:
        if values:
            self.fields[name] = values
        else:
            self.fields.pop(name, None)

    def select_by_option_label(self, name: str, *labels: str) -> None:
        """Select the options of *name* whose labels are given, replacing the selection.

        Every label is validated before the selection changes.
        """
        options = self._select(name, labels)
        for label in labels:
            if label not in options.labels:
                raise ElementNotFound(
                    f"The select element with name '{name}' does not have an "
                    f"option with label '{label}'."
                )
        self._replace_selection(name, [options.labels[label] for label in labels])

    def select_by_option_value(self, name: str, *values: str) -> None:
        """Select the options of *name* whose values are given, replacing the selection."""
        options = self._select(name, values)
        for value in values:
            if value not in options.values:
                raise ElementNotFound(
                    f"The select element with name '{name}' does not have an "
                    f"option with value '{value}'."
                )
        self._replace_selection(name, list(values))

    def select_values(self, name: str) -> list[str]:
        """Return the currently selected values of *name*."""
        if name in self.selects:
            return list(self.fields.get(name, []))
        if name in self.fields:
            return list(self.fields[name])
        raise ElementNotFound(f"No input found with name '{name}'.")

    def select_labels(self, name: str) -> list[str]:
        """Return the labels of the currently selected options of *name*."""
        options = self.selects.get(name)
        if options is None:
            raise ElementNotFound(f"No select element found with name '{name}'.")
        return [options.values.get(value, "") for value in self.fields.get(name, [])]

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def file(self, name: str, filename: str, data: FileData) -> None:
        """Attach *data* to the declared file input *name*."""
        if name not in self.files:
            raise ElementNotFound(f"No input type 'file' found with name '{name}'.")
        self.files[name] = FileField(filename=filename, data=data)

    def set_file(self, name: str, filename: str, data: FileData) -> None:
        """Attach *data* to file field *name*, adding the field if necessary."""
        self.files[name] = FileField(filename=filename, data=data)

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def submission_values(
        self,
        button: Optional[str] = None,
        button_value: str = "",
    ) -> dict[str, list[str]]:
        """Return the name/values that a submission through *button* would send."""
        values = {name: list(vals) for name, vals in self.fields.items()}
        if button:
            values[button] = [button_value]
        return values

    async def submit(self) -> None:
        """Submit through the first button in document order, or without one."""
        if self.buttons:
            await self.click(next(iter(self.buttons)))
        else:
            await self._send(None, "")

    async def click(self, button: str) -> None:
        """Submit through the button named *button*."""
        if button not in self.buttons:
            raise InvalidFormValue(
                f"Form does not contain a button with the name '{button}'."
            )
        await self._send(button, self.buttons[button][0])

    async def click_by_value(self, name: str, value: str) -> None:
        """Submit through the button named *name* whose value is *value*."""
        if name not in self.buttons:
            raise InvalidFormValue(
                f"Form does not contain a button with the name '{name}'."
            )
        if value not in self.buttons[name]:
            raise InvalidFormValue(
                f"Form does not contain a button with the name '{name}' "
                f"and value '{value}'."
            )
        await self._send(name, value)

    async def _send(self, button: Optional[str], button_value: str) -> None:
        values = self.submission_values(button, button_value)
        logger.debug("Submitting form %s %s via button %r", self.method, self.action, button)

        if self.method == "GET":
            await self._browser.open_form(self.action, values, via=self.page_url)
        elif self.enctype == MULTIPART:
            await self._browser.post_multipart(
                self.action, values, self.files, via=self.page_url
            )
        else:
            await self._browser.post_form(self.action, values, via=self.page_url)
