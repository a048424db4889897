"""
tests/test_form.py — Unit tests for Form extraction and mutation.

Forms are built directly from parsed markup; the browser is an AsyncMock so
submission tests only assert which navigation would be requested.
"""
import asyncio
from unittest.mock import AsyncMock

import httpx
import pytest
from bs4 import BeautifulSoup

from Errors import ElementNotFound, InvalidFormValue, InvalidURL, NotSelectMultiple
from Form import MULTIPART, FileField, Form

PAGE_URL = "https://example.com/app/page.html"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def make_form(html: str, browser=None) -> Form:
    element = BeautifulSoup(html, "html.parser").find("form")
    return Form(browser or AsyncMock(), element, PAGE_URL)


LOGIN = """
<form method="post" action="/login">
  <input type="text" name="user" value="guest">
  <input type="password" name="pass">
  <input type="hidden" name="csrf" value="tok">
  <input type="checkbox" name="remember" value="yes">
  <input type="checkbox" name="news" checked>
  <input type="submit" name="go" value="Log in">
</form>
"""


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


class TestExtraction:
    def test_method_action_enctype(self):
        f = make_form(LOGIN)
        assert f.method == "POST"
        assert f.action == "https://example.com/login"
        assert f.enctype == "application/x-www-form-urlencoded"

    def test_defaults_to_get_on_page_url(self):
        f = make_form("<form><input name='q'></form>")
        assert f.method == "GET"
        assert f.action == PAGE_URL

    def test_relative_action_resolved(self):
        f = make_form("<form action='search'></form>")
        assert f.action == "https://example.com/app/search"

    @pytest.mark.parametrize(
        "action, expected",
        [
            ("../up?x=1", "https://example.com/up?x=1"),
            ("?page=2", "https://example.com/app/page.html?page=2"),
            ("//cdn.example.net/f", "https://cdn.example.net/f"),
        ],
    )
    def test_action_resolved_like_browser_urls(self, action, expected):
        f = make_form(f"<form action='{action}'></form>")
        assert f.action == expected
        assert f.action == str(httpx.URL(PAGE_URL).join(action))

    def test_unparsable_action_raises(self):
        with pytest.raises(InvalidURL):
            make_form("<form action='http://example.com:notaport/'></form>")

    def test_text_like_inputs(self):
        f = make_form(LOGIN)
        assert f.fields["user"] == ["guest"]
        assert f.fields["pass"] == [""]
        assert f.fields["csrf"] == ["tok"]

    def test_unchecked_checkbox_not_a_field(self):
        f = make_form(LOGIN)
        assert "remember" not in f.fields
        assert f.checkboxes["remember"] == "yes"

    def test_checked_checkbox_default_value(self):
        f = make_form(LOGIN)
        assert f.fields["news"] == ["on"]

    def test_submit_input_is_a_button_not_a_field(self):
        f = make_form(LOGIN)
        assert f.buttons == {"go": ["Log in"]}
        assert "go" not in f.fields

    def test_disabled_and_unnamed_controls_skipped(self):
        f = make_form(
            "<form><input name='a' value='1' disabled><input value='x'>"
            "<input name='b' value='2'></form>"
        )
        assert f.fields == {"b": ["2"]}

    def test_textarea(self):
        f = make_form("<form><textarea name='msg'>hello\nworld</textarea></form>")
        assert f.value("msg") == "hello\nworld"

    def test_button_elements(self):
        f = make_form(
            "<form><button name='save' value='s'>Save</button>"
            "<button type='reset' name='clear'>Clear</button>"
            "<button type='button' name='noop'>Noop</button></form>"
        )
        assert f.buttons == {"save": ["s"]}

    def test_reset_and_image_inputs_skipped(self):
        f = make_form(
            "<form><input type='reset' name='r'><input type='image' name='i'>"
            "<input type='button' name='b'></form>"
        )
        assert f.fields == {}
        assert f.buttons == {}

    def test_last_checked_radio_wins(self):
        f = make_form(
            "<form><input type='radio' name='c' value='red' checked>"
            "<input type='radio' name='c' value='blue' checked>"
            "<input type='radio' name='c' value='green'></form>"
        )
        assert f.fields["c"] == ["blue"]

    def test_repeated_names_keep_every_value(self):
        f = make_form(
            "<form><input type='checkbox' name='t' value='a' checked>"
            "<input type='checkbox' name='t' value='a' checked></form>"
        )
        assert f.fields["t"] == ["a", "a"]

    def test_file_input_declared(self):
        f = make_form("<form enctype='multipart/form-data'><input type='file' name='up'></form>")
        assert f.enctype == MULTIPART
        assert f.files == {"up": FileField()}

    def test_dom_is_the_form_element(self):
        f = make_form(LOGIN)
        assert f.dom.name == "form"


# ---------------------------------------------------------------------------
# Selects
# ---------------------------------------------------------------------------


SELECTS = """
<form>
  <select name="single">
    <option value="1" selected>One</option>
    <option value="2" selected>Two</option>
    <option>Three</option>
  </select>
  <select name="multi" multiple>
    <option value="a" selected>Alpha</option>
    <option value="b">Beta</option>
    <option value="c" selected>Gamma</option>
  </select>
  <select name="empty">
    <option value="x">X</option>
  </select>
</form>
"""


class TestSelects:
    def test_single_select_honours_first_selected_only(self):
        f = make_form(SELECTS)
        assert f.select_values("single") == ["1"]

    def test_multiple_select_keeps_all_selected(self):
        f = make_form(SELECTS)
        assert f.select_values("multi") == ["a", "c"]
        assert f.select_labels("multi") == ["Alpha", "Gamma"]

    def test_option_value_falls_back_to_label(self):
        f = make_form(SELECTS)
        assert f.selects["single"].values["Three"] == "Three"
        assert f.selects["single"].labels["Three"] == "Three"

    def test_select_without_selected_option_is_absent(self):
        f = make_form(SELECTS)
        assert "empty" not in f.fields
        assert f.select_values("empty") == []

    def test_select_by_label_replaces_selection(self):
        f = make_form(SELECTS)
        f.select_by_option_label("single", "Two")
        assert f.select_values("single") == ["2"]
        assert f.select_labels("single") == ["Two"]

    def test_select_by_value_multiple(self):
        f = make_form(SELECTS)
        f.select_by_option_value("multi", "b", "c")
        assert f.select_values("multi") == ["b", "c"]

    def test_several_values_on_single_select_rejected(self):
        f = make_form(SELECTS)
        with pytest.raises(NotSelectMultiple):
            f.select_by_option_value("single", "1", "2")
        assert f.select_values("single") == ["1"]

    def test_not_select_multiple_is_element_not_found(self):
        assert issubclass(NotSelectMultiple, ElementNotFound)

    def test_unknown_option_leaves_selection_unchanged(self):
        f = make_form(SELECTS)
        with pytest.raises(ElementNotFound):
            f.select_by_option_value("multi", "b", "zzz")
        assert f.select_values("multi") == ["a", "c"]
        with pytest.raises(ElementNotFound):
            f.select_by_option_label("multi", "Nope")

    def test_unknown_select(self):
        f = make_form(SELECTS)
        with pytest.raises(ElementNotFound):
            f.select_by_option_value("nope", "1")
        with pytest.raises(ElementNotFound):
            f.select_labels("nope")
        with pytest.raises(ElementNotFound):
            f.select_values("nope")

    def test_empty_selection_removes_field(self):
        f = make_form(SELECTS)
        f.select_by_option_value("multi")
        assert "multi" not in f.fields


# ---------------------------------------------------------------------------
# Field mutation
# ---------------------------------------------------------------------------


class TestFields:
    def test_input_replaces_existing_value(self):
        f = make_form(LOGIN)
        f.input("user", "admin")
        assert f.value("user") == "admin"

    def test_input_unknown_field_raises(self):
        f = make_form(LOGIN)
        with pytest.raises(ElementNotFound):
            f.input("nope", "x")

    def test_set_creates_field(self):
        f = make_form(LOGIN)
        f.set("extra", "1")
        assert f.fields["extra"] == ["1"]
        f.set("extra", "2")
        assert f.fields["extra"] == ["2"]

    def test_value_unknown_field_raises(self):
        with pytest.raises(ElementNotFound):
            make_form(LOGIN).value("nope")

    def test_remove_is_idempotent(self):
        f = make_form(LOGIN)
        f.remove("csrf")
        f.remove("csrf")
        assert "csrf" not in f.fields

    def test_remove_value_drops_one_instance(self):
        f = make_form(
            "<form><input type='checkbox' name='t' value='a' checked>"
            "<input type='checkbox' name='t' value='a' checked></form>"
        )
        f.remove_value("t", "a")
        assert f.fields["t"] == ["a"]
        f.remove_value("t", "a")
        assert "t" not in f.fields

    def test_remove_value_unknown_field_raises(self):
        with pytest.raises(ElementNotFound):
            make_form(LOGIN).remove_value("nope", "x")


# ---------------------------------------------------------------------------
# Checkboxes and files
# ---------------------------------------------------------------------------


class TestCheckboxes:
    def test_check_then_uncheck(self):
        f = make_form(LOGIN)
        assert not f.is_checked("remember")
        f.check("remember")
        assert f.is_checked("remember")
        assert f.fields["remember"] == ["yes"]
        f.uncheck("remember")
        assert not f.is_checked("remember")
        assert "remember" not in f.fields

    def test_unknown_checkbox_raises(self):
        f = make_form(LOGIN)
        for op in (f.check, f.uncheck, f.is_checked):
            with pytest.raises(ElementNotFound):
                op("user")


class TestFiles:
    def test_file_requires_declared_input(self):
        f = make_form(LOGIN)
        with pytest.raises(ElementNotFound):
            f.file("up", "a.txt", b"data")

    def test_file_on_declared_input(self):
        f = make_form("<form><input type='file' name='up'></form>")
        f.file("up", "a.txt", b"data")
        assert f.files["up"] == FileField(filename="a.txt", data=b"data")

    def test_set_file_adds_field(self):
        f = make_form(LOGIN)
        f.set_file("extra", "b.bin", b"\x00")
        assert f.files["extra"].filename == "b.bin"


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------


TWO_BUTTONS = """
<form method="post" action="/save">
  <input name="a" value="x">
  <input type="submit" name="submit1" value="one">
  <input type="submit" name="submit2" value="two">
  <input type="submit" name="submit2" value="three">
</form>
"""


class TestSubmission:
    def test_submission_values_include_only_clicked_button(self):
        f = make_form(TWO_BUTTONS)
        assert f.submission_values("submit2", "two") == {"a": ["x"], "submit2": ["two"]}
        assert f.submission_values() == {"a": ["x"]}

    def test_submission_values_is_a_copy(self):
        f = make_form(TWO_BUTTONS)
        f.submission_values()["a"].append("y")
        assert f.fields["a"] == ["x"]

    def test_click_posts_urlencoded(self):
        browser = AsyncMock()
        f = make_form(TWO_BUTTONS, browser)
        asyncio.run(f.click("submit2"))
        browser.post_form.assert_awaited_once_with(
            "https://example.com/save",
            {"a": ["x"], "submit2": ["two"]},
            via=PAGE_URL,
        )

    def test_submit_uses_first_button(self):
        browser = AsyncMock()
        f = make_form(TWO_BUTTONS, browser)
        asyncio.run(f.submit())
        values = browser.post_form.await_args.args[1]
        assert values == {"a": ["x"], "submit1": ["one"]}

    def test_submit_without_buttons(self):
        browser = AsyncMock()
        f = make_form("<form action='/s'><input name='q' value='v'></form>", browser)
        asyncio.run(f.submit())
        browser.open_form.assert_awaited_once_with(
            "https://example.com/s", {"q": ["v"]}, via=PAGE_URL
        )

    def test_click_by_value(self):
        browser = AsyncMock()
        f = make_form(TWO_BUTTONS, browser)
        asyncio.run(f.click_by_value("submit2", "three"))
        assert browser.post_form.await_args.args[1]["submit2"] == ["three"]

    def test_unknown_button_rejected(self):
        browser = AsyncMock()
        f = make_form(TWO_BUTTONS, browser)
        with pytest.raises(InvalidFormValue):
            asyncio.run(f.click("nope"))
        with pytest.raises(InvalidFormValue):
            asyncio.run(f.click_by_value("submit2", "nope"))
        browser.post_form.assert_not_awaited()

    def test_multipart_goes_through_post_multipart(self):
        browser = AsyncMock()
        f = make_form(
            "<form method='post' enctype='multipart/form-data' action='/up'>"
            "<input name='t' value='1'><input type='file' name='f'></form>",
            browser,
        )
        f.file("f", "a.txt", b"hi")
        asyncio.run(f.submit())
        browser.post_multipart.assert_awaited_once_with(
            "https://example.com/up",
            {"t": ["1"]},
            {"f": FileField(filename="a.txt", data=b"hi")},
            via=PAGE_URL,
        )
