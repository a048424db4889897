"""
main.py — Entry point for the Surf command-line browser.

Sets up the CLI, configures logging, builds a :class:`~Browser.Browser`
from the options, then opens the start URL, follows the requested clicks,
fills and submits a form, and optionally saves the final page with its
assets. Every loaded page is printed as it arrives and recorded in the
JSON report.

Usage::

    python main.py https://target.com [options]

See ``python main.py --help`` for full documentation.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional

import httpx

from Browser import ON_ERROR, ON_LOAD, ON_REQUEST, Browser, Event
from Config import Attribute, BrowserConfig, create_user_agent
from Errors import BrowserError
from Form import Form
from Reporter import Reporter

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# CLI definition
# ---------------------------------------------------------------------------


def _pair(text: str, sep: str) -> tuple[str, str]:
    name, found, value = text.partition(sep)
    if not found or not name.strip():
        raise argparse.ArgumentTypeError(f"expected NAME{sep}VALUE, got {text!r}")
    return name.strip(), value.strip() if sep == ":" else value


def field_pair(text: str) -> tuple[str, str]:
    """Parse ``NAME=VALUE``."""
    return _pair(text, "=")


def header_pair(text: str) -> tuple[str, str]:
    """Parse ``'Name: value'``."""
    return _pair(text, ":")


def build_arg_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="surf",
        description="Stateful headless web browser for scripted navigation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=r"""
Examples
────────
  Print a page:
    python main.py https://example.com

  Follow two links, then save the page with its assets:
    python main.py https://example.com --click 'a.docs' --click '#next' \
                   --save-dir ./mirror

  Log in through a form:
    python main.py https://target.com/login \
                   --form 'form#login' --field user=admin --field pass=secret \
                   --check remember --button submit --output pages.json
        """,
    )

    # ── Target ────────────────────────────────────────────────────────────────
    parser.add_argument(
        "url",
        metavar="URL",
        help="Absolute http(s) URL to open first",
    )

    # ── Navigation ────────────────────────────────────────────────────────────
    nav = parser.add_argument_group("navigation")
    nav.add_argument(
        "--click",
        action="append",
        default=[],
        metavar="SELECTOR",
        help="CSS selector of an anchor to follow; repeat to follow several in order",
    )
    nav.add_argument(
        "--history-max",
        type=int,
        default=0,
        metavar="N",
        help="Maximum history entries kept (default: 0 = unlimited)",
    )

    # ── Form ──────────────────────────────────────────────────────────────────
    form = parser.add_argument_group("form")
    form.add_argument(
        "--form",
        metavar="SELECTOR",
        help="CSS selector of the form to fill and submit after navigating",
    )
    form.add_argument(
        "--field",
        type=field_pair,
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Set a form field (created when absent)",
    )
    form.add_argument(
        "--check",
        action="append",
        default=[],
        metavar="NAME",
        help="Check a checkbox",
    )
    form.add_argument(
        "--select",
        type=field_pair,
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Select an option by value; repeat a NAME for select-multiple",
    )
    form.add_argument(
        "--button",
        metavar="NAME",
        help="Submit through this button (default: first submit button)",
    )

    # ── Policy ────────────────────────────────────────────────────────────────
    policy = parser.add_argument_group("policy")
    policy.add_argument(
        "--no-redirects",
        action="store_true",
        help="Fail instead of following HTTP redirects",
    )
    policy.add_argument(
        "--no-referer",
        action="store_true",
        help="Never send the Referer header",
    )
    policy.add_argument(
        "--no-meta-refresh",
        action="store_true",
        help="Ignore <meta http-equiv=\"refresh\"> tags",
    )

    # ── HTTP ──────────────────────────────────────────────────────────────────
    http = parser.add_argument_group("http")
    http.add_argument(
        "--user-agent",
        default=None,
        metavar="UA",
        help="User-Agent header value",
    )
    http.add_argument(
        "--header",
        type=header_pair,
        action="append",
        default=[],
        metavar="'Name: value'",
        help="Extra header sent with every request",
    )
    http.add_argument(
        "--proxy",
        metavar="URL",
        help="HTTP proxy to route traffic through (e.g. http://127.0.0.1:8080)",
    )
    http.add_argument(
        "--insecure",
        action="store_true",
        help="Do not verify TLS certificates",
    )

    # ── Output ────────────────────────────────────────────────────────────────
    out = parser.add_argument_group("output")
    out.add_argument(
        "--save-dir",
        metavar="DIR",
        help="Save the final page as DIR/index.html together with its assets",
    )
    out.add_argument(
        "--workers",
        type=int,
        default=4,
        metavar="N",
        help="Concurrent asset downloads for --save-dir (default: 4)",
    )
    out.add_argument(
        "--output",
        default=None,
        metavar="FILE",
        help="JSON report of every loaded page",
    )
    out.add_argument(
        "--verbose",
        action="store_true",
        help="Enable DEBUG-level logging",
    )

    return parser


def build_config(args: argparse.Namespace) -> BrowserConfig:
    """Translate parsed CLI options into a :class:`BrowserConfig`."""
    config = BrowserConfig(
        user_agent=args.user_agent or create_user_agent(),
        headers=dict(args.header),
        history_max=args.history_max,
        proxy=args.proxy,
        verify=not args.insecure,
        download_workers=args.workers,
    )
    config.attributes[Attribute.FOLLOW_REDIRECTS] = not args.no_redirects
    config.attributes[Attribute.SEND_REFERER] = not args.no_referer
    config.attributes[Attribute.META_REFRESH_HANDLING] = not args.no_meta_refresh
    return config


# ---------------------------------------------------------------------------
# Main async entry point
# ---------------------------------------------------------------------------


def _fill_form(browser: Browser, args: argparse.Namespace) -> Form:
    form = browser.form(args.form)
    for name, value in args.field:
        form.set(name, value)
    for name in args.check:
        form.check(name)
    selected: dict[str, list[str]] = {}
    for name, value in args.select:
        selected.setdefault(name, []).append(value)
    for name, values in selected.items():
        form.select_by_option_value(name, *values)
    return form


async def run(args: argparse.Namespace, transport: Optional[httpx.AsyncBaseTransport] = None) -> int:
    """Drive one browsing session; return the process exit code."""
    reporter = Reporter(output_file=args.output)
    reporter.print_banner()

    async with Browser(build_config(args), transport=transport) as browser:
        browser.events.add_event_listener(
            ON_REQUEST,
            lambda e: logger.debug("→ %s %s", e.args.get("request").method, e.args.get("request").url),
        )
        browser.events.add_event_listener(
            ON_LOAD, lambda e: logger.debug("Loaded %s", e.args.get("state").url)
        )

        def _on_error(event: Event) -> None:
            logger.debug("Navigation error: %s", event.args.error)

        browser.events.add_event_listener(ON_ERROR, _on_error)

        try:
            await browser.open(args.url)
            reporter.record_page(browser, "open")

            for selector in args.click:
                await browser.click(selector)
                reporter.record_page(browser, "click")

            if args.form:
                form = _fill_form(browser, args)
                if args.button:
                    await form.click(args.button)
                else:
                    await form.submit()
                reporter.record_page(browser, "submit")

            if args.save_dir:
                results = await browser.save_page(args.save_dir)
                reporter.log_downloads(results)
                reporter.log_info(
                    f"Saved page to [bold]{args.save_dir}[/bold] "
                    f"({reporter.assets_saved} asset(s), {reporter.assets_failed} failed)"
                )
        except (BrowserError, httpx.HTTPError) as exc:
            reporter.log_error(f"{type(exc).__name__}: {exc}")
            exit_code = 1
        else:
            exit_code = 0

    # ── Persist and summarise ─────────────────────────────────────────────────
    reporter.save()
    reporter.print_summary()
    return exit_code


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main(argv: Optional[list[str]] = None) -> None:
    """Parse arguments, configure logging, and run the async main loop."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    if args.history_max < 0:
        parser.error("--history-max must be >= 0")
    if args.workers < 1:
        parser.error("--workers must be >= 1")

    # ── Logging setup ─────────────────────────────────────────────────────────
    log_level = logging.DEBUG if args.verbose else logging.ERROR
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)-8s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    # Suppress noisy library logs unless in verbose mode
    if not args.verbose:
        for lib in ("httpx", "httpcore", "asyncio"):
            logging.getLogger(lib).setLevel(logging.WARNING)

    try:
        exit_code = asyncio.run(run(args))
    except KeyboardInterrupt:
        exit_code = 130
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
