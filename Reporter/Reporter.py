"""
Reporter/Reporter.py — Live console output and JSON report generation.

Provides the :class:`Reporter` used by the CLI to print each page as it
loads, status messages, asset download outcomes, and to produce the final
summary and report file.
"""
from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from Config import NAME, VERSION
from Models import DownloadResult, PageSummary

if TYPE_CHECKING:
    from Browser import Browser

logger = logging.getLogger(__name__)

# Single shared console instance (stdout)
console = Console()


class Reporter:
    """Collects visited pages and drives all user-visible output.

    Responsibilities:
    - Live rich-formatted page lines to stdout as navigations complete
    - Informational / error logging helpers
    - Final JSON report persistence
    - End-of-run summary table
    """

    def __init__(self, output_file: Optional[str] = None) -> None:
        self.output_file: Optional[str] = output_file
        self.pages: list[PageSummary] = []
        self.assets_saved: int = 0
        self.assets_failed: int = 0

    # ------------------------------------------------------------------
    # Display helpers
    # ------------------------------------------------------------------

    def print_banner(self) -> None:
        """Print the tool banner to the console."""
        console.print(
            Panel(
                f"[bold cyan]{NAME}[/bold cyan] {VERSION}  |  stateful headless web browser\n"
                "[dim]Scripted navigation: links, forms, history, assets.[/dim]",
                expand=False,
                style="bold white on black",
            )
        )

    def record_page(self, browser: "Browser", action: str = "open") -> PageSummary:
        """Record the browser's current page and print a one-liner for it."""
        page = PageSummary(
            url=str(browser.url),
            status_code=browser.status_code,
            title=browser.title,
            forms=len(browser.find("form")),
            links=len(browser.find("a[href]")),
            action=action,
        )
        self.pages.append(page)

        status_style = "green" if page.status_code < 400 else "red"
        console.print(
            f"[bold]{action.upper():>7}[/bold] "
            f"[{status_style}]{page.status_code}[/{status_style}] "
            f"[cyan]{page.url}[/cyan]  "
            f"title=[yellow]{page.title or '-'}[/yellow]  "
            f"forms=[dim]{page.forms}[/dim] links=[dim]{page.links}[/dim]"
        )
        return page

    def log_downloads(self, results: Iterable[DownloadResult]) -> None:
        """Tally asset download results and print each failure."""
        for result in results:
            if result.ok:
                self.assets_saved += 1
                logger.debug("Saved %s -> %s (%d bytes)", result.asset.url, result.path, result.size)
            else:
                self.assets_failed += 1
                self.log_error(f"Asset [cyan]{result.asset.url}[/cyan] failed: {result.error}")

    def log_info(self, message: str) -> None:
        """Print a standard informational message (supports Rich markup)."""
        console.print(f"[dim]\\[*][/dim] {message}")

    def log_error(self, message: str) -> None:
        """Print an error message (supports Rich markup)."""
        console.print(f"[bold red]\\[!][/bold red] {message}")

    def log_debug(self, message: str) -> None:
        """Emit a structured debug log (not printed to console)."""
        logger.debug(message)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self) -> None:
        """Serialise all visited pages to the JSON report file, if one was given."""
        if not self.output_file:
            return
        data = [asdict(p) for p in self.pages]
        try:
            Path(self.output_file).write_text(json.dumps(data, indent=2))
            console.print(f"\n[green]\\[+][/green] Report saved: [bold]{self.output_file}[/bold]")
        except OSError as exc:
            console.print(f"[red]\\[!][/red] Failed to save report: {exc}")

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    def print_summary(self) -> None:
        """Print an end-of-run summary table."""
        table = Table(title="Session Summary", box=box.ROUNDED, show_header=True)
        table.add_column("Metric", style="bold cyan", min_width=22)
        table.add_column("Value", style="white", justify="right")

        table.add_row("Pages loaded", str(len(self.pages)))
        if self.pages:
            table.add_row("Last page", self.pages[-1].url)
        table.add_row("Assets saved", str(self.assets_saved))

        if self.assets_failed:
            failed_str = f"[bold red]{self.assets_failed}[/bold red]"
        else:
            failed_str = f"[bold green]{self.assets_failed}[/bold green]"

        table.add_row("Assets failed", failed_str)

        console.print()
        console.print(table)
