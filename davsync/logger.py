"""Rich console diagnostics for sync runs."""

from typing import Optional

from rich.console import Console


class SyncLogger:
    """Rich console output for sync diagnostics.

    The orchestrator reports unexpected failures through ``report_exception``,
    so a run never crashes silently.
    """

    def __init__(self, console: Optional[Console] = None, verbose: bool = False):
        """Initialize logger.

        Args:
            console: Rich Console instance (defaults to stderr)
            verbose: Enable debug output
        """
        self.console = console or Console(stderr=True)
        self.verbose = verbose

    def debug(self, message: str) -> None:
        """Dim debug message, shown only when verbose."""
        if self.verbose:
            self.console.print(f"[dim]· {message}[/dim]")

    def info(self, message: str) -> None:
        """Blue info message."""
        self.console.print(f"[blue]ℹ[/blue] {message}")

    def success(self, message: str) -> None:
        """Green success message."""
        self.console.print(f"[green]✓[/green] {message}")

    def warning(self, message: str) -> None:
        """Yellow warning message."""
        self.console.print(f"[yellow]⚠[/yellow] {message}")

    def error(self, message: str) -> None:
        """Red error message."""
        self.console.print(f"[red]✗[/red] {message}")

    def report_exception(self, message: str) -> None:
        """Red error message followed by the traceback being handled.

        Must be called from within an ``except`` block.
        """
        self.error(message)
        self.console.print_exception(show_locals=self.verbose)
