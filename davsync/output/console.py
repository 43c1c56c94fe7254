# DAVSync Console Output
# Rich-based console output for accounts, folder lists and run summaries

from typing import Optional

from rich.console import Console as RichConsole
from rich.panel import Panel
from rich.table import Table

from davsync.provider import FolderRowData
from davsync.sync.orchestrator import AccountSyncResult
from davsync.sync.records import Account, AccountStatus


class Console:
    """
    Console output manager using Rich.

    Provides formatted output for account and sync operations.
    """

    def __init__(self, *, verbose: bool = False, colored: bool = True, console: Optional[RichConsole] = None):
        """
        Initialize console.

        Args:
            verbose: Enable verbose output.
            colored: Enable colored output.
            console: Rich console to write to (created if not given).
        """
        self.verbose = verbose
        self._console = console or RichConsole(no_color=not colored)

    def configure(self, *, verbose: bool, colored: bool) -> None:
        """Apply output settings to an existing console."""
        self.verbose = verbose
        self._console.no_color = not colored

    @property
    def rich(self) -> RichConsole:
        """Get the underlying Rich console."""
        return self._console

    def print(self, *args, **kwargs) -> None:
        """Print to console."""
        self._console.print(*args, **kwargs)

    def print_error(self, message: str) -> None:
        """Print error message."""
        self._console.print(f"[red]Error:[/red] {message}")

    def print_warning(self, message: str) -> None:
        """Print warning message."""
        self._console.print(f"[yellow]Warning:[/yellow] {message}")

    def print_success(self, message: str) -> None:
        """Print success message."""
        self._console.print(f"[green]{message}[/green]")

    def print_info(self, message: str) -> None:
        """Print info message."""
        self._console.print(f"[blue]{message}[/blue]")

    def print_accounts(self, accounts: list[Account]) -> None:
        """Print accounts as a table."""
        if not accounts:
            self._console.print("[dim]No accounts configured[/dim]")
            return

        table = Table(show_header=True, header_style="bold")
        table.add_column("ID")
        table.add_column("Name")
        table.add_column("Server")
        table.add_column("User", style="dim")
        table.add_column("Status")
        table.add_column("Message", style="dim")

        for account in accounts:
            scheme = "https" if account.https else "http"
            table.add_row(
                account.account,
                account.accountname,
                f"{scheme}://{account.host}",
                account.user,
                _format_account_status(account.status),
                account.status_message,
            )

        self._console.print(table)

    def print_folders(self, rows: list[FolderRowData], *, title: Optional[str] = None) -> None:
        """Print folder rows as a table."""
        if not rows:
            self._console.print("[dim]No folders to display[/dim]")
            return

        table = Table(title=title, show_header=True, header_style="bold")
        table.add_column("ID", style="dim")
        table.add_column("Type")
        table.add_column("Name")
        table.add_column("Selected")
        table.add_column("Status")

        for row in rows:
            selected = "[green]●[/green]" if row.selected else "[dim]○[/dim]"
            table.add_row(row.folder_id, row.type, row.name, selected, row.status)

        self._console.print(table)

    def print_sync_result(self, result: AccountSyncResult) -> None:
        """
        Print the summary of one account run.

        Args:
            result: Finalized result of the run.
        """
        drain = result.drain
        synced = drain.synced if drain is not None else 0
        failed = drain.failed if drain is not None else 0

        if self.verbose and drain is not None:
            for folder_id, folder_result in drain.folder_results.items():
                if folder_result.success:
                    self._console.print(
                        f"    [green]✓[/green] {folder_id}: {folder_result.downloaded} down, "
                        f"{folder_result.uploaded} up, {folder_result.deleted} deleted"
                    )
                else:
                    self._console.print(f"    [yellow]![/yellow] {folder_id}: {folder_result.errors} item error(s)")

        if drain is not None:
            for folder_id, error in drain.folder_errors.items():
                self._console.print(f"    [red]✗[/red] {folder_id}: {error}")

        lines = f"Folders: {synced} synced, {failed} failed"
        if result.discovery is not None and result.discovery.has_changes:
            d = result.discovery
            lines += (
                f"\nFolder list: {len(d.added)} added, {len(d.cached)} cached, "
                f"{len(d.restored)} restored, {len(d.evicted)} evicted"
            )

        if result.success:
            self._console.print(
                Panel(
                    f"[green]Sync completed[/green]\n{lines}",
                    title=f"Account {result.account}",
                    border_style="green",
                )
            )
        else:
            message = result.status_message or result.status.value
            self._console.print(
                Panel(
                    f"[red]Sync ended: {result.status.value}[/red] ({message})\n{lines}",
                    title=f"Account {result.account}",
                    border_style="red" if result.status == AccountStatus.ERROR else "yellow",
                )
            )

    def print_config_summary(self, config_path: str, accounts_count: int) -> None:
        """Print configuration summary."""
        self._console.print(
            Panel(
                f"Config: {config_path}\nAccounts: {accounts_count}",
                title="DAVSync Configuration",
                border_style="blue",
            )
        )


class RichFolderListView:
    """Folder list view that collects rows and renders them as a table."""

    def __init__(self, console: Console, title: Optional[str] = None):
        self.console = console
        self.title = title
        self.rows: dict[str, FolderRowData] = {}

    def add_row(self, row: FolderRowData) -> None:
        self.rows[row.folder_id] = row

    def update_row(self, row: FolderRowData) -> None:
        self.rows[row.folder_id] = row

    def render(self) -> None:
        """Print the collected rows."""
        self.console.print_folders(list(self.rows.values()), title=self.title)


def _format_account_status(status: AccountStatus) -> str:
    styles = {
        AccountStatus.OK: "[green]ok[/green]",
        AccountStatus.ERROR: "[red]error[/red]",
        AccountStatus.SYNCING: "[yellow]syncing[/yellow]",
        AccountStatus.DISABLED: "[dim]disabled[/dim]",
    }
    return styles.get(status, status.value)


def create_console(*, verbose: bool = False, colored: bool = True) -> Console:
    """
    Create a console instance.

    Args:
        verbose: Enable verbose output.
        colored: Enable colored output.

    Returns:
        Console instance.
    """
    return Console(verbose=verbose, colored=colored)
