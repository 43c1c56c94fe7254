"""Click-based CLI for DAVSync - CalDAV/CardDAV folder synchronization."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import click
import yaml
from pydantic import ValidationError
from rich.prompt import Confirm

from davsync import __version__
from davsync.config import (
    DavSyncConfig,
    ensure_config_exists,
    generate_default_config,
    get_config_path,
    load_config,
    validate_config_file,
)
from davsync.logger import SyncLogger
from davsync.output import Console, RichFolderListView
from davsync.provider import DavProvider
from davsync.sync import AccountBusyError, FolderRegistry, LocalKind, SyncContext, SyncStateStore
from davsync.sync.orchestrator import SYNC_JOB, AccountSyncResult
from davsync.sync.records import AccountStatus, new_account_entry
from davsync.utils import expand_path, load_object

console = Console()
logger = SyncLogger(console.rich)


@click.group()
@click.version_option(version=__version__, prog_name="davsync")
def cli() -> None:
    """DAVSync - CalDAV/CardDAV folder synchronization.

    Keeps the folder list of DAV accounts in step with the server and
    synchronizes the selected address books and calendars.
    """
    pass


def _load_config_or_exit() -> DavSyncConfig:
    """Load the configuration, printing the problem and exiting 1 on failure."""
    try:
        cfg = load_config()
        console.configure(verbose=cfg.output.verbose, colored=cfg.output.colored)
        return cfg
    except FileNotFoundError as e:
        logger.error(str(e))
    except ValidationError as e:
        logger.error(f"Invalid configuration: {e}")
    except yaml.YAMLError as e:
        logger.error(f"Invalid YAML syntax: {e}")
    sys.exit(1)


def _open_stores(config: DavSyncConfig) -> tuple[FolderRegistry, SyncStateStore]:
    registry = FolderRegistry(expand_path(config.storage.registry_path))
    state_store = SyncStateStore(expand_path(config.storage.state_path))
    return registry, state_store


def _build_provider(config: DavSyncConfig, *, with_plugins: bool = False, verbose: bool = False) -> DavProvider:
    """
    Build the provider from the configuration.

    Args:
        config: Loaded configuration.
        with_plugins: Also instantiate the transport and target managers.
        verbose: Enable debug diagnostics.

    Returns:
        Configured provider.
    """
    registry, state_store = _open_stores(config)
    sync_logger = SyncLogger(console.rich, verbose=verbose or config.output.verbose)

    transport = None
    targets = None
    if with_plugins:
        if not config.plugins.transport or not config.plugins.targets:
            logger.error("plugins.transport and plugins.targets must be configured to sync")
            sys.exit(1)
        try:
            transport = load_object(config.plugins.transport)()
            targets = {LocalKind(kind): manager for kind, manager in load_object(config.plugins.targets)().items()}
        except (ImportError, ValueError) as e:
            logger.error(f"Cannot load plugin: {e}")
            sys.exit(1)

    return DavProvider(
        registry,
        state_store,
        targets,
        transport,
        logger=sync_logger,
        cache_policy=config.cache.to_policy(),
    )


# =============================================================================
# Config commands
# =============================================================================


@cli.group()
def config() -> None:
    """Manage the DAVSync configuration file."""
    pass


@config.command("init")
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing configuration")
def config_init(force: bool) -> None:
    """Create the default configuration file."""
    config_path = get_config_path()
    if force and config_path.exists():
        config_path.write_text(generate_default_config(), encoding="utf-8")
        logger.success(f"Configuration reset: {config_path}")
        return

    config_path, created = ensure_config_exists(config_path)
    if created:
        logger.success(f"Configuration created: {config_path}")
    else:
        logger.warning(f"Configuration already exists: {config_path} (use --force to overwrite)")


@config.command("show")
def config_show() -> None:
    """Show the effective configuration."""
    cfg = _load_config_or_exit()
    registry, _ = _open_stores(cfg)
    console.print_config_summary(str(get_config_path()), len(registry.get_accounts()))
    console.print(
        yaml.dump(cfg.model_dump(mode="json"), default_flow_style=False, sort_keys=False, allow_unicode=True),
        markup=False,
    )


@config.command("check")
@click.argument("file", type=click.Path(exists=True, path_type=Path))
def config_check(file: Path) -> None:
    """Validate a configuration file.

    \b
    Example:
        davsync config check ~/.config/davsync/config.yaml
    """
    is_valid, errors = validate_config_file(file)
    if is_valid:
        logger.success(f"Configuration is valid: {file}")
        return

    logger.error(f"Configuration is invalid: {file}")
    for error in errors:
        console.print(f"  [yellow]{error}[/yellow]")
    sys.exit(1)


# =============================================================================
# Account commands
# =============================================================================


@cli.group()
def account() -> None:
    """Manage DAV accounts."""
    pass


@account.command("add")
@click.argument("name")
@click.option("--host", required=True, help="Server host, optionally with path")
@click.option("--user", required=True, help="User name")
@click.option("--no-https", is_flag=True, help="Connect over plain http")
@click.option("--downloadonly", is_flag=True, help="Never push local changes")
def account_add(name: str, host: str, user: str, no_https: bool, downloadonly: bool) -> None:
    """Add a new (disabled) account."""
    cfg = _load_config_or_exit()
    registry, _ = _open_stores(cfg)

    entry = new_account_entry()
    entry.accountname = name
    entry.host = host
    entry.user = user
    entry.https = not no_https
    entry.downloadonly = downloadonly

    stored = registry.add_account(entry)
    logger.success(f"Account added: {stored.account} ({name})")
    logger.info(f"Enable it with: davsync account enable {stored.account}")


@account.command("list")
def account_list() -> None:
    """List all accounts."""
    cfg = _load_config_or_exit()
    registry, _ = _open_stores(cfg)
    console.print_accounts(registry.get_accounts())


@account.command("enable")
@click.argument("account_id")
def account_enable(account_id: str) -> None:
    """Enable an account; cached folders are restored."""
    provider = _build_provider(_load_config_or_exit())
    try:
        restored = provider.enable_account(account_id)
    except KeyError as e:
        logger.error(str(e.args[0]))
        sys.exit(1)
    logger.success(f"Account {account_id} enabled ({restored} folder(s) restored)")


@account.command("disable")
@click.argument("account_id")
def account_disable(account_id: str) -> None:
    """Disable an account; its folders are kept cached."""
    provider = _build_provider(_load_config_or_exit())
    try:
        cached = provider.disable_account(account_id)
    except KeyError as e:
        logger.error(str(e.args[0]))
        sys.exit(1)
    logger.success(f"Account {account_id} disabled ({cached} folder(s) cached)")


@account.command("remove")
@click.argument("account_id")
@click.option("--force", "-f", is_flag=True, help="Skip confirmation prompt")
def account_remove(account_id: str, force: bool) -> None:
    """Remove an account with all its folders and sync markers."""
    cfg = _load_config_or_exit()
    registry, state_store = _open_stores(cfg)
    if not registry.has_account(account_id):
        logger.error(f"Account '{account_id}' not found")
        sys.exit(1)

    if not force and not Confirm.ask(f"Remove account {account_id}?", default=False):
        logger.warning("Cancelled")
        return

    registry.remove_account(account_id)
    state_store.clear_account(account_id)
    logger.success(f"Account {account_id} removed")


# =============================================================================
# Folder commands
# =============================================================================


@cli.command("folders")
@click.argument("account_id")
@click.option("--cached", is_flag=True, help="Also show cached folders")
def folders(account_id: str, cached: bool) -> None:
    """Show the folder list of an account."""
    provider = _build_provider(_load_config_or_exit())
    if not provider.registry.has_account(account_id):
        logger.error(f"Account '{account_id}' not found")
        sys.exit(1)

    view = RichFolderListView(console, title=f"Folders of account {account_id}")
    provider.ui.populate_folder_list(view, account_id, include_cached=cached)
    view.render()


def _set_selected(account_id: str, folder_id: str, selected: bool) -> None:
    provider = _build_provider(_load_config_or_exit())
    try:
        provider.set_folder_selected(account_id, folder_id, selected)
    except KeyError as e:
        logger.error(str(e.args[0]))
        sys.exit(1)
    verb = "selected" if selected else "unselected"
    logger.success(f"Folder {folder_id} {verb}")


@cli.command("select")
@click.argument("account_id")
@click.argument("folder_id")
def select(account_id: str, folder_id: str) -> None:
    """Select a folder for synchronization."""
    _set_selected(account_id, folder_id, True)


@cli.command("unselect")
@click.argument("account_id")
@click.argument("folder_id")
def unselect(account_id: str, folder_id: str) -> None:
    """Exclude a folder from synchronization."""
    _set_selected(account_id, folder_id, False)


# =============================================================================
# Sync command
# =============================================================================


@cli.command()
@click.argument("account_id", required=False)
@click.option("--all", "sync_all", is_flag=True, help="Sync every enabled account")
@click.option("--folder", "folder_id", default=None, help="Only sync this folder")
@click.option("--job", default=SYNC_JOB, show_default=True, help="Job to run")
@click.option("--verbose", "-v", is_flag=True, help="Show detailed output")
def sync(account_id: Optional[str], sync_all: bool, folder_id: Optional[str], job: str, verbose: bool) -> None:
    """Synchronize an account, or all enabled accounts with --all.

    \b
    Examples:
        davsync sync 1               # Sync account 1
        davsync sync 1 --folder f2   # Sync one folder of account 1
        davsync sync --all           # Sync all enabled accounts
    """
    if not account_id and not sync_all:
        raise click.UsageError("Give an ACCOUNT_ID or use --all")

    cfg = _load_config_or_exit()
    provider = _build_provider(cfg, with_plugins=True, verbose=verbose)
    console.configure(verbose=verbose or cfg.output.verbose, colored=cfg.output.colored)
    registry = provider.registry

    results: list[AccountSyncResult] = []
    if sync_all:
        account_ids = [a.account for a in registry.get_accounts() if a.status != AccountStatus.DISABLED]
        if not account_ids:
            logger.warning("No enabled accounts")
            return
        if provider.orchestrator is None:
            logger.error("No transport configured")
            sys.exit(1)
        outcome = provider.orchestrator.start_many(
            account_ids, job, max_workers=cfg.sync.max_parallel_accounts
        )
        results.extend(outcome.values())
    else:
        if not registry.has_account(account_id):
            logger.error(f"Account '{account_id}' not found")
            sys.exit(1)
        try:
            results.append(provider.start(SyncContext(account=account_id, folder=folder_id), job))
        except AccountBusyError as e:
            logger.error(str(e))
            sys.exit(1)

    for result in results:
        console.print_sync_result(result)

    if not all(result.success for result in results):
        sys.exit(1)


if __name__ == "__main__":
    cli()
