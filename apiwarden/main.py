"""Main entry point for the apiwarden application.

Sets up the Typer CLI application, performs dependency injection (Composition Root),
defines CLI commands, and delegates execution to the CommandHandler.
"""

import asyncio
import logging
import sys
from typing import Annotated, Any, Coroutine, Dict, Optional

import typer

from apiwarden.core.command_handler import CommandHandler
from apiwarden.core.exceptions import ConfigurationError
from apiwarden.infrastructure.cache.caching_service import ResponseCache
from apiwarden.infrastructure.cli.display import ConsoleDisplay
from apiwarden.infrastructure.config.settings import (
    get_backupify_settings,
    get_cache_ttl,
    get_config,
    get_google_settings,
    get_http_timeout,
    get_max_retries,
    get_okta_settings,
    get_page_size,
    load_configuration,
)
from apiwarden.infrastructure.http.requests_transport import RequestsTransport
from apiwarden.infrastructure.monitoring.logger_setup import resolve_log_level, setup_logging
from apiwarden.infrastructure.providers.backupify.backupify_client import DEFAULT_APP_TYPE, BackupifyClient
from apiwarden.infrastructure.providers.google.google_client import GoogleClient
from apiwarden.infrastructure.providers.okta.okta_client import OktaClient
from apiwarden.infrastructure.resilience.api_retry import ApiRetryService

logger = logging.getLogger(__name__)

# --- Dependency Injection Container (Manual) ---

_dependencies: Optional[Dict[str, Any]] = None


def create_dependencies() -> Dict[str, Any]:
    """Creates and wires up all dependencies for the application.

    This acts as the Composition Root. Providers without credentials are
    left unset; their commands report that instead of failing at startup.
    """
    dependencies: Dict[str, Any] = {}
    try:
        # 1. Load Configuration First
        load_configuration()
        log_level = resolve_log_level(get_config("logging.level", "INFO"))
        log_file = get_config("logging.file")
        log_format = get_config("logging.format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        setup_logging(log_level=log_level, log_file=log_file, log_format=log_format)
        logger.info("Configuration and logging initialized.")

        # 2. Shared infrastructure
        dependencies["ui"] = ConsoleDisplay()
        dependencies["transport"] = RequestsTransport(timeout=get_http_timeout())
        dependencies["cache_service"] = ResponseCache(default_ttl=get_cache_ttl())
        dependencies["api_retry_service"] = ApiRetryService(max_retries=get_max_retries())

        # 3. Provider clients, each with its own limiter
        try:
            dependencies["okta_client"] = OktaClient.from_settings(
                get_okta_settings(),
                transport=dependencies["transport"],
                cache_service=dependencies["cache_service"],
            )
        except ConfigurationError as e:
            logger.warning(f"Okta client disabled: {e}")
            dependencies["okta_client"] = None

        try:
            dependencies["google_client"] = GoogleClient.from_settings(
                get_google_settings(),
                transport=dependencies["transport"],
                cache_service=dependencies["cache_service"],
            )
        except ConfigurationError as e:
            logger.warning(f"Google client disabled: {e}")
            dependencies["google_client"] = None

        dependencies["backupify_client"] = BackupifyClient.from_settings(
            get_backupify_settings(),
            transport=dependencies["transport"],
            cache_service=dependencies["cache_service"],
            retry_service=dependencies["api_retry_service"],
            page_size=get_page_size(),
            cache_ttl=get_cache_ttl(),
        )

        # 4. Command Handler
        dependencies["command_handler"] = CommandHandler(
            ui=dependencies["ui"],
            cache_service=dependencies["cache_service"],
            backupify_client=dependencies["backupify_client"],
            okta_client=dependencies["okta_client"],
            google_client=dependencies["google_client"],
        )
        logger.info("All dependencies initialized successfully.")
        return dependencies

    except ConfigurationError as e:
        logger.error(f"Fatal Error during application initialization: {e}", exc_info=True)
        if dependencies.get("ui"):
            dependencies["ui"].display_error(f"Application Initialization Failed: {e}")
        else:
            print(f"FATAL ERROR during initialization: {e}", file=sys.stderr)
        raise typer.Exit(code=1)


def get_dependencies() -> Dict[str, Any]:
    global _dependencies
    if _dependencies is None:
        _dependencies = create_dependencies()
    return _dependencies


def reset_dependencies() -> None:
    """Drops the wired instances so the next command rebuilds them."""
    global _dependencies
    if _dependencies is not None and _dependencies.get("transport") is not None:
        _dependencies["transport"].close()
    _dependencies = None


# --- Typer App Definition ---
app = typer.Typer(
    name="apiwarden",
    help="apiwarden: rate-limited, cached access to Okta, Google Workspace and Backupify.",
    add_completion=False,
)


def run_async(coro: Coroutine[Any, Any, bool]) -> None:
    """Runs a handler coroutine and turns a failed command into exit code 1."""
    succeeded = asyncio.run(coro)
    if not succeeded:
        raise typer.Exit(code=1)


def _handler() -> CommandHandler:
    return get_dependencies()["command_handler"]


# --- CLI Commands ---

@app.command(name="backup-users")
def backup_users_command(
    app_type: Annotated[str, typer.Option("--app-type", "-a", help="Backupify application type.")] = DEFAULT_APP_TYPE,
    binary: Annotated[bool, typer.Option("--binary", help="Interpret KB/MB/GB/TB as powers of 1024.")] = False,
    min_size: Annotated[
        Optional[float],
        typer.Option("--min-size", help="Only show users storing more than this many bytes."),
    ] = None,
    timeout: Annotated[
        Optional[float],
        typer.Option("--timeout", help="Give up after this many seconds."),
    ] = None,
):
    """List every protected user with normalized storage usage."""
    run_async(_handler().handle_backup_users(app_type, use_binary_base=binary, min_size=min_size, timeout=timeout))


@app.command(name="directory-users")
def directory_users_command(
    limit: Annotated[int, typer.Option("--limit", "-l", min=1, help="Maximum number of users to return.")] = 200,
    search: Annotated[Optional[str], typer.Option("--search", "-s", help="Okta search expression.")] = None,
):
    """List Okta users."""
    run_async(_handler().handle_directory_users(limit, search))


@app.command(name="directory-user")
def directory_user_command(
    user_id: Annotated[str, typer.Argument(help="Okta user id or login.")],
):
    """Show one Okta user."""
    run_async(_handler().handle_directory_user(user_id))


@app.command(name="workspace-user")
def workspace_user_command(
    user_key: Annotated[str, typer.Argument(help="Primary email, alias or id.")],
    subject: Annotated[Optional[str], typer.Option("--as", help="Account to impersonate.")] = None,
):
    """Show one Google Workspace user."""
    run_async(_handler().handle_workspace_user(user_key, subject))


@app.command(name="clear-cache")
def clear_cache_command():
    """Empty the in-memory response cache.

    The cache lives only as long as the process, so a fresh CLI run always
    starts empty and this command has nothing to drop. It is for embedding
    apiwarden in a long-running process that reuses the wired dependencies.
    """
    run_async(_handler().handle_clear_cache())


def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    logger.info("Starting apiwarden application...")
    app()


if __name__ == "__main__":
    cli_entry_point()
