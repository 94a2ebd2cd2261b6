"""Command Handler: Orchestrates CLI command execution.

Receives commands from the main entry point (main.py), delegates the work to
the provider clients and renders the results. Errors stop at this boundary:
they are logged, shown to the user, and reported as a failed command.
"""

import asyncio
import logging
from typing import Optional

from apiwarden.domain.interfaces.cache import CacheService
from apiwarden.domain.interfaces.user_interface import UserInterface
from apiwarden.domain.models.common import UserId
from apiwarden.infrastructure.cli.display import format_bytes
from apiwarden.infrastructure.providers.backupify.backupify_client import BackupifyClient
from apiwarden.infrastructure.providers.google.google_client import GoogleClient
from apiwarden.infrastructure.providers.okta.okta_client import OktaClient

logger = logging.getLogger(__name__)

USER_COLUMNS = ("ID", "Login", "Name", "Status")


class CommandHandler:
    """Handles incoming commands and delegates to the provider clients."""

    def __init__(
        self,
        ui: UserInterface,
        cache_service: CacheService,
        backupify_client: Optional[BackupifyClient] = None,
        okta_client: Optional[OktaClient] = None,
        google_client: Optional[GoogleClient] = None,
    ):
        self.ui = ui
        self.cache_service = cache_service
        self.backupify_client = backupify_client
        self.okta_client = okta_client
        self.google_client = google_client

    async def handle_backup_users(
        self,
        app_type: str,
        use_binary_base: bool = False,
        min_size: Optional[float] = None,
        timeout: Optional[float] = None,
    ) -> bool:
        """Lists protected users, optionally only those above ``min_size`` bytes."""
        if self.backupify_client is None:
            self.ui.display_error("Backupify client is not configured.")
            return False

        logger.info(f"Handling 'backup-users' for app type {app_type}")
        try:
            users = await asyncio.wait_for(
                self.backupify_client.get_all_users(app_type, use_binary_base=use_binary_base),
                timeout,
            )
        except asyncio.TimeoutError:
            logger.error(f"Backup user listing timed out after {timeout}s")
            self.ui.display_error(f"Backup users command timed out after {timeout}s")
            return False
        except Exception as e:
            logger.error(f"Backup users command failed: {e}", exc_info=True)
            self.ui.display_error(f"Backup users command failed: {e}")
            return False

        records = users.records
        if min_size is not None:
            records = self.backupify_client.filter_users_by_size(users, min_size)

        self.ui.display_table(
            f"Backupify users ({app_type})",
            ("Name", "Email", "Latest Snapshot", "Used", "Bytes"),
            [
                (u.name, u.email, u.latest_snap, u.used_bytes, format_bytes(u.used_bytes_float))
                for u in records
            ],
            numeric_columns=("Bytes",),
        )
        self.ui.display_info(f"Showing {len(records)} of {users.records_total} users.")
        return True

    async def handle_directory_users(self, limit: int, search: Optional[str] = None) -> bool:
        """Lists Okta users."""
        if self.okta_client is None:
            self.ui.display_error("Okta client is not configured.")
            return False

        try:
            users = await self.okta_client.list_users(limit=limit, search=search)
        except Exception as e:
            logger.error(f"Directory users command failed: {e}", exc_info=True)
            self.ui.display_error(f"Directory users command failed: {e}")
            return False

        self.ui.display_table(
            "Okta users",
            USER_COLUMNS,
            [(u.id, u.login, u.display_name, u.status) for u in users],
        )
        return True

    async def handle_directory_user(self, user_id: str) -> bool:
        """Shows one Okta user."""
        if self.okta_client is None:
            self.ui.display_error("Okta client is not configured.")
            return False

        try:
            user = await self.okta_client.get_user(UserId(user_id))
        except Exception as e:
            logger.error(f"Directory user command failed: {e}", exc_info=True)
            self.ui.display_error(f"Directory user command failed: {e}")
            return False

        self.ui.display_table("Okta user", USER_COLUMNS, [(user.id, user.login, user.display_name, user.status)])
        return True

    async def handle_workspace_user(self, user_key: str, subject: Optional[str] = None) -> bool:
        """Shows one Google Workspace user, optionally as another account."""
        if self.google_client is None:
            self.ui.display_error("Google client is not configured.")
            return False

        try:
            if subject:
                self.google_client.impersonate_user(subject)
            user = await self.google_client.get_user(user_key)
        except Exception as e:
            logger.error(f"Workspace user command failed: {e}", exc_info=True)
            self.ui.display_error(f"Workspace user command failed: {e}")
            return False

        self.ui.display_table("Google Workspace user", USER_COLUMNS, [(user.id, user.login, user.display_name, user.status)])
        return True

    async def handle_clear_cache(self) -> bool:
        """Drops every cached response held by this process."""
        try:
            await self.cache_service.clear()
        except Exception as e:
            logger.error(f"Failed to clear cache: {e}", exc_info=True)
            self.ui.display_error(f"Failed to clear cache: {e}")
            return False
        self.ui.display_info("Response cache cleared.")
        return True
