"""Backupify backup inventory client.

The protected-user listing is a server-side DataTables endpoint: it takes
the page request envelope and answers with recordsTotal/recordsFiltered/data.
Storage usage arrives as display strings ("1.5 GB") and is normalized to
bytes before the listing is cached.
"""

import logging
from typing import Any, Dict, List, Optional

from apiwarden.core.services.pagination_service import PaginationService
from apiwarden.core.services.unit_converter import UnitConverter
from apiwarden.domain.interfaces.cache import CacheService
from apiwarden.domain.interfaces.transport import Transport
from apiwarden.domain.models.backup import BackupUser
from apiwarden.domain.models.common import HttpMethod, Url
from apiwarden.domain.models.page import AggregateResult, Column, Order, PageRequest
from apiwarden.infrastructure.cache.caching_service import make_cache_key
from apiwarden.infrastructure.credentials.token_credentials import StaticTokenCredentialer
from apiwarden.infrastructure.http.request_executor import RequestExecutor
from apiwarden.infrastructure.resilience.api_retry import ApiRetryService
from apiwarden.infrastructure.resilience.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

CUSTOMER_SERVICES = "%s/customer-services/users"

USER_COLUMNS = ("name", "email", "latestSnap", "usedBytes")
DEFAULT_APP_TYPE = "GoogleDrive"
DEFAULT_PAGE_SIZE = 75
USERS_TTL_SECONDS = 3 * 60 * 60
QUOTA_WINDOW_SECONDS = 60


class BackupifyClient:
    """Lists protected users and their storage usage."""

    def __init__(
        self,
        base_url: str,
        pagination_service: PaginationService,
        unit_converter: Optional[UnitConverter] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        cache_ttl: float = USERS_TTL_SECONDS,
    ):
        self.base_url = base_url.rstrip("/")
        self.pagination_service = pagination_service
        self.unit_converter = unit_converter or UnitConverter()
        self.page_size = page_size
        self.cache_ttl = cache_ttl

    @classmethod
    def from_settings(
        cls,
        settings: Dict[str, Any],
        transport: Transport,
        cache_service: CacheService,
        retry_service: Optional[ApiRetryService] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        cache_ttl: float = USERS_TTL_SECONDS,
    ) -> "BackupifyClient":
        """Wires a BackupifyClient from ``get_backupify_settings()`` output."""
        token = settings.get("api_token")
        credentialer = StaticTokenCredentialer(token) if token else None
        if credentialer is None:
            logger.warning("BACKUPIFY_API_TOKEN is not set; requests will be unauthenticated.")
        executor = RequestExecutor(
            transport=transport,
            rate_limiter=RateLimiter(capacity=settings["rate_limit"], interval=QUOTA_WINDOW_SECONDS),
            credentialer=credentialer,
        )
        pagination_service = PaginationService(executor, cache_service, retry_service)
        return cls(settings["base_url"], pagination_service, page_size=page_size, cache_ttl=cache_ttl)

    def build_url(self, endpoint: str, *identifiers: str) -> Url:
        url = endpoint % self.base_url
        for identifier in identifiers:
            url = f"{url}/{identifier}"
        return Url(url)

    def user_request(self, app_type: str = DEFAULT_APP_TYPE) -> PageRequest:
        """Envelope for the user listing, sorted by email ascending."""
        return PageRequest(
            columns=[Column(data=name) for name in USER_COLUMNS],
            order=[Order(column="1", dir="asc")],
            draw="1",
            start=0,
            length=self.page_size,
            extra={"appType": app_type},
        )

    async def get_all_users(
        self,
        app_type: str = DEFAULT_APP_TYPE,
        use_binary_base: bool = False,
    ) -> AggregateResult:
        """Retrieves every protected user of ``app_type`` with sizes in bytes."""
        url = self.build_url(CUSTOMER_SERVICES)
        request = self.user_request(app_type)
        cache_key = make_cache_key("POST", url, {"appType": app_type, "binary": use_binary_base})
        logger.info(f"Getting all {app_type} users from Backupify...")

        async def convert_sizes(aggregate: AggregateResult) -> None:
            await self.unit_converter.convert(aggregate.records, use_binary_base=use_binary_base)

        return await self.pagination_service.fetch_all(
            cache_key,
            url,
            request,
            BackupUser.from_dict,
            ttl=self.cache_ttl,
            method=HttpMethod("POST"),
            post_process=convert_sizes,
        )

    def filter_users_by_size(self, users: AggregateResult, size: float) -> List[BackupUser]:
        """Returns users whose converted usage is strictly greater than ``size`` bytes.

        Users whose usage could not be converted are never included.
        """
        filtered = []
        for user in users.records:
            if user.used_bytes_float is not None and user.used_bytes_float > size:
                filtered.append(user)
                logger.info(f"User: {user.name} has used {user.used_bytes} of storage")
        return filtered
