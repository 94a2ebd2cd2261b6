"""Okta user directory client.

Okta publishes its remaining quota and reset time on every response
(``X-Rate-Limit-Remaining`` / ``X-Rate-Limit-Reset``), so this client runs
its limiter in reset-aware mode.
https://developer.okta.com/docs/reference/rl-best-practices/
"""

import logging
from typing import Any, Dict, List, Optional

from apiwarden.core.exceptions import ConfigurationError
from apiwarden.domain.interfaces.cache import CacheService
from apiwarden.domain.interfaces.transport import Transport
from apiwarden.domain.models.common import HttpMethod, Url, UserId
from apiwarden.domain.models.directory import DirectoryUser
from apiwarden.infrastructure.cache.caching_service import make_cache_key
from apiwarden.infrastructure.credentials.token_credentials import SSWS_SCHEME, StaticTokenCredentialer
from apiwarden.infrastructure.http.request_executor import RequestExecutor
from apiwarden.infrastructure.resilience.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

# https://developer.okta.com/docs/api/#versioning
BASE_URL_TEMPLATE = "https://{org}.{domain}.com/api/v1"

OKTA_USERS = "%s/users"

DEFAULT_LIST_LIMIT = 200
QUOTA_WINDOW_SECONDS = 60
DEFAULT_TTL_SECONDS = 30 * 60


def build_base_url(org_name: str, domain: str) -> str:
    """Builds the API root from loosely formatted org and domain settings.

    ``"https://acme.okta.com"`` and ``"acme"`` both yield org ``acme``;
    ``".oktapreview.com/"`` yields domain ``oktapreview``.
    """
    org = org_name.strip()
    for prefix in ("https://", "http://"):
        if org.startswith(prefix):
            org = org[len(prefix):]
    org = org.rstrip("/")
    if org.endswith(".okta.com"):
        org = org[: -len(".okta.com")]

    domain = domain.strip().strip("./")
    if domain.endswith(".com"):
        domain = domain[: -len(".com")]

    if not org or not domain:
        raise ConfigurationError("Okta org name and base domain must not be empty.")
    return BASE_URL_TEMPLATE.format(org=org, domain=domain)


def _decode_users(payload: Any) -> List[DirectoryUser]:
    if not isinstance(payload, list):
        raise TypeError(f"Expected a list of users, got {type(payload).__name__}")
    return [DirectoryUser.from_okta(item) for item in payload]


class OktaClient:
    """Reads users from the Okta management API."""

    def __init__(
        self,
        base_url: str,
        executor: RequestExecutor,
        cache_service: CacheService,
        cache_ttl: float = DEFAULT_TTL_SECONDS,
    ):
        self.base_url = base_url
        self.executor = executor
        self.cache_service = cache_service
        self.cache_ttl = cache_ttl
        logger.info(f"OktaClient initialized for {base_url}")

    @classmethod
    def from_settings(
        cls,
        settings: Dict[str, Any],
        transport: Transport,
        cache_service: CacheService,
        cache_ttl: float = DEFAULT_TTL_SECONDS,
    ) -> "OktaClient":
        """Wires an OktaClient from ``get_okta_settings()`` output."""
        token = settings.get("api_token")
        if not token:
            raise ConfigurationError("OKTA_API_TOKEN is not set")
        rate_limiter = RateLimiter(
            capacity=settings["rate_limit"],
            interval=QUOTA_WINDOW_SECONDS,
            reset_aware=True,
        )
        executor = RequestExecutor(
            transport=transport,
            rate_limiter=rate_limiter,
            credentialer=StaticTokenCredentialer(token, scheme=SSWS_SCHEME),
        )
        base_url = build_base_url(settings["org_name"], settings["base_url"])
        return cls(base_url, executor, cache_service, cache_ttl)

    def build_url(self, endpoint: str, *identifiers: str) -> Url:
        """Formats ``endpoint`` with the base URL and appends path identifiers."""
        url = endpoint % self.base_url
        for identifier in identifiers:
            url = f"{url}/{identifier}"
        return Url(url)

    async def list_users(self, limit: int = DEFAULT_LIST_LIMIT, search: Optional[str] = None) -> List[DirectoryUser]:
        """Lists users (first page of ``limit`` users), cached for ``cache_ttl``."""
        url = self.build_url(OKTA_USERS)
        params: Dict[str, Any] = {"limit": limit}
        if search:
            params["search"] = search
        cache_key = make_cache_key("GET", url, params)

        cached, found = await self.cache_service.get(cache_key)
        if found:
            return cached

        logger.info("Getting users from Okta...")
        users = await self.executor.execute(HttpMethod("GET"), url, params=params, decoder=_decode_users)
        await self.cache_service.set(cache_key, users, self.cache_ttl)
        return users

    async def get_user(self, user_id: UserId) -> DirectoryUser:
        """Fetches one user by id or login."""
        url = self.build_url(OKTA_USERS, user_id)
        cache_key = make_cache_key("GET", url)

        cached, found = await self.cache_service.get(cache_key)
        if found:
            return cached

        user = await self.executor.execute(HttpMethod("GET"), url, decoder=DirectoryUser.from_okta)
        await self.cache_service.set(cache_key, user, self.cache_ttl)
        return user
