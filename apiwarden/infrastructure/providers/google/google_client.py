"""Google Workspace directory client.

Uses a fixed per-minute request budget; Google does not report a reset time
the way Okta does. Identity switching (domain-wide delegation) is delegated
to the credentialer, which is expected to mint tokens for the new subject.
https://developers.google.com/admin-sdk/directory/v1/limits
"""

import logging
from typing import Any, Dict, Optional

from apiwarden.core.exceptions import ConfigurationError
from apiwarden.domain.interfaces.cache import CacheService
from apiwarden.domain.interfaces.credentials import Credentialer
from apiwarden.domain.interfaces.transport import Transport
from apiwarden.domain.models.common import HttpMethod, Subject, Url
from apiwarden.domain.models.directory import DirectoryUser
from apiwarden.infrastructure.cache.caching_service import make_cache_key
from apiwarden.infrastructure.credentials.token_credentials import BEARER_SCHEME, StaticTokenCredentialer
from apiwarden.infrastructure.http.request_executor import RequestExecutor
from apiwarden.infrastructure.resilience.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

BASE_URL = "https://www.googleapis.com"
ADMIN_BASE_URL = "https://admin.googleapis.com"
CHROME_BASE_URL = "https://chromepolicy.googleapis.com"

DIRECTORY_USERS = "%s/admin/directory/v1/users"

QUOTA_WINDOW_SECONDS = 60
DEFAULT_TTL_SECONDS = 30 * 60


class GoogleClient:
    """Reads users from the Admin SDK Directory API."""

    def __init__(
        self,
        executor: RequestExecutor,
        credentialer: Credentialer,
        cache_service: CacheService,
        base_url: str = ADMIN_BASE_URL,
        cache_ttl: float = DEFAULT_TTL_SECONDS,
    ):
        self.executor = executor
        self.credentialer = credentialer
        self.cache_service = cache_service
        self.base_url = base_url
        self.cache_ttl = cache_ttl
        self.subject: Optional[Subject] = None

    @classmethod
    def from_settings(
        cls,
        settings: Dict[str, Any],
        transport: Transport,
        cache_service: CacheService,
        credentialer: Optional[Credentialer] = None,
        cache_ttl: float = DEFAULT_TTL_SECONDS,
    ) -> "GoogleClient":
        """Wires a GoogleClient; falls back to the configured API key."""
        if credentialer is None:
            api_key = settings.get("api_key")
            if not api_key:
                raise ConfigurationError("GOOGLE_API_KEY is not set")
            credentialer = StaticTokenCredentialer(api_key, scheme=BEARER_SCHEME)

        rate_limiter = RateLimiter(capacity=settings["rate_limit"], interval=QUOTA_WINDOW_SECONDS)
        executor = RequestExecutor(transport=transport, rate_limiter=rate_limiter, credentialer=credentialer)
        return cls(executor, credentialer, cache_service, cache_ttl=cache_ttl)

    def build_url(self, endpoint: str, *identifiers: str) -> Url:
        url = endpoint % self.base_url
        for identifier in identifiers:
            url = f"{url}/{identifier}"
        return Url(url)

    def impersonate_user(self, email: str) -> None:
        """Acts as ``email`` for every following request.

        Raises:
            CredentialError: If the credentialer cannot impersonate.
        """
        self.credentialer.impersonate(Subject(email))
        self.subject = Subject(email)
        logger.info(f"Google client now impersonating {email}")

    async def get_user(self, user_key: str) -> DirectoryUser:
        """Fetches one user by primary email, alias or id."""
        url = self.build_url(DIRECTORY_USERS, user_key)
        # Different identities may see different data
        cache_key = make_cache_key("GET", url, {"subject": self.subject})

        cached, found = await self.cache_service.get(cache_key)
        if found:
            return cached

        user = await self.executor.execute(HttpMethod("GET"), url, decoder=DirectoryUser.from_google)
        await self.cache_service.set(cache_key, user, self.cache_ttl)
        return user
