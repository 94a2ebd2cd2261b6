"""Credentialer implementations.

Token issuance (OAuth flows, service-account JWT minting) happens outside
this package. These adapters only hold or fetch a token and render it as an
``Authorization`` header.
"""

import logging
import threading
from typing import Callable, Optional

from apiwarden.core.exceptions import CredentialError
from apiwarden.domain.interfaces.credentials import Credentialer
from apiwarden.domain.models.common import Headers, Subject

logger = logging.getLogger(__name__)

# Okta API tokens use "SSWS"; OAuth access tokens and API keys use "Bearer"
SSWS_SCHEME = "SSWS"
BEARER_SCHEME = "Bearer"

TokenSource = Callable[[Optional[Subject]], str]


class StaticTokenCredentialer(Credentialer):
    """Fixed API token, e.g. an Okta SSWS token or a Google API key."""

    def __init__(self, token: str, scheme: str = BEARER_SCHEME):
        if not token:
            raise CredentialError("API token is empty.")
        self._token = token
        self.scheme = scheme

    def headers(self) -> Headers:
        return {"Authorization": f"{self.scheme} {self._token}"}

    def refresh(self) -> None:
        logger.debug("Static API tokens do not refresh.")

    def impersonate(self, subject: Subject) -> None:
        raise CredentialError(f"Static {self.scheme} tokens cannot impersonate '{subject}'.")


class TokenSourceCredentialer(Credentialer):
    """Delegates token minting to an injected callable.

    ``token_source(subject)`` returns an access token for ``subject`` (None
    meaning the credential's own identity). The token is fetched lazily and
    cached until ``refresh()`` or ``impersonate()`` invalidates it.
    """

    def __init__(self, token_source: TokenSource, subject: Optional[Subject] = None, scheme: str = BEARER_SCHEME):
        self._token_source = token_source
        self.subject = subject
        self.scheme = scheme
        self._token: Optional[str] = None
        self._lock = threading.Lock()

    def _fetch(self, subject: Optional[Subject]) -> str:
        token = self._token_source(subject)
        if not token:
            raise CredentialError(f"Token source returned no token for subject '{subject}'.")
        return token

    def headers(self) -> Headers:
        with self._lock:
            if self._token is None:
                self._token = self._fetch(self.subject)
            return {"Authorization": f"{self.scheme} {self._token}"}

    def refresh(self) -> None:
        with self._lock:
            self._token = self._fetch(self.subject)
        logger.info(f"Refreshed access token for subject: {self.subject or '<default>'}")

    def impersonate(self, subject: Subject) -> None:
        with self._lock:
            # Identity and token switch together or not at all
            token = self._fetch(subject)
            self.subject = subject
            self._token = token
        logger.info(f"Now acting as: {subject}")
