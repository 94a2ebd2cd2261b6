"""Interface for credential providers.

A credentialer supplies the current authentication headers and can swap the
active identity before the next request. The core never inspects token
contents.
"""

import abc

from ..models.common import Headers, Subject


class Credentialer(abc.ABC):
    """Abstract Base Class for supplying auth headers."""

    @abc.abstractmethod
    def headers(self) -> Headers:
        """Returns the headers to merge into the next request."""
        pass

    @abc.abstractmethod
    def refresh(self) -> None:
        """Re-acquires the active token, if the scheme supports it."""
        pass

    @abc.abstractmethod
    def impersonate(self, subject: Subject) -> None:
        """Switches the active identity to ``subject``.

        Raises:
            CredentialError: If the credential type cannot impersonate.
        """
        pass
