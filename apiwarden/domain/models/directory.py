"""Domain models for the user directory context (Okta, Google Workspace)."""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional


@dataclass
class DirectoryUser:
    """Provider-neutral view of a directory account."""
    id: str
    login: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    status: Optional[str] = None
    provider: str = "okta"
    profile: Dict[str, Any] = field(default_factory=dict)

    @property
    def display_name(self) -> str:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) or self.login

    @classmethod
    def from_okta(cls, payload: Mapping[str, Any]) -> "DirectoryUser":
        profile = dict(payload.get("profile") or {})
        return cls(
            id=str(payload["id"]),
            login=str(profile.get("login") or payload["id"]),
            email=profile.get("email"),
            first_name=profile.get("firstName"),
            last_name=profile.get("lastName"),
            status=payload.get("status"),
            provider="okta",
            profile=profile,
        )

    @classmethod
    def from_google(cls, payload: Mapping[str, Any]) -> "DirectoryUser":
        name = payload.get("name") or {}
        suspended = payload.get("suspended")
        return cls(
            id=str(payload["id"]),
            login=str(payload["primaryEmail"]),
            email=payload.get("primaryEmail"),
            first_name=name.get("givenName"),
            last_name=name.get("familyName"),
            status=None if suspended is None else ("SUSPENDED" if suspended else "ACTIVE"),
            provider="google",
            profile=dict(payload),
        )
