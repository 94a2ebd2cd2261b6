"""Domain models for the backup inventory (Backupify) context."""

from dataclasses import dataclass
from typing import Any, Mapping, Optional


@dataclass
class BackupUser:
    """A protected account and its storage usage as reported by the provider.

    ``used_bytes`` is the human readable string (e.g. ``"1.5 GB"``);
    ``used_bytes_float`` is filled in by the unit converter and stays None
    when the string cannot be parsed.
    """
    name: str
    email: str
    latest_snap: Optional[str] = None
    used_bytes: str = ""
    used_bytes_float: Optional[float] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "BackupUser":
        return cls(
            name=str(payload["name"]),
            email=str(payload["email"]),
            latest_snap=payload.get("latestSnap"),
            used_bytes=str(payload.get("usedBytes") or ""),
        )
