"""
Cache and lock entry types shared by the key/value store and the SWR coordinator.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ..core.utils.date_utils import ensure_utc, parse_iso


@dataclass
class CacheEntry:
    """A stored value with its logical lifetime."""

    key: str
    value: Any
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return ensure_utc(now) >= ensure_utc(self.expires_at)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for storage."""
        return {
            "v": self.value,
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, key: str, data: dict[str, Any]) -> "CacheEntry | None":
        """Deserialize a stored payload; None if the timestamps are unreadable."""
        created_at = parse_iso(data.get("created_at"))
        expires_at = parse_iso(data.get("expires_at"))
        if created_at is None or expires_at is None:
            return None
        return cls(key=key, value=data.get("v"), created_at=created_at, expires_at=expires_at)
