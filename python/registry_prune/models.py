"""
Data classes for Scaleway registry resources.

Instances are built from the JSON payloads returned by the registry API with
the ``from_api`` constructors; missing required keys raise KeyError and bad
values raise ValueError.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class Status(Enum):
    """Status shared by namespaces, images and tags"""
    UNKNOWN = "unknown"
    READY = "ready"
    DELETING = "deleting"
    ERROR = "error"
    LOCKED = "locked"

    @classmethod
    def parse(cls, value: str) -> "Status":
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"invalid status: {value!r}")


def parse_timestamp(timestamp_str: str) -> datetime:
    """Parse an API timestamp into an aware UTC datetime

    Args:
        timestamp_str: ISO format timestamp string (may end with 'Z')

    Returns:
        datetime in UTC
    """
    if not isinstance(timestamp_str, str) or not timestamp_str:
        raise ValueError(f"invalid timestamp: {timestamp_str!r}")
    ts = datetime.fromisoformat(timestamp_str.replace('Z', '+00:00'))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def _optional_timestamp(value: Optional[str]) -> Optional[datetime]:
    return parse_timestamp(value) if value else None


@dataclass(frozen=True)
class Namespace:
    """A registry namespace"""

    id: str
    name: str
    description: str = ""
    organization_id: str = ""
    status: Status = Status.UNKNOWN
    status_message: str = ""
    endpoint: str = ""
    is_public: bool = False
    # Only present when fetched one at a time via get_namespace
    size: Optional[int] = None
    image_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Namespace":
        return cls(
            id=data["id"],
            name=data["name"],
            description=data.get("description") or "",
            organization_id=data.get("organization_id") or "",
            status=Status.parse(data.get("status", "unknown")),
            status_message=data.get("status_message") or "",
            endpoint=data.get("endpoint") or "",
            is_public=bool(data.get("is_public", False)),
            size=data.get("size"),
            image_count=int(data.get("image_count") or 0),
            created_at=_optional_timestamp(data.get("created_at")),
            updated_at=_optional_timestamp(data.get("updated_at")),
        )


@dataclass(frozen=True)
class Image:
    """A container image inside one namespace"""

    id: str
    name: str
    namespace_id: str
    status: Status = Status.UNKNOWN
    status_message: Optional[str] = None
    visibility: str = ""
    size: int = 0
    tags: List[str] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Image":
        return cls(
            id=data["id"],
            name=data["name"],
            namespace_id=data["namespace_id"],
            status=Status.parse(data.get("status", "unknown")),
            status_message=data.get("status_message"),
            visibility=data.get("visibility") or "",
            size=int(data.get("size") or 0),
            tags=list(data.get("tags") or []),
            created_at=_optional_timestamp(data.get("created_at")),
            updated_at=_optional_timestamp(data.get("updated_at")),
        )


@dataclass(frozen=True, eq=False)
class ImageTag:
    """One deletable tag of an image.

    Tags compare equal and hash by ``id`` only; ordering is by ``updated_at``.
    """

    id: str
    name: str
    image_id: str
    digest: str
    status: Status
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "ImageTag":
        return cls(
            id=data["id"],
            name=data["name"],
            image_id=data["image_id"],
            digest=data.get("digest") or "",
            status=Status.parse(data.get("status", "unknown")),
            created_at=parse_timestamp(data["created_at"]),
            updated_at=parse_timestamp(data["updated_at"]),
        )

    def is_older_than(self, date_time: datetime) -> bool:
        """True if the tag was last updated before ``date_time``"""
        return self.updated_at < date_time

    def is_newer_than(self, date_time: datetime) -> bool:
        """True if the tag was last updated at or after ``date_time``"""
        return self.updated_at >= date_time

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ImageTag):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __lt__(self, other: "ImageTag") -> bool:
        return self.updated_at < other.updated_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "image_id": self.image_id,
            "digest": self.digest,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
