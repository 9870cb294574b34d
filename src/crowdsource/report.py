"""
Damaged road report aggregate
Citizen-submitted report of a damaged road segment
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from src.core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, STATUS_ORDER
from src.crowdsource.values import Description, PhotoUrls, RegionCode, RoadPath, Title


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReportStatus(str, Enum):
    """Lifecycle state of a damaged road report, in lifecycle order."""
    SUBMITTED = "submitted"
    UNDER_VERIFICATION = "under_verification"
    VERIFIED = "verified"
    PENDING_RESOLVED = "pending_resolved"
    RESOLVED = "resolved"
    ARCHIVED = "archived"

    @classmethod
    def all(cls) -> List["ReportStatus"]:
        return [cls(value) for value in STATUS_ORDER]

    @classmethod
    def is_valid(cls, value: Any) -> bool:
        if isinstance(value, cls):
            return True
        return value in STATUS_ORDER

    @property
    def position(self) -> int:
        return STATUS_ORDER.index(self.value)

    def next_status(self) -> Optional["ReportStatus"]:
        """The only status this one may advance to, or None when terminal."""
        if self.position + 1 >= len(STATUS_ORDER):
            return None
        return ReportStatus(STATUS_ORDER[self.position + 1])

    @property
    def is_terminal(self) -> bool:
        return self.next_status() is None


@dataclass
class DamagedRoadReport:
    """
    Damaged road report submitted by a citizen.

    Only ReportAssembler creates instances for new submissions, after every
    validation stage has passed.
    """
    title: Title
    region_code: RegionCode
    path: RoadPath
    photo_urls: PhotoUrls
    author_id: uuid.UUID
    description: Optional[Description] = None

    id: uuid.UUID = field(default_factory=uuid.uuid4)
    status: ReportStatus = ReportStatus.SUBMITTED

    # Timestamps
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    # Per-photo metadata captured during validation, keyed by URL
    photo_metadata: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def can_be_edited_by(self, actor_id: uuid.UUID) -> bool:
        """Only the author can edit or delete their own report."""
        return self.author_id == actor_id

    @property
    def is_editable(self) -> bool:
        """Field edits are allowed only before verification starts."""
        return self.status == ReportStatus.SUBMITTED

    def touch(self) -> None:
        self.updated_at = utcnow()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": str(self.id),
            "title": str(self.title),
            "subdistrict_code": str(self.region_code),
            "path": self.path.to_geojson(),
            "description": str(self.description) if self.description else None,
            "photo_urls": list(self.photo_urls),
            "author_id": str(self.author_id),
            "status": self.status.value,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass
class ReportFilters:
    """Filters for querying damaged road reports."""
    status: Optional[ReportStatus] = None
    region_code: Optional[str] = None
    author_id: Optional[uuid.UUID] = None
    limit: int = DEFAULT_PAGE_SIZE
    offset: int = 0

    def normalized(self) -> "ReportFilters":
        """Clamp pagination to sane values."""
        limit = self.limit
        if limit <= 0 or limit > MAX_PAGE_SIZE:
            limit = DEFAULT_PAGE_SIZE
        return ReportFilters(
            status=self.status,
            region_code=self.region_code,
            author_id=self.author_id,
            limit=limit,
            offset=max(self.offset, 0),
        )

    def matches(self, report: DamagedRoadReport) -> bool:
        if self.status is not None and report.status != self.status:
            return False
        if self.region_code is not None and str(report.region_code) != self.region_code:
            return False
        if self.author_id is not None and report.author_id != self.author_id:
            return False
        return True
