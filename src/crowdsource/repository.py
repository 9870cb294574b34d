"""
Report persistence port and in-memory adapter
"""

import copy
import logging
import threading
import uuid
from typing import Dict, List, Optional, Protocol, Tuple

from src.core.exceptions import ConcurrentModification, ReportNotFound
from src.crowdsource.report import DamagedRoadReport, ReportFilters, ReportStatus

logger = logging.getLogger(__name__)


class ReportRepository(Protocol):
    """Storage operations the report core depends on."""

    def save(self, report: DamagedRoadReport) -> None:
        ...

    def find_by_id(self, report_id: uuid.UUID) -> Optional[DamagedRoadReport]:
        ...

    def find_by_author(
        self,
        author_id: uuid.UUID,
        limit: int,
        offset: int
    ) -> Tuple[List[DamagedRoadReport], int]:
        ...

    def list(self, filters: ReportFilters) -> Tuple[List[DamagedRoadReport], int]:
        ...

    def update(
        self,
        report: DamagedRoadReport,
        expected_status: ReportStatus = ReportStatus.SUBMITTED
    ) -> None:
        """Replace editable fields while status is expected_status; status itself is never written."""
        ...

    def update_status(
        self,
        report_id: uuid.UUID,
        new_status: ReportStatus,
        expected_status: ReportStatus
    ) -> None:
        """Compare-and-set the status; raise ConcurrentModification on mismatch."""
        ...

    def delete(self, report_id: uuid.UUID) -> None:
        ...


class InMemoryReportRepository:
    """
    Thread-safe dictionary store.

    Reports are copied on the way in and out so callers never share
    mutable state with the store.
    """

    def __init__(self):
        self._reports: Dict[uuid.UUID, DamagedRoadReport] = {}
        self._lock = threading.Lock()

    def save(self, report: DamagedRoadReport) -> None:
        with self._lock:
            self._reports[report.id] = copy.deepcopy(report)

    def find_by_id(self, report_id: uuid.UUID) -> Optional[DamagedRoadReport]:
        with self._lock:
            report = self._reports.get(report_id)
            return copy.deepcopy(report) if report else None

    def find_by_author(
        self,
        author_id: uuid.UUID,
        limit: int,
        offset: int
    ) -> Tuple[List[DamagedRoadReport], int]:
        return self.list(ReportFilters(author_id=author_id, limit=limit, offset=offset))

    def list(self, filters: ReportFilters) -> Tuple[List[DamagedRoadReport], int]:
        with self._lock:
            matching = [r for r in self._reports.values() if filters.matches(r)]
        matching.sort(key=lambda r: r.created_at, reverse=True)
        page = matching[filters.offset:filters.offset + filters.limit]
        return [copy.deepcopy(r) for r in page], len(matching)

    def update(
        self,
        report: DamagedRoadReport,
        expected_status: ReportStatus = ReportStatus.SUBMITTED
    ) -> None:
        with self._lock:
            stored = self._reports.get(report.id)
            if stored is None:
                raise ReportNotFound(report.id)
            if stored.status != expected_status:
                raise ConcurrentModification(report.id, expected_status)
            updated = copy.deepcopy(report)
            updated.status = stored.status
            self._reports[report.id] = updated

    def update_status(
        self,
        report_id: uuid.UUID,
        new_status: ReportStatus,
        expected_status: ReportStatus
    ) -> None:
        with self._lock:
            stored = self._reports.get(report_id)
            if stored is None:
                raise ReportNotFound(report_id)
            if stored.status != expected_status:
                raise ConcurrentModification(report_id, expected_status)
            stored.status = new_status
            stored.touch()

    def delete(self, report_id: uuid.UUID) -> None:
        with self._lock:
            if self._reports.pop(report_id, None) is None:
                raise ReportNotFound(report_id)

    def __len__(self) -> int:
        return len(self._reports)
