"""
Damaged road report service
Use-case layer over the submission pipeline, lifecycle and repository
"""

import asyncio
import copy
import logging
import uuid
from typing import Any, List, Optional, Sequence, Tuple

from src.core.exceptions import ConcurrentModification, ReportNotFound, Unauthorized
from src.crowdsource.assembler import ReportAssembler
from src.crowdsource.events import ReportEvent, ReportEventBus, ReportEventType
from src.crowdsource.lifecycle import ReportLifecycle
from src.crowdsource.report import DamagedRoadReport, ReportFilters, ReportStatus
from src.crowdsource.repository import ReportRepository

logger = logging.getLogger(__name__)


class ReportService:
    """
    Handles damaged road reports from citizens.

    Creation goes through ReportAssembler, status changes through
    ReportLifecycle. Events are published only after the repository
    write succeeded.
    """

    def __init__(
        self,
        repository: ReportRepository,
        assembler: ReportAssembler,
        lifecycle: Optional[ReportLifecycle] = None,
        events: Optional[ReportEventBus] = None,
        status_retries: int = 1
    ):
        """
        Initialize report service.

        Args:
            repository: Report store
            assembler: Submission pipeline
            lifecycle: Status state machine with its authorization policy
            events: Best-effort side channel for notifications
            status_retries: Re-reads allowed after losing a status race
        """
        self.repository = repository
        self.assembler = assembler
        self.lifecycle = lifecycle or ReportLifecycle()
        self.events = events or ReportEventBus()
        self.status_retries = status_retries

        logger.info("ReportService initialized")

    async def create_report(
        self,
        title: Any,
        region_code: Any,
        points: Sequence[Any],
        photo_urls: Sequence[Any],
        author_id: uuid.UUID,
        description: Any = None,
        timeout: Optional[float] = None
    ) -> DamagedRoadReport:
        """Submit a new report; see ReportAssembler.submit."""
        report = await self.assembler.submit(
            title=title,
            region_code=region_code,
            points=points,
            photo_urls=photo_urls,
            author_id=author_id,
            description=description,
            timeout=timeout,
        )
        self._publish(ReportEventType.CREATED, report, author_id)
        return report

    def get_report(self, report_id: uuid.UUID) -> DamagedRoadReport:
        """
        Get report by ID.

        Raises:
            ReportNotFound: if no report has this ID
        """
        report = self.repository.find_by_id(report_id)
        if report is None:
            raise ReportNotFound(report_id)
        return report

    def list_reports(self, filters: Optional[ReportFilters] = None) -> Tuple[List[DamagedRoadReport], int]:
        """List reports matching filters, newest first, with the total count."""
        filters = (filters or ReportFilters()).normalized()
        logger.debug(f"Listing reports (limit={filters.limit}, offset={filters.offset})")
        return self.repository.list(filters)

    def list_reports_by_author(
        self,
        author_id: uuid.UUID,
        limit: int = 20,
        offset: int = 0
    ) -> Tuple[List[DamagedRoadReport], int]:
        """List a single author's reports, newest first."""
        filters = ReportFilters(author_id=author_id, limit=limit, offset=offset).normalized()
        return self.repository.find_by_author(author_id, filters.limit, filters.offset)

    def update_report_status(
        self,
        report_id: uuid.UUID,
        new_status: Any,
        actor_id: uuid.UUID
    ) -> DamagedRoadReport:
        """
        Advance a report to its next lifecycle status.

        The transition is checked against the latest stored status. If a
        concurrent writer wins the compare-and-set, the report is re-read and
        the transition re-checked, which normally yields InvalidTransition.

        Raises:
            ReportNotFound, Unauthorized, InvalidStatus, InvalidTransition
            ConcurrentModification: if retries are exhausted
        """
        target = self.lifecycle.parse_status(new_status)
        attempts = 0

        while True:
            report = self.get_report(report_id)
            self.lifecycle.authorize(actor_id, report, target)
            previous = self.lifecycle.transition(report, target)
            try:
                self.repository.update_status(report_id, target, expected_status=previous)
            except ConcurrentModification:
                attempts += 1
                if attempts > self.status_retries:
                    raise
                logger.warning(f"Status race on report {report_id}, re-reading")
                continue
            break

        self._publish(
            ReportEventType.STATUS_CHANGED,
            report,
            actor_id,
            {"from": previous.value, "to": target.value},
        )
        return report

    async def update_report(
        self,
        report_id: uuid.UUID,
        actor_id: uuid.UUID,
        title: Any,
        region_code: Any,
        points: Sequence[Any],
        photo_urls: Sequence[Any],
        description: Any = None
    ) -> DamagedRoadReport:
        """
        Replace a report's fields. Author only, and only before verification.

        The new field values go through the full validation pipeline. The
        stored report must still be in the status it was read in when
        the edit is written; a status change that lands while the photos
        are being probed wins and the edit fails.

        Raises:
            ReportNotFound, Unauthorized, ValidationFailure subclasses
            ConcurrentModification: if the status moved during the edit
        """
        report = await asyncio.to_thread(self.get_report, report_id)
        self._require_author(report, actor_id, "edit")
        if not report.is_editable:
            raise Unauthorized(
                actor_id,
                "edit",
                f"report in status {report.status.value} can no longer be edited",
            )

        submission = await self.assembler.validate(
            title, region_code, points, photo_urls, description
        )

        updated = copy.deepcopy(report)
        updated.title = submission.title
        updated.region_code = submission.region_code
        updated.path = submission.path
        updated.photo_urls = submission.photo_urls
        updated.description = submission.description
        updated.photo_metadata = submission.photo_metadata()
        updated.touch()

        await asyncio.to_thread(self.repository.update, updated, report.status)
        logger.info(f"Report {report_id} updated by author")
        self._publish(ReportEventType.UPDATED, updated, actor_id)
        return updated

    def delete_report(self, report_id: uuid.UUID, actor_id: uuid.UUID) -> None:
        """
        Delete a report. Only the author may delete.

        Raises:
            ReportNotFound, Unauthorized
        """
        report = self.get_report(report_id)
        self._require_author(report, actor_id, "delete")

        self.repository.delete(report_id)
        logger.info(f"Report {report_id} deleted")
        self._publish(ReportEventType.DELETED, report, actor_id)

    def _require_author(self, report: DamagedRoadReport, actor_id: uuid.UUID, action: str) -> None:
        if not report.can_be_edited_by(actor_id):
            logger.warning(
                f"Unauthorized {action} attempt on report {report.id} by {actor_id}"
            )
            raise Unauthorized(actor_id, action)

    def _publish(
        self,
        event_type: ReportEventType,
        report: DamagedRoadReport,
        actor_id: uuid.UUID,
        payload: Optional[dict] = None
    ) -> None:
        self.events.publish(
            ReportEvent(
                type=event_type,
                report_id=str(report.id),
                actor_id=str(actor_id),
                payload=payload or {"status": report.status.value},
            )
        )
