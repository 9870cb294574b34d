"""
Report status lifecycle

Strictly forward, no cycles and no skips:

    submitted -> under_verification -> verified -> pending_resolved
              -> resolved -> archived
"""

import logging
import uuid
from typing import Any, Optional, Protocol

from src.core.exceptions import InvalidStatus, InvalidTransition, Unauthorized
from src.crowdsource.report import DamagedRoadReport, ReportStatus

logger = logging.getLogger(__name__)


class StatusChangePolicy(Protocol):
    """Decides whether an actor may change a report's status."""

    def may_change_status(
        self,
        actor_id: uuid.UUID,
        report: DamagedRoadReport,
        new_status: ReportStatus
    ) -> bool:
        ...


class AllowAuthenticatedActors:
    """Any authenticated actor may advance status."""

    def may_change_status(self, actor_id, report, new_status) -> bool:
        return actor_id is not None


class ReportLifecycle:
    """
    Governs report status transitions.

    ``transition`` mutates only the report it is given, so a caller that
    loses a compare-and-set race can re-read the report and call it again.
    """

    def __init__(self, policy: Optional[StatusChangePolicy] = None):
        self.policy = policy or AllowAuthenticatedActors()

    @staticmethod
    def parse_status(value: Any) -> ReportStatus:
        """
        Read a status from a raw value.

        Raises:
            InvalidStatus: if value is not one of the lifecycle states
        """
        if isinstance(value, ReportStatus):
            return value
        try:
            return ReportStatus(value)
        except ValueError as e:
            raise InvalidStatus(value) from e

    @staticmethod
    def can_transition(current: ReportStatus, new_status: ReportStatus) -> bool:
        """True only when new_status is the state directly after current."""
        return current.next_status() == new_status

    def authorize(
        self,
        actor_id: uuid.UUID,
        report: DamagedRoadReport,
        new_status: ReportStatus
    ) -> None:
        """
        Apply the injected status-change policy.

        Raises:
            Unauthorized: if the policy denies the change
        """
        if not self.policy.may_change_status(actor_id, report, new_status):
            logger.warning(
                f"Status change denied for actor {actor_id} on report {report.id}"
            )
            raise Unauthorized(actor_id, "change the status of")

    def transition(self, report: DamagedRoadReport, new_status: Any) -> ReportStatus:
        """
        Move a report to its next status.

        Args:
            report: Report to mutate
            new_status: Requested status (enum member or raw value)

        Returns:
            The status the report was in before the change

        Raises:
            InvalidStatus: if new_status is not a lifecycle state
            InvalidTransition: if the move is not the single forward step;
                the report is left unchanged
        """
        target = self.parse_status(new_status)
        current = report.status

        if not self.can_transition(current, target):
            raise InvalidTransition(current, target)

        report.status = target
        report.touch()

        logger.info(f"Report {report.id} status: {current.value} -> {target.value}")
        return current
