"""
Report submission pipeline

Runs the validation stages strictly in order and builds a report only when
every stage passes:

1. field checks (title, region code format, description)
2. path size and national boundary check
3. region centroid lookup
4. centroid proximity (configurable policy)
5. photo count and photo evidence validation
6. construction and persistence
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from src.core.constants import DEFAULT_PROXIMITY_RADIUS_METERS
from src.core.exceptions import PhotoValidationError, SubmissionTimeout
from src.crowdsource.boundary_lookup import BoundaryLookup, RegionCentroid
from src.crowdsource.geo_validator import GeoValidator
from src.crowdsource.photo_validator import PhotoEvidenceValidator, PhotoValidationResult
from src.crowdsource.report import DamagedRoadReport
from src.crowdsource.repository import ReportRepository
from src.crowdsource.values import Description, PhotoUrls, RegionCode, RoadPath, Title

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProximityPolicy:
    """Whether a path must come near its region centroid, and how near."""
    enabled: bool = False
    radius_meters: float = DEFAULT_PROXIMITY_RADIUS_METERS


@dataclass(frozen=True)
class ValidatedSubmission:
    """Report fields that passed every validation stage."""
    title: Title
    region_code: RegionCode
    path: RoadPath
    photo_urls: PhotoUrls
    description: Optional[Description]
    centroid: RegionCentroid
    photo_results: List[PhotoValidationResult]
    min_centroid_distance_meters: Optional[float] = None

    def photo_metadata(self) -> dict:
        return {
            r.url: {"content_type": r.content_type, "size_bytes": r.size_bytes}
            for r in self.photo_results
        }


class ReportAssembler:
    """
    Accepts or rejects damaged road report submissions.

    All collaborators are injected; nothing is read from module globals.
    """

    def __init__(
        self,
        geo_validator: GeoValidator,
        boundary_lookup: BoundaryLookup,
        photo_validator: PhotoEvidenceValidator,
        repository: ReportRepository,
        proximity: Optional[ProximityPolicy] = None
    ):
        self.geo_validator = geo_validator
        self.boundary_lookup = boundary_lookup
        self.photo_validator = photo_validator
        self.repository = repository
        self.proximity = proximity or ProximityPolicy()

        logger.info(
            f"ReportAssembler initialized (proximity check "
            f"{'enabled' if self.proximity.enabled else 'disabled'})"
        )

    async def validate(
        self,
        title: Any,
        region_code: Any,
        points: Sequence[Any],
        photo_urls: Sequence[Any],
        description: Any = None
    ) -> ValidatedSubmission:
        """
        Run validation stages 1-5 without persisting anything.

        Raises:
            FieldValidationError, BoundaryViolation, RegionNotFound,
            ProximityViolation, PhotoValidationError: the first failing stage
            InfrastructureError: if a backing service fails
        """
        # 1. Field checks, no I/O
        valid_title = Title.parse(title)
        valid_code = RegionCode.parse(region_code)
        valid_description = Description.parse(description)

        # 2. Path
        path = RoadPath.parse(points)
        self.geo_validator.validate_within_boundary(path.points)

        # 3. Region centroid
        centroid = await asyncio.to_thread(
            self.boundary_lookup.get_centroid, str(valid_code)
        )

        # 4. Proximity to centroid
        closest = None
        if self.proximity.enabled:
            closest = self.geo_validator.validate_near_centroid(
                path.points,
                centroid.point,
                self.proximity.radius_meters,
                str(valid_code),
            )

        # 5. Photo evidence
        urls = PhotoUrls.parse(photo_urls)
        results = await self.photo_validator.validate_all(list(urls))
        failures = [r for r in results if not r.valid]
        if failures:
            logger.warning(f"Invalid photo URLs detected: {len(failures)} of {len(results)}")
            raise PhotoValidationError(failures)

        return ValidatedSubmission(
            title=valid_title,
            region_code=valid_code,
            path=path,
            photo_urls=urls,
            description=valid_description,
            centroid=centroid,
            photo_results=results,
            min_centroid_distance_meters=closest,
        )

    async def submit(
        self,
        title: Any,
        region_code: Any,
        points: Sequence[Any],
        photo_urls: Sequence[Any],
        author_id: uuid.UUID,
        description: Any = None,
        timeout: Optional[float] = None
    ) -> DamagedRoadReport:
        """
        Validate and persist a new report with status ``submitted``.

        Args:
            title, region_code, points, photo_urls, description: raw input
            author_id: Authenticated submitter
            timeout: Overall deadline in seconds; in-flight probes are
                cancelled and nothing is saved when it expires

        Returns:
            The persisted report

        Raises:
            ValidationFailure subclasses for rejected input
            SubmissionTimeout if the deadline expires
        """
        logger.info(
            f"Creating damaged road report for author {author_id} "
            f"({len(points or [])} points, {len(photo_urls or [])} photos)"
        )

        if timeout is None:
            return await self._submit(title, region_code, points, photo_urls, author_id, description)

        try:
            return await asyncio.wait_for(
                self._submit(title, region_code, points, photo_urls, author_id, description),
                timeout=timeout,
            )
        except asyncio.TimeoutError as e:
            logger.error(f"Report submission timed out after {timeout}s")
            raise SubmissionTimeout(timeout) from e

    async def _submit(self, title, region_code, points, photo_urls, author_id, description):
        submission = await self.validate(title, region_code, points, photo_urls, description)

        report = DamagedRoadReport(
            title=submission.title,
            region_code=submission.region_code,
            path=submission.path,
            photo_urls=submission.photo_urls,
            author_id=author_id,
            description=submission.description,
            photo_metadata=submission.photo_metadata(),
        )

        await asyncio.to_thread(self.repository.save, report)

        logger.info(f"Damaged road report created: {report.id}")
        return report
