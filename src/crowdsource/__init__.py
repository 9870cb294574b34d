"""
JalanRusak - Crowdsource Module
Handles citizen damaged road reports, their validation and lifecycle.
"""

from src.crowdsource.report import (
    DamagedRoadReport,
    ReportFilters,
    ReportStatus,
)
from src.crowdsource.geo_validator import GeoValidator
from src.crowdsource.boundary_lookup import (
    BoundaryLookup,
    InMemoryCentroidSource,
    RegionCentroid,
)
from src.crowdsource.photo_validator import (
    PhotoEvidenceValidator,
    PhotoValidationResult,
    validate_photo_urls,
)
from src.crowdsource.lifecycle import ReportLifecycle, StatusChangePolicy
from src.crowdsource.assembler import ProximityPolicy, ReportAssembler
from src.crowdsource.report_service import ReportService
from src.crowdsource.repository import InMemoryReportRepository, ReportRepository
from src.crowdsource.events import ReportEvent, ReportEventBus, ReportEventType

__all__ = [
    # Report
    "DamagedRoadReport",
    "ReportFilters",
    "ReportStatus",
    # Geo validation
    "GeoValidator",
    "BoundaryLookup",
    "InMemoryCentroidSource",
    "RegionCentroid",
    # Photo evidence
    "PhotoEvidenceValidator",
    "PhotoValidationResult",
    "validate_photo_urls",
    # Lifecycle
    "ReportLifecycle",
    "StatusChangePolicy",
    # Orchestration
    "ProximityPolicy",
    "ReportAssembler",
    "ReportService",
    # Persistence
    "InMemoryReportRepository",
    "ReportRepository",
    # Events
    "ReportEvent",
    "ReportEventBus",
    "ReportEventType",
]
