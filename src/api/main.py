"""
JalanRusak - REST API

FastAPI application for submitting, browsing and moderating citizen
reports of damaged road segments in Indonesia.

Run with: uvicorn src.api.main:app --reload
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from src.core.config import settings
from src.core.constants import DEFAULT_PAGE_SIZE
from src.core.exceptions import (
    ConcurrentModification,
    InfrastructureError,
    InvalidTransition,
    ProximityViolation,
    RegionNotFound,
    ReportError,
    ReportNotFound,
    SubmissionTimeout,
    Unauthorized,
    ValidationFailure,
)
from src.core.logging import setup_logging
from src.crowdsource.assembler import ProximityPolicy, ReportAssembler
from src.crowdsource.boundary_lookup import BoundaryLookup, InMemoryCentroidSource
from src.crowdsource.events import ReportEvent, ReportEventBus
from src.crowdsource.geo_validator import GeoValidator
from src.crowdsource.lifecycle import ReportLifecycle
from src.crowdsource.photo_validator import PhotoEvidenceValidator
from src.crowdsource.report import DamagedRoadReport, ReportFilters
from src.crowdsource.report_service import ReportService
from src.crowdsource.repository import InMemoryReportRepository
from src.crowdsource.values import PhotoUrls

setup_logging()
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"

# FastAPI app
app = FastAPI(
    title="JalanRusak",
    description="Citizen reporting of damaged roads across Indonesia",
    version=API_VERSION,
    docs_url=None if settings.is_production else "/docs",
    redoc_url=None if settings.is_production else "/redoc",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Pydantic Models
# ============================================================================

class PointModel(BaseModel):
    """A WGS84 coordinate."""
    lat: float
    lng: float


class ReportCreateRequest(BaseModel):
    """Request to create or fully replace a damaged road report."""
    title: str
    subdistrict_code: str = Field(description="Kemendagri code, e.g. 35.10.02.2005")
    points: List[PointModel] = Field(description="Ordered vertices of the damaged segment")
    photo_urls: List[str]
    description: Optional[str] = None


class ReportResponse(BaseModel):
    """Damaged road report."""
    id: str
    title: str
    subdistrict_code: str
    path: Dict[str, Any] = Field(description="GeoJSON LineString")
    description: Optional[str]
    photo_urls: List[str]
    author_id: str
    status: str
    created_at: str
    updated_at: str


class ReportListResponse(BaseModel):
    """Page of damaged road reports."""
    reports: List[ReportResponse]
    total: int
    page: int
    limit: int


class StatusUpdateRequest(BaseModel):
    """Request to advance a report's status."""
    status: str


class PhotoValidationRequest(BaseModel):
    """Photo URLs to vet without submitting a report."""
    urls: List[str]


class PhotoResultResponse(BaseModel):
    """Verdict for one photo URL."""
    url: str
    valid: bool
    error: Optional[str]
    reason: Optional[str]
    content_type: Optional[str]
    size_bytes: Optional[int]


class PhotoValidationResponse(BaseModel):
    """Verdicts for a batch of photo URLs."""
    all_valid: bool
    results: List[PhotoResultResponse]


class HealthResponse(BaseModel):
    """API health check response."""
    status: str
    version: str
    timestamp: str
    modules: dict


# ============================================================================
# Service Wiring
# ============================================================================

def _log_event(event: ReportEvent) -> None:
    logger.info(f"Event {event.type.value} for report {event.report_id} by {event.actor_id}")


def build_report_service() -> ReportService:
    """
    Wire the report core from settings.

    PostgreSQL adapters are used when DATABASE_URL is configured,
    in-memory adapters otherwise.
    """
    if settings.database_url:
        from src.database import SqlCentroidSource, SqlReportRepository, init_db

        db = init_db(settings.database_url)
        repository = SqlReportRepository(db)
        centroid_source = SqlCentroidSource(db)
        logger.info("Using PostgreSQL report store")
    else:
        repository = InMemoryReportRepository()
        centroid_source = InMemoryCentroidSource()
        logger.warning("DATABASE_URL not set, using in-memory report store")

    assembler = ReportAssembler(
        geo_validator=GeoValidator(),
        boundary_lookup=BoundaryLookup(
            centroid_source,
            ttl_seconds=settings.centroid_cache_ttl_seconds,
            max_entries=settings.centroid_cache_max_entries,
        ),
        photo_validator=PhotoEvidenceValidator(
            timeout=settings.photo_probe_timeout_seconds,
            max_redirects=settings.photo_max_redirects,
            max_concurrency=settings.photo_max_concurrency,
            user_agent=settings.photo_user_agent,
        ),
        repository=repository,
        proximity=ProximityPolicy(
            enabled=settings.proximity_check_enabled,
            radius_meters=settings.proximity_radius_meters,
        ),
    )

    events = ReportEventBus()
    events.subscribe(_log_event)

    return ReportService(
        repository=repository,
        assembler=assembler,
        lifecycle=ReportLifecycle(),
        events=events,
    )


# Global instance for the stateful service
_report_service: Optional[ReportService] = None


def get_report_service() -> ReportService:
    """Get the report service, building it on first use."""
    global _report_service
    if _report_service is None:
        _report_service = build_report_service()
    return _report_service


def get_current_user(x_user_id: Optional[str] = Header(None, alias="X-User-ID")) -> uuid.UUID:
    """Authenticated caller, as asserted by the upstream identity service."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-ID header")
    try:
        return uuid.UUID(x_user_id)
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid X-User-ID header")


def to_response(report: DamagedRoadReport) -> ReportResponse:
    return ReportResponse(**report.to_dict())


# ============================================================================
# Error Handling
# ============================================================================

def status_code_for(error: ReportError) -> int:
    """HTTP status for a report core error."""
    if isinstance(error, (ProximityViolation, RegionNotFound)):
        return 422
    if isinstance(error, InvalidTransition):
        return 409
    if isinstance(error, ValidationFailure):
        return 400
    if isinstance(error, ReportNotFound):
        return 404
    if isinstance(error, Unauthorized):
        return 403
    if isinstance(error, ConcurrentModification):
        return 409
    if isinstance(error, SubmissionTimeout):
        return 504
    if isinstance(error, InfrastructureError):
        return 503
    return 500


@app.exception_handler(ReportError)
async def report_error_handler(request, exc: ReportError):
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=status_code, content=exc.to_dict())


# ============================================================================
# System Routes
# ============================================================================

@app.get("/health", response_model=HealthResponse, tags=["System"])
def health_check():
    """Check API health status and storage backend."""
    modules = {
        "environment": settings.app_env,
        "proximity_check": settings.proximity_check_enabled,
        "report_store": "memory",
        "database": None,
    }

    if settings.database_url:
        from src.database import get_db

        db = get_db()
        healthy = db.check_connection()
        modules.update({
            "report_store": "postgresql",
            "database": healthy,
            "postgis": healthy and db.check_postgis(),
        })
        status = "healthy" if healthy else "degraded"
    else:
        status = "healthy"

    return HealthResponse(
        status=status,
        version=API_VERSION,
        timestamp=datetime.now(timezone.utc).isoformat(),
        modules=modules,
    )


# ============================================================================
# Damaged Road Routes
# ============================================================================

@app.post("/api/v1/damaged-roads", response_model=ReportResponse, status_code=201, tags=["Damaged Roads"])
async def create_damaged_road(
    request: ReportCreateRequest,
    user_id: uuid.UUID = Depends(get_current_user),
    service: ReportService = Depends(get_report_service),
):
    """
    Submit a damaged road report.

    The path must lie within Indonesia, the subdistrict code must exist,
    and every photo URL must point to a reachable public image.
    """
    report = await service.create_report(
        title=request.title,
        region_code=request.subdistrict_code,
        points=[p.model_dump() for p in request.points],
        photo_urls=request.photo_urls,
        author_id=user_id,
        description=request.description,
        timeout=settings.submission_timeout_seconds,
    )
    return to_response(report)


@app.get("/api/v1/damaged-roads", response_model=ReportListResponse, tags=["Damaged Roads"])
def list_damaged_roads(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE),
    status: Optional[str] = Query(None, description="Filter by status"),
    subdistrict_code: Optional[str] = Query(None, description="Filter by subdistrict code"),
    service: ReportService = Depends(get_report_service),
):
    """List damaged road reports, newest first."""
    filters = ReportFilters(
        status=service.lifecycle.parse_status(status) if status else None,
        region_code=subdistrict_code,
        limit=limit,
    ).normalized()
    filters.offset = (page - 1) * filters.limit

    reports, total = service.list_reports(filters)
    return ReportListResponse(
        reports=[to_response(r) for r in reports],
        total=total,
        page=page,
        limit=filters.limit,
    )


@app.get("/api/v1/damaged-roads/mine", response_model=ReportListResponse, tags=["Damaged Roads"])
def list_my_damaged_roads(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE),
    user_id: uuid.UUID = Depends(get_current_user),
    service: ReportService = Depends(get_report_service),
):
    """List the caller's own reports, newest first."""
    filters = ReportFilters(limit=limit).normalized()
    reports, total = service.list_reports_by_author(
        user_id, limit=filters.limit, offset=(page - 1) * filters.limit
    )
    return ReportListResponse(
        reports=[to_response(r) for r in reports],
        total=total,
        page=page,
        limit=filters.limit,
    )


@app.get("/api/v1/damaged-roads/{report_id}", response_model=ReportResponse, tags=["Damaged Roads"])
def get_damaged_road(report_id: uuid.UUID, service: ReportService = Depends(get_report_service)):
    """Get a single report."""
    return to_response(service.get_report(report_id))


@app.put("/api/v1/damaged-roads/{report_id}", response_model=ReportResponse, tags=["Damaged Roads"])
async def update_damaged_road(
    report_id: uuid.UUID,
    request: ReportCreateRequest,
    user_id: uuid.UUID = Depends(get_current_user),
    service: ReportService = Depends(get_report_service),
):
    """Replace a report's fields. Only the author, and only while submitted."""
    report = await service.update_report(
        report_id,
        actor_id=user_id,
        title=request.title,
        region_code=request.subdistrict_code,
        points=[p.model_dump() for p in request.points],
        photo_urls=request.photo_urls,
        description=request.description,
    )
    return to_response(report)


@app.patch("/api/v1/damaged-roads/{report_id}/status", response_model=ReportResponse, tags=["Damaged Roads"])
def update_damaged_road_status(
    report_id: uuid.UUID,
    request: StatusUpdateRequest,
    user_id: uuid.UUID = Depends(get_current_user),
    service: ReportService = Depends(get_report_service),
):
    """
    Advance a report to its next status.

    Lifecycle: submitted → under_verification → verified →
    pending_resolved → resolved → archived
    """
    report = service.update_report_status(report_id, request.status, actor_id=user_id)
    return to_response(report)


@app.delete("/api/v1/damaged-roads/{report_id}", status_code=204, tags=["Damaged Roads"])
def delete_damaged_road(
    report_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user),
    service: ReportService = Depends(get_report_service),
):
    """Delete a report. Only the author may delete."""
    service.delete_report(report_id, actor_id=user_id)
    return Response(status_code=204)


# ============================================================================
# Validation Routes
# ============================================================================

@app.post("/api/v1/validation/photos", response_model=PhotoValidationResponse, tags=["Validation"])
async def validate_photos(
    request: PhotoValidationRequest,
    service: ReportService = Depends(get_report_service),
):
    """Check photo URLs with the same rules used at submission."""
    urls = PhotoUrls.parse(request.urls)
    results = await service.assembler.photo_validator.validate_all(list(urls))
    return PhotoValidationResponse(
        all_valid=all(r.valid for r in results),
        results=[PhotoResultResponse(**r.to_dict()) for r in results],
    )


# ============================================================================
# Main
# ============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
