"""
JalanRusak - Error Taxonomy

Validation failures are expected outcomes the caller can fix by resubmitting.
Infrastructure errors are not, and must never be reported as validation
failures.
"""

from typing import Any, Dict, List, Optional


class ReportError(Exception):
    """Base class for every error raised by the report core."""

    code = "report_error"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details

    def to_dict(self) -> Dict[str, Any]:
        """Structured form for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# =============================================================================
# VALIDATION FAILURES
# =============================================================================

class ValidationFailure(ReportError):
    """An input was rejected; the caller may correct it and retry."""

    code = "validation_error"


class FieldValidationError(ValidationFailure):
    """A single field violates its format or length constraint."""

    code = "field_validation_error"

    def __init__(self, field: str, message: str):
        super().__init__(
            f"validation error on field '{field}': {message}",
            field=field,
            constraint=message,
        )
        self.field = field
        self.constraint = message


class BoundaryViolation(ValidationFailure):
    """A path point lies outside the national bounding box."""

    code = "boundary_violation"

    def __init__(
        self,
        index: int,
        axis: str,
        value: float,
        minimum: float,
        maximum: float
    ):
        axis_name = "latitude" if axis == "lat" else "longitude"
        super().__init__(
            f"coordinate {index} {axis_name} {value:.6f} is outside "
            f"Indonesian bounds [{minimum:g}, {maximum:g}]",
            index=index,
            axis=axis,
            value=value,
            range=[minimum, maximum],
        )
        self.index = index
        self.axis = axis
        self.value = value
        self.minimum = minimum
        self.maximum = maximum


class RegionNotFound(ValidationFailure):
    """Region code is well-formed but absent from the reference dataset."""

    code = "region_not_found"

    def __init__(self, region_code: str):
        super().__init__(
            f"subdistrict code {region_code} not found in boundary dataset",
            region_code=region_code,
        )
        self.region_code = region_code


class ProximityViolation(ValidationFailure):
    """No path point lies within the threshold of the region centroid."""

    code = "proximity_violation"

    def __init__(
        self,
        region_code: str,
        min_distance_meters: float,
        threshold_meters: float
    ):
        super().__init__(
            f"none of the path points lie within {threshold_meters:.0f} meters of "
            f"subdistrict {region_code} centroid (closest is {min_distance_meters:.1f} m)",
            region_code=region_code,
            min_distance_meters=round(min_distance_meters, 2),
            threshold_meters=threshold_meters,
        )
        self.region_code = region_code
        self.min_distance_meters = min_distance_meters
        self.threshold_meters = threshold_meters


class PhotoValidationError(ValidationFailure):
    """One or more photo URLs failed evidence validation."""

    code = "photo_validation_error"

    def __init__(self, failures: List[Any]):
        summary = "; ".join(f"{f.url}: {f.error}" for f in failures)
        super().__init__(
            f"invalid photo URLs: {summary}",
            failures=[
                {"url": f.url, "reason": getattr(f.reason, "value", f.reason), "error": f.error}
                for f in failures
            ],
        )
        self.failures = failures


class InvalidStatus(ValidationFailure):
    """The requested status is not one of the lifecycle states."""

    code = "invalid_status"

    def __init__(self, value: Any):
        super().__init__(f"invalid status value: {value!r}", value=str(value))
        self.value = value


class InvalidTransition(ValidationFailure):
    """The lifecycle does not allow moving from the current to the requested state."""

    code = "invalid_transition"

    def __init__(self, current: Any, attempted: Any):
        current_value = getattr(current, "value", current)
        attempted_value = getattr(attempted, "value", attempted)
        super().__init__(
            f"cannot transition from {current_value} to {attempted_value}",
            current=current_value,
            attempted=attempted_value,
        )
        self.current = current
        self.attempted = attempted


# =============================================================================
# LOOKUP / AUTHORIZATION
# =============================================================================

class ReportNotFound(ReportError):
    """The referenced report does not exist."""

    code = "not_found"

    def __init__(self, report_id: Any):
        super().__init__("damaged road report not found", report_id=str(report_id))
        self.report_id = report_id


class Unauthorized(ReportError):
    """The actor may not perform the attempted mutation."""

    code = "unauthorized"

    def __init__(self, actor_id: Any, action: str, reason: Optional[str] = None):
        super().__init__(
            reason or f"actor is not allowed to {action} this report",
            actor_id=str(actor_id),
            action=action,
        )
        self.actor_id = actor_id
        self.action = action


# =============================================================================
# INFRASTRUCTURE
# =============================================================================

class InfrastructureError(ReportError):
    """A backing service failed; retry at the transport layer."""

    code = "infrastructure_error"


class RepositoryError(InfrastructureError):
    """The report store failed to complete an operation."""

    code = "repository_error"

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        super().__init__(f"database error during {operation}: {cause}", operation=operation)
        self.operation = operation
        self.cause = cause


class BoundaryLookupUnavailable(InfrastructureError):
    """The reference geodata store could not be queried."""

    code = "boundary_lookup_unavailable"

    def __init__(self, region_code: str, cause: Optional[BaseException] = None):
        super().__init__(
            f"failed to retrieve centroid for {region_code}: {cause}",
            region_code=region_code,
        )
        self.region_code = region_code
        self.cause = cause


class ConcurrentModification(InfrastructureError):
    """The report changed between read and compare-and-set write."""

    code = "concurrent_modification"

    def __init__(self, report_id: Any, expected_status: Any):
        expected = getattr(expected_status, "value", expected_status)
        super().__init__(
            f"report {report_id} is no longer in status {expected}",
            report_id=str(report_id),
            expected_status=expected,
        )
        self.report_id = report_id
        self.expected_status = expected_status


class SubmissionTimeout(InfrastructureError):
    """The submission did not finish before its deadline; nothing was saved."""

    code = "submission_timeout"

    def __init__(self, timeout_seconds: float):
        super().__init__(
            f"report submission exceeded {timeout_seconds:g}s deadline",
            timeout_seconds=timeout_seconds,
        )
        self.timeout_seconds = timeout_seconds
