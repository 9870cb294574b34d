"""
JalanRusak - Core Utilities
Central configuration, logging, error types and geodesic helpers.
"""

from src.core.config import settings
from src.core.constants import (
    INDONESIA_BBOX,
    REGION_CODE_PATTERN,
    STATUS_ORDER,
    ALLOWED_IMAGE_CONTENT_TYPES,
)
from src.core.geo_utils import (
    Point,
    BoundingBox,
    haversine_distance,
    point_distance,
    min_distance,
)

__all__ = [
    "settings",
    "INDONESIA_BBOX",
    "REGION_CODE_PATTERN",
    "STATUS_ORDER",
    "ALLOWED_IMAGE_CONTENT_TYPES",
    "Point",
    "BoundingBox",
    "haversine_distance",
    "point_distance",
    "min_distance",
]
