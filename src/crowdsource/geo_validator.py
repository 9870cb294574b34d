"""
Geographic validation for report paths
Pure geodesic checks with no I/O
"""

import logging
from typing import Optional, Sequence

from src.core.constants import INDONESIA_BBOX
from src.core.exceptions import BoundaryViolation, ProximityViolation
from src.core.geo_utils import BoundingBox, Point, min_distance, point_distance

logger = logging.getLogger(__name__)


class GeoValidator:
    """
    Validates report coordinates against the national bounding box and
    against administrative region centroids.
    """

    def __init__(self, bounds: Optional[BoundingBox] = None):
        """
        Initialize validator.

        Args:
            bounds: Legal bounding box (default: Indonesia, edges inclusive)
        """
        self.bounds = bounds or BoundingBox(*INDONESIA_BBOX)

    def validate_within_boundary(self, points: Sequence[Point]) -> None:
        """
        Check every point lies inside the bounding box.

        Stops at the first failing point.

        Raises:
            BoundaryViolation: naming the point index, axis and legal range
        """
        for index, point in enumerate(points):
            axis = self.bounds.violated_axis(point)
            if axis is None:
                continue
            minimum, maximum = self.bounds.axis_range(axis)
            value = point.latitude if axis == "lat" else point.longitude
            logger.warning(
                f"Coordinate {index} outside bounds on {axis}: {value}"
            )
            raise BoundaryViolation(index, axis, value, minimum, maximum)

    def distance_meters(self, a: Point, b: Point) -> float:
        """Haversine great-circle distance in meters."""
        return point_distance(a, b)

    def min_distance_to_point(self, points: Sequence[Point], reference: Point) -> float:
        """Minimum distance in meters from any path point to the reference."""
        return min_distance(points, reference)

    def validate_near_centroid(
        self,
        points: Sequence[Point],
        centroid: Point,
        radius_meters: float,
        region_code: str
    ) -> float:
        """
        Check at least one point lies within radius_meters of the centroid.

        Returns:
            The computed minimum distance

        Raises:
            ProximityViolation: if every point is farther than the radius
        """
        closest = self.min_distance_to_point(points, centroid)
        if closest > radius_meters:
            logger.warning(
                f"Path is {closest:.1f} m from centroid of {region_code} "
                f"(limit {radius_meters:.0f} m)"
            )
            raise ProximityViolation(region_code, closest, radius_meters)
        return closest
