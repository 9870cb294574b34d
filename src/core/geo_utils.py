"""
JalanRusak - Geospatial Utilities
Common geospatial calculations and transformations.
"""

import math
from typing import List, Optional, Sequence, Tuple
from dataclasses import dataclass

from src.core.constants import EARTH_RADIUS_METERS


@dataclass(frozen=True)
class Point:
    """Geographic point with latitude and longitude in decimal degrees."""
    latitude: float
    longitude: float

    def to_tuple_lonlat(self) -> Tuple[float, float]:
        """Return as (longitude, latitude) for GeoJSON compatibility."""
        return (self.longitude, self.latitude)

    def to_dict(self) -> dict:
        return {"lat": self.latitude, "lng": self.longitude}


@dataclass(frozen=True)
class BoundingBox:
    """Geographic bounding box. Edges are inclusive."""
    west: float   # min longitude
    south: float  # min latitude
    east: float   # max longitude
    north: float  # max latitude

    def contains(self, point: Point) -> bool:
        """Check if a point is within the bounding box."""
        return (
            self.west <= point.longitude <= self.east and
            self.south <= point.latitude <= self.north
        )

    def violated_axis(self, point: Point) -> Optional[str]:
        """
        Name the first axis on which a point leaves the box.

        Latitude is checked before longitude.

        Returns:
            "lat", "lng" or None when the point is inside
        """
        if self.contains(point):
            return None
        if not self.south <= point.latitude <= self.north:
            return "lat"
        return "lng"

    def axis_range(self, axis: str) -> Tuple[float, float]:
        """Legal (min, max) range for "lat" or "lng"."""
        if axis == "lat":
            return (self.south, self.north)
        return (self.west, self.east)


def haversine_distance(
    lat1: float, lon1: float,
    lat2: float, lon2: float
) -> float:
    """
    Calculate the great-circle distance between two points on Earth.

    Args:
        lat1, lon1: First point coordinates in decimal degrees
        lat2, lon2: Second point coordinates in decimal degrees

    Returns:
        Distance in meters
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    # Haversine formula
    a = (
        math.sin(delta_lat / 2) ** 2 +
        math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_METERS * c


def point_distance(a: Point, b: Point) -> float:
    """Haversine distance in meters between two points."""
    return haversine_distance(a.latitude, a.longitude, b.latitude, b.longitude)


def min_distance(points: Sequence[Point], reference: Point) -> float:
    """
    Smallest haversine distance from any of the points to a reference.

    Args:
        points: Candidate points (must not be empty)
        reference: Anchor point

    Returns:
        Distance in meters
    """
    if not points:
        raise ValueError("min_distance requires at least one point")
    return min(point_distance(p, reference) for p in points)


def to_linestring_coordinates(points: Sequence[Point]) -> List[List[float]]:
    """Convert points to GeoJSON LineString coordinates ([lng, lat] pairs)."""
    return [[p.longitude, p.latitude] for p in points]


def from_linestring_coordinates(coordinates: Sequence[Sequence[float]]) -> List[Point]:
    """Convert GeoJSON [lng, lat] pairs back to points, preserving order."""
    points = []
    for i, coord in enumerate(coordinates):
        if len(coord) != 2:
            raise ValueError(f"coordinate at index {i} must have exactly 2 values")
        points.append(Point(latitude=float(coord[1]), longitude=float(coord[0])))
    return points
