"""
Validated value types for damaged road reports.

Each type can only be obtained through its ``parse`` factory, so a raw string
never reaches a field that expects a checked value.
"""

import re
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from src.core.constants import (
    DESCRIPTION_MAX_LENGTH,
    PATH_MAX_POINTS,
    PATH_MIN_POINTS,
    PHOTO_MAX_COUNT,
    PHOTO_MIN_COUNT,
    REGION_CODE_PATTERN,
    TITLE_MAX_LENGTH,
    TITLE_MIN_LENGTH,
)
from src.core.exceptions import FieldValidationError
from src.core.geo_utils import (
    Point,
    from_linestring_coordinates,
    to_linestring_coordinates,
)

_REGION_CODE_RE = re.compile(REGION_CODE_PATTERN)


@dataclass(frozen=True)
class Title:
    """Report title, 3-100 characters and not blank."""
    value: str

    @classmethod
    def parse(cls, raw: Any) -> "Title":
        if not isinstance(raw, str):
            raise FieldValidationError("title", "must be a string")
        if len(raw) < TITLE_MIN_LENGTH:
            raise FieldValidationError("title", f"must be at least {TITLE_MIN_LENGTH} characters")
        if len(raw) > TITLE_MAX_LENGTH:
            raise FieldValidationError("title", f"cannot exceed {TITLE_MAX_LENGTH} characters")
        if not raw.strip():
            raise FieldValidationError("title", "cannot be empty or whitespace only")
        return cls(raw)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class RegionCode:
    """Kemendagri administrative code NN.NN.NN.NNNN."""
    value: str

    @classmethod
    def parse(cls, raw: Any) -> "RegionCode":
        if not isinstance(raw, str) or not _REGION_CODE_RE.fullmatch(raw):
            raise FieldValidationError("subdistrict_code", "must match format NN.NN.NN.NNNN")
        return cls(raw)

    @property
    def province_code(self) -> str:
        return self.value.split(".")[0]

    @property
    def district_code(self) -> str:
        return ".".join(self.value.split(".")[:2])

    @property
    def subdistrict_level(self) -> str:
        return ".".join(self.value.split(".")[:3])

    @property
    def village_code(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Description:
    """Optional free-text description, at most 500 characters."""
    value: str

    @classmethod
    def parse(cls, raw: Any) -> Optional["Description"]:
        """Return None for a missing or blank description."""
        if raw is None:
            return None
        if not isinstance(raw, str):
            raise FieldValidationError("description", "must be a string")
        if len(raw) > DESCRIPTION_MAX_LENGTH:
            raise FieldValidationError(
                "description", f"cannot exceed {DESCRIPTION_MAX_LENGTH} characters"
            )
        if not raw.strip():
            return None
        return cls(raw)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class RoadPath:
    """
    Ordered sequence of 1-100 points tracing a damaged road segment.

    Only the point count is checked here; the national boundary check
    belongs to GeoValidator so it can report the failing index and axis.
    """
    points: Tuple[Point, ...]

    @classmethod
    def parse(cls, raw_points: Optional[Iterable[Any]]) -> "RoadPath":
        points = [coerce_point(p, i) for i, p in enumerate(raw_points or [])]
        if len(points) < PATH_MIN_POINTS:
            raise FieldValidationError("points", "at least 1 point required")
        if len(points) > PATH_MAX_POINTS:
            raise FieldValidationError(
                "points", f"cannot have more than {PATH_MAX_POINTS} points"
            )
        return cls(tuple(points))

    @classmethod
    def from_geojson(cls, geometry: dict) -> "RoadPath":
        if geometry.get("type") != "LineString":
            raise FieldValidationError("path", "geometry type must be LineString")
        try:
            points = from_linestring_coordinates(geometry.get("coordinates") or [])
        except ValueError as e:
            raise FieldValidationError("path", str(e)) from e
        return cls.parse(points)

    def to_geojson(self) -> dict:
        return {
            "type": "LineString",
            "coordinates": to_linestring_coordinates(self.points),
        }

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self):
        return iter(self.points)


@dataclass(frozen=True)
class PhotoUrls:
    """The 1-10 photo URLs attached to a report, in submission order."""
    urls: Tuple[str, ...]

    @classmethod
    def parse(cls, raw_urls: Optional[Sequence[Any]]) -> "PhotoUrls":
        urls = list(raw_urls or [])
        if len(urls) < PHOTO_MIN_COUNT:
            raise FieldValidationError("photo_urls", "at least 1 photo URL required")
        if len(urls) > PHOTO_MAX_COUNT:
            raise FieldValidationError(
                "photo_urls", f"cannot have more than {PHOTO_MAX_COUNT} photo URLs"
            )
        seen = set()
        for i, url in enumerate(urls):
            if not isinstance(url, str) or not url.strip():
                raise FieldValidationError("photo_urls", f"URL at index {i} must be a non-empty string")
            if url in seen:
                raise FieldValidationError("photo_urls", f"duplicate URL at index {i}: {url}")
            seen.add(url)
        return cls(tuple(urls))

    def __len__(self) -> int:
        return len(self.urls)

    def __iter__(self):
        return iter(self.urls)


def coerce_point(raw: Any, index: int = 0) -> Point:
    """
    Accept a Point, a {"lat", "lng"} mapping or a (lat, lng) pair.

    Raises:
        FieldValidationError: if the value cannot be read as a coordinate
    """
    if isinstance(raw, Point):
        return raw
    try:
        if isinstance(raw, dict):
            lat, lng = raw["lat"], raw["lng"]
        else:
            lat, lng = raw
        return Point(latitude=float(lat), longitude=float(lng))
    except (KeyError, TypeError, ValueError) as e:
        raise FieldValidationError("points", f"point at index {index} is not a valid coordinate") from e
