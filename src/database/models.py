"""
SQLAlchemy models for JalanRusak
Uses GeoAlchemy2 for PostGIS spatial types
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    BigInteger, CheckConstraint, Column, DateTime, Float, ForeignKey,
    Index, String, Text, UniqueConstraint
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base, relationship
from geoalchemy2 import Geometry
from geoalchemy2.shape import to_shape, from_shape
from shapely.geometry import LineString

from src.core.constants import STATUS_ORDER
from src.core.geo_utils import Point
from src.crowdsource.boundary_lookup import RegionCentroid
from src.crowdsource.report import DamagedRoadReport, ReportStatus
from src.crowdsource.values import Description, PhotoUrls, RegionCode, RoadPath, Title

Base = declarative_base()

_STATUS_VALUES = ", ".join(f"'{s}'" for s in STATUS_ORDER)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DamagedRoad(Base):
    """
    Damaged road report row.

    The path is a PostGIS LINESTRING whose vertex order is the order the
    citizen traced the damaged segment.
    """
    __tablename__ = "damaged_roads"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    title = Column(String(100), nullable=False)
    subdistrict_code = Column(String(13), nullable=False)
    path = Column(Geometry("LINESTRING", srid=4326, spatial_index=False), nullable=False)
    description = Column(Text)

    author_id = Column(UUID(as_uuid=True), nullable=False)
    status = Column(String(50), nullable=False, default=ReportStatus.SUBMITTED.value)

    # Timestamps
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    photos = relationship(
        "DamagedRoadPhoto",
        back_populates="road",
        cascade="all, delete-orphan",
        order_by="DamagedRoadPhoto.position",
    )

    __table_args__ = (
        CheckConstraint("LENGTH(title) >= 3 AND LENGTH(title) <= 100", name="valid_title_length"),
        CheckConstraint(
            "subdistrict_code ~ '^\\d{2}\\.\\d{2}\\.\\d{2}\\.\\d{4}$'",
            name="valid_subdistrict_code_format",
        ),
        CheckConstraint(f"status IN ({_STATUS_VALUES})", name="valid_status"),
        CheckConstraint(
            "description IS NULL OR LENGTH(description) <= 500",
            name="valid_description_length",
        ),
        Index("idx_damaged_roads_author", author_id),
        Index("idx_damaged_roads_status", status),
        Index("idx_damaged_roads_subdistrict", subdistrict_code),
        Index("idx_damaged_roads_created_at", created_at.desc()),
        Index("idx_damaged_roads_path_geom", path, postgresql_using="gist"),
    )

    def __repr__(self):
        return f"<DamagedRoad({self.id}, status={self.status}, code={self.subdistrict_code})>"

    @classmethod
    def from_entity(cls, report: DamagedRoadReport) -> "DamagedRoad":
        """Create a row (with photo rows) from a validated report."""
        row = cls(
            id=report.id,
            author_id=report.author_id,
            status=report.status.value,
            created_at=report.created_at,
            **cls.editable_values(report),
        )
        row.photos = photo_rows(report)
        return row

    @staticmethod
    def editable_values(report: DamagedRoadReport) -> dict:
        """Column values an author edit may replace. Status and author are excluded."""
        line = LineString([p.to_tuple_lonlat() for p in _padded(report.path)])
        return {
            "title": str(report.title),
            "subdistrict_code": str(report.region_code),
            "path": from_shape(line, srid=4326),
            "description": str(report.description) if report.description else None,
            "updated_at": report.updated_at,
        }

    def to_entity(self) -> DamagedRoadReport:
        """Rebuild the domain report, re-validating stored values."""
        coords = list(to_shape(self.path).coords)
        points = [Point(latitude=lat, longitude=lng) for lng, lat in coords]
        if len(points) == 2 and points[0] == points[1]:
            points = points[:1]

        return DamagedRoadReport(
            id=self.id,
            title=Title.parse(self.title),
            region_code=RegionCode.parse(self.subdistrict_code),
            path=RoadPath.parse(points),
            photo_urls=PhotoUrls.parse([p.url for p in self.photos]),
            author_id=self.author_id,
            description=Description.parse(self.description),
            status=ReportStatus(self.status),
            created_at=self.created_at,
            updated_at=self.updated_at,
            photo_metadata={
                p.url: {"content_type": p.content_type, "size_bytes": p.file_size}
                for p in self.photos
                if p.validation_status == "valid"
            },
        )


class DamagedRoadPhoto(Base):
    """Photo evidence attached to a damaged road report."""
    __tablename__ = "damaged_road_photos"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    road_id = Column(
        UUID(as_uuid=True),
        ForeignKey("damaged_roads.id", ondelete="CASCADE"),
        nullable=False,
    )
    url = Column(Text, nullable=False)
    position = Column(BigInteger, nullable=False, default=0)

    content_type = Column(String(50))
    file_size = Column(BigInteger)
    validation_status = Column(String(20), nullable=False, default="pending")
    validated_at = Column(DateTime(timezone=True))
    validation_error = Column(Text)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    road = relationship("DamagedRoad", back_populates="photos")

    __table_args__ = (
        UniqueConstraint("road_id", "url", name="unique_photo_url"),
        CheckConstraint(
            "validation_status IN ('pending', 'valid', 'invalid', 'error')",
            name="valid_validation_status",
        ),
        Index("idx_damaged_road_photos_road", road_id),
        Index("idx_damaged_road_photos_validation", validation_status),
    )

    def __repr__(self):
        return f"<DamagedRoadPhoto({self.url}, {self.validation_status})>"


class SubdistrictCentroid(Base):
    """
    Reference centroid for an Indonesian administrative region.

    Populated out-of-band from the official BIG geospatial dataset.
    """
    __tablename__ = "subdistrict_centroids"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    subdistrict_code = Column(String(20), nullable=False, unique=True)
    centroid_lat = Column(Float, nullable=False)
    centroid_lng = Column(Float, nullable=False)
    name = Column(String(255), nullable=False)
    province_code = Column(String(5), nullable=False)
    district_code = Column(String(8), nullable=False)

    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        CheckConstraint(
            "subdistrict_code ~ '^\\d{2}\\.\\d{2}\\.\\d{2}\\.\\d{4}$'",
            name="chk_subdistrict_code_format",
        ),
        CheckConstraint("centroid_lat >= -11 AND centroid_lat <= 6", name="chk_centroid_lat_bounds"),
        CheckConstraint("centroid_lng >= 95 AND centroid_lng <= 141", name="chk_centroid_lng_bounds"),
        Index("idx_subdistrict_centroids_province", province_code),
        Index("idx_subdistrict_centroids_district", district_code),
    )

    def __repr__(self):
        return f"<SubdistrictCentroid({self.subdistrict_code}, {self.centroid_lat}, {self.centroid_lng})>"

    def to_centroid(self) -> RegionCentroid:
        return RegionCentroid(
            region_code=self.subdistrict_code,
            latitude=self.centroid_lat,
            longitude=self.centroid_lng,
            name=self.name,
        )


def _padded(path: RoadPath):
    """A LINESTRING needs two vertices; a single-point path repeats its point."""
    points = list(path.points)
    if len(points) == 1:
        points.append(points[0])
    return points


def photo_rows(report: DamagedRoadReport):
    """Photo rows for a report, in submission order."""
    metadata = report.photo_metadata
    return [
        DamagedRoadPhoto(
            road_id=report.id,
            url=url,
            position=position,
            content_type=metadata.get(url, {}).get("content_type"),
            file_size=metadata.get(url, {}).get("size_bytes"),
            validation_status="valid" if url in metadata else "pending",
            validated_at=report.updated_at if url in metadata else None,
        )
        for position, url in enumerate(report.photo_urls)
    ]
