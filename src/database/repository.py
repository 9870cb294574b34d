"""
PostgreSQL/PostGIS adapters for the report and centroid stores
"""

import logging
import uuid
from typing import List, Optional, Tuple

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError

from src.core.exceptions import ConcurrentModification, ReportNotFound, RepositoryError
from src.crowdsource.boundary_lookup import RegionCentroid
from src.crowdsource.report import DamagedRoadReport, ReportFilters, ReportStatus, utcnow
from .connection import DatabaseConnection
from .models import DamagedRoad, DamagedRoadPhoto, SubdistrictCentroid, photo_rows

logger = logging.getLogger(__name__)


class SqlReportRepository:
    """
    Report store backed by the ``damaged_roads`` table.

    Driver errors surface as RepositoryError; not-found and lost
    compare-and-set races keep their own exception types.
    """

    def __init__(self, db: DatabaseConnection):
        self.db = db

    def save(self, report: DamagedRoadReport) -> None:
        try:
            with self.db.get_session() as session:
                session.add(DamagedRoad.from_entity(report))
        except SQLAlchemyError as e:
            raise RepositoryError("save", e) from e
        logger.debug(f"Report {report.id} saved")

    def find_by_id(self, report_id: uuid.UUID) -> Optional[DamagedRoadReport]:
        try:
            with self.db.get_session() as session:
                row = session.get(DamagedRoad, report_id)
                return row.to_entity() if row else None
        except SQLAlchemyError as e:
            raise RepositoryError("find_by_id", e) from e

    def find_by_author(
        self,
        author_id: uuid.UUID,
        limit: int,
        offset: int
    ) -> Tuple[List[DamagedRoadReport], int]:
        return self.list(ReportFilters(author_id=author_id, limit=limit, offset=offset))

    def list(self, filters: ReportFilters) -> Tuple[List[DamagedRoadReport], int]:
        conditions = []
        if filters.status is not None:
            conditions.append(DamagedRoad.status == filters.status.value)
        if filters.region_code is not None:
            conditions.append(DamagedRoad.subdistrict_code == filters.region_code)
        if filters.author_id is not None:
            conditions.append(DamagedRoad.author_id == filters.author_id)

        query = (
            select(DamagedRoad)
            .where(*conditions)
            .order_by(DamagedRoad.created_at.desc())
            .limit(filters.limit)
            .offset(filters.offset)
        )
        count_query = select(func.count()).select_from(DamagedRoad).where(*conditions)

        try:
            with self.db.get_session() as session:
                total = session.execute(count_query).scalar_one()
                rows = session.execute(query).scalars().all()
                return [row.to_entity() for row in rows], total
        except SQLAlchemyError as e:
            raise RepositoryError("list", e) from e

    def update(
        self,
        report: DamagedRoadReport,
        expected_status: ReportStatus = ReportStatus.SUBMITTED
    ) -> None:
        """
        Replace the editable fields and photos, leaving status untouched.

        Applied only while the stored status is still expected_status.
        """
        statement = (
            update(DamagedRoad)
            .where(DamagedRoad.id == report.id)
            .where(DamagedRoad.status == expected_status.value)
            .values(**DamagedRoad.editable_values(report))
            .execution_options(synchronize_session=False)
        )
        try:
            with self.db.get_session() as session:
                result = session.execute(statement)
                if result.rowcount == 0:
                    if session.get(DamagedRoad, report.id) is None:
                        raise ReportNotFound(report.id)
                    raise ConcurrentModification(report.id, expected_status)
                session.execute(
                    delete(DamagedRoadPhoto)
                    .where(DamagedRoadPhoto.road_id == report.id)
                    .execution_options(synchronize_session=False)
                )
                session.add_all(photo_rows(report))
        except SQLAlchemyError as e:
            raise RepositoryError("update", e) from e

    def update_status(
        self,
        report_id: uuid.UUID,
        new_status: ReportStatus,
        expected_status: ReportStatus
    ) -> None:
        statement = (
            update(DamagedRoad)
            .where(DamagedRoad.id == report_id)
            .where(DamagedRoad.status == expected_status.value)
            .values(status=new_status.value, updated_at=utcnow())
        )
        try:
            with self.db.get_session() as session:
                result = session.execute(statement)
                if result.rowcount == 0:
                    if session.get(DamagedRoad, report_id) is None:
                        raise ReportNotFound(report_id)
                    raise ConcurrentModification(report_id, expected_status)
        except SQLAlchemyError as e:
            raise RepositoryError("update_status", e) from e

    def delete(self, report_id: uuid.UUID) -> None:
        try:
            with self.db.get_session() as session:
                result = session.execute(delete(DamagedRoad).where(DamagedRoad.id == report_id))
                if result.rowcount == 0:
                    raise ReportNotFound(report_id)
        except SQLAlchemyError as e:
            raise RepositoryError("delete", e) from e


class SqlCentroidSource:
    """Centroid store backed by the ``subdistrict_centroids`` table."""

    def __init__(self, db: DatabaseConnection):
        self.db = db

    def fetch_centroid(self, region_code: str) -> Optional[RegionCentroid]:
        query = select(SubdistrictCentroid).where(
            SubdistrictCentroid.subdistrict_code == region_code
        )
        with self.db.get_session() as session:
            row = session.execute(query).scalar_one_or_none()
            return row.to_centroid() if row else None

    def store_centroid(self, centroid: RegionCentroid) -> None:
        province, district = centroid.region_code.split(".")[:2]
        statement = insert(SubdistrictCentroid).values(
            id=uuid.uuid4(),
            subdistrict_code=centroid.region_code,
            centroid_lat=centroid.latitude,
            centroid_lng=centroid.longitude,
            name=centroid.name,
            province_code=province,
            district_code=f"{province}.{district}",
        )
        statement = statement.on_conflict_do_update(
            index_elements=[SubdistrictCentroid.subdistrict_code],
            set_={
                "centroid_lat": statement.excluded.centroid_lat,
                "centroid_lng": statement.excluded.centroid_lng,
                "name": statement.excluded.name,
                "updated_at": func.now(),
            },
        )
        with self.db.get_session() as session:
            session.execute(statement)
