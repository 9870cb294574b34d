"""
Database module for JalanRusak
PostgreSQL + PostGIS persistence for damaged road reports
"""

from .connection import DatabaseConnection, get_db, init_db
from .models import (
    Base,
    DamagedRoad,
    DamagedRoadPhoto,
    SubdistrictCentroid
)
from .repository import SqlCentroidSource, SqlReportRepository

__all__ = [
    "DatabaseConnection",
    "get_db",
    "init_db",
    "Base",
    "DamagedRoad",
    "DamagedRoadPhoto",
    "SubdistrictCentroid",
    "SqlCentroidSource",
    "SqlReportRepository"
]
