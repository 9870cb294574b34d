"""
Pytest configuration and fixtures
"""
import asyncio
import ipaddress
import math
import socket
import sys
import uuid
from pathlib import Path

import httpx
import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.core.constants import EARTH_RADIUS_METERS
from src.core.geo_utils import Point
from src.crowdsource.assembler import ProximityPolicy, ReportAssembler
from src.crowdsource.boundary_lookup import BoundaryLookup, InMemoryCentroidSource
from src.crowdsource.geo_validator import GeoValidator
from src.crowdsource.photo_validator import PhotoEvidenceValidator
from src.crowdsource.report_service import ReportService
from src.crowdsource.repository import InMemoryReportRepository


PUBLIC_HOSTS = {
    "example.com": ["93.184.216.34"],
    "photos.example.com": ["93.184.216.34"],
    "cdn.example.org": ["151.101.1.1"],
    "internal.example.com": ["10.0.0.5"],
    "mixed.example.com": ["93.184.216.34", "192.168.1.10"],
}


class FakeResolver:
    """DNS stand-in: fixed host table, IP literals resolve to themselves."""

    def __init__(self, hosts=None):
        self.hosts = dict(PUBLIC_HOSTS if hosts is None else hosts)
        self.calls = []

    async def __call__(self, hostname):
        self.calls.append(hostname)
        if hostname in self.hosts:
            return list(self.hosts[hostname])
        try:
            ipaddress.ip_address(hostname.strip("[]"))
            return [hostname.strip("[]")]
        except ValueError:
            raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")


async def photo_host(request: httpx.Request) -> httpx.Response:
    """Simulated photo host routing on the request path."""
    path = request.url.path

    if path.startswith("/hop/"):
        remaining = int(path.rsplit("/", 1)[1])
        if remaining == 0:
            return httpx.Response(200, headers={"content-type": "image/jpeg"})
        return httpx.Response(302, headers={"location": f"/hop/{remaining - 1}"})

    if path == "/page.html":
        return httpx.Response(200, headers={"content-type": "text/html"})
    if path == "/typed.png":
        return httpx.Response(200, headers={"content-type": "image/png; charset=binary"})
    if path == "/missing.jpg":
        return httpx.Response(404)
    if path == "/to-metadata":
        return httpx.Response(302, headers={"location": "http://169.254.169.254/latest/meta-data"})
    if path == "/slow.jpg":
        await asyncio.sleep(1)
        return httpx.Response(200, headers={"content-type": "image/jpeg"})
    if path == "/reset.jpg":
        raise httpx.ConnectError("connection reset", request=request)

    return httpx.Response(
        200, headers={"content-type": "image/jpeg", "content-length": "2048"}
    )


def make_photo_validator(resolver=None, **kwargs):
    """PhotoEvidenceValidator wired to the simulated host and fake DNS."""
    return PhotoEvidenceValidator(
        resolver=resolver or FakeResolver(),
        client=httpx.AsyncClient(transport=httpx.MockTransport(photo_host)),
        **kwargs
    )


def make_report_service(proximity=None, photo_validator=None, repository=None):
    """ReportService over in-memory adapters."""
    if repository is None:
        repository = InMemoryReportRepository()
    assembler = ReportAssembler(
        geo_validator=GeoValidator(),
        boundary_lookup=BoundaryLookup(InMemoryCentroidSource()),
        photo_validator=photo_validator or make_photo_validator(),
        repository=repository,
        proximity=proximity or ProximityPolicy(),
    )
    return ReportService(repository=repository, assembler=assembler)


@pytest.fixture
def resolver():
    """Fake DNS resolver recording lookups."""
    return FakeResolver()


@pytest.fixture
def photo_validator(resolver):
    return make_photo_validator(resolver)


@pytest.fixture
def report_service():
    return make_report_service()


@pytest.fixture
def author_id():
    return uuid.uuid4()


@pytest.fixture
def surabaya_submission():
    """Valid submission near the Ketintang (Surabaya) centroid."""
    return {
        "title": "Jalan Berlubang",
        "region_code": "35.10.02.2005",
        "points": [
            {"lat": -7.2575, "lng": 112.7521},
            {"lat": -7.2580, "lng": 112.7530},
        ],
        "photo_urls": ["https://photos.example.com/a.jpg"],
        "description": "Lubang besar di tengah jalan",
    }


def offset_point(origin, distance_m, bearing_degrees):
    """Point reached by travelling distance_m from origin along a bearing (0=North)."""
    lat_rad = math.radians(origin.latitude)
    lon_rad = math.radians(origin.longitude)
    bearing_rad = math.radians(bearing_degrees)
    angular_distance = distance_m / EARTH_RADIUS_METERS

    dest_lat = math.asin(
        math.sin(lat_rad) * math.cos(angular_distance) +
        math.cos(lat_rad) * math.sin(angular_distance) * math.cos(bearing_rad)
    )
    dest_lon = lon_rad + math.atan2(
        math.sin(bearing_rad) * math.sin(angular_distance) * math.cos(lat_rad),
        math.cos(angular_distance) - math.sin(lat_rad) * math.sin(dest_lat)
    )
    return Point(latitude=math.degrees(dest_lat), longitude=math.degrees(dest_lon))
