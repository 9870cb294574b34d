"""
JalanRusak - Constants and Reference Data
Static values used throughout the application.
"""

from typing import Dict, List, Tuple

# =============================================================================
# GEOGRAPHIC BOUNDARIES
# =============================================================================

# Indonesia bounding box (west, south, east, north)
INDONESIA_BBOX: Tuple[float, float, float, float] = (95.0, -11.0, 141.0, 6.0)

# Mean Earth radius used by the haversine formula
EARTH_RADIUS_METERS: float = 6371000.0

# Default radius around a region centroid that at least one path point must hit
DEFAULT_PROXIMITY_RADIUS_METERS: float = 200.0

# =============================================================================
# ADMINISTRATIVE REGIONS
# =============================================================================

# Kemendagri code: province.district.subdistrict.village
REGION_CODE_PATTERN: str = r"^\d{2}\.\d{2}\.\d{2}\.\d{4}$"

# Reference centroids (lat, lng, name) seeded from the official BIG dataset
SEED_REGION_CENTROIDS: Dict[str, Tuple[float, float, str]] = {
    "35.10.02.2005": (-7.257472, 112.752090, "Kelurahan Ketintang, Gayungan, Surabaya"),
    "35.78.01.1001": (-7.983908, 112.630892, "Desa Sukorejo, Sukorejo, Ponorogo"),
    "35.09.01.2001": (-7.943893, 112.612766, "Kelurahan Banjarsari, Buduran, Sidoarjo"),
}

# =============================================================================
# REPORT FIELD LIMITS
# =============================================================================

TITLE_MIN_LENGTH: int = 3
TITLE_MAX_LENGTH: int = 100
DESCRIPTION_MAX_LENGTH: int = 500

PATH_MIN_POINTS: int = 1
PATH_MAX_POINTS: int = 100

PHOTO_MIN_COUNT: int = 1
PHOTO_MAX_COUNT: int = 10

# =============================================================================
# REPORT LIFECYCLE
# =============================================================================

STATUS_ORDER: List[str] = [
    "submitted",
    "under_verification",
    "verified",
    "pending_resolved",
    "resolved",
    "archived",
]

# =============================================================================
# PHOTO EVIDENCE
# =============================================================================

ALLOWED_PHOTO_SCHEMES: Tuple[str, ...] = ("http", "https")

ALLOWED_IMAGE_CONTENT_TYPES: Tuple[str, ...] = (
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
)

LOCALHOST_ALIASES: Tuple[str, ...] = ("localhost", "127.0.0.1", "::1", "[::1]")

BLOCKED_IPV4_NETWORKS: Tuple[str, ...] = (
    "10.0.0.0/8",       # Private network
    "172.16.0.0/12",    # Private network
    "192.168.0.0/16",   # Private network
    "169.254.0.0/16",   # Link-local (cloud metadata)
    "127.0.0.0/8",      # Loopback
    "0.0.0.0/8",        # Current network
    "100.64.0.0/10",    # Shared address space
)

BLOCKED_IPV6_NETWORKS: Tuple[str, ...] = (
    "::1/128",          # Loopback
    "fe80::/10",        # Link-local
    "fc00::/7",         # Unique local
    "ff00::/8",         # Multicast
    "::ffff:0:0/96",    # IPv4-mapped
)

REDIRECT_STATUS_CODES: Tuple[int, ...] = (301, 302, 303, 307, 308)

# =============================================================================
# PAGINATION
# =============================================================================

DEFAULT_PAGE_SIZE: int = 20
MAX_PAGE_SIZE: int = 100
