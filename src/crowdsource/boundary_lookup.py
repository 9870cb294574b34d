"""
Region centroid lookup
Resolves administrative region codes to reference centroids
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Protocol, Tuple

from src.core.constants import SEED_REGION_CENTROIDS
from src.core.exceptions import BoundaryLookupUnavailable, RegionNotFound
from src.core.geo_utils import Point

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegionCentroid:
    """Reference point for an administrative region."""
    region_code: str
    latitude: float
    longitude: float
    name: Optional[str] = None

    @property
    def point(self) -> Point:
        return Point(latitude=self.latitude, longitude=self.longitude)

    def to_dict(self) -> dict:
        return {
            "subdistrict_code": self.region_code,
            "lat": self.latitude,
            "lng": self.longitude,
            "name": self.name,
        }


class CentroidSource(Protocol):
    """Backing store of region centroids."""

    def fetch_centroid(self, region_code: str) -> Optional[RegionCentroid]:
        """Return the centroid, or None when the code is unknown."""
        ...

    def store_centroid(self, centroid: RegionCentroid) -> None:
        ...


class InMemoryCentroidSource:
    """Dictionary-backed centroid store, seeded with reference data."""

    def __init__(self, centroids: Optional[Dict[str, Tuple[float, float, str]]] = None):
        data = SEED_REGION_CENTROIDS if centroids is None else centroids
        self._centroids: Dict[str, RegionCentroid] = {
            code: RegionCentroid(code, lat, lng, name)
            for code, (lat, lng, name) in data.items()
        }
        self._lock = threading.Lock()

    def fetch_centroid(self, region_code: str) -> Optional[RegionCentroid]:
        with self._lock:
            return self._centroids.get(region_code)

    def store_centroid(self, centroid: RegionCentroid) -> None:
        with self._lock:
            self._centroids[centroid.region_code] = centroid


class BoundaryLookup:
    """
    Cached region code -> centroid resolution.

    Only positive results are cached; an unknown code is looked up again
    on the next request so newly seeded regions become visible at once.
    """

    def __init__(
        self,
        source: CentroidSource,
        ttl_seconds: float = 86400,
        max_entries: int = 10000,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize lookup.

        Args:
            source: Backing store of centroids
            ttl_seconds: How long a cached centroid stays valid
            max_entries: Cache size bound; oldest entries are evicted first
            clock: Monotonic time source (injectable for tests)
        """
        self.source = source
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._cache: Dict[str, Tuple[float, RegionCentroid]] = {}
        self._lock = threading.Lock()

        logger.info(f"BoundaryLookup initialized (ttl={ttl_seconds}s)")

    def get_centroid(self, region_code: str) -> RegionCentroid:
        """
        Exact-match centroid lookup.

        Raises:
            RegionNotFound: if the code is absent from the reference dataset
            BoundaryLookupUnavailable: if the backing store fails
        """
        cached = self._get_cached(region_code)
        if cached is not None:
            logger.debug(f"Centroid cache hit for {region_code}")
            return cached

        try:
            centroid = self.source.fetch_centroid(region_code)
        except Exception as e:
            logger.error(f"Centroid lookup failed for {region_code}: {e}")
            raise BoundaryLookupUnavailable(region_code, e) from e

        if centroid is None:
            raise RegionNotFound(region_code)

        self._put_cached(region_code, centroid)
        return centroid

    def exists(self, region_code: str) -> bool:
        """Whether the region code is present in the reference dataset."""
        try:
            self.get_centroid(region_code)
        except RegionNotFound:
            return False
        return True

    def store_centroid(
        self,
        region_code: str,
        centroid: Point,
        name: Optional[str] = None
    ) -> RegionCentroid:
        """Upsert a centroid into the backing store and drop its cache entry."""
        record = RegionCentroid(
            region_code=region_code,
            latitude=centroid.latitude,
            longitude=centroid.longitude,
            name=name or f"Subdistrict {region_code}",
        )
        self.source.store_centroid(record)
        self.invalidate(region_code)
        logger.info(f"Centroid stored for {region_code}")
        return record

    def invalidate(self, region_code: Optional[str] = None) -> None:
        """Drop one cached code, or the whole cache when code is None."""
        with self._lock:
            if region_code is None:
                self._cache.clear()
            else:
                self._cache.pop(region_code, None)

    def _get_cached(self, region_code: str) -> Optional[RegionCentroid]:
        with self._lock:
            entry = self._cache.get(region_code)
            if entry is None:
                return None
            expires_at, centroid = entry
            if self._clock() >= expires_at:
                del self._cache[region_code]
                return None
            return centroid

    def _put_cached(self, region_code: str, centroid: RegionCentroid) -> None:
        with self._lock:
            if region_code not in self._cache and len(self._cache) >= self.max_entries:
                oldest = min(self._cache, key=lambda code: self._cache[code][0])
                del self._cache[oldest]
            self._cache[region_code] = (self._clock() + self.ttl_seconds, centroid)
