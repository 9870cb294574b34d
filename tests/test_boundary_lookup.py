"""
Tests for region centroid lookup
"""
from unittest.mock import MagicMock

import pytest

import sys
sys.path.insert(0, '.')

from src.core.exceptions import BoundaryLookupUnavailable, RegionNotFound
from src.core.geo_utils import Point
from src.crowdsource.boundary_lookup import (
    BoundaryLookup,
    InMemoryCentroidSource,
    RegionCentroid,
)


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestBoundaryLookup:
    """Test suite for BoundaryLookup."""

    def setup_method(self):
        self.source = InMemoryCentroidSource()
        self.clock = FakeClock()
        self.lookup = BoundaryLookup(self.source, ttl_seconds=60, max_entries=2, clock=self.clock)

    def test_seeded_centroid(self):
        centroid = self.lookup.get_centroid("35.10.02.2005")
        assert centroid.latitude == -7.257472
        assert centroid.longitude == 112.752090
        assert centroid.point == Point(-7.257472, 112.752090)

    def test_unknown_code(self):
        with pytest.raises(RegionNotFound) as exc_info:
            self.lookup.get_centroid("99.99.99.9999")
        assert exc_info.value.region_code == "99.99.99.9999"

    def test_exact_match_only(self):
        with pytest.raises(RegionNotFound):
            self.lookup.get_centroid("35.10.02")

    def test_exists(self):
        assert self.lookup.exists("35.78.01.1001")
        assert not self.lookup.exists("99.99.99.9999")

    def test_cache_hit_skips_source(self):
        source = MagicMock()
        source.fetch_centroid.return_value = RegionCentroid("35.10.02.2005", -7.25, 112.75)
        lookup = BoundaryLookup(source, ttl_seconds=60, clock=self.clock)

        lookup.get_centroid("35.10.02.2005")
        lookup.get_centroid("35.10.02.2005")

        assert source.fetch_centroid.call_count == 1

    def test_cache_expires(self):
        source = MagicMock()
        source.fetch_centroid.return_value = RegionCentroid("35.10.02.2005", -7.25, 112.75)
        lookup = BoundaryLookup(source, ttl_seconds=60, clock=self.clock)

        lookup.get_centroid("35.10.02.2005")
        self.clock.now += 61
        lookup.get_centroid("35.10.02.2005")

        assert source.fetch_centroid.call_count == 2

    def test_not_found_is_not_cached(self):
        source = MagicMock()
        source.fetch_centroid.return_value = None
        lookup = BoundaryLookup(source, clock=self.clock)

        for _ in range(2):
            with pytest.raises(RegionNotFound):
                lookup.get_centroid("35.10.02.2005")

        assert source.fetch_centroid.call_count == 2

    def test_source_failure_is_infrastructure_error(self):
        source = MagicMock()
        source.fetch_centroid.side_effect = ConnectionError("database down")
        lookup = BoundaryLookup(source, clock=self.clock)

        with pytest.raises(BoundaryLookupUnavailable) as exc_info:
            lookup.get_centroid("35.10.02.2005")
        assert not isinstance(exc_info.value, RegionNotFound)

    def test_eviction_bound(self):
        for code in ("35.10.02.2005", "35.78.01.1001", "35.09.01.2001"):
            self.lookup.get_centroid(code)
            self.clock.now += 1
        assert len(self.lookup._cache) == 2
        assert "35.10.02.2005" not in self.lookup._cache

    def test_store_centroid_invalidates_cache(self):
        self.lookup.get_centroid("35.10.02.2005")
        self.lookup.store_centroid("35.10.02.2005", Point(-7.3, 112.8))

        centroid = self.lookup.get_centroid("35.10.02.2005")
        assert centroid.latitude == -7.3
        assert centroid.name == "Subdistrict 35.10.02.2005"

    def test_store_new_region(self):
        assert not self.lookup.exists("31.71.01.1001")
        self.lookup.store_centroid("31.71.01.1001", Point(-6.2, 106.8), name="Gambir")
        assert self.lookup.get_centroid("31.71.01.1001").name == "Gambir"
