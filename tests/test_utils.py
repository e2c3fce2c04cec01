"""Tests for folio_analytics.utils -- numeric guards and the JSON cache."""

import math
import os
import time

import pytest

from folio_analytics.utils.cache import DataCache
from folio_analytics.utils.numbers import finite, pct_of, safe_div, to_float


class TestNumbers:

    @pytest.mark.parametrize("val", [None, float("nan"), float("inf"), float("-inf"), "x"])
    def test_finite_defaults(self, val):
        assert finite(val) == 0.0
        assert finite(val, 1.0) == 1.0

    def test_finite_passes_numbers(self):
        assert finite("2.5") == 2.5
        assert finite(3) == 3.0

    def test_safe_div(self):
        assert safe_div(1.0, 4.0) == 0.25
        assert safe_div(1.0, 0.0) == 0.0
        assert safe_div(1.0, 0.0, default=-1.0) == -1.0

    def test_pct_of(self):
        assert pct_of(25.0, 200.0) == pytest.approx(12.5)
        assert pct_of(25.0, 0.0) == 0.0
        assert pct_of(25.0, -5.0) == 0.0

    def test_to_float_rounds_and_cleans(self):
        assert to_float(1.23456789, 2) == 1.23
        assert to_float(math.nan) == 0.0


class TestDataCache:

    def test_roundtrip(self, tmp_path):
        cache = DataCache("profiles", cache_dir=tmp_path)
        cache.ttl_seconds = 3600
        assert cache.get("k") is None
        cache.set("k", {"a": 1})
        assert cache.get("k") == {"a": 1}

    def test_disabled_when_ttl_zero(self, tmp_path):
        cache = DataCache("quotes", cache_dir=tmp_path)
        cache.ttl_seconds = 0
        assert not cache.enabled
        cache.set("k", {"a": 1})
        assert cache.get("k") is None
        assert not (tmp_path / "quotes").exists()

    def test_expired_entry_is_dropped(self, tmp_path):
        cache = DataCache("profiles", cache_dir=tmp_path)
        cache.ttl_seconds = 3600
        cache.set("k", {"a": 1})
        path = next((tmp_path / "profiles").glob("*.json"))
        old = time.time() - 7200
        os.utime(path, (old, old))
        assert cache.get("k") is None
        assert not path.exists()
