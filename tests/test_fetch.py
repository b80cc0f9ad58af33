"""
Tests for the latest-reading and history fetchers.
"""

import logging
from datetime import timedelta

import pytest

from canalwatch.exceptions import StoreUnavailableError
from canalwatch.fetch import coerce_hours, fetch_history, fetch_latest_reading


class TestFetchLatestReading:
    """Test latest-reading resolution across name variants."""

    @pytest.mark.asyncio
    async def test_canonical_key_record(self, fake_store, make_record):
        store = fake_store([make_record("nac", safety_status="Caution")])

        reading = await fetch_latest_reading("nac", store)

        assert reading.location == "nac"
        assert reading.safety_status == "Caution"
        assert store.queried_variants == ["nac"]

    @pytest.mark.asyncio
    async def test_alias_only_record(self, fake_store, make_record):
        store = fake_store([make_record("Fifth Avenue")])

        reading = await fetch_latest_reading("fifth-avenue", store)

        assert reading is not None
        assert reading.location == "fifth-avenue"
        assert store.queried_variants == ["fifth-avenue", "Fifth Avenue"]

    @pytest.mark.asyncio
    async def test_returns_newest_record(self, fake_store, make_record, now):
        store = fake_store(
            [
                make_record("nac", timedelta(minutes=15), avgIceThickness=30.0),
                make_record("nac", timedelta(minutes=5), avgIceThickness=31.0),
                make_record("nac", timedelta(minutes=10), avgIceThickness=29.0),
            ]
        )

        reading = await fetch_latest_reading("nac", store)

        assert reading.avg_ice_thickness == 31.0
        assert reading.instant == now - timedelta(minutes=5)

    @pytest.mark.asyncio
    async def test_first_variant_wins_over_newer_alias(self, fake_store, make_record):
        store = fake_store(
            [
                make_record("dows-lake", timedelta(hours=2), avgIceThickness=20.0),
                make_record("Dow's Lake", timedelta(minutes=1), avgIceThickness=40.0),
            ]
        )

        reading = await fetch_latest_reading("dows-lake", store)

        assert reading.avg_ice_thickness == 20.0
        assert store.queried_variants == ["dows-lake"]

    @pytest.mark.asyncio
    async def test_failed_variant_falls_back(self, fake_store, make_record, caplog):
        store = fake_store([make_record("Dow's Lake")], failing_variants=["dows-lake"])

        with caplog.at_level(logging.WARNING, logger="canalwatch.fetch"):
            reading = await fetch_latest_reading("dows-lake", store)

        assert reading.location == "dows-lake"
        assert store.queried_variants == ["dows-lake", "Dow's Lake"]

        failures = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(failures) == 1
        assert failures[0].location == "dows-lake"
        assert failures[0].variant == "dows-lake"
        assert "Simulated failure" in failures[0].error

    @pytest.mark.asyncio
    async def test_all_variants_fail(self, fake_store, make_record):
        store = fake_store([make_record("nac")], failing_variants=["nac", "NAC"])

        assert await fetch_latest_reading("nac", store) is None

    @pytest.mark.asyncio
    async def test_no_data(self, fake_store, make_record):
        store = fake_store([make_record("nac")])

        assert await fetch_latest_reading("dows-lake", store) is None
        assert store.queried_variants == ["dows-lake", "Dow's Lake"]

    @pytest.mark.asyncio
    async def test_no_data_logs_available_locations_at_debug(
        self, fake_store, make_record, caplog
    ):
        store = fake_store([make_record("Nac Station")])

        with caplog.at_level(logging.DEBUG, logger="canalwatch.fetch"):
            assert await fetch_latest_reading("nac", store) is None

        assert "Available locations in store: ['Nac Station']" in caplog.text

    @pytest.mark.asyncio
    async def test_unknown_location_queries_only_key(self, fake_store, make_record):
        store = fake_store([make_record("Hartwells Locks")])

        assert await fetch_latest_reading("hartwells-locks", store) is None
        assert store.queried_variants == ["hartwells-locks"]

    @pytest.mark.asyncio
    async def test_store_unavailable(self):
        with pytest.raises(StoreUnavailableError):
            await fetch_latest_reading("nac", None)


class TestFetchHistory:
    """Test history retrieval within a lookback window."""

    @pytest.mark.asyncio
    async def test_window_filter_and_order(self, fake_store, make_record, now):
        store = fake_store(
            [
                make_record("nac", timedelta(minutes=30), avgIceThickness=31.0),
                make_record("nac", timedelta(hours=3), avgIceThickness=25.0),
                make_record("nac", timedelta(minutes=90), avgIceThickness=30.0),
            ]
        )

        readings = await fetch_history("nac", hours=2, store=store, now=now)

        assert [r.avg_ice_thickness for r in readings] == [30.0, 31.0]
        timestamps = [r.instant for r in readings]
        assert timestamps == sorted(timestamps)
        assert all(r.instant >= now - timedelta(hours=2) for r in readings)

    @pytest.mark.asyncio
    async def test_default_window_is_one_hour(self, fake_store, make_record, now):
        store = fake_store(
            [
                make_record("nac", timedelta(minutes=30)),
                make_record("nac", timedelta(minutes=90)),
            ]
        )

        readings = await fetch_history("nac", store=store, now=now)

        assert len(readings) == 1

    @pytest.mark.asyncio
    async def test_invalid_hours_uses_default(self, fake_store, make_record, now):
        store = fake_store(
            [
                make_record("nac", timedelta(minutes=30)),
                make_record("nac", timedelta(minutes=90)),
            ]
        )

        readings = await fetch_history("nac", hours="lots", store=store, now=now)

        assert len(readings) == 1

    @pytest.mark.asyncio
    async def test_first_variant_with_results_is_complete_set(
        self, fake_store, make_record, now
    ):
        store = fake_store(
            [
                make_record("Dow's Lake", timedelta(minutes=50)),
                make_record("Dow's Lake", timedelta(minutes=40)),
                make_record("dows-lake", timedelta(minutes=10)),
            ]
        )

        readings = await fetch_history("dows-lake", store=store, now=now)

        assert len(readings) == 1
        assert readings[0].instant == now - timedelta(minutes=10)
        assert store.queried_variants == ["dows-lake"]

    @pytest.mark.asyncio
    async def test_falls_back_to_alias(self, fake_store, make_record, now):
        store = fake_store(
            [
                make_record("Fifth Avenue", timedelta(minutes=50)),
                make_record("Fifth Avenue", timedelta(minutes=20)),
            ],
            failing_variants=["fifth-avenue"],
        )

        readings = await fetch_history("fifth-avenue", store=store, now=now)

        assert [r.location for r in readings] == ["fifth-avenue", "fifth-avenue"]

    @pytest.mark.asyncio
    async def test_no_data(self, fake_store, now):
        assert await fetch_history("nac", store=fake_store(), now=now) == []

    @pytest.mark.asyncio
    async def test_store_unavailable_returns_empty(self):
        assert await fetch_history("nac", hours=3, store=None) == []


class TestCoerceHours:
    """Test lookback window coercion."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, 1),
            ("", 1),
            ("abc", 1),
            ("0", 1),
            ("-3", 1),
            (0, 1),
            (-2, 1),
            ("2", 2),
            (" 6", 6),
            ("2.5", 2),
            ("24h", 24),
            (12, 12),
            (3.9, 3),
            (True, 1),
        ],
    )
    def test_values(self, value, expected):
        assert coerce_hours(value) == expected

    def test_custom_default(self):
        assert coerce_hours(None, default=6) == 6
