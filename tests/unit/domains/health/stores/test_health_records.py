"""Tests for HealthRecordStore: daily upsert, queries, export and clearing."""

from __future__ import annotations

import asyncio
import json
from datetime import date, timedelta

import pytest

from vitaltrack.core.storage.collection_store import HEALTH_DATA_KEY, CollectionStore
from vitaltrack.core.storage.key_value import InMemoryKeyValueStore, StorageUnavailableError
from vitaltrack.core.storage.models import MetricKind
from vitaltrack.domains.health.stores.health_records import (
    CSV_HEADER,
    HealthRecordStore,
    format_number,
)


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


class _BrokenMedium:
    async def get_item(self, key):
        raise StorageUnavailableError("device storage unavailable")

    async def set_item(self, key, value):
        raise StorageUnavailableError("device storage unavailable")

    async def remove_item(self, key):
        raise StorageUnavailableError("device storage unavailable")


class TestLogObservation:
    def test_first_log_appends(self, records, kv_store):
        record = _run(records.log_observation("u1", MetricKind.STEPS, 5000))
        assert record.kind is MetricKind.STEPS
        assert record.day == date(2024, 1, 1)
        stored = json.loads(kv_store.raw(HEALTH_DATA_KEY))
        assert stored == [record.to_dict()]
        assert stored[0]["type"] == "steps"
        assert stored[0]["userId"] == "u1"

    def test_same_day_replaces(self, records):
        async def _go():
            first = await records.log_observation("u1", MetricKind.STEPS, 5000)
            second = await records.log_observation("u1", MetricKind.STEPS, 8000)
            return first, second, await records.get_records_for_date("u1")
        first, second, today = _run(_go())
        assert len(today) == 1
        assert today[0].value == 8000
        assert today[0].id == second.id != first.id

    def test_replace_keeps_position(self, records):
        async def _go():
            await records.log_observation("u1", MetricKind.STEPS, 5000)
            await records.log_observation("u1", MetricKind.WATER, 3)
            await records.log_observation("u1", MetricKind.STEPS, 9000)
            return await records.get_all_for_account("u1")
        kinds = [r.kind for r in _run(_go())]
        assert kinds == [MetricKind.STEPS, MetricKind.WATER]

    def test_different_days_kept(self, records, clock):
        async def _go():
            await records.log_observation("u1", MetricKind.STEPS, 5000)
            clock.today = date(2024, 1, 2)
            await records.log_observation("u1", MetricKind.STEPS, 6000)
            return await records.get_all_for_account("u1")
        assert [r.value for r in _run(_go())] == [5000, 6000]

    def test_different_kinds_kept(self, records):
        async def _go():
            await records.log_observation("u1", MetricKind.STEPS, 5000)
            await records.log_observation("u1", MetricKind.SLEEP, 7.5)
            return await records.get_today_snapshot("u1")
        assert _run(_go()) == {MetricKind.STEPS: 5000, MetricKind.SLEEP: 7.5}

    def test_accounts_do_not_collide(self, records):
        async def _go():
            await records.log_observation("u1", MetricKind.STEPS, 5000)
            await records.log_observation("u2", MetricKind.STEPS, 7000)
            return (
                await records.get_today_snapshot("u1"),
                await records.get_today_snapshot("u2"),
            )
        mine, theirs = _run(_go())
        assert mine == {MetricKind.STEPS: 5000}
        assert theirs == {MetricKind.STEPS: 7000}

    def test_accepts_kind_string(self, records):
        record = _run(records.log_observation("u1", "heartRate", 72))
        assert record.kind is MetricKind.HEART_RATE

    def test_concurrent_logs_all_persist(self, records):
        async def _go():
            await asyncio.gather(
                records.log_observation("u1", MetricKind.STEPS, 5000),
                records.log_observation("u1", MetricKind.WATER, 4),
                records.log_observation("u2", MetricKind.MOOD, 3),
            )
            return await records.count_records()
        assert _run(_go()) == 3

    def test_concurrent_same_kind_leaves_one(self, records):
        async def _go():
            await asyncio.gather(
                records.log_observation("u1", MetricKind.STEPS, 5000),
                records.log_observation("u1", MetricKind.STEPS, 6000),
            )
            return await records.get_records_for_date("u1")
        today = _run(_go())
        assert len(today) == 1
        assert today[0].value in (5000, 6000)

    def test_unavailable_medium_raises(self):
        store = HealthRecordStore(CollectionStore(_BrokenMedium()))
        with pytest.raises(StorageUnavailableError):
            _run(store.log_observation("u1", MetricKind.STEPS, 10))


class TestQueries:
    def test_snapshot_empty(self, records):
        assert _run(records.get_today_snapshot("u1")) == {}

    def test_records_for_explicit_date(self, records, clock):
        async def _go():
            await records.log_observation("u1", MetricKind.STEPS, 5000)
            clock.today = date(2024, 1, 2)
            await records.log_observation("u1", MetricKind.STEPS, 6000)
            return await records.get_records_for_date("u1", date(2024, 1, 1))
        assert [r.value for r in _run(_go())] == [5000]

    def test_range_is_inclusive(self, records, clock):
        async def _go():
            for offset in (8, 7, 3, 0):
                clock.today = date(2024, 1, 10) - timedelta(days=offset)
                await records.log_observation("u1", MetricKind.STEPS, 1000 + offset)
            clock.today = date(2024, 1, 10)
            return await records.get_records_in_range("u1", 7)
        days = sorted(r.day for r in _run(_go()))
        assert days == [date(2024, 1, 3), date(2024, 1, 7), date(2024, 1, 10)]

    def test_range_excludes_future_and_other_accounts(self, records, clock):
        async def _go():
            clock.today = date(2024, 1, 20)
            await records.log_observation("u1", MetricKind.STEPS, 1)
            clock.today = date(2024, 1, 10)
            await records.log_observation("u2", MetricKind.STEPS, 2)
            return await records.get_records_in_range("u1", 30)
        assert _run(_go()) == []

    def test_malformed_rows_skipped(self, clock):
        raw = json.dumps([
            {"id": "1", "userId": "u1", "type": "steps", "value": 10,
             "date": "2024-01-01", "timestamp": "t"},
            {"id": "2", "userId": "u1", "type": "bogus", "value": 1, "date": "2024-01-01"},
            {"id": "3", "userId": "u1", "type": "water"},
            {"id": "4", "userId": "u1", "type": "sleep", "value": None, "date": "2024-01-01"},
            {"id": "5", "userId": "u1", "type": "mood", "value": "abc", "date": "2024-01-01"},
            {"id": "6", "userId": "u1", "type": "water", "value": True, "date": "2024-01-01"},
        ])
        store = HealthRecordStore(
            CollectionStore(InMemoryKeyValueStore({HEALTH_DATA_KEY: raw})), today=clock
        )
        assert _run(store.get_today_snapshot("u1")) == {MetricKind.STEPS: 10}
        assert _run(store.export_csv("u1")) == f"{CSV_HEADER}\n2024-01-01,steps,10"

    def test_upsert_reports_replacement(self, records):
        async def _go():
            _, first = await records.upsert_observation("u1", MetricKind.STEPS, 5000)
            _, second = await records.upsert_observation("u1", MetricKind.STEPS, 6000)
            _, other = await records.upsert_observation("u1", MetricKind.WATER, 2)
            return first, second, other
        assert _run(_go()) == (False, True, False)

    def test_unavailable_medium_lists_nothing(self):
        store = HealthRecordStore(CollectionStore(_BrokenMedium()))
        assert _run(store.get_today_snapshot("u1")) == {}
        assert _run(store.get_records_in_range("u1", 7)) == []

    def test_count_records(self, records):
        async def _go():
            await records.log_observation("u1", MetricKind.STEPS, 1)
            await records.log_observation("u1", MetricKind.WATER, 1)
            await records.log_observation("u2", MetricKind.WATER, 1)
            return await records.count_records(), await records.count_records("u1")
        assert _run(_go()) == (3, 2)


class TestExportCsv:
    def test_single_record_exact(self, records):
        async def _go():
            await records.log_observation("u1", MetricKind.STEPS, 5000)
            return await records.export_csv("u1")
        assert _run(_go()) == "Date,Type,Value\n2024-01-01,steps,5000"

    def test_no_records_is_empty_string(self, records):
        assert _run(records.export_csv("u1")) == ""

    def test_full_history_for_account_only(self, records, clock):
        async def _go():
            await records.log_observation("u1", MetricKind.SLEEP, 7.5)
            await records.log_observation("u2", MetricKind.STEPS, 99)
            clock.today = date(2024, 3, 1)
            await records.log_observation("u1", MetricKind.HEART_RATE, 72)
            return await records.export_csv("u1")
        lines = _run(_go()).split("\n")
        assert lines == [CSV_HEADER, "2024-01-01,sleep,7.5", "2024-03-01,heartRate,72"]


class TestClear:
    def test_clear_removes_only_that_account(self, records):
        async def _go():
            await records.log_observation("u1", MetricKind.STEPS, 1)
            await records.log_observation("u1", MetricKind.WATER, 2)
            await records.log_observation("u2", MetricKind.STEPS, 3)
            removed = await records.clear_all_for_account("u1")
            return (
                removed,
                await records.get_all_for_account("u1"),
                await records.get_today_snapshot("u2"),
            )
        removed, mine, theirs = _run(_go())
        assert removed == 2
        assert mine == []
        assert theirs == {MetricKind.STEPS: 3}

    def test_clear_with_nothing_stored(self, records):
        assert _run(records.clear_all_for_account("u1")) == 0


class TestFormatNumber:
    def test_integral_float_prints_as_int(self):
        assert format_number(5000.0) == "5000"

    def test_fraction_kept(self):
        assert format_number(7.5) == "7.5"
