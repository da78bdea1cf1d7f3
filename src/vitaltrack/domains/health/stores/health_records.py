"""Health record store: per-user, per-kind, per-day metric observations.

All records for all accounts share one serialized collection under
``healthData``; accounts are separated only by the ``userId`` field of each
record. At most one record exists per (account, kind, calendar day): logging
again on the same day replaces the earlier record in place.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timedelta, timezone
from typing import Callable

from vitaltrack.core.storage.collection_store import HEALTH_DATA_KEY, CollectionStore
from vitaltrack.core.storage.key_value import StorageUnavailableError
from vitaltrack.core.storage.models import HealthRecord, MetricKind

logger = logging.getLogger(__name__)

CSV_HEADER = "Date,Type,Value"


def format_number(value: float) -> str:
    """Render a stored value the way it was entered (``5000``, not ``5000.0``)."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class HealthRecordStore:
    """Upserts, queries and exports daily health observations.

    ``today`` supplies the local calendar date; tests pass a fixed date.

    Usage::

        store = HealthRecordStore(CollectionStore(medium))
        await store.log_observation(account.id, MetricKind.STEPS, 8200)
        snapshot = await store.get_today_snapshot(account.id)
    """

    def __init__(
        self,
        collections: CollectionStore,
        *,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._collections = collections
        self._today = today

    @staticmethod
    def _new_id() -> str:
        return str(uuid.uuid4())

    @staticmethod
    def _now_iso() -> str:
        return datetime.now(timezone.utc).isoformat()

    def today(self) -> date:
        return self._today()

    async def _load_records(self) -> list[HealthRecord]:
        records: list[HealthRecord] = []
        for item in await self._collections.read_list(HEALTH_DATA_KEY):
            try:
                records.append(HealthRecord.from_dict(item))
            except (KeyError, ValueError, TypeError):
                logger.warning("Skipping malformed health record: id=%s", item.get("id"))
        return records

    async def _load_for_listing(self) -> list[HealthRecord]:
        """Read path for listing operations: an unreadable medium lists nothing."""
        try:
            return await self._load_records()
        except StorageUnavailableError:
            logger.exception("Health data unavailable; returning no records")
            return []

    async def _save_records(self, records: list[HealthRecord]) -> None:
        await self._collections.write_list(HEALTH_DATA_KEY, [r.to_dict() for r in records])

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def log_observation(
        self, account_id: str, kind: MetricKind, value: float
    ) -> HealthRecord:
        """Record today's value for ``kind``, replacing any earlier one today.

        Returns:
            The stored record (always freshly identified and timestamped).

        Raises:
            StorageUnavailableError: If the medium cannot be read or written.
        """
        record, _ = await self.upsert_observation(account_id, kind, value)
        return record

    async def upsert_observation(
        self, account_id: str, kind: MetricKind, value: float
    ) -> tuple[HealthRecord, bool]:
        """Like :meth:`log_observation`, also reporting whether a record for
        today was replaced (True) or a new one appended (False).
        """
        kind = MetricKind(kind)
        today = self.today()
        record = HealthRecord(
            id=self._new_id(),
            user_id=account_id,
            kind=kind,
            value=value,
            day=today,
            timestamp=self._now_iso(),
        )

        async with self._collections.locked(HEALTH_DATA_KEY):
            records = await self._load_records()
            index = next(
                (i for i, r in enumerate(records) if r.matches(account_id, kind, today)),
                None,
            )
            if index is None:
                records.append(record)
            else:
                records[index] = record
            await self._save_records(records)

        logger.info(
            "%s %s observation for %s on %s",
            "Appended" if index is None else "Replaced",
            kind.value,
            account_id,
            today.isoformat(),
        )
        return record, index is not None

    async def clear_all_for_account(self, account_id: str) -> int:
        """Delete every record owned by ``account_id``. Irreversible.

        Returns:
            Number of records removed.
        """
        async with self._collections.locked(HEALTH_DATA_KEY):
            records = await self._load_records()
            kept = [r for r in records if r.user_id != account_id]
            await self._save_records(kept)

        removed = len(records) - len(kept)
        logger.warning("Cleared %d health records for %s", removed, account_id)
        return removed

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_records_for_date(
        self, account_id: str, day: date | None = None
    ) -> list[HealthRecord]:
        """Records for one account on one day (default today), storage order."""
        target = day or self.today()
        records = await self._load_for_listing()
        return [r for r in records if r.user_id == account_id and r.day == target]

    async def get_today_snapshot(self, account_id: str) -> dict[MetricKind, float]:
        """Today's values keyed by kind. Kinds not logged today are absent."""
        return {r.kind: r.value for r in await self.get_records_for_date(account_id)}

    async def get_records_in_range(self, account_id: str, days: int) -> list[HealthRecord]:
        """All kinds of records dated within ``[today - days, today]`` inclusive."""
        end = self.today()
        start = end - timedelta(days=days)
        records = await self._load_for_listing()
        return [r for r in records if r.user_id == account_id and start <= r.day <= end]

    async def get_all_for_account(self, account_id: str) -> list[HealthRecord]:
        records = await self._load_for_listing()
        return [r for r in records if r.user_id == account_id]

    async def export_csv(self, account_id: str) -> str:
        """Full history as ``Date,Type,Value`` CSV, or ``""`` with no records.

        Kinds and numbers never contain commas, so rows are not quoted.
        """
        records = await self.get_all_for_account(account_id)
        if not records:
            return ""
        rows = [f"{r.day.isoformat()},{r.kind.value},{format_number(r.value)}" for r in records]
        return "\n".join([CSV_HEADER, *rows])

    async def count_records(self, account_id: str | None = None) -> int:
        records = await self._load_for_listing()
        if account_id is None:
            return len(records)
        return sum(1 for r in records if r.user_id == account_id)
