"""Audit trail of registration creations and deletions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from lessonbook.data_store.schema import AUDIT_TABLE
from lessonbook.logging import sanitize_for_log
from lessonbook.registrations.models import AuditRecord, Registration

if TYPE_CHECKING:
    from lessonbook.cache import TableReader
    from lessonbook.data_store import DataStore
    from lessonbook.clock import Clock, IdGenerator

logger = logging.getLogger(__name__)


class AuditTrail:
    """Builds audit records and appends them to the audit table.

    Records are only ever appended. Nothing in this class updates or
    removes a written record.
    """

    def __init__(
        self,
        store: DataStore,
        reader: TableReader,
        clock: Clock,
        id_generator: IdGenerator,
        table: str = AUDIT_TABLE,
    ) -> None:
        self._store = store
        self._reader = reader
        self._clock = clock
        self._ids = id_generator
        self.table = table

    async def record_created(self, registration: Registration, performed_by: str) -> AuditRecord:
        """Append the snapshot of a newly created registration."""
        record = AuditRecord(id=self._ids.new_id(), snapshot=registration)
        await self._append(record)
        logger.debug(
            "Audited creation of %s by %s", registration.id_text, sanitize_for_log(performed_by)
        )
        return record

    async def record_deleted(self, registration: Registration, performed_by: str) -> AuditRecord:
        """Append the snapshot of a deleted registration."""
        record = AuditRecord(
            id=self._ids.new_id(),
            snapshot=registration,
            is_deleted=True,
            deleted_at=self._clock.now(),
            deleted_by=performed_by,
        )
        await self._append(record)
        logger.debug(
            "Audited deletion of %s by %s", registration.id_text, sanitize_for_log(performed_by)
        )
        return record

    async def history(self, registration_id: str) -> list[AuditRecord]:
        """All audit records of a registration, oldest first."""
        records = await self._reader.load(self.table, AuditRecord.from_row)
        return [r for r in records if r.registration_id == registration_id]

    async def _append(self, record: AuditRecord) -> None:
        await self._store.append(self.table, record.to_row())
