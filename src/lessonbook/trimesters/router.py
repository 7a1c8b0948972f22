"""Routing of logical trimester periods onto registration tables."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from lessonbook.data_store.schema import PERIODS_TABLE, TRIMESTER_TABLES
from lessonbook.trimesters.exceptions import InvalidTrimesterError, NoActivePeriodError
from lessonbook.trimesters.models import Period, PeriodType, Trimester, as_utc

if TYPE_CHECKING:
    from lessonbook.cache import TableReader
    from lessonbook.clock import Clock

logger = logging.getLogger(__name__)


class TrimesterRouter:
    """Maps "current" and "enrollment" onto physical table names.

    The current period is the latest one that has started. Outside an
    enrollment window both tables are the current trimester's. During
    priority or open enrollment, new sign-ups go to the next trimester's
    table while cancellations and reporting stay on the current one.
    """

    def __init__(self, reader: TableReader, clock: Clock) -> None:
        self._reader = reader
        self._clock = clock

    async def _periods(self) -> list[Period]:
        return await self._reader.load(PERIODS_TABLE, Period.from_row)

    async def get_current_period(self) -> Period:
        """Latest period whose start date has passed.

        Raises:
            NoActivePeriodError: If no period has started yet.
        """
        now = as_utc(self._clock.now())
        started = [p for p in await self._periods() if p.start_date <= now]
        if not started:
            logger.warning("No current period found (no period has started yet)")
            raise NoActivePeriodError("No active period found")
        return max(started, key=lambda p: p.start_date)

    async def get_next_period(self) -> Period | None:
        """Earliest period that hasn't started yet, if any."""
        now = as_utc(self._clock.now())
        upcoming = [p for p in await self._periods() if p.start_date > now]
        if not upcoming:
            return None
        return min(upcoming, key=lambda p: p.start_date)

    async def is_intent_period_active(self) -> bool:
        try:
            period = await self.get_current_period()
        except NoActivePeriodError:
            return False
        return period.period_type == PeriodType.INTENT

    async def get_current_trimester_table(self) -> str:
        """Table of the trimester in progress."""
        period = await self.get_current_period()
        return period.trimester.table

    async def get_enrollment_trimester_table(self) -> str:
        """Table that new registrations are written to and checked against."""
        period = await self.get_current_period()
        if period.period_type.is_enrollment:
            return period.trimester.next().table
        return period.trimester.table

    async def can_access_enrollment(self, has_active_registrations: bool) -> bool:
        """Whether a family may enroll in the next trimester right now.

        Open enrollment admits everyone, priority enrollment only returning
        families. No one may enroll outside those windows.
        """
        try:
            period = await self.get_current_period()
        except NoActivePeriodError:
            return False
        if period.period_type == PeriodType.OPEN_ENROLLMENT:
            return True
        if period.period_type == PeriodType.PRIORITY_ENROLLMENT:
            return has_active_registrations
        return False

    def table_for(self, trimester: Trimester | str) -> str:
        """Table of a named trimester.

        Raises:
            InvalidTrimesterError: If the name is unknown.
        """
        return Trimester.parse(trimester).table

    def validate_table(self, table: str) -> str:
        """Check that a caller-supplied table is a trimester table.

        Raises:
            InvalidTrimesterError: If it isn't.
        """
        if table not in TRIMESTER_TABLES:
            raise InvalidTrimesterError(f"Not a trimester table: {table!r}")
        return table
