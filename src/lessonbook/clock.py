"""Time and identifier sources consumed by the registration core."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Protocol


class Clock(Protocol):
    """Source of the current time."""

    def now(self) -> datetime:
        """Get the current time."""
        ...


class IdGenerator(Protocol):
    """Source of random unique ids."""

    def new_id(self) -> str:
        """Generate a new id."""
        ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class UuidGenerator:
    """Random UUID4 strings."""

    def new_id(self) -> str:
        return str(uuid.uuid4())
