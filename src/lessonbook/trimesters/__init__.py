"""Trimesters - Program calendar and registration table routing."""

from lessonbook.trimesters.exceptions import (
    InvalidTrimesterError,
    NoActivePeriodError,
    TrimesterError,
)
from lessonbook.trimesters.models import Period, PeriodType, Trimester
from lessonbook.trimesters.router import TrimesterRouter

__all__ = [
    "InvalidTrimesterError",
    "NoActivePeriodError",
    "Period",
    "PeriodType",
    "Trimester",
    "TrimesterError",
    "TrimesterRouter",
]
