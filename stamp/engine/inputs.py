"""Classification of values handed to the date formatter.

Values are sorted into a closed set of variants up front, so the rest of the
engine can match on the variant instead of re-inspecting runtime types.
"""

from __future__ import annotations

import calendar
import datetime
import decimal
import math
import numbers
import time
from dataclasses import dataclass
from typing import Any
from typing import TypeAlias


@dataclass(frozen=True)
class StructuredTemporal:
    """A `date`, `datetime` or `time`: calendar aware, zone aware, shiftable."""

    value: datetime.date | datetime.time


@dataclass(frozen=True)
class LegacyInstant:
    """A `time.struct_time`, as produced by `time.gmtime()` or `time.localtime()`."""

    value: time.struct_time

    def to_instant(self) -> datetime.datetime:
        # struct_times without an offset are taken to be UTC.
        seconds = calendar.timegm(self.value) - (self.value.tm_gmtoff or 0)
        return datetime.datetime.fromtimestamp(seconds, datetime.UTC)

    def __str__(self) -> str:
        return time.strftime("%Y-%m-%d %H:%M:%S", self.value)


@dataclass(frozen=True)
class EpochNumber:
    """Milliseconds since 1970-01-01T00:00:00Z."""

    millis: int

    def to_instant(self) -> datetime.datetime:
        return datetime.datetime(1970, 1, 1, tzinfo=datetime.UTC) + datetime.timedelta(
            milliseconds=self.millis
        )

    def __str__(self) -> str:
        return str(self.millis)


@dataclass(frozen=True)
class InstantText:
    """Anything else. Usable only when an input pattern is supplied."""

    value: Any

    def __str__(self) -> str:
        return str(self.value)


TemporalInput: TypeAlias = (
    StructuredTemporal | LegacyInstant | EpochNumber | InstantText
)


def _is_finite_number(value: Any) -> bool:
    if isinstance(value, decimal.Decimal):
        return value.is_finite()
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        return math.isfinite(value)
    return False


def classify(value: Any) -> TemporalInput:
    """Sorts a non-null value into its variant.

    Numbers, including Decimals, are truncated toward zero to whole
    milliseconds. Booleans, NaN and infinities are not numbers here.
    """
    if isinstance(value, (datetime.date, datetime.time)):
        return StructuredTemporal(value)
    if isinstance(value, time.struct_time):
        return LegacyInstant(value)
    if _is_finite_number(value):
        return EpochNumber(int(value))
    return InstantText(value)
