"""Time shifts applied to values before they are formatted.

A shift is a signed, fixed-length duration written in ISO-8601 form
("PT1H30M", "-P2D", "P1DT12H"). Calendar units (years, months, weeks) are
not accepted since they have no fixed length.
"""

from __future__ import annotations

import datetime

from django.utils.dateparse import iso8601_duration_re
from django.utils.dateparse import parse_duration
from pydantic import BaseModel

from .decision import Decision
from .errors import CallSite
from .errors import InvalidDurationString

_DAY = datetime.timedelta(days=1)
_MICROSECOND = datetime.timedelta(microseconds=1)
_DAY_MICROSECONDS = _DAY // _MICROSECOND


class Shift(BaseModel, frozen=True):
    duration: datetime.timedelta

    @classmethod
    def parse(cls, text: str, call_site: CallSite | None = None) -> Shift:
        """Parses an ISO-8601 duration such as "PT36H" or "-P1DT2H".

        Only seconds may be fractional.

        Raises:
            InvalidDurationString: If the text is not a duration with at least
                one day, hour, minute or second component, or if it is too
                large to represent.
        """
        normalized = text.strip().upper()
        m = iso8601_duration_re.match(normalized)
        if (
            not m
            or normalized.endswith("T")
            or not any(m[unit] for unit in ("days", "hours", "minutes", "seconds"))
            or any(
                m[unit] and not m[unit].isdigit()
                for unit in ("days", "hours", "minutes")
            )
        ):
            raise InvalidDurationString(
                f"Could not parse '{text}' as an ISO-8601 duration.", call_site
            )
        try:
            return cls(duration=parse_duration(normalized))
        except OverflowError as exc:
            raise InvalidDurationString(
                f"Duration '{text}' is out of range.", call_site
            ) from exc

    @property
    def whole_days(self) -> int:
        """Number of complete days in the shift, truncated toward zero.

        PT36H is one day, and -PT36H is minus one day.
        """
        micros = self.duration // _MICROSECOND
        days = abs(micros) // _DAY_MICROSECONDS
        return -days if micros < 0 else days

    @property
    def is_whole_days(self) -> bool:
        return self.duration == datetime.timedelta(days=self.whole_days)


def supports_shift(value: datetime.date | datetime.time, shift: Shift) -> Decision:
    """Can the value absorb the shift without losing precision?

    Datetimes and times accept any shift. Dates accept only whole days.
    """
    if isinstance(value, (datetime.datetime, datetime.time)):
        return Decision.OK
    if shift.is_whole_days:
        return Decision.OK
    return Decision(
        success=False,
        reason=f"{type(value).__name__} values have no time of day to shift",
    )


def apply_shift(
    value: datetime.date | datetime.time, shift: Shift
) -> datetime.date | datetime.time:
    """Returns the value moved by the shift.

    If the value can't carry the sub-day part of the shift (a bare date
    receiving "PT36H", say) only the whole-day part is applied and the rest
    is dropped.
    """
    if not supports_shift(value, shift):
        return value + datetime.timedelta(days=shift.whole_days)
    if isinstance(value, datetime.datetime):
        if value.tzinfo is not None and value.utcoffset() is not None:
            # Aware values move by elapsed time, not by wall-clock time.
            return (value.astimezone(datetime.UTC) + shift.duration).astimezone(
                value.tzinfo
            )
        return value + shift.duration
    if isinstance(value, datetime.time):
        # Times wrap around midnight.
        moved = datetime.datetime.combine(datetime.date.min, value) + (
            shift.duration % _DAY
        )
        return moved.timetz()
    return value + datetime.timedelta(days=shift.whole_days)


def shift_instant(instant: datetime.datetime, shift: Shift) -> datetime.datetime:
    """Exact shift for aware instants."""
    return instant + shift.duration
