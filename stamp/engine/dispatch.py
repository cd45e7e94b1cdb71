"""Formatting entry point: route a value to the right formatting path.

Two paths exist. Dates, datetimes and times take the temporal path: their
own zone wins over any requested one and shifts degrade to whole days when
the value has no time of day. Everything else takes the legacy path, where
the value is an instant (a struct_time, an epoch count in milliseconds, or
text parsed with an input pattern) that is converted into the requested
zone before formatting.
"""

from __future__ import annotations

import datetime
from typing import Any

from babel import Locale
from django.utils.safestring import SafeString
from django.utils.safestring import mark_safe
from pydantic import BaseModel

from . import inputs
from .errors import CallSite
from .errors import FormatError
from .errors import UnsupportedInputType
from .patterns import PatternParser
from .patterns import get_formatter
from .shift import Shift
from .shift import apply_shift
from .shift import shift_instant
from .zones import output_zone
from .zones import resolve_zone


class FormatOptions(BaseModel, frozen=True):
    """Options for a single formatting call.

    Attributes:
        pattern: Output pattern. Defaults to ISO-8601 date-time.
        existing_pattern: Pattern used to parse text input. Ignored for
            dates, datetimes and times.
        zone_override: Zone to format in, when the value has none of its own.
        shift: Shift applied before formatting.
    """

    pattern: str | None = None
    existing_pattern: str | None = None
    zone_override: str | None = None
    shift: Shift | None = None

    @classmethod
    def from_arguments(
        cls,
        format: str | None = None,
        existing_format: str | None = None,
        time_zone: str | None = None,
        alter_time: str | None = None,
        call_site: CallSite | None = None,
    ) -> FormatOptions:
        """Builds options from the raw tag arguments.

        Raises:
            InvalidDurationString: If alter_time is not an ISO-8601 duration.
                This happens here, before any value is looked at.
        """
        shift = None
        if alter_time is not None:
            shift = Shift.parse(alter_time, call_site)
        return cls(
            pattern=format,
            existing_pattern=existing_format,
            zone_override=time_zone,
            shift=shift,
        )


def format_temporal(
    value: Any,
    options: FormatOptions,
    locale: Locale | str,
    call_site: CallSite | None = None,
) -> SafeString | None:
    """Formats a date/time-like value into a string safe for templates.

    Returns None if value is None.
    """
    if value is None:
        return None
    match inputs.classify(value):
        case inputs.StructuredTemporal(temporal):
            text = _format_structured(temporal, options, locale, call_site)
        case (
            inputs.LegacyInstant()
            | inputs.EpochNumber()
            | inputs.InstantText()
        ) as legacy:
            text = _format_legacy(legacy, options, locale, call_site)
    return mark_safe(text)


def _format_structured(
    value: datetime.date | datetime.time,
    options: FormatOptions,
    locale: Locale | str,
    call_site: CallSite | None,
) -> str:
    formatter = get_formatter(options.pattern, locale, call_site)
    zone = resolve_zone(value, options.zone_override, call_site)
    if isinstance(value, datetime.datetime) and value.utcoffset() is None:
        value = value.replace(tzinfo=zone)
    if options.shift is not None:
        try:
            value = apply_shift(value, options.shift)
        except OverflowError as exc:
            raise _out_of_range(value, call_site) from exc
    return formatter(value, call_site)


def _format_legacy(
    value: inputs.LegacyInstant | inputs.EpochNumber | inputs.InstantText,
    options: FormatOptions,
    locale: Locale | str,
    call_site: CallSite | None,
) -> str:
    if options.existing_pattern is not None:
        parser = PatternParser(options.existing_pattern, locale, call_site)
        instant = parser.parse(str(value), output_zone(call_site=call_site))
    elif isinstance(value, (inputs.LegacyInstant, inputs.EpochNumber)):
        try:
            instant = value.to_instant()
        except (OverflowError, ValueError) as exc:
            raise _out_of_range(value, call_site) from exc
    else:
        raise UnsupportedInputType(
            f"Unsupported argument type: {type(value.value).__name__} "
            f"(value: {value.value})",
            call_site,
        )
    formatter = get_formatter(options.pattern, locale, call_site)
    zone = output_zone(options.zone_override, call_site)
    try:
        if options.shift is not None:
            instant = shift_instant(instant, options.shift)
        instant = instant.astimezone(zone)
    except OverflowError as exc:
        raise _out_of_range(instant, call_site) from exc
    return formatter(instant, call_site)


def _out_of_range(value: object, call_site: CallSite | None) -> FormatError:
    return FormatError(
        f"Could not format '{value}': the result is outside the supported "
        f"range of years ({datetime.MINYEAR} to {datetime.MAXYEAR}).",
        call_site,
    )
