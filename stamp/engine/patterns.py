"""Date patterns: compiling formatters and parsers from LDML pattern strings.

Patterns use the Unicode LDML date field symbols ("yyyy-MM-dd'T'HH:mm",
"EEEE d MMMM", ...), rendered through babel so month and day names follow
the requested locale. The same pattern language drives parsing of input
strings for the `existingFormat` option.
"""

from __future__ import annotations

import datetime
import re
import zoneinfo
from abc import ABC
from abc import abstractmethod
from functools import cache
from typing import Iterable

from babel import Locale
from babel.core import get_global
from babel.dates import PATTERN_CHARS
from babel.dates import DateTimeFormat
from babel.dates import get_timezone_location
from babel.dates import parse_pattern
from babel.dates import tokenize_pattern
from django.utils import timezone

from .errors import CallSite
from .errors import FormatError
from .errors import InvalidPattern
from .errors import InvalidZoneId
from .errors import ParseError
from .zones import parse_zone

DATE = "date"
TIME = "time"
ZONE = "zone"

_TIME_FIELDS = frozenset("abBhHKkmsSA")
_ZONE_FIELDS = frozenset("zZOvVxX")
_NUMERIC_FIELDS = frozenset("yYuQqMLwWdDFecHhKkmsSA")
_IGNORED_FIELDS = frozenset("QqwWFEec")

Token = tuple[str, "str | tuple[str, int]"]


def field_category(char: str) -> str:
    if char in _TIME_FIELDS:
        return TIME
    if char in _ZONE_FIELDS:
        return ZONE
    return DATE


def tokenize(pattern: str, call_site: CallSite | None = None) -> list[Token]:
    """Splits a pattern into literal and field tokens.

    Raises:
        InvalidPattern: On unknown unquoted letters, unterminated quotes, or
            field widths the symbol doesn't support ("HHH").
    """
    quoted = False
    for char in pattern.replace("''", ""):
        if char == "'":
            quoted = not quoted
        elif not quoted and char.isascii() and char.isalpha():
            if char not in PATTERN_CHARS:
                raise InvalidPattern(
                    f"Unknown pattern letter '{char}' in '{pattern}'.", call_site
                )
    if quoted:
        raise InvalidPattern(f"Unterminated quote in pattern '{pattern}'.", call_site)
    tokens = tokenize_pattern(pattern)
    for kind, value in tokens:
        if kind != "field":
            continue
        char, num = value
        limit = PATTERN_CHARS[char]
        if limit and num not in limit:
            raise InvalidPattern(
                f"Invalid width for field '{char * num}' in '{pattern}'.", call_site
            )
    return tokens


def value_fields(value: datetime.date | datetime.time) -> frozenset[str]:
    """Field categories a value can supply to a formatter."""
    if isinstance(value, datetime.datetime):
        if value.tzinfo is not None and value.utcoffset() is not None:
            return frozenset((DATE, TIME, ZONE))
        return frozenset((DATE, TIME))
    if isinstance(value, datetime.time):
        if value.tzinfo is not None and value.utcoffset() is not None:
            return frozenset((TIME, ZONE))
        return frozenset((TIME,))
    return frozenset((DATE,))


class Formatter(ABC):
    """A compiled output format.

    Attributes:
        pattern: The source pattern, for messages.
        requires: Field categories the value must supply.
    """

    pattern: str
    requires: frozenset[str]

    @abstractmethod
    def format(self, value: datetime.date | datetime.time) -> str:
        ...

    def __call__(
        self,
        value: datetime.date | datetime.time,
        call_site: CallSite | None = None,
    ) -> str:
        if missing := self.requires - value_fields(value):
            raise FormatError(
                f"Could not format instance '{value}' of type "
                f"{type(value).__name__} into a date; pattern '{self.pattern}' "
                f"needs {' and '.join(sorted(missing))} fields.",
                call_site,
            )
        return self.format(value)


class PatternFormatter(Formatter):
    def __init__(
        self, pattern: str, locale: Locale, call_site: CallSite | None = None
    ):
        tokens = tokenize(pattern, call_site)
        self.pattern = pattern
        self.locale = locale
        self.requires = frozenset(
            field_category(value[0]) for kind, value in tokens if kind == "field"
        )
        self._compiled = parse_pattern(pattern)

    def format(self, value: datetime.date | datetime.time) -> str:
        return self._compiled % _DateTimeFormat(value, self.locale)


class _DateTimeFormat(DateTimeFormat):
    def format_timezone(self, char: str, num: int) -> str:
        if char == "O" and num == 1:
            return self._short_gmt()
        return super().format_timezone(char, num)

    def _short_gmt(self) -> str:
        """Short localized GMT format: "GMT-8", "GMT+5:30", or "GMT" at zero."""
        minutes = self.value.utcoffset() // datetime.timedelta(minutes=1)
        if not minutes:
            return self.locale.zone_formats["gmt"] % ""
        sign = "-" if minutes < 0 else "+"
        hours, minutes = divmod(abs(minutes), 60)
        offset = f"{sign}{hours}:{minutes:02d}" if minutes else f"{sign}{hours}"
        return self.locale.zone_formats["gmt"] % offset


class IsoDateTimeFormatter(Formatter):
    """ISO-8601 date-time with offset, and the zone key for named zones.

    For example "2020-01-01T10:00:00+01:00[Europe/Paris]". A zero offset is
    written as "Z".
    """

    pattern = "ISO-8601 date-time"
    requires = frozenset((DATE, TIME))

    def format(self, value: datetime.datetime) -> str:
        offset = value.utcoffset()
        text = value.replace(tzinfo=None).isoformat()
        if offset is None:
            return text
        if not offset:
            text += "Z"
        else:
            text += value.isoformat()[len(text) :]
        if key := getattr(value.tzinfo, "key", None):
            text += f"[{key}]"
        return text


ISO_DATE_TIME = IsoDateTimeFormatter()


def get_formatter(
    pattern: str | None, locale: Locale | str, call_site: CallSite | None = None
) -> Formatter:
    if pattern is None:
        return ISO_DATE_TIME
    return PatternFormatter(pattern, Locale.parse(locale), call_site)


def _names(*tables: dict) -> dict:
    names = {}
    for table in tables:
        for key, name in table.items():
            names.setdefault(name.casefold(), key)
    return names


def _widths(data, contexts: Iterable[str]) -> list[dict]:
    # Narrow names ("J", "M") are ambiguous and are not parsed.
    tables = []
    for context in contexts:
        for width in ("wide", "abbreviated"):
            try:
                tables.append(data[context][width])
            except KeyError:
                continue
    return tables


def _alternation(names: Iterable[str]) -> str:
    return "|".join(re.escape(n) for n in sorted(names, key=len, reverse=True))


@cache
def _zone_locations(locale: Locale, cities: bool) -> dict[str, str]:
    """Maps localized exemplar cities or location names to zone keys."""
    aliases = get_global("zone_aliases")
    keys = sorted(zoneinfo.available_timezones(), key=lambda k: (k in aliases, k))
    names = {}
    for key in keys:
        name = get_timezone_location(
            zoneinfo.ZoneInfo(key), locale=locale, return_city=cities
        )
        names.setdefault(name.casefold(), key)
    return names


class _Field:
    def __init__(self, char: str, num: int, regex: str, names: dict | None = None):
        self.char = char
        self.num = num
        self.regex = regex
        self.names = names


class PatternParser:
    """Parses strings laid out according to a pattern into aware datetimes.

    The whole string must match. Fields missing from the pattern default to
    1970-01-01 00:00:00. Without a zone field in the pattern, the parsed
    wall-clock time is interpreted in the zone passed to `parse`.
    """

    def __init__(
        self,
        pattern: str,
        locale: Locale | str,
        call_site: CallSite | None = None,
    ):
        self.pattern = pattern
        self.locale = Locale.parse(locale)
        self.call_site = call_site
        tokens = tokenize(pattern, call_site)
        self._fields: list[_Field] = []
        parts: list[str] = []
        for i, (kind, value) in enumerate(tokens):
            if kind == "chars":
                parts.append(re.escape(value))
                continue
            char, num = value
            following = tokens[i + 1] if i + 1 < len(tokens) else None
            adjacent = bool(
                following
                and following[0] == "field"
                and following[1][0] in _NUMERIC_FIELDS
            )
            field = self._field(char, num, adjacent)
            parts.append(f"(?P<f{len(self._fields)}>{field.regex})")
            self._fields.append(field)
        self._regex = re.compile("".join(parts), re.IGNORECASE)

    def _field(self, char: str, num: int, adjacent: bool) -> _Field:
        locale = self.locale
        if char in "ML" and num >= 3:
            names = _names(*_widths(locale.months, ("format", "stand-alone")))
            return _Field(char, num, _alternation(names), names)
        if char == "E" or (char in "ec" and num >= 3):
            names = _names(*_widths(locale.days, ("format", "stand-alone")))
            return _Field(char, num, _alternation(names), names)
        if char == "a":
            tables = [
                {k: v for k, v in t.items() if k in ("am", "pm")}
                for t in _widths(locale.day_periods, ("format", "stand-alone"))
            ]
            names = _names(*tables)
            return _Field(char, num, _alternation(names), names)
        if char == "G":
            names = _names(
                *(locale.eras.get(w, {}) for w in ("wide", "abbreviated"))
            )
            return _Field(char, num, _alternation(names), names)
        if char in "ZxXO":
            return _Field(char, num, r"Z|(?:GMT|UTC)?[+-]\d{1,2}(?::?\d{2})?|GMT|UTC")
        if char == "V" and num == 2:
            return _Field(char, num, r"[A-Za-z][\w+-]*(?:/[\w+-]+)*")
        if char == "V" and num >= 3:
            names = _zone_locations(locale, num == 3)
            return _Field(char, num, _alternation(names), names)
        if char in "zvV":
            raise InvalidPattern(
                f"Field '{char * num}' in '{self.pattern}' can not be parsed: "
                "zone names do not identify a single zone.",
                self.call_site,
            )
        if char in _NUMERIC_FIELDS and not (char in "Qq" and num >= 3):
            if adjacent:
                return _Field(char, num, rf"\d{{{num}}}")
            if char in "yYu" and num != 2:
                return _Field(char, num, r"[+-]?\d+")
            return _Field(char, num, r"\d+")
        raise InvalidPattern(
            f"Field '{char * num}' in '{self.pattern}' can not be parsed.",
            self.call_site,
        )

    def _fail(self, text: str) -> ParseError:
        return ParseError(
            f"Could not parse the string '{text}' into a date "
            f"using pattern '{self.pattern}'.",
            self.call_site,
        )

    def parse(self, text: str, zone: datetime.tzinfo) -> datetime.datetime:
        """Parses the text into an aware datetime.

        Raises:
            ParseError: If the text doesn't match the pattern or names an
                impossible date.
        """
        m = self._regex.fullmatch(text.strip())
        if not m:
            raise self._fail(text)
        values: dict[str, int] = {}
        pm: bool | None = None
        bce = False
        for i, field in enumerate(self._fields):
            raw = m[f"f{i}"]
            match field.char:
                case "a":
                    pm = field.names[raw.casefold()] == "pm"
                case "G":
                    bce = field.names[raw.casefold()] == 0
                case "M" | "L":
                    values["month"] = (
                        field.names[raw.casefold()] if field.names else int(raw)
                    )
                case "y" | "Y" | "u":
                    values["year"] = _year(raw, field.num)
                case "S":
                    values["microsecond"] = int(raw[:6].ljust(6, "0"))
                case "A":
                    values["millis_of_day"] = int(raw)
                case "V" if field.names:
                    zone = zoneinfo.ZoneInfo(field.names[raw.casefold()])
                case "Z" | "x" | "X" | "O" | "V":
                    try:
                        zone = parse_zone(raw)
                    except InvalidZoneId as exc:
                        raise self._fail(text) from exc
                case char if char in _IGNORED_FIELDS:
                    pass
                case char:
                    values[char] = int(raw)
        try:
            return self._build(values, pm, bce).replace(tzinfo=zone)
        except (ValueError, OverflowError) as exc:
            raise self._fail(text) from exc

    def _build(
        self, values: dict[str, int], pm: bool | None, bce: bool
    ) -> datetime.datetime:
        year = values.get("year", 1970)
        if bce:
            year = 1 - year
        if "D" in values and "month" not in values and "d" not in values:
            day = datetime.date(year, 1, 1) + datetime.timedelta(days=values["D"] - 1)
        else:
            day = datetime.date(year, values.get("month", 1), values.get("d", 1))
        if "H" in values:
            hour = values["H"]
        elif "k" in values:
            hour = values["k"] % 24
        elif "h" in values:
            hour = values["h"] % 12 + (12 if pm else 0)
        elif "K" in values:
            hour = values["K"] + (12 if pm else 0)
        else:
            hour = 0
        if "millis_of_day" in values:
            return datetime.datetime.combine(day, datetime.time()) + datetime.timedelta(
                milliseconds=values["millis_of_day"]
            )
        time = datetime.time(
            hour, values.get("m", 0), values.get("s", 0), values.get("microsecond", 0)
        )
        return datetime.datetime.combine(day, time)


def _year(raw: str, num: int) -> int:
    if num != 2 or len(raw) != 2:
        return int(raw)
    # Two-digit years land within 80 years before and 20 years after now.
    start = timezone.now().year - 80
    year = start - start % 100 + int(raw)
    if year < start:
        year += 100
    return year

