"""Errors raised while formatting temporal values.

Every error carries the call site (template name and line number) that
requested the formatting, so the host template engine can point the
template author at the offending tag.
"""

from __future__ import annotations

from pydantic import BaseModel


class CallSite(BaseModel, frozen=True):
    """Where in a template a formatting call came from.

    Attributes:
        template_name: Name of the invoking template, if known. Templates
            built from strings have no name.
        lineno: Line number of the tag within the template.
    """

    template_name: str | None = None
    lineno: int | None = None

    def __str__(self) -> str:
        name = self.template_name or "<unknown>"
        if self.lineno is None:
            return f"template '{name}'"
        return f"template '{name}', line {self.lineno}"


class TemporalFormatError(Exception):
    def __init__(self, message: str, call_site: CallSite | None = None):
        self.message = message
        self.call_site = call_site
        if call_site is not None:
            message = f"{message} ({call_site})"
        super().__init__(message)

    @property
    def template_name(self) -> str | None:
        return self.call_site.template_name if self.call_site else None

    @property
    def lineno(self) -> int | None:
        return self.call_site.lineno if self.call_site else None


class UnsupportedInputType(TemporalFormatError, TypeError):
    """The value is neither a date/time, a legacy instant, nor an epoch number."""


class ParseError(TemporalFormatError, ValueError):
    """Input text did not match the supplied input pattern."""


class FormatError(TemporalFormatError, ValueError):
    """The output pattern needs a field the value does not carry."""


class InvalidZoneId(TemporalFormatError, ValueError):
    """The zone identifier does not name a known zone or offset."""


class InvalidDurationString(TemporalFormatError, ValueError):
    """The shift is not a well-formed ISO-8601 duration."""


class InvalidPattern(TemporalFormatError, ValueError):
    """The pattern uses unknown letters or unsupported field widths."""
