from __future__ import annotations

import logging

from django import template
from django.conf import settings
from django.template.base import FilterExpression
from django.template.base import token_kwargs
from django.utils import translation

from stamp.engine.dispatch import FormatOptions
from stamp.engine.dispatch import format_temporal
from stamp.engine.errors import CallSite
from stamp.engine.errors import TemporalFormatError

register = template.Library()

# Tag argument name -> FormatOptions.from_arguments keyword.
ARGUMENTS = {
    "format": "format",
    "existingFormat": "existing_format",
    "timeZone": "time_zone",
    "alterTime": "alter_time",
}


def current_locale() -> str:
    """The babel locale identifier for the active Django language."""
    if language := translation.get_language():
        return translation.to_locale(language)
    return getattr(settings, "STAMP_DEFAULT_LOCALE", "en_US")


class FormatDateNode(template.Node):
    def __init__(
        self,
        value: FilterExpression,
        kwargs: dict[str, FilterExpression],
        target_var: str | None = None,
    ):
        self.value = value
        self.kwargs = kwargs
        self.target_var = target_var

    @property
    def call_site(self) -> CallSite:
        origin = getattr(self, "origin", None)
        token = getattr(self, "token", None)
        return CallSite(
            template_name=origin and (origin.template_name or origin.name),
            lineno=token and token.lineno,
        )

    def render(self, context):
        result = None
        value = self.value.resolve(context, ignore_failures=True)
        if value is not None:
            result = self._format(value, context)
        if self.target_var:
            context[self.target_var] = result
            return ""
        return "" if result is None else result

    def _format(self, value, context):
        call_site = self.call_site
        arguments = {}
        for name, expr in self.kwargs.items():
            arg = expr.resolve(context, ignore_failures=True)
            arguments[ARGUMENTS[name]] = None if arg is None else str(arg)
        try:
            options = FormatOptions.from_arguments(**arguments, call_site=call_site)
            return format_temporal(value, options, current_locale(), call_site)
        except TemporalFormatError as exc:
            logging.debug("format_date failed at %s: %s", call_site, exc.message)
            raise


@register.tag
def format_date(parser, token):
    """Formats a date, datetime, time, epoch milliseconds or date string.

    Usage::

        {% format_date value format="dd/MM/yyyy" timeZone="Europe/Paris" %}
        {% format_date value existingFormat="yyyy-MM-dd" alterTime="P1D" as tomorrow %}

    Patterns use LDML date symbols. Dates, datetimes and times keep their own
    zone if they have one; `timeZone` is used otherwise, then the current
    Django time zone. `alterTime` is an ISO-8601 duration added before
    formatting.
    """
    bits = token.split_contents()
    tag_name = bits.pop(0)
    target_var = None
    if len(bits) >= 2 and bits[-2] == "as":
        target_var = bits.pop()
        bits.pop()
    if not bits or "=" in bits[0]:
        raise template.TemplateSyntaxError(
            f"'{tag_name}' requires a value to format as its first argument."
        )
    value = parser.compile_filter(bits.pop(0))
    kwargs = token_kwargs(bits, parser)
    if bits:
        raise template.TemplateSyntaxError(
            f"'{tag_name}' received unexpected arguments: {' '.join(bits)}"
        )
    if unknown := sorted(set(kwargs) - set(ARGUMENTS)):
        raise template.TemplateSyntaxError(
            f"'{tag_name}' received unknown arguments: {', '.join(unknown)}. "
            f"Valid arguments are: {', '.join(ARGUMENTS)}."
        )
    return FormatDateNode(value, kwargs, target_var)
