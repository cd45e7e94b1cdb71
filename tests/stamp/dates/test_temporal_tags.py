import logging
from datetime import date
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest
from django.template import TemplateSyntaxError
from django.test.utils import override_settings
from django.utils import timezone
from django.utils import translation

from stamp.dates.templatetags.temporal import current_locale
from stamp.engine.errors import FormatError
from stamp.engine.errors import InvalidDurationString
from stamp.engine.errors import ParseError
from stamp.engine.errors import UnsupportedInputType


def test_format(render):
    html = render(
        '{% load temporal %}{% format_date value format="dd/MM/yyyy" %}',
        value=date(2020, 1, 1),
    )
    assert html == "01/01/2020"


def test_none_renders_nothing(render):
    html = render(
        '{% load temporal %}[{% format_date value alterTime="garbage" %}]', value=None
    )
    assert html == "[]"


def test_missing_variable_renders_nothing(render):
    assert render("{% load temporal %}[{% format_date nothing %}]") == "[]"


def test_as_variable(render):
    html = render(
        '{% load temporal %}{% format_date value format="yyyy" as year %}[{{ year }}]',
        value=date(2020, 1, 1),
    )
    assert html == "[2020]"


def test_as_variable_keeps_none(render):
    html = render(
        "{% load temporal %}{% format_date value as out %}"
        "{% if out is None %}empty{% endif %}",
        value=None,
    )
    assert html == "empty"


def test_output_is_not_escaped(render):
    html = render(
        "{% load temporal %}{% format_date value format=fmt as out %}{{ out }}",
        value=date(2020, 1, 1),
        fmt="'<b>'yyyy'</b>'",
    )
    assert html == "<b>2020</b>"


def test_arguments_from_context(render):
    html = render(
        "{% load temporal %}"
        "{% format_date value format=fmt timeZone=tz alterTime=shift %}",
        value=0,
        fmt="yyyy-MM-dd HH:mm",
        tz="Asia/Tokyo",
        shift="PT1H",
    )
    assert html == "1970-01-01 10:00"


def test_existing_format(render):
    html = render(
        "{% load temporal %}"
        '{% format_date "2020-01-01" existingFormat="yyyy-MM-dd" format="dd/MM/yyyy" %}'
    )
    assert html == "01/01/2020"


def test_date_shift_degrades(render):
    html = render(
        "{% load temporal %}"
        '{% format_date value format="yyyy-MM-dd" alterTime="PT36H" %}',
        value=date(2020, 1, 1),
    )
    assert html == "2020-01-02"


def test_zone_precedence(render):
    source = '{% load temporal %}{% format_date value timeZone="Europe/Paris" %}'
    with timezone.override("America/New_York"):
        tokyo = render(
            source, value=datetime(2020, 1, 1, 10, tzinfo=ZoneInfo("Asia/Tokyo"))
        )
        naive = render(source, value=datetime(2020, 1, 1, 10))
    assert tokyo == "2020-01-01T10:00:00+09:00[Asia/Tokyo]"
    assert naive == "2020-01-01T10:00:00+01:00[Europe/Paris]"


def test_epoch_default(render):
    html = render("{% load temporal %}{% format_date 0 %}")
    assert html == "1970-01-01T00:00:00Z[UTC]"


def test_locale_follows_active_language(render):
    source = '{% load temporal %}{% format_date value format="EEEE d MMMM" %}'
    with translation.override("fr"):
        assert render(source, value=date(2020, 1, 1)) == "mercredi 1 janvier"
    with translation.override("de"):
        assert render(source, value=date(2020, 1, 1)) == "Mittwoch 1 Januar"


def test_current_locale():
    with translation.override("en-us"):
        assert current_locale() == "en_US"
    with translation.override("pt-br"):
        assert current_locale() == "pt_BR"


@override_settings(STAMP_DEFAULT_LOCALE="de_DE")
def test_current_locale_without_language():
    with translation.override(None):
        assert current_locale() == "de_DE"


def test_error_reports_template_and_line(render):
    source = (
        "{% load temporal %}\n"
        "<p>\n"
        '{% format_date value alterTime="whenever" %}\n'
        "</p>\n"
    )
    with pytest.raises(InvalidDurationString) as exc_info:
        render(source, name="events/detail.html", value=date(2020, 1, 1))
    assert exc_info.value.template_name == "events/detail.html"
    assert exc_info.value.lineno == 3
    assert str(exc_info.value).endswith("(template 'events/detail.html', line 3)")


def test_parse_error(render):
    source = '{% load temporal %}\n{% format_date value existingFormat="yyyy-MM-dd" %}'
    with pytest.raises(ParseError) as exc_info:
        render(source, name="parse.html", value="01/01/2020")
    assert "'01/01/2020'" in str(exc_info.value)
    assert exc_info.value.template_name == "parse.html"
    assert exc_info.value.lineno == 2


def test_format_error(render):
    source = '{% load temporal %}{% format_date value format="HH:mm" %}'
    with pytest.raises(FormatError) as exc_info:
        render(source, name="format.html", value=date(2020, 1, 1))
    assert exc_info.value.template_name == "format.html"
    assert exc_info.value.lineno == 1


def test_out_of_range_reports_template_and_line(render):
    source = '{% load temporal %}\n\n{% format_date value alterTime="P1D" %}'
    with pytest.raises(FormatError) as exc_info:
        render(source, name="range.html", value=date(9999, 12, 31))
    assert exc_info.value.template_name == "range.html"
    assert exc_info.value.lineno == 3


def test_unsupported_input(render):
    with pytest.raises(UnsupportedInputType):
        render("{% load temporal %}{% format_date value %}", value="2020-01-01")


def test_failure_is_logged(render, caplog):
    caplog.set_level(logging.DEBUG)
    with pytest.raises(UnsupportedInputType):
        render("{% load temporal %}{% format_date value %}", name="log.html", value=[])
    assert "format_date failed at template 'log.html', line 1" in caplog.text


@pytest.mark.parametrize(
    "source",
    [
        "{% load temporal %}{% format_date %}",
        '{% load temporal %}{% format_date format="yyyy" %}',
        '{% load temporal %}{% format_date value "yyyy" %}',
        '{% load temporal %}{% format_date value colour="red" %}',
        '{% load temporal %}{% format_date value existing_format="yyyy" %}',
    ],
)
def test_syntax_errors(render, source):
    with pytest.raises(TemplateSyntaxError):
        render(source, value=date(2020, 1, 1))
