import pytest
from django.template import Context
from django.template import Engine

from stamp.engine.errors import CallSite


@pytest.fixture
def call_site():
    return CallSite(template_name="events/detail.html", lineno=12)


@pytest.fixture
def render():
    """Renders template source registered under a name, with the given context."""

    def _render(source: str, name: str = "test.html", **context) -> str:
        engine = Engine(
            libraries={"temporal": "stamp.dates.templatetags.temporal"},
            loaders=[("django.template.loaders.locmem.Loader", {name: source})],
        )
        return engine.get_template(name).render(Context(context))

    return _render
