"""Pytest configuration and fixtures for strata tests."""

import pytest
from hypothesis import HealthCheck, settings

from strata import DictLoader, Environment

# Hypothesis builds its unicode character table on the first text draw of a
# fresh checkout, which otherwise trips the too_slow health check.
settings.register_profile("strata", suppress_health_check=[HealthCheck.too_slow])
settings.load_profile("strata")


@pytest.fixture
def env():
    """Create a basic strata Environment."""
    return Environment()


@pytest.fixture
def env_autoescape():
    """Create a strata Environment with autoescape enabled."""
    return Environment(autoescape=True)


@pytest.fixture
def env_with_loader():
    """Create a strata Environment with DictLoader and test templates."""
    loader = DictLoader(
        {
            "base.html": (
                "<html>"
                "<head>{% block head %}<title>{% block title %}Site{% endblock %}</title>{% endblock %}</head>"
                "<body>{% block body %}{% endblock %}</body>"
                "</html>"
            ),
            "child.html": '{% extends "base.html" %}{% block body %}Hello World{% endblock %}',
            "partial.html": "<p>{{ message | default('Partial content') }}</p>",
            "forms.html": (
                '{% macro input(name, type="text") %}'
                '<input type="{{ type }}" name="{{ name }}">'
                "{% endmacro %}"
                "{% macro label(text) %}<label>{{ text }}</label>{% endmacro %}"
                "{% macro field(name) %}{{ label(name) }}{{ input(name) }}{% endmacro %}"
            ),
            "macros.html": (
                "{% macro greet(name) %}Hello {{ name }}{% endmacro %}"
                "{% macro add(a, b) %}{{ a + b }}{% endmacro %}"
                "{% macro site() %}{{ site_name }}{% endmacro %}"
            ),
        }
    )
    return Environment(loader=loader)


def assert_template_equal(template_result: str, expected: str) -> None:
    """Assert template result equals expected, normalizing whitespace.

    Args:
        template_result: The actual template rendering result.
        expected: The expected output.
    """
    actual_normalized = " ".join(template_result.split())
    expected_normalized = " ".join(expected.split())
    assert actual_normalized == expected_normalized, (
        f"Template output mismatch:\n"
        f"  Actual: {actual_normalized!r}\n"
        f"  Expected: {expected_normalized!r}"
    )


def error_chain(error: BaseException) -> list[BaseException]:
    """The error followed by every exception in its ``__cause__`` chain."""
    chain = [error]
    while chain[-1].__cause__ is not None:
        chain.append(chain[-1].__cause__)
    return chain
