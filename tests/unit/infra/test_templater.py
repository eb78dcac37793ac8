"""Tests for Jinja2 rendering of Helm arguments."""

import pytest

from dx.infra.errors import TemplateRenderError
from dx.infra.templater import JinjaTemplater


@pytest.fixture
def templater() -> JinjaTemplater:
    return JinjaTemplater()


def test_renders_nested_values(templater: JinjaTemplater) -> None:
    values = {"Secrets": {"db": {"password": "pw"}}, "Services": {"orders": {"gitRef": "main"}}}

    rendered = templater.render(
        "--set=db={{ Secrets.db.password }},ref={{ Services['orders'].gitRef }}",
        "helm-args.0",
        values,
    )

    assert rendered == "--set=db=pw,ref=main"


def test_plain_text_is_unchanged(templater: JinjaTemplater) -> None:
    assert templater.render("--wait", "helm-args.1", {}) == "--wait"


def test_special_characters_are_not_escaped(templater: JinjaTemplater) -> None:
    assert templater.render("{{ v }}", "t", {"v": "<a&b>"}) == "<a&b>"


def test_missing_key_raises(templater: JinjaTemplater) -> None:
    with pytest.raises(TemplateRenderError) as excinfo:
        templater.render("{{ Secrets.nope }}", "helm-args.3", {"Secrets": {}})

    assert excinfo.value.message == "Failed to render template 'helm-args.3'"
    assert "nope" in excinfo.value.details


def test_syntax_error_raises(templater: JinjaTemplater) -> None:
    with pytest.raises(TemplateRenderError):
        templater.render("{{ unclosed", "helm-args.0", {})
