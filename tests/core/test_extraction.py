"""Tests for template rendering and value coercion."""

import json

import pytest

from http_property.core.errors import CoercionError, ExtractionError, TemplateRenderError, UnsupportedContentType
from http_property.core.extraction import (
    coerce_value,
    extract_value,
    is_json_content_type,
    parse_body,
    render_template,
)
from http_property.core.models import (
    BoolValue,
    ExtractionTemplate,
    NumericValue,
    RequestDescriptor,
    StringValue,
    StructuredValue,
    ValueType,
)

__all__ = []

JSON_REQUEST = RequestDescriptor(url="http://test", content_type="application/json")


@pytest.mark.parametrize(
    ("content_type", "expected"),
    [
        ("application/json", True),
        ("application/vnd.api+json", True),
        ("application/json; charset=utf-8", True),
        ("APPLICATION/JSON", True),
        ("text/plain", False),
        ("", False),
    ],
)
def test_is_json_content_type(content_type: str, expected: bool) -> None:
    """Only media types ending in json are parsed."""
    assert is_json_content_type(content_type) is expected


def test_parse_body_rejects_unsupported_content_type() -> None:
    """Non-JSON content types should never reach parsing."""
    descriptor = RequestDescriptor(url="http://test", content_type="text/plain")

    with pytest.raises(UnsupportedContentType):
        parse_body(b'{"value": 1}', descriptor)


def test_parse_body_rejects_invalid_json() -> None:
    """Broken JSON bodies should raise ExtractionError."""
    with pytest.raises(ExtractionError):
        parse_body(b"<html>", JSON_REQUEST)


@pytest.mark.parametrize(
    ("source", "data", "expected"),
    [
        ("{{.value}}", {"value": 42.5}, "42.5"),
        ("{{ .nested.deep }}", {"nested": {"deep": "x"}}, "x"),
        ("{{ data.value }}", {"value": 7}, "7"),
        ("{{ data[1] }}", [10, 20], "20"),
        ("{{.}}", 3, "3"),
        ("{{.flag}}", {"flag": True}, "true"),
        ("{{.items}}", {"items": "field, not method"}, "field, not method"),
        ("{{.obj | tojson}}", {"obj": {"a": 1}}, '{"a": 1}'),
        ('{"on": {{.on}}}', {"on": False}, '{"on": false}'),
        ("{{.missing}}", {"value": 1}, ""),
        ("{{.none}}", {"none": None}, ""),
    ],
)
def test_render_template(source: str, data, expected: str) -> None:
    """Go-style root references and Jinja expressions should render."""
    assert render_template(source, data) == expected


@pytest.mark.parametrize("source", ["{{ .value ", "{% if %}", "{{.missing.deeper}}"])
def test_render_template_failures(source: str) -> None:
    """Syntax and evaluation errors should raise TemplateRenderError."""
    with pytest.raises(TemplateRenderError):
        render_template(source, {"value": 1})


@pytest.mark.parametrize(
    "source",
    ["{{if .on}}1{{else}}0{{end}}", '{{index . "a-b"}}', '{{printf "%.1f" .value}}'],
)
def test_render_template_go_actions_are_not_translated(source: str) -> None:
    """Only field references carry over; Go actions are syntax errors."""
    with pytest.raises(TemplateRenderError):
        render_template(source, {"on": True, "a-b": 1, "value": 2.31})


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ("{% if .on %}1{% else %}0{% endif %}", "1"),
        ('{{ data["a-b"] }}', "1"),
        ('{{ "%.1f" | format(.value) }}', "2.3"),
    ],
)
def test_render_template_jinja_equivalents(source: str, expected: str) -> None:
    """The Jinja spelling of those actions works with root references."""
    assert render_template(source, {"on": True, "a-b": 1, "value": 2.31}) == expected


def test_render_template_is_sandboxed() -> None:
    """Templates must not reach Python internals."""
    with pytest.raises(TemplateRenderError):
        render_template("{{ ''.__class__.__mro__ }}", {})


@pytest.mark.parametrize(
    ("rendered", "expected"),
    [("42.5", 42.5), ("-1", -1.0), ("1e3", 1000.0), ("0", 0.0)],
)
def test_coerce_numeric(rendered: str, expected: float) -> None:
    """Numeric text should become a NumericValue."""
    assert coerce_value(rendered, ValueType.NUMERIC) == NumericValue(expected)


@pytest.mark.parametrize("rendered", ["", "abc", " 1", "1 ", "1_000", "nan", "inf"])
def test_coerce_numeric_failures(rendered: str) -> None:
    """Non-numeric or non-finite text should fail coercion."""
    with pytest.raises(CoercionError):
        coerce_value(rendered, ValueType.NUMERIC)


@pytest.mark.parametrize(
    ("rendered", "expected"),
    [("true", True), ("True", True), ("1", True), ("t", True), ("FALSE", False), ("f", False), ("0", False)],
)
def test_coerce_boolean(rendered: str, expected: bool) -> None:
    """Standard boolean literals should parse."""
    assert coerce_value(rendered, ValueType.BOOLEAN) == BoolValue(expected)


@pytest.mark.parametrize("rendered", ["yes", "", "tRuE", "2"])
def test_coerce_boolean_failures(rendered: str) -> None:
    """Anything else should fail."""
    with pytest.raises(CoercionError):
        coerce_value(rendered, ValueType.BOOLEAN)


def test_coerce_string_is_verbatim() -> None:
    """Strings should be passed through untouched."""
    assert coerce_value("  spaced \n", ValueType.STRING) == StringValue("  spaced \n")


def test_coerce_structured_matches_independent_parse() -> None:
    """Structured values should deep-equal the JSON parsed on its own."""
    rendered = '{"a": 1, "b": [true, null, {"c": "d"}], "e": 1.5}'

    value = coerce_value(rendered, ValueType.STRUCTURED)

    assert value == StructuredValue(json.loads(rendered))


@pytest.mark.parametrize("rendered", ["[1, 2]", "3", "{bad", '{"x": NaN}'])
def test_coerce_structured_failures(rendered: str) -> None:
    """Only JSON objects are structured values."""
    with pytest.raises(CoercionError):
        coerce_value(rendered, ValueType.STRUCTURED)


def test_extract_value_end_to_end() -> None:
    """Body, template and type should combine into a typed value."""
    template = ExtractionTemplate(id="p", value_type=ValueType.NUMERIC, source="{{.value}}")

    assert extract_value(b'{"value": 42.5}', JSON_REQUEST, template) == NumericValue(42.5)


def test_extract_value_missing_field_fails_numeric() -> None:
    """A missing field renders empty and fails numeric coercion."""
    template = ExtractionTemplate(id="p", value_type=ValueType.NUMERIC, source="{{.missing}}")

    with pytest.raises(CoercionError):
        extract_value(b'{"value": 42.5}', JSON_REQUEST, template)
