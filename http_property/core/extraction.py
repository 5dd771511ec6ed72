"""Template rendering and typed-value coercion of response bodies.

Templates are Jinja2 templates evaluated in a sandbox with the parsed body
bound as ``data``. A leading-dot reference inside a tag is the root of the
document: ``{{.value}}`` is ``{{ data.value }}`` and ``{{.}}`` is
``{{ data }}``. Only these field references carry over from Go templates;
actions such as ``if``, ``index`` or ``printf`` must be written in Jinja
syntax (``{% if .on %}``, ``{{ data["a-b"] }}``, ``{{ "%.1f" | format(.value) }}``).
Missing fields render as empty text.
"""

import json
import math
import re
from collections.abc import Mapping
from functools import lru_cache
from typing import Any

from jinja2 import Template, TemplateError
from jinja2.sandbox import SandboxedEnvironment

from http_property.core.errors import CoercionError, ExtractionError, TemplateRenderError, UnsupportedContentType
from http_property.core.models import (
    BoolValue,
    ExtractionTemplate,
    NumericValue,
    PropertyValue,
    RequestDescriptor,
    StringValue,
    StructuredValue,
    ValueType,
)

__all__ = [
    "is_json_content_type",
    "parse_body",
    "render_template",
    "coerce_value",
    "extract_value",
]

_TRUE_LITERALS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_LITERALS = frozenset({"0", "f", "F", "FALSE", "false", "False"})

_TAG = re.compile(r"\{\{.*?\}\}|\{%.*?%\}", re.DOTALL)
_ROOT_FIELD = re.compile(r"""(?<![\w)\]'"])\.(?=[A-Za-z_])""")
_ROOT_DOT = re.compile(r"""(?<![\w)\]'".])\.(?![\w.])""")


def _finalize(value: Any) -> Any:
    """Print booleans and nulls the way JSON does."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


class _DocumentEnvironment(SandboxedEnvironment):
    """Sandbox where dotted access on JSON objects always means key lookup."""

    def getattr(self, obj: Any, attribute: str) -> Any:
        if isinstance(obj, Mapping):
            try:
                return obj[attribute]
            except (KeyError, TypeError):
                return self.undefined(obj=obj, name=attribute)
        return super().getattr(obj, attribute)


_env = _DocumentEnvironment(autoescape=False, finalize=_finalize)


def _rewrite_root_refs(source: str) -> str:
    def rewrite(match: re.Match[str]) -> str:
        tag = _ROOT_FIELD.sub("data.", match.group(0))
        return _ROOT_DOT.sub("data", tag)

    return _TAG.sub(rewrite, source)


@lru_cache(maxsize=32)
def _compile(source: str) -> Template:
    return _env.from_string(_rewrite_root_refs(source))


def is_json_content_type(content_type: str) -> bool:
    """Return True if the media type ends in ``json`` (parameters ignored)."""
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type.endswith("json")


def parse_body(body: bytes, descriptor: RequestDescriptor) -> Any:
    """Parse a response body into a generic document.

    Args:
        body: Raw response body.
        descriptor: Request whose content type selects the parser.

    Returns:
        Parsed JSON value (object, array or scalar).

    Raises:
        UnsupportedContentType: If the content type is not JSON.
        ExtractionError: If the body is not valid JSON.
    """
    if not is_json_content_type(descriptor.content_type):
        raise UnsupportedContentType(f"processing of {descriptor.content_type!r} is not supported")
    try:
        return json.loads(body)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ExtractionError(f"response body is not valid JSON: {e}") from e


def render_template(source: str, data: Any) -> str:
    """Render a template with ``data`` as its single input.

    Raises:
        TemplateRenderError: On syntax or evaluation errors.
    """
    try:
        return _compile(source).render(data=data)
    except TemplateError as e:
        raise TemplateRenderError(f"template failed: {e}") from e
    except (TypeError, ValueError, ArithmeticError, LookupError) as e:
        raise TemplateRenderError(f"template evaluation failed: {e}") from e


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not allowed")


def coerce_value(rendered: str, value_type: ValueType) -> PropertyValue:
    """Convert rendered text into the requested typed value.

    Args:
        rendered: Template output.
        value_type: Target type.

    Returns:
        The typed value.

    Raises:
        CoercionError: If the text does not parse as the requested type.
    """
    if value_type is ValueType.STRING:
        return StringValue(rendered)

    if value_type is ValueType.NUMERIC:
        if rendered != rendered.strip() or "_" in rendered:
            raise CoercionError(f"cannot parse {rendered!r} as float")
        try:
            number = float(rendered)
        except ValueError as e:
            raise CoercionError(f"cannot parse {rendered!r} as float") from e
        if not math.isfinite(number):
            raise CoercionError(f"float value {rendered!r} is not finite")
        return NumericValue(number)

    if value_type is ValueType.BOOLEAN:
        if rendered in _TRUE_LITERALS:
            return BoolValue(True)
        if rendered in _FALSE_LITERALS:
            return BoolValue(False)
        raise CoercionError(f"cannot parse {rendered!r} as bool")

    if value_type is ValueType.STRUCTURED:
        try:
            parsed = json.loads(rendered, parse_constant=_reject_constant)
        except ValueError as e:
            raise CoercionError(f"cannot parse rendered text as JSON: {e}") from e
        if not isinstance(parsed, dict):
            raise CoercionError(f"expected a JSON object, got {type(parsed).__name__}")
        return StructuredValue(parsed)

    raise CoercionError(f"coercion to {value_type!r} is not supported")


def extract_value(body: bytes, descriptor: RequestDescriptor, template: ExtractionTemplate) -> PropertyValue:
    """Parse, render and coerce in one step.

    Raises:
        UnsupportedContentType: If the body format has no parser.
        ExtractionError: On body, template or coercion failures.
    """
    data = parse_body(body, descriptor)
    rendered = render_template(template.source, data)
    return coerce_value(rendered, template.value_type)
