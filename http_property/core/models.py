"""Domain models: configuration messages and the typed property envelope."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from http_property.core.errors import MalformedConfigurationMessage

__all__ = [
    "ValueType",
    "RequestDescriptor",
    "ExtractionTemplate",
    "NumericValue",
    "BoolValue",
    "StringValue",
    "StructuredValue",
    "PropertyValue",
    "PropertyEnvelope",
    "RunConfig",
]


class ValueType(str, Enum):
    """Coercion target of an extraction template.

    Values are the names used on the wire by existing template producers.
    """

    NUMERIC = "float"
    BOOLEAN = "bool"
    STRING = "string"
    STRUCTURED = "json"

    @classmethod
    def _missing_(cls, value: object) -> ValueType | None:
        aliases = {
            "numeric": cls.NUMERIC,
            "number": cls.NUMERIC,
            "boolean": cls.BOOLEAN,
            "structured": cls.STRUCTURED,
        }
        if isinstance(value, str):
            return aliases.get(value.lower())
        return None


class RequestDescriptor(BaseModel):
    """Description of the HTTP request issued on every tick.

    Attributes:
        url: Target URL.
        method: HTTP method (upper-cased, GET when empty).
        content_type: Value of the Content-Type header; also selects the
            body parser used for extraction.
        headers: Additional headers, each name mapped to its values.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    url: str = Field(..., min_length=1)
    method: str = "GET"
    content_type: str = Field(
        default="",
        validation_alias=AliasChoices("content-type", "contentType", "content_type"),
        serialization_alias="content-type",
    )
    headers: dict[str, list[str]] = Field(default_factory=dict)

    @field_validator("method")
    @classmethod
    def normalize_method(cls, v: str) -> str:
        """Upper-case the method, defaulting to GET."""
        return v.strip().upper() or "GET"

    @field_validator("headers", mode="before")
    @classmethod
    def normalize_headers(cls, v: Any) -> Any:
        """Accept a bare string as a single-valued header; treat null as empty."""
        if v is None:
            return {}
        if isinstance(v, dict):
            return {k: [val] if isinstance(val, str) else val for k, val in v.items()}
        return v

    @classmethod
    def from_payload(cls, payload: bytes) -> RequestDescriptor:
        """Decode a request channel payload.

        Raises:
            MalformedConfigurationMessage: If the payload is not a valid descriptor.
        """
        try:
            return cls.model_validate_json(payload)
        except ValidationError as e:
            raise MalformedConfigurationMessage(f"invalid request descriptor: {e}") from e


class ExtractionTemplate(BaseModel):
    """Template describing how to turn a response body into a property.

    Attributes:
        id: Property identifier copied into every envelope.
        name: Property name.
        group: Property group.
        value_type: Target type of the coercion.
        source: Template text rendered against the parsed body.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = ""
    name: str = ""
    group: str = ""
    value_type: ValueType = Field(
        ...,
        validation_alias=AliasChoices("type", "valueType", "value_type"),
        serialization_alias="type",
    )
    source: str = Field(
        ...,
        validation_alias=AliasChoices("template", "templateSource", "source"),
        serialization_alias="template",
    )

    @field_validator("value_type", mode="before")
    @classmethod
    def resolve_value_type(cls, v: Any) -> Any:
        """Map alias names (numeric, boolean, structured) onto wire values."""
        if isinstance(v, str):
            return ValueType(v)
        return v

    @classmethod
    def from_payload(cls, payload: bytes) -> ExtractionTemplate:
        """Decode a template channel payload.

        Raises:
            MalformedConfigurationMessage: If the payload is not a valid template.
        """
        try:
            return cls.model_validate_json(payload)
        except ValidationError as e:
            raise MalformedConfigurationMessage(f"invalid extraction template: {e}") from e


@dataclass(slots=True, frozen=True)
class NumericValue:
    value: float

    wire_key = "v"


@dataclass(slots=True, frozen=True)
class BoolValue:
    value: bool

    wire_key = "bv"


@dataclass(slots=True, frozen=True)
class StringValue:
    value: str

    wire_key = "sv"


@dataclass(slots=True, frozen=True)
class StructuredValue:
    value: dict[str, Any]

    wire_key = "jv"


PropertyValue = Union[NumericValue, BoolValue, StringValue, StructuredValue]


@dataclass(slots=True, frozen=True)
class PropertyEnvelope:
    """One extracted property, emitted once per successful tick.

    Attributes:
        id: Property identifier.
        name: Property name.
        group: Property group.
        timestamp: Tick wall-clock time, epoch seconds.
        value: The coerced value.
    """

    id: str
    name: str
    group: str
    timestamp: int
    value: PropertyValue

    def to_wire(self) -> dict[str, Any]:
        """Return the JSON shape consumers expect (one value field populated)."""
        return {
            "id": self.id,
            "group": self.group,
            "n": self.name,
            "t": self.timestamp,
            self.value.wire_key: self.value.value,
        }

    def to_json(self) -> bytes:
        """Serialize the envelope for the property channel."""
        return json.dumps(self.to_wire(), allow_nan=False).encode()


@dataclass(slots=True, frozen=True)
class RunConfig:
    """Complete configuration handed from intake to the poll loop.

    Attributes:
        interval_sec: Seconds between ticks (positive).
        request: Request issued on each tick.
        template: Extraction template applied to each response.
    """

    interval_sec: float
    request: RequestDescriptor
    template: ExtractionTemplate
