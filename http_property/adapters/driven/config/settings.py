"""Configuration loading from environment variables and CLI flags."""

import logging
import os
from collections.abc import Mapping

from dotenv import load_dotenv
from pydantic import BaseModel, Field, HttpUrl, TypeAdapter, field_validator, model_validator

from http_property.ports.settings import SettingsPort

__all__ = ["Settings", "load_settings", "ENV_VARS"]

load_dotenv()

logger = logging.getLogger(__name__)
_http_url_adapter = TypeAdapter(HttpUrl)

# Settings field -> environment variable
ENV_VARS: dict[str, str] = {
    "interval_endpoint": "PORT_INT",
    "request_endpoint": "PORT_REQ",
    "template_endpoint": "PORT_TMPL",
    "property_endpoint": "PORT_PROP",
    "response_endpoint": "PORT_RESP",
    "body_endpoint": "PORT_BODY",
    "error_endpoint": "PORT_ERR",
    "tls_insecure_skip_verify": "TLS_INSECURE_SKIP_VERIFY",
    "debug": "DEBUG",
}

_REQUIRED = ("interval_endpoint", "request_endpoint", "template_endpoint")
_OUTPUTS = ("property_endpoint", "response_endpoint", "body_endpoint")


def _validate_endpoint(v: str, kind: str) -> str:
    try:
        url = _http_url_adapter.validate_python(v)
        if url.scheme != "http":
            raise ValueError("Only http:// endpoints allowed")
    except Exception as e:
        raise ValueError(f"Invalid {kind} endpoint: {e}") from e
    return v


class Settings(BaseModel):
    """Runtime configuration for the node.

    Attributes:
        interval_endpoint: Inbound address of the interval channel.
        request_endpoint: Inbound address of the request channel.
        template_endpoint: Inbound address of the template channel.
        property_endpoint: Outbound address for typed properties.
        response_endpoint: Outbound address for serialized responses.
        body_endpoint: Outbound address for raw response bodies.
        error_endpoint: Outbound address for error text.
        tls_insecure_skip_verify: Skip peer certificate verification on polls.
        debug: Enable debug logging.
    """

    interval_endpoint: str = Field(..., description="Inbound address of the interval channel.")
    request_endpoint: str = Field(..., description="Inbound address of the request channel.")
    template_endpoint: str = Field(..., description="Inbound address of the template channel.")
    property_endpoint: str | None = Field(default=None, description="Outbound address for properties.")
    response_endpoint: str | None = Field(default=None, description="Outbound address for responses.")
    body_endpoint: str | None = Field(default=None, description="Outbound address for raw bodies.")
    error_endpoint: str | None = Field(default=None, description="Outbound address for error text.")
    tls_insecure_skip_verify: bool = Field(
        default=True,
        description=(
            "Skip TLS peer verification when polling. On by default so that "
            "endpoints behind custom certificate authorities can be reached."
        ),
    )
    debug: bool = False

    @field_validator("interval_endpoint", "request_endpoint", "template_endpoint")
    @classmethod
    def validate_input_endpoint(cls, v: str) -> str:
        """Validate that an inbound address is a valid http URL.

        Raises:
            ValueError: If URL is invalid or not http.
        """
        return _validate_endpoint(v, "input")

    @field_validator("property_endpoint", "response_endpoint", "body_endpoint", "error_endpoint")
    @classmethod
    def validate_output_endpoint(cls, v: str | None) -> str | None:
        """Validate that an outbound address (if provided) is a valid http URL.

        Raises:
            ValueError: If URL is invalid or not http.
        """
        if v is None:
            return v
        return _validate_endpoint(v, "output")

    @model_validator(mode="after")
    def check_wiring(self) -> "Settings":
        """Require at least one data output and distinct input addresses."""
        if not any(getattr(self, name) for name in _OUTPUTS):
            raise ValueError("At least one of property, response or body output must be configured")
        inputs = [self.interval_endpoint, self.request_endpoint, self.template_endpoint]
        if len(set(inputs)) != len(inputs):
            raise ValueError("Input endpoints must be distinct")
        return self

    def to_port(self) -> SettingsPort:
        """Wrap into the port DTO consumed by the node."""
        return SettingsPort(
            interval_endpoint=self.interval_endpoint,
            request_endpoint=self.request_endpoint,
            template_endpoint=self.template_endpoint,
            property_endpoint=self.property_endpoint,
            response_endpoint=self.response_endpoint,
            body_endpoint=self.body_endpoint,
            error_endpoint=self.error_endpoint,
            tls_insecure_skip_verify=self.tls_insecure_skip_verify,
        )


def load_settings(overrides: Mapping[str, str | bool | None] | None = None) -> Settings:
    """Load and validate settings from environment and CLI overrides.

    Required (flag or environment variable):
    - PORT_INT, PORT_REQ, PORT_TMPL: inbound channel addresses.
    - At least one of PORT_PROP, PORT_RESP, PORT_BODY.

    Optional:
    - PORT_ERR: error channel address.
    - TLS_INSECURE_SKIP_VERIFY: "false" to verify polled endpoints (default true).
    - DEBUG: "true" to enable debug logging.

    Args:
        overrides: Settings field values taking precedence over the
            environment; None values are ignored.

    Returns:
        Validated Settings object.

    Raises:
        RuntimeError: If a required address is missing.
        ValueError: If configuration is invalid.
    """
    values: dict[str, str | bool] = {}
    for field_name, env_var in ENV_VARS.items():
        raw = os.getenv(env_var)
        if raw is not None and raw.strip():
            values[field_name] = raw.strip()
    for field_name, value in (overrides or {}).items():
        if value is not None and value != "":
            values[field_name] = value

    missing = [ENV_VARS[name] for name in _REQUIRED if name not in values]
    if missing:
        raise RuntimeError(f"Missing required channel address: {', '.join(missing)}")

    settings = Settings(**values)

    logger.info(
        f"Node configured: inputs=({settings.interval_endpoint}, {settings.request_endpoint}, "
        f"{settings.template_endpoint}), "
        f"property={settings.property_endpoint or '<disabled>'}, "
        f"response={settings.response_endpoint or '<disabled>'}, "
        f"body={settings.body_endpoint or '<disabled>'}, "
        f"error={settings.error_endpoint or '<disabled>'}"
    )

    return settings
