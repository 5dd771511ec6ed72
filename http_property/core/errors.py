"""Error taxonomy for the node.

Only startup errors are fatal; everything raised while the poll loop runs is
scoped to a single tick.
"""

__all__ = [
    "HttpPropertyError",
    "StartupConfigurationError",
    "MalformedConfigurationMessage",
    "TransportError",
    "ResponseConversionError",
    "UnsupportedContentType",
    "ExtractionError",
    "TemplateRenderError",
    "CoercionError",
]


class HttpPropertyError(Exception):
    """Base class for all node errors."""


class StartupConfigurationError(HttpPropertyError):
    """Channel wiring is missing or cannot be set up. Fatal."""


class MalformedConfigurationMessage(HttpPropertyError):
    """A configuration packet could not be decoded into its slot."""


class TransportError(HttpPropertyError):
    """The HTTP call for a tick failed (timeout, connection, TLS)."""


class ResponseConversionError(HttpPropertyError):
    """The HTTP response could not be read into a ResponseView."""


class UnsupportedContentType(HttpPropertyError):
    """The configured content type has no body parser."""


class ExtractionError(HttpPropertyError):
    """Body parsing, template rendering or coercion failed."""


class TemplateRenderError(ExtractionError):
    """The extraction template failed to parse or execute."""


class CoercionError(ExtractionError):
    """Rendered text does not match the requested value type."""
