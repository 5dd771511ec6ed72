"""Settings port definition (DTO)."""

from dataclasses import dataclass

__all__ = ["SettingsPort"]


@dataclass
class SettingsPort:
    """Runtime settings for the node.

    Decouples the node from concrete configuration sources, enabling
    easy testing and implementation swapping.

    Attributes:
        interval_endpoint: Inbound address of the interval channel.
        request_endpoint: Inbound address of the request channel.
        template_endpoint: Inbound address of the template channel.
        property_endpoint: Outbound address for typed properties.
        response_endpoint: Outbound address for serialized responses.
        body_endpoint: Outbound address for raw bodies.
        error_endpoint: Outbound address for error text.
        tls_insecure_skip_verify: Disable peer certificate checks on polls.
    """

    interval_endpoint: str
    request_endpoint: str
    template_endpoint: str
    property_endpoint: str | None = None
    response_endpoint: str | None = None
    body_endpoint: str | None = None
    error_endpoint: str | None = None
    tls_insecure_skip_verify: bool = True

    @property
    def input_endpoints(self) -> dict[str, str]:
        return {
            "interval": self.interval_endpoint,
            "request": self.request_endpoint,
            "template": self.template_endpoint,
        }

    @property
    def output_endpoints(self) -> dict[str, str | None]:
        return {
            "property": self.property_endpoint,
            "response": self.response_endpoint,
            "body": self.body_endpoint,
            "error": self.error_endpoint,
        }
