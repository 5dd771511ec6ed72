"""Component documentation printed by ``--json``."""

from pydantic import BaseModel, Field

__all__ = ["PortDoc", "ComponentDoc", "REGISTRY_ENTRY"]


class PortDoc(BaseModel):
    """Documentation of one channel."""

    name: str
    type: str
    description: str
    required: bool = False


class ComponentDoc(BaseModel):
    """Documentation of the component as shown in flow editors."""

    description: str
    elementary: bool = True
    inports: list[PortDoc] = Field(default_factory=list)
    outports: list[PortDoc] = Field(default_factory=list)

    def to_json(self) -> str:
        return self.model_dump_json(indent=2)


REGISTRY_ENTRY = ComponentDoc(
    description=(
        "Performs an HTTP request on every interval and emits a typed property "
        "extracted from the response body with a template"
    ),
    inports=[
        PortDoc(
            name="INTERVAL",
            type="string",
            description="Polling interval as a duration, e.g. 10s or 500ms",
            required=True,
        ),
        PortDoc(
            name="REQUEST",
            type="json",
            description="Request descriptor: url, method, content-type, headers",
            required=True,
        ),
        PortDoc(
            name="TEMPLATE",
            type="json",
            description="Property template: id, name, group, type (float|bool|string|json), template",
            required=True,
        ),
    ],
    outports=[
        PortDoc(name="PROPERTY", type="json", description="Extracted property envelope"),
        PortDoc(name="RESPONSE", type="json", description="HTTP response: status, header, base64 body"),
        PortDoc(name="BODY", type="bytes", description="Raw HTTP response body"),
        PortDoc(name="ERROR", type="string", description="Error text for failed requests"),
    ],
)
