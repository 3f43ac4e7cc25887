# =============================================================================
# core/models.py  -  Data Models for the tool catalog
# =============================================================================
#
# These dataclasses describe one callable gateway operation in the shape the
# chat client hands to Gemini as a function declaration:
#
#   ToolDescriptor
#     ├── name, description
#     └── parameters: ParameterSchema
#           ├── type ("object")
#           ├── required: [names]
#           └── properties: name -> ParameterSpec
#                 ├── description ("" when absent)
#                 ├── type        ("string" when absent)
#                 ├── properties  (one nested level, optional)
#                 └── items       ({type}, optional)
#
# They are frozen: the catalog is built once at startup and never changes.
# =============================================================================

from dataclasses import dataclass, field
from typing import Any, Optional


DEFAULT_DESCRIPTION = ""
DEFAULT_TYPE = "string"


@dataclass(frozen=True)
class ItemsSpec:
    """Element type of an array parameter."""

    type: str = DEFAULT_TYPE

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type}


@dataclass(frozen=True)
class ParameterSpec:
    """One parameter of a tool, after normalization."""

    description: str = DEFAULT_DESCRIPTION
    type: str = DEFAULT_TYPE
    # Nested specs never carry their own properties/items (one level only).
    properties: Optional[dict[str, "ParameterSpec"]] = None
    items: Optional[ItemsSpec] = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"description": self.description, "type": self.type}
        if self.properties is not None:
            result["properties"] = {
                name: spec.to_dict() for name, spec in self.properties.items()
            }
        if self.items is not None:
            result["items"] = self.items.to_dict()
        return result


@dataclass(frozen=True)
class ParameterSchema:
    """The full parameter block of a tool."""

    type: str = "object"
    properties: dict[str, ParameterSpec] = field(default_factory=dict)
    required: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "properties": {name: spec.to_dict() for name, spec in self.properties.items()},
            "required": list(self.required),
        }


@dataclass(frozen=True)
class ToolDescriptor:
    """Schema-normalized description of one gateway operation."""

    name: str
    description: str
    parameters: ParameterSchema = field(default_factory=ParameterSchema)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters.to_dict(),
        }
