# =============================================================================
# agent/tool_catalog.py  -  Gateway tool catalog -> Gemini function declarations
# =============================================================================
#
# At startup the chat client asks the gateway for its tools (MCP list_tools),
# normalizes each input schema (core/schema.py) and converts the result into
# google-genai FunctionDeclaration objects.
#
#   MCP Tool.inputSchema ──▶ ToolDescriptor ──▶ types.FunctionDeclaration
#        (JSON Schema)        (core.models)         (Gemini dialect)
#
# Gemini spells types in upper case ("STRING", "OBJECT"); anything it does
# not know is sent as STRING.  Tools with no parameters get no parameter
# block at all.
# =============================================================================

import logging
from typing import Any, Optional

from google.genai import types

from core.models import ParameterSpec, ToolDescriptor
from core.schema import build_tool_descriptor

logger = logging.getLogger(__name__)

_GEMINI_TYPES = {"string", "number", "integer", "boolean", "array", "object"}


def _gemini_type(json_type: str) -> str:
    lowered = (json_type or "").lower()
    return lowered.upper() if lowered in _GEMINI_TYPES else "STRING"


def _to_schema(spec: ParameterSpec) -> types.Schema:
    kwargs: dict[str, Any] = {
        "type": _gemini_type(spec.type),
        "description": spec.description,
    }
    if spec.properties:
        kwargs["properties"] = {name: _to_schema(nested) for name, nested in spec.properties.items()}
    if spec.items is not None:
        kwargs["items"] = types.Schema(type=_gemini_type(spec.items.type))
    return types.Schema(**kwargs)


def to_function_declaration(descriptor: ToolDescriptor) -> types.FunctionDeclaration:
    """Convert one normalized descriptor into a Gemini FunctionDeclaration."""
    parameters: Optional[types.Schema] = None
    if descriptor.parameters.properties:
        parameters = types.Schema(
            type=_gemini_type(descriptor.parameters.type),
            properties={
                name: _to_schema(spec) for name, spec in descriptor.parameters.properties.items()
            },
            required=list(descriptor.parameters.required),
        )
    return types.FunctionDeclaration(
        name=descriptor.name,
        description=descriptor.description,
        parameters=parameters,
    )


async def load_tool_catalog(mcp_client) -> list[ToolDescriptor]:
    """Fetch the gateway's tools and normalize their schemas."""
    tools = await mcp_client.list_tools()
    descriptors = [
        build_tool_descriptor(tool.name, tool.description, tool.inputSchema) for tool in tools
    ]
    logger.info("Loaded %d tools from the gateway", len(descriptors))
    return descriptors


def build_genai_tools(descriptors: list[ToolDescriptor]) -> list[types.Tool]:
    """Wrap the declarations in the single Tool entry Gemini expects."""
    if not descriptors:
        return []
    return [types.Tool(function_declarations=[to_function_declaration(d) for d in descriptors])]
