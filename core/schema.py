# =============================================================================
# core/schema.py  -  Tool input schema -> Gemini parameter descriptor
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   The gateway publishes each tool's parameters as a JSON Schema (generated
#   by pydantic from the tool's signature).  Gemini's function declarations
#   accept a much smaller dialect, so the chat client flattens each schema:
#
#     - description defaults to ""        when absent
#     - type        defaults to "string"  when absent
#     - nested properties are kept ONE level deep; anything below is dropped
#     - array items keep only their type
#
#   pydantic expresses nested models as {"$ref": "#/$defs/Model"} and
#   optional values as {"anyOf": [X, {"type": "null"}]}.  Both are resolved
#   before the defaults are applied, so the output never contains either.
#
#   The transform is total: malformed or unknown shapes fall through to the
#   defaults instead of raising.
# =============================================================================

from typing import Any, Mapping, Optional

from core.models import (
    DEFAULT_DESCRIPTION,
    DEFAULT_TYPE,
    ItemsSpec,
    ParameterSchema,
    ParameterSpec,
    ToolDescriptor,
)

_REF_PREFIX = "#/$defs/"


def resolve_property(
    prop: Mapping[str, Any],
    defs: Optional[Mapping[str, Any]] = None,
    _seen: frozenset = frozenset(),
) -> Mapping[str, Any]:
    """Resolve a local $ref and collapse an Optional anyOf.

    The outer description (if any) takes precedence over the target's.
    Recursive definitions are followed once and then left unresolved.
    """
    defs = defs or {}
    resolved: Mapping[str, Any] = prop

    ref = resolved.get("$ref")
    if isinstance(ref, str) and ref.startswith(_REF_PREFIX) and ref not in _seen:
        target = defs.get(ref[len(_REF_PREFIX):])
        _seen = _seen | {ref}
        if isinstance(target, Mapping):
            resolved = {**target, **{k: v for k, v in resolved.items() if k != "$ref"}}

    any_of = resolved.get("anyOf")
    if isinstance(any_of, list):
        branches = [
            b for b in any_of if isinstance(b, Mapping) and b.get("type") != "null"
        ]
        if branches:
            branch = resolve_property(branches[0], defs, _seen)
            outer = {k: v for k, v in resolved.items() if k != "anyOf"}
            resolved = {**branch, **outer}

    return resolved


def _type_of(prop: Mapping[str, Any]) -> str:
    value = prop.get("type")
    # JSON Schema allows a list of types, e.g. ["integer", "null"]
    if isinstance(value, list):
        value = next((t for t in value if t != "null"), None)
    return value if isinstance(value, str) and value else DEFAULT_TYPE


def _leaf_spec(prop: Mapping[str, Any]) -> ParameterSpec:
    return ParameterSpec(
        description=prop.get("description") or DEFAULT_DESCRIPTION,
        type=_type_of(prop),
    )


def _normalize_property(
    prop: Mapping[str, Any], defs: Mapping[str, Any]
) -> ParameterSpec:
    prop = resolve_property(prop, defs)

    nested = None
    if isinstance(prop.get("properties"), Mapping):
        nested = {
            name: _leaf_spec(resolve_property(value if isinstance(value, Mapping) else {}, defs))
            for name, value in prop["properties"].items()
        }

    items = None
    if isinstance(prop.get("items"), Mapping):
        items = ItemsSpec(type=_type_of(resolve_property(prop["items"], defs)))

    return ParameterSpec(
        description=prop.get("description") or DEFAULT_DESCRIPTION,
        type=_type_of(prop),
        properties=nested,
        items=items,
    )


def normalize_properties(
    properties: Optional[Mapping[str, Any]],
    defs: Optional[Mapping[str, Any]] = None,
) -> dict[str, ParameterSpec]:
    """Normalize a ``properties`` mapping into ParameterSpecs."""
    defs = defs or {}
    return {
        name: _normalize_property(value if isinstance(value, Mapping) else {}, defs)
        for name, value in (properties or {}).items()
    }


def build_tool_descriptor(
    name: str,
    description: Optional[str],
    input_schema: Optional[Mapping[str, Any]],
) -> ToolDescriptor:
    """Build a ToolDescriptor from a tool's published input schema."""
    input_schema = input_schema or {}
    defs = input_schema.get("$defs") or input_schema.get("definitions") or {}
    return ToolDescriptor(
        name=name,
        description=description or "",
        parameters=ParameterSchema(
            type=input_schema.get("type") or "object",
            properties=normalize_properties(input_schema.get("properties"), defs),
            required=list(input_schema.get("required") or []),
        ),
    )
