# =============================================================================
# core/object_ids.py  -  Best-effort string -> ObjectId coercion
# =============================================================================
#
# MongoDB's default primary key is a BSON ObjectId, but an LLM can only ever
# send JSON, so "_id" arrives as a 24-character hex string.  Before a filter
# is forwarded to the driver, those strings are converted:
#
#   {"_id": "65f1c0..."}                     -> {"_id": ObjectId("65f1c0...")}
#   {"_id": {"$ne": "65f1c0..."}}            -> {"_id": {"$ne": ObjectId(...)}}
#   {"_id": {"$in": ["65f1c0...", "..."]}}   -> each element converted
#
# FAILS OPEN:
#   A string that is not a valid ObjectId is left untouched and the query
#   still runs.  The visible effect is zero matches, never an error.  Strict
#   mode (MONGODB_STRICT_OBJECT_IDS=true) raises InvalidObjectIdError instead.
#
# Only the top-level "_id" key is touched.
# =============================================================================

from typing import Any, Mapping, Optional

from bson import ObjectId
from bson.errors import InvalidId

from core.errors import InvalidObjectIdError

ID_FIELD = "_id"


def to_object_id(value: Any, strict: bool = False) -> Any:
    """Convert one string to an ObjectId, or return it unchanged."""
    if not isinstance(value, str):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        if strict:
            raise InvalidObjectIdError(value) from None
        return value


def _coerce_operator_value(value: Any, strict: bool) -> Any:
    if isinstance(value, str):
        return to_object_id(value, strict)
    if isinstance(value, list):
        return [to_object_id(item, strict) for item in value]
    return value


def coerce_object_ids(query: Optional[Mapping[str, Any]], strict: bool = False) -> dict[str, Any]:
    """Return a copy of ``query`` with its ``_id`` strings converted."""
    processed = dict(query or {})

    value = processed.get(ID_FIELD)
    if isinstance(value, str):
        processed[ID_FIELD] = to_object_id(value, strict)
    elif isinstance(value, Mapping):
        processed[ID_FIELD] = {
            op: _coerce_operator_value(operand, strict) for op, operand in value.items()
        }

    return processed


def coerce_pipeline(pipeline: list[Mapping[str, Any]], strict: bool = False) -> list[dict[str, Any]]:
    """Apply coerce_object_ids to every ``$match`` stage of a pipeline."""
    stages = []
    for stage in pipeline:
        stage = dict(stage)
        if isinstance(stage.get("$match"), Mapping):
            stage["$match"] = coerce_object_ids(stage["$match"], strict)
        stages.append(stage)
    return stages
