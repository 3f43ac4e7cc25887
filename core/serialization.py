# =============================================================================
# core/serialization.py  -  BSON-aware JSON rendering
# =============================================================================
#
# Every gateway tool returns its payload as pretty-printed JSON text.  pymongo
# hands back BSON types that json.dumps() cannot encode on its own, so they
# are mapped to plain JSON values first:
#
#   ObjectId     -> "65f1c0..." (hex string)
#   datetime     -> ISO-8601 string
#   Decimal128   -> decimal string
#   bytes/Binary -> base64 string
#
# Everything else the driver can return (Timestamp, Regex, DBRef, MinKey,
# Code, compiled patterns, ...) goes through bson.json_util in relaxed
# Extended JSON, e.g. {"$timestamp": {"t": 1700000000, "i": 1}}.
# =============================================================================

import base64
import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from bson import ObjectId, json_util
from bson.decimal128 import Decimal128


def bson_default(obj: Any) -> Any:
    """``default=`` hook for json.dumps covering every BSON type."""
    if isinstance(obj, ObjectId):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Decimal128):
        return str(obj.to_decimal())
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, bytes):
        return base64.b64encode(obj).decode("ascii")
    # raises TypeError for anything that is not a BSON type
    return json_util.default(obj, json_options=json_util.RELAXED_JSON_OPTIONS)


def to_json(value: Any) -> str:
    """Render a driver result as indented JSON text."""
    return json.dumps(value, indent=2, default=bson_default)
