# =============================================================================
# core/__init__.py
# =============================================================================
# This package contains the framework-free pieces of the MongoDB gateway:
#
#   - settings.py       Environment configuration for both processes
#   - errors.py         Exception hierarchy
#   - models.py         Tool descriptor dataclasses
#   - schema.py         MCP input schema -> Gemini parameter descriptor
#   - object_ids.py     Best-effort string -> ObjectId coercion
#   - serialization.py  BSON-aware JSON rendering for tool payloads
#   - mongo_service.py  Thin wrapper over the pymongo driver
#
# Nothing here imports FastMCP or google-genai.  The tools/ layer wraps
# MongoService in MCP tools; the agent/ layer uses schema.py to translate
# the gateway catalog for Gemini.
# =============================================================================
