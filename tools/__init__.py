# =============================================================================
# tools/__init__.py
# =============================================================================
# This package contains the FastMCP tool gateway (mcp_server.py).
#
# Each tool is a thin wrapper around a core.mongo_service.MongoService
# method.  The wrapper logs the call, forwards the validated arguments, and
# formats the result as a summary line plus a JSON payload.  Tools never
# raise: failures come back as a single "Error ..." text part.
#
# Tool names (findDocuments, countDocuments, ...) are the public contract
# the chat client and Gemini see; the Python function names are snake_case.
# =============================================================================
