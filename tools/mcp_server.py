# =============================================================================
# tools/mcp_server.py  -  FastMCP Tool Gateway (ALL MongoDB tools in one place)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Exposes a fixed catalog of MongoDB operations as MCP tools.  Each tool is
#   a thin wrapper around a core.mongo_service.MongoService method: it logs
#   the call, forwards the validated arguments, and formats the result.
#
# HOW IT WORKS (the flow):
#   1. The chat client asks Gemini for a reply; Gemini requests a tool call
#   2. The client calls the tool by name over MCP (e.g. "countDocuments")
#   3. FastMCP validates the arguments against the signature (pydantic)
#   4. The function below forwards them to MongoService
#   5. The result goes back as one or two text parts:
#        content[0]  one-line summary   "Found 3 documents in collection 'x'"
#        content[1]  JSON payload       (omitted for count/create/drop)
#
# ERROR CONTRACT:
#   No tool ever raises past this module.  Any failure (driver error,
#   strict-mode ObjectId rejection, not connected) becomes a single text
#   part "Error <doing something>: <message>" and the server keeps serving.
#
# SHARED STATE:
#   The only shared state is the GatewayContext yielded by lifespan(): one
#   connected MongoService.  Tools reach it through ctx.request_context.
#   The SSE transport keeps its own session map.
#
# RUNNING THIS SERVER:
#   mongo-mcp-server                          SSE on 0.0.0.0:3001 (/sse)
#   mongo-mcp-server --transport stdio        for stdio-based MCP clients
#   python -m tools.mcp_server --port 4000
# =============================================================================

import argparse
import json
import logging
import sys
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Annotated, Any, AsyncIterator, Optional

from dotenv import load_dotenv
from fastmcp import Context, FastMCP
from fastmcp.tools.tool import ToolResult
from mcp.types import TextContent
from pydantic import BaseModel, Field, JsonValue
from starlette.requests import Request
from starlette.responses import JSONResponse

from core.errors import ConfigError
from core.mongo_service import MongoService
from core.serialization import bson_default, to_json
from core.settings import GatewaySettings

# =============================================================================
# Logging Setup
# =============================================================================
# Logs go to STDERR: with the stdio transport, STDOUT carries the MCP JSON
# stream and any stray print would corrupt it.
#
#   CYAN    incoming tool calls with their arguments
#   GREEN   responses
#   YELLOW  status and errors
# =============================================================================

_CYAN = "\033[36m"
_GREEN = "\033[32m"
_YELLOW = "\033[33m"
_RESET = "\033[0m"

_MAX_LOGGED_PAYLOAD = 500

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [MCP] %(message)s",
    datefmt="%H:%M:%S",
    stream=sys.stderr,
)

logger = logging.getLogger(__name__)


def _log_request(tool_name: str, **params) -> None:
    """Log an incoming tool call with its parameters in CYAN."""
    param_str = ", ".join(f"{k}={v!r}" for k, v in params.items())
    logger.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def _log_status(message: str) -> None:
    """Log an intermediate status message in YELLOW."""
    logger.info(f"{_YELLOW}  → {message}{_RESET}")


def _log_response(tool_name: str, summary: str, payload: Any = None) -> None:
    """Log the summary and a compact, truncated payload in GREEN."""
    line = summary
    if payload is not None:
        compact = json.dumps(payload, separators=(",", ":"), default=bson_default)
        if len(compact) > _MAX_LOGGED_PAYLOAD:
            compact = compact[:_MAX_LOGGED_PAYLOAD] + "..."
        line = f"{summary} {compact}"
    logger.info(f"{_GREEN}  ← {tool_name} response: {line}{_RESET}")


# =============================================================================
# Result helpers
# =============================================================================

_NO_PAYLOAD = object()


def _respond(tool_name: str, summary: str, payload: Any = _NO_PAYLOAD) -> ToolResult:
    """Build the summary (+ optional JSON payload) tool result."""
    content = [TextContent(type="text", text=summary)]
    if payload is _NO_PAYLOAD:
        _log_response(tool_name, summary)
    else:
        content.append(TextContent(type="text", text=to_json(payload)))
        _log_response(tool_name, summary, payload)
    return ToolResult(content=content)


def _error(prefix: str, exc: Exception) -> ToolResult:
    """Turn any failure into a single error text part."""
    message = f"{prefix}: {exc}"
    _log_status(message)
    return ToolResult(content=[TextContent(type="text", text=message)])


# =============================================================================
# Lifespan: the single shared MongoDB connection
# =============================================================================


@dataclass
class GatewayContext:
    """Request-independent state handed to every tool."""

    mongo: MongoService


def open_mongo_service() -> MongoService:
    """Read settings from the environment and connect."""
    service = MongoService.from_settings(GatewaySettings.from_env())
    service.connect()
    return service


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[GatewayContext]:
    """Connect on startup; close the client on shutdown (incl. SIGINT)."""
    service = open_mongo_service()
    try:
        yield GatewayContext(mongo=service)
    finally:
        service.disconnect()


def _mongo(ctx: Context) -> MongoService:
    return ctx.request_context.lifespan_context.mongo


# =============================================================================
# Create the FastMCP server instance
# =============================================================================
mcp = FastMCP(
    "mongodb-gateway",
    instructions=(
        "Tools for reading and writing documents in a MongoDB database. "
        "Filters use MongoDB query syntax; '_id' values may be given as hex strings."
    ),
    lifespan=lifespan,
)


@mcp.custom_route("/health", methods=["GET"])
async def health_check(request: Request) -> JSONResponse:
    """Liveness probe for the HTTP transports."""
    return JSONResponse({"status": "healthy", "service": "mongodb-gateway"})


# =============================================================================
# Argument models
# =============================================================================
# Query, filter, update and document arguments are arbitrary JSON objects.
# pydantic's JsonValue is the recursive string | number | bool | null |
# array | object type, so anything else is rejected during validation.
# =============================================================================

Document = dict[str, JsonValue]


class FindOptions(BaseModel):
    limit: Optional[int] = Field(None, description="Maximum number of documents to return")
    skip: Optional[int] = Field(None, description="Number of documents to skip")
    sort: Optional[dict[str, int]] = Field(
        None,
        description="Sort criteria (e.g. {field: 1} for ascending, {field: -1} for descending)",
    )
    projection: Optional[dict[str, int]] = Field(None, description="Fields to include or exclude")


class ProjectionOptions(BaseModel):
    projection: Optional[dict[str, int]] = Field(None, description="Fields to include or exclude")


class UpdateOptions(BaseModel):
    upsert: Optional[bool] = Field(
        None, description="Create a document if no documents match the filter"
    )


class IndexOptions(BaseModel):
    unique: Optional[bool] = Field(None, description="Reject duplicate values for the indexed fields")
    name: Optional[str] = Field(None, description="Name of the index (generated when omitted)")


# =============================================================================
# TOOLS: Reads
# =============================================================================


@mcp.tool(name="findDocuments")
def find_documents(
    collection: Annotated[str, Field(description="The collection name to query")],
    query: Annotated[Optional[Document], Field(description="The query filter")] = None,
    options: Annotated[Optional[FindOptions], Field(description="Cursor options")] = None,
    ctx: Context = None,
) -> ToolResult:
    """Find documents in a MongoDB collection"""
    _log_request("findDocuments", collection=collection, query=query, options=options)
    options = options or FindOptions()
    try:
        results = _mongo(ctx).find(
            collection,
            query or {},
            limit=options.limit or 0,
            skip=options.skip or 0,
            sort=options.sort,
            projection=options.projection,
        )
        return _respond(
            "findDocuments", f"Found {len(results)} documents in collection '{collection}'", results
        )
    except Exception as exc:
        return _error("Error finding documents", exc)


@mcp.tool(name="findOneDocument")
def find_one_document(
    collection: Annotated[str, Field(description="The collection name to query")],
    query: Annotated[Document, Field(description="The query filter")],
    options: Annotated[Optional[ProjectionOptions], Field(description="Projection options")] = None,
    ctx: Context = None,
) -> ToolResult:
    """Find a single document in a MongoDB collection"""
    _log_request("findOneDocument", collection=collection, query=query, options=options)
    options = options or ProjectionOptions()
    try:
        result = _mongo(ctx).find_one(collection, query, projection=options.projection)
        if result is None:
            summary = f"No document found in collection '{collection}' matching the query"
        else:
            summary = f"Found document in collection '{collection}'"
        return _respond("findOneDocument", summary, result)
    except Exception as exc:
        return _error("Error finding document", exc)


@mcp.tool(name="aggregateDocuments")
def aggregate_documents(
    collection: Annotated[str, Field(description="The collection name")],
    pipeline: Annotated[list[Document], Field(description="The aggregation pipeline stages")],
    ctx: Context = None,
) -> ToolResult:
    """Run an aggregation pipeline on a MongoDB collection"""
    _log_request("aggregateDocuments", collection=collection, pipeline=pipeline)
    try:
        results = _mongo(ctx).aggregate(collection, pipeline)
        return _respond(
            "aggregateDocuments",
            f"Aggregation on collection '{collection}' returned {len(results)} results",
            results,
        )
    except Exception as exc:
        return _error("Error running aggregation", exc)


@mcp.tool(name="countDocuments")
def count_documents(
    collection: Annotated[str, Field(description="The collection name")],
    query: Annotated[Optional[Document], Field(description="The query filter")] = None,
    ctx: Context = None,
) -> ToolResult:
    """Count documents in a MongoDB collection"""
    _log_request("countDocuments", collection=collection, query=query)
    try:
        count = _mongo(ctx).count_documents(collection, query or {})
        return _respond("countDocuments", f"Count of documents in collection '{collection}': {count}")
    except Exception as exc:
        return _error("Error counting documents", exc)


@mcp.tool(name="listCollections")
def list_collections(ctx: Context = None) -> ToolResult:
    """List all collections in the database"""
    _log_request("listCollections")
    try:
        collections = _mongo(ctx).list_collections()
        return _respond(
            "listCollections", f"Found {len(collections)} collections in the database", collections
        )
    except Exception as exc:
        return _error("Error listing collections", exc)


# =============================================================================
# TOOLS: Writes
# =============================================================================


@mcp.tool(name="insertOneDocument")
def insert_one_document(
    collection: Annotated[str, Field(description="The collection name")],
    document: Annotated[Document, Field(description="The document to insert")],
    ctx: Context = None,
) -> ToolResult:
    """Insert a single document into a MongoDB collection"""
    _log_request("insertOneDocument", collection=collection, document=document)
    try:
        result = _mongo(ctx).insert_one(collection, document)
        return _respond("insertOneDocument", f"Document inserted into collection '{collection}'", result)
    except Exception as exc:
        return _error("Error inserting document", exc)


@mcp.tool(name="insertManyDocuments")
def insert_many_documents(
    collection: Annotated[str, Field(description="The collection name")],
    documents: Annotated[list[Document], Field(description="The documents to insert")],
    ctx: Context = None,
) -> ToolResult:
    """Insert multiple documents into a MongoDB collection"""
    _log_request("insertManyDocuments", collection=collection, documents=documents)
    try:
        result = _mongo(ctx).insert_many(collection, documents)
        return _respond(
            "insertManyDocuments",
            f"{result['insertedCount']} documents inserted into collection '{collection}'",
            result,
        )
    except Exception as exc:
        return _error("Error inserting documents", exc)


@mcp.tool(name="updateOneDocument")
def update_one_document(
    collection: Annotated[str, Field(description="The collection name")],
    filter: Annotated[Document, Field(description="The filter to find the document to update")],
    update: Annotated[Document, Field(description="The update operations to apply")],
    options: Annotated[Optional[UpdateOptions], Field(description="Update options")] = None,
    ctx: Context = None,
) -> ToolResult:
    """Update a single document in a MongoDB collection"""
    _log_request("updateOneDocument", collection=collection, filter=filter, update=update, options=options)
    options = options or UpdateOptions()
    try:
        result = _mongo(ctx).update_one(collection, filter, update, upsert=bool(options.upsert))
        return _respond(
            "updateOneDocument",
            f"Document update in collection '{collection}': "
            f"matched {result['matchedCount']}, modified {result['modifiedCount']}",
            result,
        )
    except Exception as exc:
        return _error("Error updating document", exc)


@mcp.tool(name="updateManyDocuments")
def update_many_documents(
    collection: Annotated[str, Field(description="The collection name")],
    filter: Annotated[Document, Field(description="The filter to find documents to update")],
    update: Annotated[Document, Field(description="The update operations to apply")],
    options: Annotated[Optional[UpdateOptions], Field(description="Update options")] = None,
    ctx: Context = None,
) -> ToolResult:
    """Update multiple documents in a MongoDB collection"""
    _log_request("updateManyDocuments", collection=collection, filter=filter, update=update, options=options)
    options = options or UpdateOptions()
    try:
        result = _mongo(ctx).update_many(collection, filter, update, upsert=bool(options.upsert))
        return _respond(
            "updateManyDocuments",
            f"Documents updated in collection '{collection}': "
            f"matched {result['matchedCount']}, modified {result['modifiedCount']}",
            result,
        )
    except Exception as exc:
        return _error("Error updating documents", exc)


@mcp.tool(name="deleteOneDocument")
def delete_one_document(
    collection: Annotated[str, Field(description="The collection name")],
    filter: Annotated[Document, Field(description="The filter to find the document to delete")],
    ctx: Context = None,
) -> ToolResult:
    """Delete a single document from a MongoDB collection"""
    _log_request("deleteOneDocument", collection=collection, filter=filter)
    try:
        result = _mongo(ctx).delete_one(collection, filter)
        return _respond(
            "deleteOneDocument",
            f"Deleted {result['deletedCount']} document from collection '{collection}'",
            result,
        )
    except Exception as exc:
        return _error("Error deleting document", exc)


@mcp.tool(name="deleteManyDocuments")
def delete_many_documents(
    collection: Annotated[str, Field(description="The collection name")],
    filter: Annotated[Document, Field(description="The filter to find documents to delete")],
    ctx: Context = None,
) -> ToolResult:
    """Delete multiple documents from a MongoDB collection"""
    _log_request("deleteManyDocuments", collection=collection, filter=filter)
    try:
        result = _mongo(ctx).delete_many(collection, filter)
        return _respond(
            "deleteManyDocuments",
            f"Deleted {result['deletedCount']} documents from collection '{collection}'",
            result,
        )
    except Exception as exc:
        return _error("Error deleting documents", exc)


# =============================================================================
# TOOLS: Collection management
# =============================================================================


@mcp.tool(name="createCollection")
def create_collection(
    collection: Annotated[str, Field(description="The collection name to create")],
    ctx: Context = None,
) -> ToolResult:
    """Create a new collection in the database"""
    _log_request("createCollection", collection=collection)
    try:
        result = _mongo(ctx).create_collection(collection)
        return _respond("createCollection", result["message"])
    except Exception as exc:
        return _error("Error creating collection", exc)


@mcp.tool(name="dropCollection")
def drop_collection(
    collection: Annotated[str, Field(description="The collection name to drop")],
    ctx: Context = None,
) -> ToolResult:
    """Drop a collection and all of its documents from the database"""
    _log_request("dropCollection", collection=collection)
    try:
        result = _mongo(ctx).drop_collection(collection)
        return _respond("dropCollection", result["message"])
    except Exception as exc:
        return _error("Error dropping collection", exc)


@mcp.tool(name="createIndex")
def create_index(
    collection: Annotated[str, Field(description="The collection name")],
    keys: Annotated[
        dict[str, int],
        Field(description="Index keys (e.g. {field: 1} for ascending, {field: -1} for descending)"),
    ],
    options: Annotated[Optional[IndexOptions], Field(description="Index options")] = None,
    ctx: Context = None,
) -> ToolResult:
    """Create an index on a MongoDB collection"""
    _log_request("createIndex", collection=collection, keys=keys, options=options)
    options = options or IndexOptions()
    try:
        result = _mongo(ctx).create_index(
            collection, keys, unique=bool(options.unique), name=options.name
        )
        return _respond(
            "createIndex",
            f"Index '{result['indexName']}' created on collection '{collection}'",
            result,
        )
    except Exception as exc:
        return _error("Error creating index", exc)


# =============================================================================
# Server entry point
# =============================================================================


def main(argv: Optional[list[str]] = None) -> None:
    load_dotenv()

    parser = argparse.ArgumentParser(description="MongoDB MCP tool gateway")
    parser.add_argument(
        "--transport",
        choices=["sse", "stdio", "streamable-http"],
        default="sse",
        help="Transport protocol (default: sse)",
    )
    parser.add_argument("--host", type=str, default=None, help="Host to bind (default: MCP_HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, default=None, help="Port to bind (default: MCP_PORT or 3001)")
    args = parser.parse_args(argv)

    # Fail before the transport starts; lifespan() reads the same settings.
    try:
        settings = GatewaySettings.from_env()
    except ConfigError as exc:
        logger.error(str(exc))
        sys.exit(1)

    if args.transport == "stdio":
        mcp.run(transport="stdio")
        return

    host = args.host or settings.host
    port = args.port or settings.port
    logger.info(f"MCP MongoDB server running on {host}:{port} ({args.transport})")
    mcp.run(transport=args.transport, host=host, port=port)


if __name__ == "__main__":
    main()
