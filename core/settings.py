# =============================================================================
# core/settings.py  -  Environment configuration
# =============================================================================
#
# Both processes read their configuration from environment variables.  The
# entry points call load_dotenv() first, so a local .env file works too.
#
#   Gateway (tools/mcp_server.py):
#     MONGODB_URI                 required  e.g. mongodb://localhost:27017
#     MONGODB_NAME                required  database name
#     MONGODB_STRICT_OBJECT_IDS   optional  "true" rejects malformed _id strings
#     MCP_HOST / MCP_PORT         optional  default 0.0.0.0:3001
#
#   Chat client (main.py):
#     GEMINI_API_KEY              required
#     GEMINI_MODEL                optional  default gemini-2.0-flash
#     MCP_SERVER_URL              optional  default http://localhost:3001/sse
# =============================================================================

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from core.errors import ConfigError

DEFAULT_MCP_HOST = "0.0.0.0"
DEFAULT_MCP_PORT = 3001
DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"
DEFAULT_MCP_SERVER_URL = "http://localhost:3001/sse"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _required(env: Mapping[str, str], key: str, message: str) -> str:
    value = env.get(key, "").strip()
    if not value:
        raise ConfigError(message)
    return value


def _parse_bool(env: Mapping[str, str], key: str, default: bool = False) -> bool:
    raw = env.get(key)
    if raw is None:
        return default
    lowered = raw.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigError(f"{key} must be a boolean, got {raw!r}")


def _parse_port(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        port = int(raw)
    except ValueError:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from None
    if not 0 < port < 65536:
        raise ConfigError(f"{key} must be between 1 and 65535, got {port}")
    return port


@dataclass(frozen=True)
class GatewaySettings:
    """Settings for the MCP tool gateway."""

    mongodb_uri: str
    mongodb_name: str
    strict_object_ids: bool = False
    host: str = DEFAULT_MCP_HOST
    port: int = DEFAULT_MCP_PORT

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "GatewaySettings":
        env = os.environ if env is None else env
        return cls(
            mongodb_uri=_required(env, "MONGODB_URI", "MongoDB URI is not defined"),
            mongodb_name=_required(env, "MONGODB_NAME", "Database name is not defined"),
            strict_object_ids=_parse_bool(env, "MONGODB_STRICT_OBJECT_IDS"),
            host=env.get("MCP_HOST", "").strip() or DEFAULT_MCP_HOST,
            port=_parse_port(env, "MCP_PORT", DEFAULT_MCP_PORT),
        )


@dataclass(frozen=True)
class ChatSettings:
    """Settings for the terminal chat client."""

    gemini_api_key: str
    gemini_model: str = DEFAULT_GEMINI_MODEL
    mcp_server_url: str = DEFAULT_MCP_SERVER_URL

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "ChatSettings":
        env = os.environ if env is None else env
        return cls(
            gemini_api_key=_required(
                env,
                "GEMINI_API_KEY",
                "Error: Gemini API key not found. Please add it to your .env file.",
            ),
            gemini_model=env.get("GEMINI_MODEL", "").strip() or DEFAULT_GEMINI_MODEL,
            mcp_server_url=env.get("MCP_SERVER_URL", "").strip() or DEFAULT_MCP_SERVER_URL,
        )
