# =============================================================================
# main.py  -  Entry Point for the MongoDB Gemini chat client
# =============================================================================
#
# HOW TO RUN:
#   1. Start the gateway:   uv run mongo-mcp-server
#   2. Start the chat:      uv run python main.py   (or: uv run mongo-chat)
#
# WHAT HAPPENS:
#   1. Reads GEMINI_API_KEY (fatal if missing) and MCP_SERVER_URL
#   2. Connects to the gateway over SSE and lists its tools
#   3. Normalizes the tool schemas into Gemini function declarations
#   4. Runs the terminal loop until "exit" / "quit"
#
# A failed gateway connection is fatal too: without tools there is nothing
# to chat about.
# =============================================================================

import asyncio
import logging
import sys
from contextlib import AsyncExitStack

from dotenv import load_dotenv

# Must run before ChatSettings reads os.environ.
load_dotenv()

from fastmcp import Client
from google import genai

from agent.chat_agent import GOODBYE, ChatSession, describe_tools, run_chat
from agent.tool_catalog import load_tool_catalog
from core.errors import ConfigError
from core.settings import ChatSettings

logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s [chat] %(levelname)s %(name)s: %(message)s",
    datefmt="%H:%M:%S",
    stream=sys.stderr,
)

logger = logging.getLogger(__name__)


async def run_client(settings: ChatSettings) -> int:
    """Connect to the gateway, build the session, and run the loop."""
    genai_client = genai.Client(api_key=settings.gemini_api_key)
    mcp_client = Client(settings.mcp_server_url)

    async with AsyncExitStack() as stack:
        try:
            await stack.enter_async_context(mcp_client)
            print("Connected to MCP server")
            tools = await load_tool_catalog(mcp_client)
        except Exception as exc:
            print(f"Error connecting to MCP server: {exc}", file=sys.stderr)
            return 1
        print("Available tools:", describe_tools(tools))

        session = ChatSession(genai_client, mcp_client, tools, model=settings.gemini_model)
        return await run_chat(session)


def main() -> None:
    try:
        settings = ChatSettings.from_env()
    except ConfigError as exc:
        print(exc, file=sys.stderr)
        sys.exit(1)

    # Ctrl-C while a reply is pending surfaces here, not in run_chat's prompt.
    try:
        code = asyncio.run(run_client(settings))
    except KeyboardInterrupt:
        print(GOODBYE)
        code = 0
    sys.exit(code)


if __name__ == "__main__":
    main()
