# =============================================================================
# agent/chat_agent.py  -  Chat Orchestrator (transcript + one Gemini round trip)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Runs the read -> generate -> act -> respond loop for one terminal session.
#
#   ┌──────────┐   text    ┌──────────────┐  transcript + tools  ┌─────────┐
#   │   user   │ ────────▶ │ ChatSession  │ ───────────────────▶ │ Gemini  │
#   └──────────┘           │  .ask()      │ ◀─────────────────── └─────────┘
#        ▲                 │              │   text OR function_call
#        │    reply        │              │
#        └──────────────── │              │ ── call_tool(name, args) ──▶ gateway
#                          └──────────────┘ ◀── content[1] or content[0] ──
#
# ONE ROUND TRIP:
#   When Gemini asks for a tool, the tool's own text becomes the visible
#   reply.  The result is NOT sent back to Gemini for summarizing.  The
#   second content part (the JSON payload) is preferred when present; the
#   summary line is used otherwise.
#
# FAILURES:
#   Any exception from Gemini or the gateway during a turn is logged and the
#   reply becomes APOLOGY.  The loop keeps going.
# =============================================================================

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from google.genai import types

from agent.tool_catalog import build_genai_tools
from core.models import ToolDescriptor

logger = logging.getLogger(__name__)

APOLOGY = "Sorry, I encountered an error while processing your request."
EXIT_COMMANDS = ("exit", "quit")
GOODBYE = "\nGoodbye! 👋"


# -----------------------------------------------------------------------------
# Transcript
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class Turn:
    role: str  # "user" | "model"
    text: str


@dataclass
class Transcript:
    """Append-only record of one session's turns."""

    turns: list[Turn] = field(default_factory=list)

    def add_user(self, text: str) -> None:
        self.turns.append(Turn(role="user", text=text))

    def add_model(self, text: str) -> None:
        self.turns.append(Turn(role="model", text=text))

    def to_contents(self) -> list[types.Content]:
        return [
            types.Content(role=turn.role, parts=[types.Part(text=turn.text)])
            for turn in self.turns
        ]

    def __len__(self) -> int:
        return len(self.turns)


def extract_tool_text(result: Any) -> str:
    """Prefer the payload part of a tool result, else the summary part."""
    content = getattr(result, "content", None) or []
    if len(content) > 1:
        return content[1].text
    if content:
        return content[0].text
    return ""


def is_exit_command(text: str) -> bool:
    return text.strip().lower() in EXIT_COMMANDS


# -----------------------------------------------------------------------------
# ChatSession
# -----------------------------------------------------------------------------


class ChatSession:
    """One conversation: its transcript, the tool catalog, and both clients.

    Args:
        genai_client: google.genai.Client (only ``.aio.models`` is used)
        mcp_client: connected fastmcp.Client for the gateway
        tools: normalized gateway catalog
        model: Gemini model name
    """

    def __init__(
        self,
        genai_client,
        mcp_client,
        tools: list[ToolDescriptor],
        model: str,
    ):
        self.genai_client = genai_client
        self.mcp_client = mcp_client
        self.tools = tools
        self.model = model
        self.transcript = Transcript()

        genai_tools = build_genai_tools(tools)
        self._config = types.GenerateContentConfig(tools=genai_tools) if genai_tools else None

    async def ask(self, user_text: str) -> str:
        """Run one turn and return the visible reply."""
        self.transcript.add_user(user_text)
        reply = await self._respond()
        self.transcript.add_model(reply)
        return reply

    async def _respond(self) -> str:
        try:
            response = await self.genai_client.aio.models.generate_content(
                model=self.model,
                contents=self.transcript.to_contents(),
                config=self._config,
            )
            part = response.candidates[0].content.parts[0]

            if part.function_call:
                return await self._call_tool(part.function_call)

            return part.text or ""
        except Exception:
            logger.exception("Error communicating with Gemini API")
            return APOLOGY

    async def _call_tool(self, function_call: types.FunctionCall) -> str:
        name = function_call.name
        args = dict(function_call.args or {})
        logger.info("Calling tool %s with %s", name, args)
        result = await self.mcp_client.call_tool(name, args, raise_on_error=False)
        return extract_tool_text(result)


# -----------------------------------------------------------------------------
# Interactive loop
# -----------------------------------------------------------------------------


async def run_chat(
    session: ChatSession,
    read: Callable[[str], str] = input,
    write: Callable[[str], None] = print,
) -> int:
    """Prompt until exit/quit (or EOF / Ctrl-C); returns the exit code."""
    write("\n===================================")
    write("🤖 Terminal Chatbot with Gemini AI")
    write("===================================")
    write('Type "exit" or "quit" to end the conversation.\n')

    while True:
        try:
            user_input = read("\nYou: ")
        except (EOFError, KeyboardInterrupt):
            write(GOODBYE)
            return 0

        if is_exit_command(user_input):
            write(GOODBYE)
            return 0

        if not user_input.strip():
            continue

        write("\nAI is thinking...")
        reply = await session.ask(user_input)
        write(f"\nAI: {reply}")


def describe_tools(tools: Optional[list[ToolDescriptor]]) -> str:
    return ", ".join(tool.name for tool in tools or [])
