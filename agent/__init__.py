# =============================================================================
# agent/__init__.py
# =============================================================================
# This package contains the Gemini chat orchestrator.
#
#   tool_catalog.py  Fetches the gateway's tools over MCP and turns them into
#                    Gemini function declarations
#   chat_agent.py    Transcript, ChatSession (one Gemini round trip per
#                    turn, optional tool dispatch) and the terminal loop
#
# The agent never talks to MongoDB directly.  Everything goes through the
# gateway in tools/mcp_server.py.
# =============================================================================
