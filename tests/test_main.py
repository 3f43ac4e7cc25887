"""Tests for the chat entry point (main.py).

The gateway client, Gemini client and chat loop are patched out; only the
connection handling and exit codes of run_client()/main() are exercised.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

import main
from core.settings import ChatSettings

SETTINGS = ChatSettings(gemini_api_key="test-key")


@pytest.fixture
def mcp_client():
    client = MagicMock()
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=False)
    with patch("main.Client", return_value=client), patch("main.genai"):
        yield client


class TestRunClient:
    async def test_connection_failure_exits_with_one(self, mcp_client, capsys):
        mcp_client.__aenter__.side_effect = ConnectionError("refused")

        assert await main.run_client(SETTINGS) == 1
        assert "Error connecting to MCP server: refused" in capsys.readouterr().err

    async def test_returns_loop_exit_code_and_disconnects(self, mcp_client):
        with patch("main.load_tool_catalog", AsyncMock(return_value=[])), patch(
            "main.run_chat", AsyncMock(return_value=0)
        ) as run_chat:
            assert await main.run_client(SETTINGS) == 0

        run_chat.assert_awaited_once()
        mcp_client.__aexit__.assert_awaited_once()

    async def test_session_failure_is_not_reported_as_connection_error(self, mcp_client, capsys):
        with patch("main.load_tool_catalog", AsyncMock(return_value=[])), patch(
            "main.run_chat", AsyncMock(side_effect=RuntimeError("loop crashed"))
        ):
            with pytest.raises(RuntimeError, match="loop crashed"):
                await main.run_client(SETTINGS)

        assert "Error connecting" not in capsys.readouterr().err
        mcp_client.__aexit__.assert_awaited_once()


class TestMain:
    def test_missing_api_key_exits_with_one(self, monkeypatch, capsys):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)

        with pytest.raises(SystemExit) as exc_info:
            main.main()

        assert exc_info.value.code == 1
        assert "Gemini API key not found" in capsys.readouterr().err

    def test_ctrl_c_during_reply_exits_cleanly(self, monkeypatch, capsys):
        monkeypatch.setenv("GEMINI_API_KEY", "test-key")

        with patch("main.run_client", MagicMock()), patch(
            "main.asyncio.run", side_effect=KeyboardInterrupt
        ):
            with pytest.raises(SystemExit) as exc_info:
                main.main()

        assert exc_info.value.code == 0
        assert "Goodbye!" in capsys.readouterr().out
