import asyncio

import config
from server import create_server
from tools import TOOL_NAMES


def test_all_tools_registered(fake_auth):
    mcp = create_server(fake_auth)
    tools = asyncio.run(mcp.get_tools())
    assert set(TOOL_NAMES) <= set(tools)
    fake_auth.get_token.assert_not_called()


def test_missing_settings(monkeypatch):
    for name in config.REQUIRED_SETTINGS:
        monkeypatch.setattr(config, name, "set")
    assert config.missing_settings() == []

    monkeypatch.setattr(config, "APS_SA_KEY_PATH", None)
    monkeypatch.setattr(config, "APS_SA_ID", "")
    assert config.missing_settings() == ["APS_SA_ID", "APS_SA_KEY_PATH"]
