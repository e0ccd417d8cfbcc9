from unittest.mock import MagicMock

import dump_issues
from api import ApsApiError


def test_api_error_while_paging_exits_cleanly(monkeypatch, capsys, fake_auth):
    client = MagicMock()
    client.auth = fake_auth
    client.get_issues.side_effect = ApsApiError(403, "Forbidden")

    monkeypatch.setattr(dump_issues.sys, "argv", ["dump_issues.py", "b.proj"])
    monkeypatch.setattr(dump_issues.config, "missing_settings", lambda: [])
    monkeypatch.setattr(dump_issues, "create_auth_provider", lambda: fake_auth)
    monkeypatch.setattr(dump_issues, "IssuesClient", lambda auth: client)

    assert dump_issues.main() == 1
    assert "❌ Could not fetch issues: API Error 403: Forbidden" in capsys.readouterr().out
    client.get_issues.assert_called_once_with("proj", limit=100, offset=0)
