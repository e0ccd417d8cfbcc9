from unittest.mock import patch

import pytest

from api import (
    ApsApiError,
    DataManagementClient,
    IssuesClient,
    RfiClient,
    clean_id,
    encode_urn,
    ensure_b_prefix,
)
from auth import TokenExchangeError
from conftest import make_response


class TestIdHelpers:
    def test_clean_id(self):
        assert clean_id("b.1234-abcd") == "1234-abcd"
        assert clean_id("1234-abcd") == "1234-abcd"
        assert clean_id("1234b.abcd") == "1234b.abcd"
        assert clean_id(None) == ""

    def test_ensure_b_prefix(self):
        assert ensure_b_prefix("1234") == "b.1234"
        assert ensure_b_prefix("b.1234") == "b.1234"
        assert ensure_b_prefix("") == ""

    def test_encode_urn(self):
        assert encode_urn("urn:adsk.wipprod:fs.folder:co.abc") == "urn%3Aadsk.wipprod%3Afs.folder%3Aco.abc"


class TestRequests:
    def test_bearer_header_on_every_call(self, fake_auth):
        client = IssuesClient(fake_auth)
        with patch("api.requests.request", return_value=make_response(200, {"results": []})) as request:
            client.get_issues("b.proj")
            client.get_issues("b.proj")

        assert fake_auth.get_token.call_count == 2
        headers = request.call_args.kwargs["headers"]
        assert headers["Authorization"] == "Bearer test-token"

    def test_error_status_raises(self, fake_auth):
        client = IssuesClient(fake_auth)
        with patch("api.requests.request", return_value=make_response(404, text="Not Found")):
            with pytest.raises(ApsApiError, match="API Error 404: Not Found") as exc_info:
                client.get_issue("proj", "issue-1")
        assert exc_info.value.status_code == 404

    def test_auth_failure_propagates_without_request(self, fake_auth):
        fake_auth.get_token.side_effect = TokenExchangeError("Could not generate access token: nope")
        client = RfiClient(fake_auth)
        with patch("api.requests.request") as request:
            with pytest.raises(TokenExchangeError):
                client.get_rfi("proj", "rfi-1")
        request.assert_not_called()

    def test_empty_body_returns_empty_dict(self, fake_auth):
        client = IssuesClient(fake_auth)
        with patch("api.requests.request", return_value=make_response(204)):
            assert client.update_issue("proj", "issue-1", {"title": "x"}) == {}


class TestDataManagementClient:
    def test_follows_next_links(self, fake_auth):
        client = DataManagementClient(fake_auth)
        pages = [
            make_response(200, {"data": [{"id": "p1"}], "links": {"next": {"href": "https://next/page2"}}}),
            make_response(200, {"data": [{"id": "p2"}], "links": {}}),
        ]
        with patch("api.requests.request", side_effect=pages) as request:
            projects = client.get_projects("b.hub")

        assert [p["id"] for p in projects] == ["p1", "p2"]
        assert request.call_args_list[0].args == ("GET", "https://developer.api.autodesk.com/project/v1/hubs/b.hub/projects")
        assert request.call_args_list[1].args == ("GET", "https://next/page2")

    def test_folder_contents_url(self, fake_auth):
        client = DataManagementClient(fake_auth)
        with patch("api.requests.request", return_value=make_response(200, {"data": []})) as request:
            client.get_folder_contents("1234", "urn:adsk.wipprod:fs.folder:co.x")
        assert request.call_args.args[1] == (
            "https://developer.api.autodesk.com/data/v1/projects/b.1234/folders/urn%3Aadsk.wipprod%3Afs.folder%3Aco.x/contents"
        )


class TestIssuesClient:
    def test_get_issues_strips_prefix_and_filters(self, fake_auth):
        client = IssuesClient(fake_auth)
        with patch("api.requests.request", return_value=make_response(200, {"results": []})) as request:
            client.get_issues("b.proj", status="open", limit=10, offset=20)

        assert request.call_args.args == ("GET", "https://developer.api.autodesk.com/construction/issues/v1/projects/proj/issues")
        assert request.call_args.kwargs["params"] == {"limit": 10, "offset": 20, "filter[status]": "open"}

    def test_create_comment(self, fake_auth):
        client = IssuesClient(fake_auth)
        with patch("api.requests.request", return_value=make_response(201, {"id": "c1"})) as request:
            client.create_comment("proj", "issue-1", "Looks good")

        assert request.call_args.args[0] == "POST"
        assert request.call_args.args[1].endswith("/projects/proj/issues/issue-1/comments")
        assert request.call_args.kwargs["json"] == {"body": "Looks good"}
        assert request.call_args.kwargs["headers"]["Content-Type"] == "application/json"


class TestIssueAttachments:
    def test_add_attachment_posts_to_attachments_collection(self, fake_auth):
        client = IssuesClient(fake_auth)
        attachment = {"attachmentId": "a-1", "displayName": "photo.jpg", "attachmentType": "dm", "urn": "urn:1"}
        with patch("api.requests.request", return_value=make_response(201, {"attachments": []})) as request:
            client.add_attachment("b.proj", "issue-1", attachment)

        assert request.call_args.args == ("POST", "https://developer.api.autodesk.com/construction/issues/v1/projects/proj/attachments")
        assert request.call_args.kwargs["json"] == {"domainEntityId": "issue-1", "attachments": [attachment]}


class TestRfiClient:
    def test_search_payload(self, fake_auth):
        client = RfiClient(fake_auth)
        with patch("api.requests.request", return_value=make_response(200, {"results": []})) as request:
            client.search_rfis("b.proj", {"status": ["open"]}, limit=5, offset=10)

        assert request.call_args.args == ("POST", "https://developer.api.autodesk.com/construction/rfis/v3/projects/proj/search:rfis")
        assert request.call_args.kwargs["json"] == {"limit": 5, "offset": 10, "filter": {"status": ["open"]}}
