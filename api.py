import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from auth import ServiceAccountAuthProvider

logger = logging.getLogger(__name__)

BASE_URL = "https://developer.api.autodesk.com"
BASE_URL_ISSUES = f"{BASE_URL}/construction/issues/v1/projects"
BASE_URL_RFIS = f"{BASE_URL}/construction/rfis/v3/projects"

MAX_PAGES = 50


# --- UTILS ---
def clean_id(id_str: Optional[str]) -> str:
    """Strips the Data Management 'b.' prefix (Issues/RFIs APIs want the bare UUID)."""
    if not id_str:
        return ""
    return id_str[2:] if id_str.startswith("b.") else id_str


def ensure_b_prefix(id_str: Optional[str]) -> str:
    if not id_str: return ""
    return id_str if id_str.startswith("b.") else f"b.{id_str}"


def encode_urn(urn: Optional[str]) -> str:
    return quote(urn, safe='') if urn else ""


class ApsApiError(Exception):
    """Non-success response from an Autodesk Platform Services endpoint."""

    def __init__(self, status_code: int, body: str):
        super().__init__(f"API Error {status_code}: {body}")
        self.status_code = status_code
        self.body = body


# --- REQUEST WRAPPER ---
class ApsClient:
    """Shared request plumbing: one bearer token lookup per outbound call."""

    def __init__(self, auth_provider: ServiceAccountAuthProvider, timeout: int = 15):
        self.auth = auth_provider
        self.timeout = timeout

    def _request(self, method: str, url: str, params: Optional[Dict[str, Any]] = None, json: Any = None) -> Any:
        token = self.auth.get_token()
        headers = {"Authorization": f"Bearer {token}"}
        if json is not None:
            headers["Content-Type"] = "application/json"

        resp = requests.request(method, url, headers=headers, params=params, json=json, timeout=self.timeout)
        if resp.status_code >= 400:
            logger.warning(f"API Error {resp.status_code} on {method} {url}: {resp.text}")
            raise ApsApiError(resp.status_code, resp.text)

        if resp.status_code == 204 or not resp.content:
            return {}
        return resp.json()

    def _get(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self._request("GET", url, params=params)

    def _post(self, url: str, json: Any) -> Any:
        return self._request("POST", url, json=json)

    def _patch(self, url: str, json: Any) -> Any:
        return self._request("PATCH", url, json=json)

    def _get_all_pages(self, url: str) -> List[Dict[str, Any]]:
        """Follows Data Management style links.next.href pagination."""
        items = []
        current_url = url
        page_count = 0
        while current_url and page_count < MAX_PAGES:
            data = self._get(current_url)
            items.extend(data.get("data", []))
            next_obj = data.get("links", {}).get("next")
            current_url = next_obj.get("href") if isinstance(next_obj, dict) else None
            page_count += 1
        if current_url:
            logger.warning(f"Stopped paging {url} after {MAX_PAGES} pages.")
        return items


# --- DATA MANAGEMENT (Hubs, Projects, Folders) ---
class DataManagementClient(ApsClient):

    def get_hubs(self) -> List[Dict[str, Any]]:
        return self._get_all_pages(f"{BASE_URL}/project/v1/hubs")

    def get_projects(self, hub_id: str) -> List[Dict[str, Any]]:
        return self._get_all_pages(f"{BASE_URL}/project/v1/hubs/{hub_id}/projects")

    def get_top_folders(self, hub_id: str, project_id: str) -> List[Dict[str, Any]]:
        url = f"{BASE_URL}/project/v1/hubs/{hub_id}/projects/{ensure_b_prefix(project_id)}/topFolders"
        return self._get(url).get("data", [])

    def get_folder_contents(self, project_id: str, folder_id: str) -> List[Dict[str, Any]]:
        url = f"{BASE_URL}/data/v1/projects/{ensure_b_prefix(project_id)}/folders/{encode_urn(folder_id)}/contents"
        return self._get_all_pages(url)


# --- ISSUES API ---
class IssuesClient(ApsClient):

    def _url(self, project_id: str, path: str) -> str:
        return f"{BASE_URL_ISSUES}/{clean_id(project_id)}/{path}"

    def get_issues(self, project_id: str, status: Optional[str] = None, limit: int = 25, offset: int = 0) -> Dict[str, Any]:
        params = {"limit": limit, "offset": offset}
        if status:
            params["filter[status]"] = status
        return self._get(self._url(project_id, "issues"), params=params)

    def get_issue_types(self, project_id: str) -> Dict[str, Any]:
        return self._get(self._url(project_id, "issue-types"), params={"include": "subtypes"})

    def create_issue(self, project_id: str, issue_data: Dict[str, Any]) -> Dict[str, Any]:
        return self._post(self._url(project_id, "issues"), issue_data)

    def get_issue(self, project_id: str, issue_id: str) -> Dict[str, Any]:
        return self._get(self._url(project_id, f"issues/{issue_id}"))

    def update_issue(self, project_id: str, issue_id: str, update_data: Dict[str, Any]) -> Dict[str, Any]:
        return self._patch(self._url(project_id, f"issues/{issue_id}"), update_data)

    def get_comments(self, project_id: str, issue_id: str) -> List[Dict[str, Any]]:
        return self._get(self._url(project_id, f"issues/{issue_id}/comments")).get("results", [])

    def create_comment(self, project_id: str, issue_id: str, body: str) -> Dict[str, Any]:
        return self._post(self._url(project_id, f"issues/{issue_id}/comments"), {"body": body})

    def get_attachments(self, project_id: str, issue_id: str) -> List[Dict[str, Any]]:
        return self._get(self._url(project_id, f"attachments/{issue_id}/items")).get("results", [])

    def add_attachment(self, project_id: str, issue_id: str, attachment: Dict[str, Any]) -> Dict[str, Any]:
        """Links an existing Data Management document to an issue."""
        payload = {"domainEntityId": issue_id, "attachments": [attachment]}
        return self._post(self._url(project_id, "attachments"), payload)


# --- RFIs API (v3) ---
class RfiClient(ApsClient):

    def _url(self, project_id: str, path: str) -> str:
        return f"{BASE_URL_RFIS}/{clean_id(project_id)}/{path}"

    def search_rfis(self, project_id: str, filters: Optional[Dict[str, Any]] = None, limit: int = 25, offset: int = 0) -> Dict[str, Any]:
        # The API has no server-side text search; callers filter the page themselves.
        payload = {"limit": limit, "offset": offset}
        if filters:
            payload["filter"] = filters
        return self._post(self._url(project_id, "search:rfis"), payload)

    def get_rfi_types(self, project_id: str) -> Any:
        return self._get(self._url(project_id, "rfi-types"))

    def get_rfi(self, project_id: str, rfi_id: str) -> Dict[str, Any]:
        return self._get(self._url(project_id, f"rfis/{rfi_id}"))

    def create_rfi(self, project_id: str, rfi_data: Dict[str, Any]) -> Dict[str, Any]:
        return self._post(self._url(project_id, "rfis"), rfi_data)
