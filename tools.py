import logging
import uuid
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from fastmcp.exceptions import ToolError
from fastmcp.tools.tool import ToolResult
from pydantic import BaseModel, Field

import formatting
from api import DataManagementClient, IssuesClient, RfiClient

logger = logging.getLogger(__name__)

IssueStatus = Literal["draft", "open", "pending", "in_progress", "completed", "in_review", "not_approved", "in_dispute", "closed"]
AssigneeType = Literal["user", "company", "role", "null"]
RfiPriority = Literal["Low", "Normal", "High"]

ProjectId = Annotated[str, Field(min_length=1, description="ACC project ID (with or without the 'b.' prefix)")]
NonEmpty = Annotated[str, Field(min_length=1)]
Limit = Annotated[int, Field(ge=1, le=100)]
Offset = Annotated[int, Field(ge=0)]


class CustomAttribute(BaseModel):
    attributeDefinitionId: str
    value: Union[str, int, float, bool]


class GpsCoordinates(BaseModel):
    latitude: float
    longitude: float


def _drop_unset(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Keeps only the fields the caller actually provided."""
    payload = {}
    for key, value in fields.items():
        if value is None:
            continue
        if isinstance(value, BaseModel):
            value = value.model_dump()
        elif isinstance(value, list):
            value = [v.model_dump() if isinstance(v, BaseModel) else v for v in value]
        payload[key] = value
    return payload


def _failed(action: str, error: Exception) -> ToolError:
    logger.error(f"Failed to {action}: {error}")
    return ToolError(f"❌ Failed to {action}: {error}")


class AccTools:
    """The MCP tool surface. Each public method is registered as one tool."""

    def __init__(self, data_management: DataManagementClient, issues: IssuesClient, rfis: RfiClient):
        self.data_management = data_management
        self.issues = issues
        self.rfis = rfis

    # --- PROJECTS & FILES ---

    def get_projects(self, hub_id: Optional[str] = None, name_filter: Optional[str] = None, limit: Limit = 25) -> ToolResult:
        """Lists ACC projects. Without hub_id, projects from every accessible hub are returned."""
        try:
            hub_ids = [hub_id] if hub_id else [h["id"] for h in self.data_management.get_hubs()]
            projects = []
            for h_id in hub_ids:
                projects.extend(self.data_management.get_projects(h_id))
        except Exception as e:
            raise _failed("retrieve projects", e) from e

        if name_filter:
            projects = [p for p in projects if name_filter.lower() in p.get("attributes", {}).get("name", "").lower()]
        return ToolResult(
            content=formatting.format_projects(projects, limit),
            structured_content={"projects": projects, "total": len(projects)},
        )

    def get_top_folders(self, hub_id: NonEmpty, project_id: ProjectId) -> ToolResult:
        """Gets the top-level folders (Project Files, Plans, ...) of a project."""
        try:
            folders = self.data_management.get_top_folders(hub_id, project_id)
        except Exception as e:
            raise _failed("retrieve top folders", e) from e
        return ToolResult(content=formatting.format_top_folders(folders), structured_content={"folders": folders})

    def get_folder_contents(self, project_id: ProjectId, folder_id: NonEmpty, limit: Annotated[int, Field(ge=1, le=500)] = 50) -> ToolResult:
        """Lists files and subfolders in a folder. File IDs can be used as attachment URNs."""
        try:
            items = self.data_management.get_folder_contents(project_id, folder_id)
        except Exception as e:
            raise _failed("retrieve folder contents", e) from e
        return ToolResult(
            content=formatting.format_folder_contents(items, limit),
            structured_content={"items": items, "total": len(items)},
        )

    # --- ISSUES ---

    def get_issues(self, project_id: ProjectId, status: Optional[IssueStatus] = None, limit: Limit = 25, offset: Offset = 0) -> ToolResult:
        """Lists issues in a project, optionally filtered by status. Use offset to page."""
        try:
            result = self.issues.get_issues(project_id, status=status, limit=limit, offset=offset)
        except Exception as e:
            raise _failed("retrieve issues", e) from e

        issues = result.get("results", [])
        pagination = result.get("pagination", {})
        return ToolResult(
            content=formatting.format_issues(issues, pagination, limit, offset),
            structured_content={"issues": issues, "total": pagination.get("totalResults", len(issues)), "pagination": pagination},
        )

    def get_issue_types(self, project_id: ProjectId) -> ToolResult:
        """Lists issue types and their subtypes. Use a subtype ID when creating issues."""
        try:
            issue_types = self.issues.get_issue_types(project_id).get("results", [])
        except Exception as e:
            raise _failed("retrieve issue types", e) from e
        return ToolResult(content=formatting.format_issue_types(issue_types), structured_content={"issueTypes": issue_types})

    def create_issue(
        self,
        project_id: ProjectId,
        title: Annotated[str, Field(min_length=1, max_length=100)],
        issue_subtype_id: NonEmpty,
        status: IssueStatus,
        description: Optional[Annotated[str, Field(max_length=1000)]] = None,
        assigned_to: Optional[str] = None,
        assigned_to_type: Optional[AssigneeType] = None,
        due_date: Annotated[Optional[str], Field(description="ISO8601 date, e.g. 2025-01-15")] = None,
        start_date: Annotated[Optional[str], Field(description="ISO8601 date, e.g. 2025-01-10")] = None,
        location_id: Optional[str] = None,
        location_details: Optional[Annotated[str, Field(max_length=250)]] = None,
        root_cause_id: Optional[str] = None,
        published: Optional[bool] = None,
        watchers: Optional[List[str]] = None,
        custom_attributes: Optional[List[CustomAttribute]] = None,
        gps_coordinates: Optional[GpsCoordinates] = None,
    ) -> ToolResult:
        """
        Creates a new issue in an ACC project.

        Issues are created unpublished by default; set published=true to make
        them visible to all project members.
        """
        issue_data = {"title": title, "issueSubtypeId": issue_subtype_id, "status": status}
        issue_data.update(_drop_unset({
            "description": description,
            "assignedTo": assigned_to,
            "assignedToType": assigned_to_type,
            "dueDate": due_date,
            "startDate": start_date,
            "locationId": location_id,
            "locationDetails": location_details,
            "rootCauseId": root_cause_id,
            "published": published,
            "watchers": watchers,
            "customAttributes": custom_attributes,
            "gpsCoordinates": gps_coordinates,
        }))

        try:
            issue = self.issues.create_issue(project_id, issue_data)
        except Exception as e:
            raise _failed("create issue", e) from e
        return ToolResult(content=formatting.format_created_issue(issue), structured_content={"issue": issue})

    def get_issue_details(self, project_id: ProjectId, issue_id: NonEmpty, include_comments: bool = True, include_attachments: bool = True) -> ToolResult:
        """Retrieves one issue in full, with its comments and attachments."""
        try:
            issue = self.issues.get_issue(project_id, issue_id)
            if include_comments:
                issue["comments"] = self.issues.get_comments(project_id, issue_id)
            if include_attachments:
                issue["attachments"] = self.issues.get_attachments(project_id, issue_id)
        except Exception as e:
            raise _failed("retrieve issue details", e) from e
        return ToolResult(
            content=formatting.format_issue_details(issue, include_comments, include_attachments),
            structured_content={"issue": issue},
        )

    def update_issue(
        self,
        project_id: ProjectId,
        issue_id: NonEmpty,
        title: Optional[Annotated[str, Field(max_length=100)]] = None,
        status: Optional[IssueStatus] = None,
        description: Optional[Annotated[str, Field(max_length=1000)]] = None,
        assigned_to: Optional[str] = None,
        assigned_to_type: Optional[AssigneeType] = None,
        due_date: Optional[str] = None,
        start_date: Optional[str] = None,
        location_id: Optional[str] = None,
        location_details: Optional[Annotated[str, Field(max_length=250)]] = None,
        root_cause_id: Optional[str] = None,
        published: Optional[bool] = None,
        issue_subtype_id: Optional[str] = None,
        custom_attributes: Optional[List[CustomAttribute]] = None,
        gps_coordinates: Optional[GpsCoordinates] = None,
    ) -> ToolResult:
        """Updates an existing issue. Only the provided fields change."""
        update_data = _drop_unset({
            "title": title,
            "status": status,
            "description": description,
            "assignedTo": assigned_to,
            "assignedToType": assigned_to_type,
            "dueDate": due_date,
            "startDate": start_date,
            "locationId": location_id,
            "locationDetails": location_details,
            "rootCauseId": root_cause_id,
            "published": published,
            "issueSubtypeId": issue_subtype_id,
            "customAttributes": custom_attributes,
            "gpsCoordinates": gps_coordinates,
        })
        if not update_data:
            raise ToolError("❌ No fields to update. Please provide at least one field to update.")

        try:
            issue = self.issues.update_issue(project_id, issue_id, update_data)
        except Exception as e:
            raise _failed("update issue", e) from e
        return ToolResult(content=formatting.format_updated_issue(issue, update_data), structured_content={"issue": issue})

    def add_issue_comment(self, project_id: ProjectId, issue_id: NonEmpty, comment: NonEmpty) -> ToolResult:
        """Adds a comment to an issue. Comments are visible to everyone with access to the issue."""
        try:
            created = self.issues.create_comment(project_id, issue_id, comment)
        except Exception as e:
            raise _failed("add comment", e) from e
        return ToolResult(content=formatting.format_comment(created, issue_id), structured_content={"comment": created})

    def add_issue_attachment(self, project_id: ProjectId, issue_id: NonEmpty, urn: NonEmpty, name: Optional[str] = None) -> ToolResult:
        """
        Attaches a file that already exists in the project's Docs storage to an issue.
        Get file URNs with get_folder_contents.
        """
        display_name = name or urn.rsplit(":", 1)[-1]
        attachment = {
            "attachmentId": str(uuid.uuid4()),
            "displayName": display_name,
            "fileName": display_name,
            "attachmentType": "dm",
            "urn": urn,
        }
        try:
            result = self.issues.add_attachment(project_id, issue_id, attachment)
        except Exception as e:
            raise _failed("add attachment", e) from e
        return ToolResult(
            content=formatting.format_attachment(attachment, issue_id),
            structured_content={"attachment": attachment, "response": result},
        )

    # --- RFIs ---

    def list_rfis(
        self,
        project_id: ProjectId,
        search_text: Annotated[Optional[str], Field(description="Matches title, question or custom ID (client-side)")] = None,
        status: Annotated[Optional[str], Field(description="draft, open, answered, closed, ...")] = None,
        assigned_to: Annotated[Optional[str], Field(description="Assignee user ID")] = None,
        limit: Limit = 25,
        offset: Offset = 0,
    ) -> ToolResult:
        """Lists RFIs (Requests for Information) in a project, with optional filters and paging."""
        filters = {}
        if status:
            filters["status"] = [status]
        if assigned_to:
            filters["assignedTo"] = [assigned_to]

        try:
            result = self.rfis.search_rfis(project_id, filters, limit=limit, offset=offset)
        except Exception as e:
            raise _failed("retrieve RFIs", e) from e

        rfis = result.get("results", [])
        if search_text:
            needle = search_text.lower()
            rfis = [
                r for r in rfis
                if any(needle in (r.get(field) or "").lower() for field in ("title", "question", "customIdentifier"))
            ]

        pagination = result.get("pagination") or {}
        total = pagination.get("totalResults") or len(rfis)
        if not rfis:
            total = 0
        return ToolResult(
            content=formatting.format_rfis(rfis, total, limit, offset, search_text),
            structured_content={"rfis": rfis, "total": total, "pagination": pagination},
        )

    def get_rfi_types(self, project_id: ProjectId) -> ToolResult:
        """Lists the RFI types configured for a project. Call this before create_rfi."""
        try:
            result = self.rfis.get_rfi_types(project_id)
        except Exception as e:
            raise _failed("retrieve RFI types", e) from e

        rfi_types = result.get("results", []) if isinstance(result, dict) else (result or [])
        return ToolResult(content=formatting.format_rfi_types(rfi_types), structured_content={"rfiTypes": rfi_types})

    def get_rfi_details(self, project_id: ProjectId, rfi_id: Annotated[str, Field(min_length=1, description="The RFI ID")]) -> ToolResult:
        """Retrieves one RFI in full: question, responses, assignees, attachments and workflow."""
        try:
            rfi = self.rfis.get_rfi(project_id, rfi_id)
        except Exception as e:
            raise _failed("retrieve RFI details", e) from e
        return ToolResult(content=formatting.format_rfi_details(rfi), structured_content={"rfi": rfi})

    def create_rfi(
        self,
        project_id: ProjectId,
        title: Annotated[str, Field(min_length=1, max_length=250)],
        rfi_type_id: Annotated[str, Field(min_length=1, description="Use get_rfi_types to list valid IDs")],
        question: NonEmpty,
        assigned_to: Optional[str] = None,
        manager: Optional[str] = None,
        due_date: Annotated[Optional[str], Field(description="2026-01-15 or 2026-01-15T00:00:00.000Z")] = None,
        priority: Optional[RfiPriority] = None,
        status: Literal["draft", "open"] = "draft",
        location: Optional[str] = None,
        discipline: Optional[str] = None,
        category: Optional[str] = None,
        cost_impact: Optional[bool] = None,
        scheduled_impact: Optional[str] = None,
        custom_identifier: Optional[str] = None,
        attachment_urns: Optional[List[str]] = None,
        custom_attributes: Optional[List[CustomAttribute]] = None,
    ) -> ToolResult:
        """Creates a new RFI. Put all detail in the question; the API has no description field."""
        rfi_data = {"title": title, "rfiTypeId": rfi_type_id, "question": question, "status": status}
        if due_date is not None and "T" not in due_date:
            due_date = f"{due_date}T00:00:00.000Z"
        rfi_data.update(_drop_unset({
            "priority": priority,
            "assignedTo": assigned_to,
            "manager": manager,
            "dueDate": due_date,
            "location": location,
            "discipline": [discipline] if discipline is not None else None,
            "category": [category] if category is not None else None,
            "costImpact": cost_impact,
            "scheduledImpact": scheduled_impact,
            "customIdentifier": custom_identifier,
            "attachments": [{"urn": u} for u in attachment_urns] if attachment_urns else None,
            "customAttributes": custom_attributes,
        }))

        try:
            rfi = self.rfis.create_rfi(project_id, rfi_data)
        except Exception as e:
            raise _failed("create RFI", e) from e
        return ToolResult(content=formatting.format_created_rfi(rfi, question), structured_content={"rfi": rfi})


TOOL_NAMES = (
    "get_projects",
    "get_top_folders",
    "get_folder_contents",
    "get_issues",
    "get_issue_types",
    "create_issue",
    "get_issue_details",
    "update_issue",
    "add_issue_comment",
    "add_issue_attachment",
    "list_rfis",
    "get_rfi_types",
    "get_rfi_details",
    "create_rfi",
)
