"""Text renderings of ACC payloads, as shown to the agent."""
import math
from typing import Any, Dict, List, Optional

RULE = "═══════════════════════════════════════"


def display_user(value: Any, default: str = "N/A") -> str:
    """Users come back either as plain IDs or as {id, name, email} objects."""
    if not value:
        return default
    if isinstance(value, dict):
        return value.get("name") or value.get("email") or f"User ID: {value.get('id', 'Unknown')}"
    return str(value)


def _join_list(value: Any, default: str) -> str:
    if not value:
        return default
    if isinstance(value, list):
        return ", ".join(str(v) for v in value)
    return str(value)


def _optional_lines(*lines: Optional[str]) -> str:
    return "".join(f"{line}\n" for line in lines if line)


# --- PROJECTS & FILES ---

def format_projects(projects: List[Dict[str, Any]], limit: int) -> str:
    if not projects:
        return "No projects found."
    output = f"🏗️ **Found {len(projects)} projects:**\n"
    for p in projects[:limit]:
        output += f"- {p.get('attributes', {}).get('name', '')} (ID: {p.get('id')})\n"
    if len(projects) > limit:
        output += f"... and {len(projects) - limit} more (raise limit or use name_filter)\n"
    return output


def format_top_folders(folders: List[Dict[str, Any]]) -> str:
    if not folders:
        return "No top folders found."
    output = "📁 Top Level Folders:\n"
    for f in folders:
        attrs = f.get("attributes", {})
        output += f"- {attrs.get('displayName') or attrs.get('name')} (ID: {f['id']})\n"
    return output


def format_folder_contents(items: List[Dict[str, Any]], limit: int) -> str:
    if not items:
        return "📂 Folder is empty."
    output = f"📂 Contents ({len(items)} entries):\n"
    for i in items[:limit]:
        kind = "folder" if i.get("type") == "folders" else "file"
        output += f"- [{kind}] {i['attributes'].get('displayName')} (ID: {i['id']})\n"
    if len(items) > limit:
        output += f"... and {len(items) - limit} more\n"
    return output


# --- ISSUES ---

def format_issues(issues: List[Dict[str, Any]], pagination: Dict[str, Any], limit: int, offset: int) -> str:
    if not issues:
        return "📋 No issues found matching your criteria."
    total = pagination.get("totalResults") or len(issues)
    output = f"📋 Issues in Project\n{RULE}\nFound {len(issues)} of {total} total\n"
    for index, issue in enumerate(issues, start=offset + 1):
        output += (
            f"\n{index}. 🆔 #{issue.get('displayId', 'N/A')} {issue.get('title') or 'Untitled'}\n"
            f"   ID: {issue.get('id')}\n"
            f"   Status: {issue.get('status') or 'N/A'}\n"
            f"   Assigned To: {display_user(issue.get('assignedTo'), 'Unassigned')}\n"
            f"   Due Date: {issue.get('dueDate') or 'Not set'}\n"
        )
    output += _pagination_footer(total, limit, offset, "issues")
    return output


def format_issue_types(issue_types: List[Dict[str, Any]]) -> str:
    if not issue_types:
        return "📋 No issue types found in this project."
    output = f"📋 Issue Types\n{RULE}\n"
    for t in issue_types:
        state = "✅ Active" if t.get("isActive", True) else "❌ Inactive"
        output += f"\n- **{t.get('title')}** (ID: {t.get('id')}) {state}\n"
        for s in t.get("subtypes") or []:
            output += f"  • {s.get('title')} [{s.get('code', '')}] (Subtype ID: {s.get('id')})\n"
    output += "\n💡 Use a Subtype ID as issue_subtype_id when creating issues"
    return output


def format_created_issue(issue: Dict[str, Any]) -> str:
    published = "Yes" if issue.get("published") else "No (only visible to creator/assignee)"
    return (
        "✅ Issue created successfully!\n"
        f"- ID: {issue.get('id')}\n"
        f"- Display ID: {issue.get('displayId')}\n"
        f"- Title: {issue.get('title')}\n"
        f"- Status: {issue.get('status')}\n"
        f"- Published: {published}\n"
        + _optional_lines(
            issue.get("assignedTo") and f"- Assigned to: {issue['assignedTo']} ({issue.get('assignedToType')})",
            issue.get("dueDate") and f"- Due date: {issue['dueDate']}",
        )
        + f"- Created at: {issue.get('createdAt')}\n"
        f"- Created by: {issue.get('createdBy')}"
    )


def format_updated_issue(issue: Dict[str, Any], changes: Dict[str, Any]) -> str:
    changed = "\n".join(f"- {key}: {value}" for key, value in changes.items())
    return (
        "✅ Issue updated successfully!\n"
        f"- ID: {issue.get('id')}\n"
        f"- Display ID: {issue.get('displayId')}\n"
        f"- Title: {issue.get('title')}\n"
        f"- Status: {issue.get('status')}\n\n"
        f"Updated fields:\n{changed}\n\n"
        f"- Updated at: {issue.get('updatedAt')}\n"
        f"- Updated by: {issue.get('updatedBy')}"
    )


def format_issue_details(issue: Dict[str, Any], include_comments: bool = True, include_attachments: bool = True) -> str:
    gps = issue.get("gpsCoordinates")
    output = (
        f"📋 Issue Details\n{RULE}\n\n"
        "🆔 Basic Information:\n"
        f"- Issue ID: {issue.get('id')}\n"
        f"- Display ID: {issue.get('displayId') or 'N/A'}\n"
        f"- Title: {issue.get('title')}\n"
        f"- Status: {issue.get('status')}\n"
        f"- Published: {'Yes' if issue.get('published') else 'No'}\n"
        f"- Issue Type: {issue.get('issueTypeId') or 'N/A'}\n"
        f"- Issue Subtype: {issue.get('issueSubtypeId') or 'N/A'}\n\n"
        f"📝 Description:\n{issue.get('description') or 'No description provided'}\n\n"
        "👤 Assignment:\n"
        f"- Assigned To: {display_user(issue.get('assignedTo'), 'Unassigned')}\n"
        f"- Assigned Type: {issue.get('assignedToType') or 'N/A'}\n"
        f"- Owner: {display_user(issue.get('owner'))}\n\n"
        "📅 Dates:\n"
        f"- Created: {issue.get('createdAt')}\n"
        f"- Created By: {display_user(issue.get('createdBy'))}\n"
        f"- Updated: {issue.get('updatedAt') or 'N/A'}\n"
        f"- Due Date: {issue.get('dueDate') or 'Not set'}\n"
        f"- Start Date: {issue.get('startDate') or 'Not set'}\n"
        f"- Closed Date: {issue.get('closedAt') or 'Not closed'}\n"
        f"- Closed By: {display_user(issue.get('closedBy'))}\n\n"
        "📍 Location:\n"
        f"- Location ID: {issue.get('locationId') or 'Not specified'}\n"
        f"- Location Details: {issue.get('locationDetails') or 'Not specified'}\n"
        + (f"- GPS: {gps.get('latitude')}, {gps.get('longitude')}\n" if gps else "")
        + "\n🔍 Additional Details:\n"
        f"- Root Cause: {issue.get('rootCauseId') or 'Not specified'}\n"
        f"- Priority: {issue.get('priority') or 'Not set'}"
    )

    watchers = issue.get("watchers") or []
    if watchers:
        output += f"\n\n👥 Watchers ({len(watchers)}):\n"
        output += "".join(f"- {w}\n" for w in watchers)

    custom_attributes = issue.get("customAttributes") or []
    if custom_attributes:
        output += "\n\n⚙️ Custom Attributes:\n"
        output += "".join(f"- {a.get('attributeDefinitionId')}: {a.get('value')}\n" for a in custom_attributes)

    if include_comments:
        comments = issue.get("comments") or []
        if comments:
            output += f"\n\n💬 Comments ({len(comments)}):\n"
            for index, c in enumerate(comments, start=1):
                output += f"\n{index}. {display_user(c.get('createdBy'))} ({c.get('createdAt')}):\n   {c.get('body')}\n"
        else:
            output += "\n\n💬 Comments: No comments yet"

    if include_attachments:
        attachments = issue.get("attachments") or []
        if attachments:
            output += f"\n\n📎 Attachments ({len(attachments)}):\n"
            for index, a in enumerate(attachments, start=1):
                output += (
                    f"{index}. {a.get('displayName') or a.get('name')} ({a.get('attachmentType') or a.get('type') or 'unknown type'})\n"
                    f"   - URN: {a.get('urn') or a.get('storageUrn')}\n"
                    f"   - Uploaded: {a.get('createdAt')}\n"
                    f"   - Uploaded By: {display_user(a.get('createdBy'))}\n"
                )
        else:
            output += "\n\n📎 Attachments: No attachments"

    return output


def format_comment(comment: Dict[str, Any], issue_id: str) -> str:
    return (
        "✅ Comment added successfully!\n"
        f"- Comment ID: {comment.get('id')}\n"
        f"- Issue ID: {issue_id}\n"
        f"- Created at: {comment.get('createdAt')}\n"
        f"- Created by: {comment.get('createdBy')}\n\n"
        f"Comment:\n\"{comment.get('body')}\""
    )


def format_attachment(attachment: Dict[str, Any], issue_id: str) -> str:
    return (
        "✅ Attachment linked successfully!\n"
        f"- Issue ID: {issue_id}\n"
        f"- Name: {attachment.get('displayName')}\n"
        f"- URN: {attachment.get('urn')}"
    )


# --- RFIs ---

def format_rfis(rfis: List[Dict[str, Any]], total: int, limit: int, offset: int, search_text: Optional[str] = None) -> str:
    if not rfis:
        return "📋 No RFIs found matching your criteria."

    found = f'matching "{search_text}"' if search_text else f"RFI(s) of {total} total"
    output = f"📋 RFIs in Project\n{RULE}\nFound {len(rfis)} {found}\n"
    if offset > 0:
        output += f"Showing results {offset + 1} to {offset + len(rfis)}\n"
    if search_text:
        output += "⚠️ Text search performed client-side (API limitation)\n"

    for index, rfi in enumerate(rfis, start=1):
        output += (
            f"\n{index}. 🆔 {rfi.get('customIdentifier') or rfi.get('id')}\n"
            f"   Title: {rfi.get('title')}\n"
            f"   Status: {rfi.get('status') or 'N/A'}\n"
            f"   Type: {rfi.get('rfiTypeId') or 'N/A'}\n"
            f"   Assigned To: {display_user(rfi.get('assignedTo'), 'Unassigned')}\n"
            f"   Due Date: {rfi.get('dueDate') or 'Not set'}\n"
            f"   Created: {rfi.get('createdAt')} by {display_user(rfi.get('createdBy'))}\n"
        )

    output += _pagination_footer(total, limit, offset, "RFIs")
    return output


def format_rfi_types(rfi_types: List[Dict[str, Any]]) -> str:
    if not rfi_types:
        return "📋 No RFI types found in this project.\n\n💡 RFI types may need to be configured in the ACC project settings."
    output = f"📋 Available RFI Types\n{RULE}\nFound {len(rfi_types)} RFI type(s):\n"
    for index, t in enumerate(rfi_types, start=1):
        output += (
            f"\n{index}. {t.get('name') or 'Unnamed Type'}\n"
            f"   ID: {t.get('id')}\n"
            f"   Description: {t.get('description') or 'No description'}\n"
            + _optional_lines(
                t.get("isDefault") and "   ⭐ Default Type",
                "   ✅ Active" if t.get("isActive") is not False else "   ❌ Inactive",
            )
        )
    output += "\n💡 Use these IDs when creating RFIs with create_rfi"
    return output


def format_created_rfi(rfi: Dict[str, Any], question: str) -> str:
    return (
        "✅ RFI created successfully!\n"
        f"- ID: {rfi.get('id')}\n"
        f"- Custom ID: {rfi.get('customIdentifier') or 'Auto-generated'}\n"
        f"- Title: {rfi.get('title')}\n"
        f"- Status: {rfi.get('status')}\n"
        f"- Priority: {rfi.get('priority') or 'Normal'}\n"
        + _optional_lines(
            rfi.get("assignedTo") and f"- Assigned to: {display_user(rfi['assignedTo'])}",
            rfi.get("manager") and f"- Manager: {display_user(rfi['manager'])}",
            rfi.get("dueDate") and f"- Due date: {rfi['dueDate']}",
        )
        + f"- Created at: {rfi.get('createdAt')}\n"
        f"- Created by: {display_user(rfi.get('createdBy'))}\n\n"
        f"Question:\n\"{question}\"\n\n"
        f"💡 Tip: Use get_rfi_details with rfi_id=\"{rfi.get('id')}\" to view full details"
    )


def format_rfi_details(rfi: Dict[str, Any]) -> str:
    output = (
        f"📋 RFI Details\n{RULE}\n\n"
        "🆔 Basic Information:\n"
        f"- RFI ID: {rfi.get('id')}\n"
        f"- Custom ID: {rfi.get('customIdentifier') or 'N/A'}\n"
        f"- Title: {rfi.get('title')}\n"
        f"- Status: {rfi.get('status')}\n"
        f"- RFI Type: {rfi.get('rfiTypeId') or 'N/A'}\n\n"
        f"❓ Question:\n{rfi.get('question') or 'No question provided'}\n\n"
        "👤 Assignment:\n"
        f"- Assigned To: {display_user(rfi.get('assignedTo'), 'Unassigned')}\n"
        f"- Manager: {display_user(rfi.get('manager'))}\n"
        f"- Owner: {display_user(rfi.get('owner'))}\n"
        f"- Created By: {display_user(rfi.get('createdBy'))}\n\n"
        "📅 Dates:\n"
        f"- Created: {rfi.get('createdAt')}\n"
        f"- Updated: {rfi.get('updatedAt') or 'N/A'}\n"
        f"- Due Date: {rfi.get('dueDate') or 'Not set'}\n"
        f"- Scheduled Impact: {rfi.get('scheduledImpact') or 'None'}\n\n"
        "📍 Location:\n"
        f"- Location: {rfi.get('location') or 'Not specified'}\n"
        f"- Discipline: {_join_list(rfi.get('discipline'), 'Not specified')}\n"
        f"- Category: {_join_list(rfi.get('category'), 'Not specified')}\n\n"
        "🔍 Workflow Information:\n"
        f"- Current Step: {rfi.get('workflowStep') or 'N/A'}\n"
        f"- Priority: {rfi.get('priority') or 'Normal'}\n"
        f"- Official Response Required: {'Yes' if rfi.get('officialResponseRequired') else 'No'}\n"
        f"- Cost Impact: {rfi.get('costImpact') or 'None'}"
    )

    responses = rfi.get("responses") or []
    if responses:
        output += f"\n\n💬 Responses ({len(responses)}):\n"
        for index, r in enumerate(responses, start=1):
            official = " (OFFICIAL)" if r.get("isOfficial") else ""
            output += (
                f"\n{index}. {display_user(r.get('createdBy'))} ({r.get('createdAt')}):\n"
                f"   {r.get('text') or r.get('body')}\n"
                f"   Type: {r.get('type') or 'Individual'}{official}"
            )
    else:
        output += "\n\n💬 Responses: No responses yet"

    attachments = rfi.get("attachments") or []
    if attachments:
        output += f"\n\n📎 Attachments ({len(attachments)}):\n"
        for index, a in enumerate(attachments, start=1):
            size = f"{round(a['size'] / 1024)}KB" if a.get("size") else "N/A"
            output += (
                f"{index}. {a.get('name') or a.get('fileName')} ({a.get('type') or 'unknown'})\n"
                f"   - URN: {a.get('urn') or a.get('id')}\n"
                f"   - Size: {size}\n"
                f"   - Uploaded: {a.get('createdAt') or 'N/A'}\n"
            )
    else:
        output += "\n\n📎 Attachments: No attachments"

    custom_attributes = rfi.get("customAttributes") or []
    if custom_attributes:
        output += "\n\n⚙️ Custom Attributes:\n"
        output += "".join(f"- {a.get('name') or a.get('attributeDefinitionId')}: {a.get('value')}\n" for a in custom_attributes)

    permitted = rfi.get("permittedActions") or []
    if permitted:
        output += f"\n\n🔓 Permitted Actions: {', '.join(permitted)}"

    return output


def _pagination_footer(total: int, limit: int, offset: int, noun: str) -> str:
    if total <= limit:
        return ""
    current_page = offset // limit + 1
    total_pages = math.ceil(total / limit)
    footer = f"\n📄 Page {current_page} of {total_pages}"
    if offset + limit < total:
        footer += f"\n💡 Tip: Use offset={offset + limit} to see the next {min(limit, total - offset - limit)} {noun}"
    return footer
