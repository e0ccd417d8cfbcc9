import json
import logging
import sys

import config
from api import ApsApiError, IssuesClient, clean_id
from auth import AuthenticationError
from server import create_auth_provider

logger = logging.getLogger(__name__)


def describe_person(value) -> list:
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        lines = []
        for idx, person in enumerate(value, start=1):
            lines.append(f"{idx}. {person.get('name') or person.get('displayName') or person.get('email') or 'N/A'}")
            if person.get("email"):
                lines.append(f"   Email: {person['email']}")
        return lines
    return [
        f"Name: {value.get('name') or value.get('displayName') or 'N/A'}",
        f"Email: {value.get('email') or 'N/A'}",
        f"ID: {value.get('id') or value.get('userId') or 'N/A'}",
    ]


def print_issue(index: int, issue: dict):
    print("=" * 80)
    print(f"ISSUE {index}: {issue.get('title') or 'Untitled'}")
    print("=" * 80)

    print("\n📋 Basic Information:")
    print(f"   ID: {issue.get('id')}")
    print(f"   Status: {issue.get('status') or 'N/A'}")
    print(f"   Issue Type ID: {issue.get('issueTypeId') or 'N/A'}")

    if issue.get("description"):
        print(f"\n📝 Description/Message:\n   {issue['description']}")
    else:
        print("\n📝 Description/Message: (No description provided)")

    location = issue.get("location")
    if not location:
        print("\n📍 Location: (No location specified)")
    elif isinstance(location, dict) and "x" in location:
        print(f"\n📍 Location:\n   Coordinates: X={location['x']}, Y={location.get('y')}, Z={location.get('z', 'N/A')}")
    else:
        print(f"\n📍 Location:\n   {location if isinstance(location, str) else json.dumps(location)}")

    for label, key, empty in (("👤 Created By", "createdBy", "(Not available)"), ("👥 Assigned To", "assignedTo", "(Unassigned)")):
        if issue.get(key):
            print(f"\n{label}:")
            for line in describe_person(issue[key]):
                print(f"   {line}")
        else:
            print(f"\n{label}: {empty}")

    if issue.get("createdAt"):
        print(f"\n📅 Created At: {issue['createdAt']}")
    if issue.get("updatedAt"):
        print(f"   Updated At: {issue['updatedAt']}")
    if issue.get("dueDate"):
        print(f"   Due Date: {issue['dueDate']}")

    if issue.get("priority"):
        print(f"\n⚡ Priority: {issue['priority']}")

    counts = {k: len(issue[k]) for k in ("watchers", "attachments", "comments") if isinstance(issue.get(k), list)}
    if counts or issue.get("owner"):
        print("\n📎 Additional Information:")
        if issue.get("owner"):
            print(f"   Owner: {json.dumps(issue['owner'])}")
        for key, count in counts.items():
            print(f"   {key.capitalize()}: {count}")
    print()


def main():
    logging.basicConfig(level=logging.INFO, stream=sys.stderr)

    if len(sys.argv) != 2:
        print("Usage: python dump_issues.py <project_id>")
        return 2

    missing = config.missing_settings()
    if missing:
        print(f"❌ Error: missing environment variables: {', '.join(missing)}")
        return 1

    project_id = clean_id(sys.argv[1])
    client = IssuesClient(create_auth_provider())

    print("Authenticating...")
    try:
        client.auth.get_token()
        print("✅ Authentication successful (Token obtained).")
    except AuthenticationError as e:
        print(f"❌ Authentication failed: {e}")
        return 1

    print(f"=== Detailed Issues Information - Project {project_id} ===\n")
    issues = []
    offset = 0
    while True:
        try:
            page = client.get_issues(project_id, limit=100, offset=offset)
        except ApsApiError as e:
            print(f"❌ Could not fetch issues: {e}")
            return 1
        results = page.get("results", [])
        issues.extend(results)
        if len(results) < 100:
            break
        offset += 100

    print(f"Total Issues: {len(issues)}\n")
    if not issues:
        print("No issues found in this project.")
        return 0

    for index, issue in enumerate(issues, start=1):
        print_issue(index, issue)

    print("=" * 80)
    print("End of Issues List")
    print("=" * 80)
    return 0


if __name__ == "__main__":
    sys.exit(main())
