"""Map Jira issue records onto Task entities."""

from pydantic import BaseModel

from services.jira.rich_text import extract_text

UNASSIGNED = "Unassigned"
NO_SPRINT_NAME = "No Name"
DEFAULT_SPRINT_FIELD = "customfield_10020"


class MalformedIssueError(ValueError):
    """Raised when an issue record is missing required fields."""


class Task(BaseModel):
    """A Jira issue as it is rendered into the vault."""

    id: str
    state: str
    title: str
    type: str
    assigned_to: str = UNASSIGNED
    link: str
    desc: str = ""
    sprint_name: str = NO_SPRINT_NAME


def build_issue_link(base_url: str, issue_key: str) -> str:
    return f"https://{base_url}/browse/{issue_key}"


def _sprint_name(sprints) -> str:
    if isinstance(sprints, list) and sprints:
        first = sprints[0]
        if isinstance(first, dict) and first.get("name"):
            return first["name"]
    return NO_SPRINT_NAME


def issue_to_task(issue: dict, base_url: str, sprint_field: str = DEFAULT_SPRINT_FIELD) -> Task:
    """Convert one issue from the Jira search API into a Task.

    Optional fields (assignee, description, sprint) fall back to
    "Unassigned", "" and "No Name". Missing required fields raise
    MalformedIssueError.
    """
    try:
        key = issue["key"]
        fields = issue["fields"]
        state = fields["status"]["name"]
        title = fields["summary"]
        issue_type = fields["issuetype"]["name"]
    except (KeyError, TypeError) as e:
        raise MalformedIssueError(f"Malformed issue record: missing {e}") from e

    assignee = fields.get("assignee")
    assignee_name = assignee.get("displayName") if assignee else None

    description = fields.get("description")
    description_content = description.get("content", []) if description else []

    return Task(
        id=key,
        state=state,
        title=title or "",
        type=issue_type,
        assigned_to=assignee_name or UNASSIGNED,
        link=build_issue_link(base_url, key),
        desc=extract_text(description_content),
        sprint_name=_sprint_name(fields.get(sprint_field)),
    )


def map_issues(issues: list[dict], base_url: str, sprint_field: str = DEFAULT_SPRINT_FIELD) -> list[Task]:
    """Map a list of issue records, preserving order."""
    return [issue_to_task(issue, base_url, sprint_field) for issue in issues]
