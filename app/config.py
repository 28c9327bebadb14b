"""Shared configuration: single source of truth for env-based settings.

Import from here instead of calling os.getenv() directly in each file.
"""

import os
import re

import pytz
import redis
from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

load_dotenv()

# Timezone
SYSTEM_TIMEZONE_STR = os.getenv("SYSTEM_TIMEZONE", "America/Los_Angeles")
SYSTEM_TZ = pytz.timezone(SYSTEM_TIMEZONE_STR)

# Redis
redis_client = redis.Redis(
    host=os.getenv("REDIS_HOST", "localhost"),
    port=int(os.getenv("REDIS_PORT", 6379)),
    password=os.getenv("REDIS_PASSWORD", None),
    decode_responses=True,
)

# Board columns, highest priority first
DEFAULT_COLUMN_ORDER = [
    "Backlog",
    "Blocked",
    "In Analysis",
    "To Do",
    "Ready for Engineering",
    "Ready to Start",
    "In Progress",
    "In Validation",
]

# Statuses never fetched from Jira
DEFAULT_TERMINAL_STATES = ["Closed", "Rejected", "Done", "Deployed", "Live"]


def _split_list(value: str | None, default: list[str]) -> list[str]:
    if value is None:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


class SyncSettings(BaseModel):
    """Settings for one Jira -> Obsidian sync run."""

    base_url: str = "{yourserver}.atlassian.net"
    usernames: str = ""
    email: str = ""
    api_token: str = ""
    sprint_field: str = "customfield_10020"
    max_results: int = 1000
    timeout: float = 30.0
    terminal_states: list[str] = DEFAULT_TERMINAL_STATES

    target_folder: str = "Jira"
    note_name: str = "{{TASK_ID}}"
    note_template: str | None = None
    note_write_mode: str = "merge"
    board_id: str = "Jira"
    column_order: list[str] = DEFAULT_COLUMN_ORDER

    excluded_states: list[str] = ["PM Evaluation", "Ready for Engineering"]
    gated_state: str = "Backlog"
    excluded_assignee_substring: str = ""

    @field_validator("note_name")
    @classmethod
    def note_name_has_task_id(cls, value: str) -> str:
        # Notes are found again by the task id in their file name
        if not re.search(r"\{\{\s*TASK_ID\s*\}\}", value):
            raise ValueError("NOTE_NAME_PATTERN must contain {{TASK_ID}}")
        return value

    @classmethod
    def from_env(cls) -> "SyncSettings":
        """Build settings from environment variables."""
        note_template = None
        template_path = os.getenv("NOTE_TEMPLATE_PATH")
        if template_path:
            with open(template_path, encoding="utf-8") as f:
                note_template = f.read()

        return cls(
            base_url=os.getenv("JIRA_BASE_URL", "{yourserver}.atlassian.net"),
            usernames=os.getenv("JIRA_USERNAMES", ""),
            email=os.getenv("JIRA_EMAIL", ""),
            api_token=os.getenv("JIRA_API_TOKEN", ""),
            sprint_field=os.getenv("JIRA_SPRINT_FIELD", "customfield_10020"),
            max_results=int(os.getenv("JIRA_MAX_RESULTS", 1000)),
            timeout=float(os.getenv("JIRA_TIMEOUT", 30)),
            terminal_states=_split_list(os.getenv("JIRA_TERMINAL_STATES"), DEFAULT_TERMINAL_STATES),
            target_folder=os.getenv("OBSIDIAN_TARGET_FOLDER", "Jira"),
            note_name=os.getenv("NOTE_NAME_PATTERN", "{{TASK_ID}}"),
            note_template=note_template,
            note_write_mode=os.getenv("NOTE_WRITE_MODE", "merge"),
            board_id=os.getenv("KANBAN_BOARD_ID", "Jira"),
            column_order=_split_list(os.getenv("JIRA_COLUMN_ORDER"), DEFAULT_COLUMN_ORDER),
            excluded_states=_split_list(
                os.getenv("TASK_FILTER_EXCLUDED_STATES"),
                ["PM Evaluation", "Ready for Engineering"],
            ),
            gated_state=os.getenv("TASK_FILTER_GATED_STATE", "Backlog"),
            excluded_assignee_substring=os.getenv("TASK_FILTER_ASSIGNEE_SUBSTRING", ""),
        )


# Vault backend
VAULT_BACKEND = os.getenv("VAULT_BACKEND", "dropbox")
LOCAL_VAULT_PATH = os.getenv("LOCAL_VAULT_PATH")
DROPBOX_OBSIDIAN_VAULT_PATH = os.getenv("DROPBOX_OBSIDIAN_VAULT_PATH")

# Scheduler / API
JIRA_SYNC_CRON_MINUTE = os.getenv("JIRA_SYNC_CRON_MINUTE", "*/30")
SYNC_API_KEY = os.getenv("SYNC_API_KEY")
