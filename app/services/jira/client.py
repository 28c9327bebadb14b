"""Jira Cloud REST API client for issue search."""

import base64
import logging
import re

import requests

logger = logging.getLogger(__name__)

SEARCH_PATH = "/rest/api/3/search"


class JiraAPIError(Exception):
    """Raised when the Jira API returns a non-success response."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"Jira API error: {status_code} - {message}")
        self.status_code = status_code


def build_auth_headers(email: str, api_token: str) -> dict[str, str]:
    """Basic auth headers for Jira Cloud (email + API token)."""
    encoded_key = base64.b64encode(f"{email}:{api_token}".encode("utf-8")).decode("ascii")
    return {
        "Authorization": f"Basic {encoded_key}",
        "Content-Type": "application/json",
    }


def _strip_quotes(entry: str) -> str:
    if len(entry) >= 2 and entry[0] == entry[-1] and entry[0] in "\"'":
        return entry[1:-1].strip()
    return entry


def parse_usernames(raw: str | None) -> list[str]:
    """Parse the usernames setting into a list.

    Accepts entries separated by commas and/or newlines, e.g.
    '"alice",\\n"bob"'. Each entry is trimmed and one pair of surrounding
    quotes is removed. Empty entries are dropped, so a blank setting gives
    an empty list.
    """
    if not raw:
        return []

    usernames = []
    for entry in re.split(r"\s*,\s*|\s*\n\s*", raw.strip()):
        name = _strip_quotes(entry.strip())
        if name:
            usernames.append(name)
    return usernames


def _jql_value(value: str) -> str:
    if not re.fullmatch(r"[\w-]+", value):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    return value


def build_jql(usernames: list[str], terminal_states: list[str]) -> str:
    """Build the JQL selecting open issues for the given assignees."""
    assignee_query = " OR ".join(f"assignee={_jql_value(name)}" for name in usernames)
    states = ", ".join(_jql_value(state) for state in terminal_states)
    return f"({assignee_query}) AND status NOT IN ({states}) ORDER BY created DESC"


def search_issues(
    base_url: str,
    headers: dict[str, str],
    jql: str,
    max_results: int = 1000,
    timeout: float = 30,
) -> list[dict]:
    """Run one JQL search and return the issue records."""
    url = f"https://{base_url}{SEARCH_PATH}"
    logger.debug(f"Jira search: {jql}")

    response = requests.get(
        url,
        headers=headers,
        params={"jql": jql, "maxResults": max_results},
        timeout=timeout,
    )

    if response.status_code != 200:
        logger.error(f"HTTP {response.status_code}: {response.text}")
        raise JiraAPIError(response.status_code, response.text)

    data = response.json()
    issues = data.get("issues")
    if not isinstance(issues, list):
        raise JiraAPIError(response.status_code, "response has no 'issues' list")

    total = data.get("total")
    if isinstance(total, int) and total > len(issues):
        logger.warning(f"Jira returned {len(issues)} of {total} matching issues")

    return issues
