"""Tests for the Jira search client.

requests.get is mocked, so no calls reach Jira.
"""

import base64
import os
import sys
from unittest.mock import MagicMock, patch

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.jira.client import (
    JiraAPIError,
    build_auth_headers,
    build_jql,
    parse_usernames,
    search_issues,
)

MODULE = "services.jira.client"


# --- Auth header ---

def test_auth_header_is_basic_base64_of_email_and_token():
    headers = build_auth_headers("me@example.com", "secret-token")
    expected = base64.b64encode(b"me@example.com:secret-token").decode()
    assert headers["Authorization"] == f"Basic {expected}"
    assert headers["Content-Type"] == "application/json"


# --- Usernames ---

def test_parse_quoted_usernames_on_separate_lines():
    assert parse_usernames('"alice",\n"bob"') == ["alice", "bob"]


def test_parse_usernames_trims_whitespace():
    assert parse_usernames('  "alice" ,\n   "bob"  \n') == ["alice", "bob"]


def test_parse_single_quoted_and_unquoted_usernames():
    assert parse_usernames("'alice', bob") == ["alice", "bob"]


def test_parse_empty_usernames():
    assert parse_usernames("") == []
    assert parse_usernames(None) == []
    assert parse_usernames(' ,\n ') == []


# --- JQL ---

def test_build_jql():
    jql = build_jql(["alice", "bob"], ["Closed", "Rejected", "Done", "Deployed", "Live"])
    assert jql == (
        "(assignee=alice OR assignee=bob) AND status NOT IN "
        "(Closed, Rejected, Done, Deployed, Live) ORDER BY created DESC"
    )


def test_build_jql_quotes_values_with_spaces():
    jql = build_jql(["Alice Smith"], ["Won't Do"])
    assert jql == '(assignee="Alice Smith") AND status NOT IN ("Won\'t Do") ORDER BY created DESC'


def test_build_jql_quotes_emails_and_escapes_quotes():
    jql = build_jql(["a@b.com", "PROJ-bot"], ['Say "done"', "a\\b"])
    assert jql == (
        '(assignee="a@b.com" OR assignee=PROJ-bot) AND status NOT IN '
        '("Say \\"done\\"", "a\\\\b") ORDER BY created DESC'
    )


# --- Search ---

def _response(status_code=200, payload=None, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    response.text = text
    return response


def test_search_issues_sends_query():
    issues = [{"key": "PROJ-1"}]
    with patch(f"{MODULE}.requests.get", return_value=_response(payload={"issues": issues})) as mock_get:
        result = search_issues("acme.atlassian.net", {"Authorization": "Basic x"}, "assignee=alice")

    assert result == issues
    args, kwargs = mock_get.call_args
    assert args[0] == "https://acme.atlassian.net/rest/api/3/search"
    assert kwargs["params"] == {"jql": "assignee=alice", "maxResults": 1000}
    assert kwargs["headers"] == {"Authorization": "Basic x"}


def test_search_issues_raises_on_http_error():
    with patch(f"{MODULE}.requests.get", return_value=_response(401, text="Unauthorized")):
        with pytest.raises(JiraAPIError) as exc_info:
            search_issues("acme.atlassian.net", {}, "assignee=alice")
    assert exc_info.value.status_code == 401


def test_search_issues_raises_on_unexpected_payload():
    with patch(f"{MODULE}.requests.get", return_value=_response(payload={"errorMessages": []})):
        with pytest.raises(JiraAPIError):
            search_issues("acme.atlassian.net", {}, "assignee=alice")
