"""Read-only access to the Linear GraphQL API.

Nothing in this module mutates Linear: every query is a read.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Final

import requests

from . import utils
from .exceptions import ApiError
from .models import LinearInitiative, LinearIssue, LinearProject, LinearTeam

# Module-wide logger
logger: logging.Logger = logging.getLogger(__name__)

LINEAR_API_URL: Final[str] = "https://api.linear.app/graphql"
ISSUE_PAGE_SIZE: Final[int] = 100
REQUEST_TIMEOUT: Final[int] = 60

_TOKEN_ENV_VAR: Final[str] = "LINEAR_API_TOKEN"  # noqa: S105
_DEFAULT_TOKEN_PASS_PATH: Final[str] = "linear/api_token"  # noqa: S105

TEAMS_QUERY: Final[str] = """
query {
  teams {
    nodes { id name key archivedAt }
  }
}
"""

INITIATIVES_QUERY: Final[str] = """
query {
  initiatives {
    nodes {
      id name description status targetDate createdAt updatedAt
      documents(first: 20) { nodes { title url } }
    }
  }
}
"""

PROJECTS_QUERY: Final[str] = """
query($teamId: String!) {
  team(id: $teamId) {
    projects {
      nodes {
        id name description state
        status { id name type }
        startDate targetDate progress completedAt canceledAt createdAt updatedAt priority
        lead { id name email }
        members(first: 20) { nodes { id name email } }
        teams(first: 10) { nodes { id name key } }
        labels(first: 20) { nodes { id name } }
        initiatives(first: 10) { nodes { id name } }
        documents(first: 20) { nodes { title url } }
      }
    }
  }
}
"""

ISSUES_QUERY: Final[str] = """
query($teamId: String!, $after: String, $first: Int!) {
  team(id: $teamId) {
    issues(first: $first, after: $after) {
      nodes {
        id identifier title description
        state { id name type }
        priority
        assignee { id name email }
        project { id name }
        labels { nodes { id name } }
        estimate dueDate createdAt updatedAt startedAt completedAt
        cycle { id name number }
        parent { id }
        children { nodes { id title } }
      }
      pageInfo { hasNextPage endCursor }
    }
  }
}
"""


def get_token(pass_path: str | None = None) -> str | None:
    """Get Linear token from pass path, env var LINEAR_API_TOKEN, or default pass location."""
    if pass_path:
        return utils.get_pass_value(pass_path)

    token: str | None = os.environ.get(_TOKEN_ENV_VAR)
    if token and token.strip():
        return token.strip()

    try:
        return utils.get_pass_value(_DEFAULT_TOKEN_PASS_PATH)
    except (ValueError, utils.PassError):
        logger.warning("No Linear token specified nor found")
        return None


class LinearClient:
    """Thin GraphQL client for the Linear API."""

    def __init__(self, token: str, *, session: requests.Session | None = None, url: str = LINEAR_API_URL) -> None:
        self.url: str = url
        self.session: requests.Session = session or requests.Session()
        self.session.headers.update({"Authorization": token, "Content-Type": "application/json"})

    def execute(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """Run a GraphQL query and return its ``data`` member.

        Raises:
            ApiError: On network failure, non-2xx status, or GraphQL errors
        """
        payload: dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        try:
            response = self.session.post(self.url, json=payload, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as e:
            msg = f"Linear request failed: {e}"
            raise ApiError(msg) from e

        if not response.ok:
            msg = f"Linear HTTP error {response.status_code}: {response.text}"
            raise ApiError(msg, status=response.status_code, body=response.text)

        try:
            body: dict[str, Any] = response.json()
        except ValueError as e:
            msg = f"Linear returned a non-JSON response: {response.text[:200]}"
            raise ApiError(msg, status=response.status_code, body=response.text) from e

        errors = body.get("errors")
        if errors:
            messages = ", ".join(str(error.get("message", error)) for error in errors)
            msg = f"GraphQL errors: {messages}"
            raise ApiError(msg, status=response.status_code, body=response.text)

        return body.get("data") or {}

    def get_teams(self) -> list[LinearTeam]:
        """Return all active (non-archived) teams, sub-teams included."""
        data = self.execute(TEAMS_QUERY)
        teams = [LinearTeam.from_api(node) for node in data.get("teams", {}).get("nodes", [])]
        return [team for team in teams if not team.archived]

    def get_initiatives(self) -> list[LinearInitiative]:
        data = self.execute(INITIATIVES_QUERY)
        return [LinearInitiative.from_api(node) for node in data.get("initiatives", {}).get("nodes", [])]

    def get_projects(self, team_id: str) -> list[LinearProject]:
        data = self.execute(PROJECTS_QUERY, {"teamId": team_id})
        team = data.get("team") or {}
        return [LinearProject.from_api(node) for node in team.get("projects", {}).get("nodes", [])]

    def get_issues(self, team_id: str) -> list[LinearIssue]:
        """Return every issue of a team, following the cursor until exhausted."""
        issues: list[LinearIssue] = []
        cursor: str | None = None

        while True:
            data = self.execute(ISSUES_QUERY, {"teamId": team_id, "after": cursor, "first": ISSUE_PAGE_SIZE})
            connection = (data.get("team") or {}).get("issues") or {}
            issues.extend(LinearIssue.from_api(node) for node in connection.get("nodes", []))

            page_info = connection.get("pageInfo") or {}
            if not page_info.get("hasNextPage"):
                break
            cursor = page_info.get("endCursor")
            if cursor is None:
                logger.warning(f"Linear reported more issues for team {team_id} but no cursor; stopping")
                break

        logger.info(f"Fetched {len(issues)} issues from Linear team {team_id}")
        return issues


def get_client(token: str) -> LinearClient:
    """Get a Linear client using the token."""
    return LinearClient(token)
