"""Access to the Shortcut REST API (v3).

The migrator only ever creates or updates Shortcut entities; no delete
endpoint is wrapped here.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Final

import requests

from . import utils
from .exceptions import ApiError
from .models import (
    ShortcutEpic,
    ShortcutIteration,
    ShortcutLabel,
    ShortcutMember,
    ShortcutObjective,
    ShortcutStory,
    ShortcutTeam,
    Workflow,
)

# Module-wide logger
logger: logging.Logger = logging.getLogger(__name__)

SHORTCUT_API_URL: Final[str] = "https://api.app.shortcut.com/api/v3"
SHORTCUT_APP_URL: Final[str] = "https://app.shortcut.com"
REQUEST_TIMEOUT: Final[int] = 60

_TOKEN_ENV_VAR: Final[str] = "SHORTCUT_API_TOKEN"  # noqa: S105
_DEFAULT_TOKEN_PASS_PATH: Final[str] = "shortcut/api_token"  # noqa: S105


def get_token(pass_path: str | None = None) -> str | None:
    """Get Shortcut token from pass path, env var SHORTCUT_API_TOKEN, or default pass location."""
    if pass_path:
        return utils.get_pass_value(pass_path)

    token: str | None = os.environ.get(_TOKEN_ENV_VAR)
    if token and token.strip():
        return token.strip()

    try:
        return utils.get_pass_value(_DEFAULT_TOKEN_PASS_PATH)
    except (ValueError, utils.PassError):
        logger.warning("No Shortcut token specified nor found")
        return None


def entity_url(kind: str, entity_id: int, workspace: str | None = None) -> str:
    """Build a browser link to a Shortcut story, epic or objective."""
    if workspace:
        return f"{SHORTCUT_APP_URL}/{workspace}/{kind}/{entity_id}"
    return f"{SHORTCUT_APP_URL}/{kind}/{entity_id}"


def story_url(story: ShortcutStory, workspace: str | None = None) -> str:
    return story.app_url or entity_url("story", story.id, workspace)


class ShortcutClient:
    """Thin REST client for the Shortcut API."""

    def __init__(self, token: str, *, session: requests.Session | None = None, url: str = SHORTCUT_API_URL) -> None:
        self.url: str = url.rstrip("/")
        self.session: requests.Session = session or requests.Session()
        self.session.headers.update({"Shortcut-Token": token, "Content-Type": "application/json"})

    def _request(
        self,
        method: str,
        endpoint: str,
        *,
        payload: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:  # noqa: ANN401 - JSON payloads are arrays or objects
        """Send a request and return the decoded JSON body.

        Raises:
            ApiError: On network failure or non-2xx status
        """
        try:
            response = self.session.request(
                method, f"{self.url}{endpoint}", json=payload, params=params, timeout=REQUEST_TIMEOUT
            )
        except requests.RequestException as e:
            msg = f"Shortcut {method} {endpoint} failed: {e}"
            raise ApiError(msg) from e

        if not response.ok:
            msg = f"Shortcut {method} {endpoint} returned HTTP {response.status_code}: {response.text}"
            raise ApiError(msg, status=response.status_code, body=response.text)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            msg = f"Shortcut {method} {endpoint} returned a non-JSON body"
            raise ApiError(msg, status=response.status_code, body=response.text) from e

    def _get_first_available(self, endpoints: list[str]) -> Any:  # noqa: ANN401
        """GET the first endpoint that answers successfully, in order."""
        last_error: ApiError | None = None
        for endpoint in endpoints:
            try:
                return self._request("GET", endpoint)
            except ApiError as e:
                logger.debug(f"{endpoint} unavailable, trying next fallback: {e}")
                last_error = e
        if last_error is None:
            msg = "No Shortcut endpoints to try"
            raise ApiError(msg)
        raise last_error

    # --- Teams, workflows, members ------------------------------------------

    def get_teams(self) -> list[ShortcutTeam]:
        raw = self._request("GET", "/groups")
        # The API may return the array directly or wrapped as {"data": [...]}
        if isinstance(raw, dict) and isinstance(raw.get("data"), list):
            raw = raw["data"]
        if not isinstance(raw, list):
            msg = "Shortcut API returned unexpected shape for /groups (expected array or { data: array })"
            raise ApiError(msg)
        teams = [ShortcutTeam.from_api(item) for item in raw]
        logger.info(f"Shortcut API returned {len(teams)} teams (groups): {', '.join(t.name for t in teams)}")
        return teams

    def get_workflows(self, team_id: str) -> list[Workflow]:
        """Workflows for a team, falling back to workspace-wide workflows."""
        raw = self._get_first_available(
            [f"/groups/{team_id}/workflows", "/workflows", f"/teams/{team_id}/workflows"]
        )
        return [Workflow.from_api(item) for item in raw or []]

    def get_members(self) -> list[ShortcutMember]:
        members = [ShortcutMember.from_api(item) for item in self._request("GET", "/members") or []]
        logger.info(f"Fetched {len(members)} Shortcut members")
        return members

    def get_iterations(self, team_id: str) -> list[ShortcutIteration]:
        raw = self._get_first_available([f"/groups/{team_id}/iterations", "/iterations"])
        return [ShortcutIteration.from_api(item) for item in raw or []]

    # --- Labels --------------------------------------------------------------

    def get_labels(self) -> list[ShortcutLabel]:
        return [ShortcutLabel.from_api(item) for item in self._request("GET", "/labels") or []]

    def create_label(self, name: str) -> ShortcutLabel:
        return ShortcutLabel.from_api(self._request("POST", "/labels", payload={"name": name}))

    # --- Objectives and epics -----------------------------------------------

    def get_objectives(self) -> list[ShortcutObjective]:
        return [ShortcutObjective.from_api(item) for item in self._request("GET", "/objectives") or []]

    def create_objective(self, payload: dict[str, Any]) -> ShortcutObjective:
        return ShortcutObjective.from_api(self._request("POST", "/objectives", payload=payload))

    def update_objective(self, objective_id: int, payload: dict[str, Any]) -> ShortcutObjective:
        return ShortcutObjective.from_api(self._request("PUT", f"/objectives/{objective_id}", payload=payload))

    def get_epics(self, team_id: str) -> list[ShortcutEpic]:
        raw = self._get_first_available([f"/groups/{team_id}/epics", "/epics"])
        return [ShortcutEpic.from_api(item) for item in raw or []]

    def create_epic(self, payload: dict[str, Any]) -> ShortcutEpic:
        return ShortcutEpic.from_api(self._request("POST", "/epics", payload=payload))

    def update_epic(self, epic_id: int, payload: dict[str, Any]) -> ShortcutEpic:
        return ShortcutEpic.from_api(self._request("PUT", f"/epics/{epic_id}", payload=payload))

    # --- Stories -------------------------------------------------------------

    def search_stories(self, query: str) -> list[ShortcutStory]:
        raw = self._request("GET", "/search/stories", params={"query": query})
        data = (raw.get("data") if isinstance(raw, dict) else raw) or []
        try:
            return [ShortcutStory.from_api(item) for item in data]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            msg = f"Shortcut story search returned an unexpected body for {query!r}: {e}"
            raise ApiError(msg) from e

    def get_story(self, story_id: int) -> ShortcutStory:
        return ShortcutStory.from_api(self._request("GET", f"/stories/{story_id}"))

    def create_story(self, payload: dict[str, Any]) -> ShortcutStory:
        return ShortcutStory.from_api(self._request("POST", "/stories", payload=payload))

    def update_story(self, story_id: int, payload: dict[str, Any]) -> ShortcutStory:
        return ShortcutStory.from_api(self._request("PUT", f"/stories/{story_id}", payload=payload))

    def add_external_link(self, story_id: int, url: str) -> None:
        """Append an external link to a story, keeping the links it already has."""
        story = self.get_story(story_id)
        if url in story.external_links:
            return
        _ = self._request("PUT", f"/stories/{story_id}", payload={"external_links": [*story.external_links, url]})

    def create_story_link(self, subject_id: int, object_id: int, verb: str = "relates to") -> None:
        _ = self._request(
            "POST", "/story-links", payload={"subject_id": subject_id, "object_id": object_id, "verb": verb}
        )


def get_client(token: str) -> ShortcutClient:
    """Get a Shortcut client using the token."""
    return ShortcutClient(token)
