"""GitHub REST API directory client.

Implements the directory interface on top of the GitHub v3 REST API.

API Documentation: https://docs.github.com/en/rest

Only the first page of each listing is read, and failed requests are not
retried; callers see ``httpx.HTTPStatusError`` / ``httpx.RequestError``
exactly as raised.
"""

import base64
from typing import Any
from urllib.parse import quote

import httpx

from ..config import get_settings
from ..logging import get_context_logger
from ..models import IdentityRecord, Team, TeamMember
from .base import DirectoryService

logger = get_context_logger(__name__, directory="github")


class GitHubDirectory(DirectoryService):
    """Directory service backed by the GitHub API.

    Team membership uses the legacy ``/teams/{id}`` endpoints since teams
    are looked up by id after being found in the organization listing.
    """

    API_VERSION = "2022-11-28"

    def __init__(
        self,
        token: str | None = None,
        base_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize the client.

        Args:
            token: GitHub API token (optional, raises rate limits and
                grants access to private teams)
            base_url: API root, for GitHub Enterprise installations
            http_client: Pre-built client, mainly for tests
        """
        settings = get_settings()
        self.token = token if token is not None else settings.github_token
        self.base_url = (base_url or settings.github_api_url).rstrip("/")
        self.user_agent = settings.user_agent
        self._http_client = http_client
        self._owns_client = http_client is None

    @property
    def http_client(self) -> httpx.AsyncClient:
        """Get the HTTP client, creating it on first use."""
        if self._http_client is None:
            headers = {
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": self.API_VERSION,
                "User-Agent": self.user_agent,
            }
            if self.token:
                headers["Authorization"] = f"Bearer {self.token}"
            self._http_client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(30.0, connect=10.0),
                headers=headers,
            )
        return self._http_client

    async def close(self) -> None:
        """Close the client connections."""
        if self._http_client is not None and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None

    async def _get(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        """GET an endpoint and decode the JSON body.

        Raises:
            httpx.HTTPStatusError: On non-2xx responses
            httpx.RequestError: On transport failures
        """
        response = await self.http_client.get(endpoint, params=params)
        if response.is_error:
            logger.debug(
                f"GET {endpoint} failed with {response.status_code}",
                extra={"endpoint": endpoint, "status_code": response.status_code},
            )
        response.raise_for_status()
        return response.json()

    async def list_teams(self, org: str) -> list[Team]:
        data = await self._get(f"/orgs/{quote(org, safe='')}/teams")
        return [
            Team(id=item["id"], slug=item["slug"], name=item.get("name"))
            for item in data
        ]

    async def list_team_members(self, team_id: int) -> list[TeamMember]:
        data = await self._get(f"/teams/{team_id}/members")
        return [TeamMember(login=item["login"]) for item in data]

    async def get_user(self, login: str) -> IdentityRecord:
        data = await self._get(f"/users/{quote(login, safe='')}")
        return IdentityRecord(
            login=data.get("login") or login,
            name=data.get("name"),
            email=data.get("email"),
        )

    async def get_manifest_content(self, owner: str, repo: str, path: str) -> str:
        """Fetch a file through the contents API.

        The contents API returns base64 for files up to 1MB, which is far
        above any realistic CODEOWNERS file.
        """
        data = await self._get(
            f"/repos/{quote(owner, safe='')}/{quote(repo, safe='')}/contents/{quote(path)}"
        )
        if isinstance(data, list) or data.get("type") != "file":
            raise ValueError(f"{path} in {owner}/{repo} is not a file")

        content = data.get("content") or ""
        if data.get("encoding", "base64") == "base64":
            return base64.b64decode(content).decode("utf-8")
        return content
