"""Shared pytest fixtures for whoowns tests."""

import asyncio
from typing import Any

import httpx
import pytest

from whoowns.directory.base import DirectoryService
from whoowns.models import IdentityRecord, OwnershipRule, Team, TeamMember


def _not_found(url: str) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", url)
    response = httpx.Response(404, request=request)
    return httpx.HTTPStatusError("404 Not Found", request=request, response=response)


class FakeDirectory(DirectoryService):
    """In-memory directory that records calls.

    Every call is keyed as ``"<method>:<argument>"`` (for example
    ``"get_user:alice"``) so tests can attach delays or failures to
    individual lookups.
    """

    def __init__(
        self,
        teams: dict[str, list[Team]] | None = None,
        members: dict[int, list[str]] | None = None,
        users: dict[str, IdentityRecord] | None = None,
        files: dict[tuple[str, str, str], str] | None = None,
        delays: dict[str, float] | None = None,
        failures: dict[str, Exception] | None = None,
        default_delay: float = 0.0,
    ):
        self.teams = teams or {}
        self.members = members or {}
        self.users = users or {}
        self.files = files or {}
        self.delays = delays or {}
        self.failures = failures or {}
        self.default_delay = default_delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.cancelled: list[str] = []
        self.closed = False

    async def _call(self, key: str) -> None:
        self.calls.append(key)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            delay = self.delays.get(key, self.default_delay)
            if delay:
                await asyncio.sleep(delay)
            if key in self.failures:
                raise self.failures[key]
        except asyncio.CancelledError:
            self.cancelled.append(key)
            raise
        finally:
            self.in_flight -= 1

    async def list_teams(self, org: str) -> list[Team]:
        await self._call(f"list_teams:{org}")
        if org not in self.teams:
            raise _not_found(f"https://api.github.com/orgs/{org}/teams")
        return list(self.teams[org])

    async def list_team_members(self, team_id: int) -> list[TeamMember]:
        await self._call(f"list_team_members:{team_id}")
        return [TeamMember(login=login) for login in self.members.get(team_id, [])]

    async def get_user(self, login: str) -> IdentityRecord:
        await self._call(f"get_user:{login}")
        if login not in self.users:
            raise _not_found(f"https://api.github.com/users/{login}")
        return self.users[login]

    async def get_manifest_content(self, owner: str, repo: str, path: str) -> str:
        await self._call(f"get_manifest_content:{owner}/{repo}/{path}")
        try:
            return self.files[(owner, repo, path)]
        except KeyError:
            raise _not_found(
                f"https://api.github.com/repos/{owner}/{repo}/contents/{path}"
            ) from None

    async def close(self) -> None:
        self.closed = True


def user(login: str, name: str | None = None, email: str | None = None) -> IdentityRecord:
    return IdentityRecord(login=login, name=name, email=email)


@pytest.fixture
def sample_users() -> dict[str, IdentityRecord]:
    """Users known to the fake directory."""
    return {
        "alice": user("alice", "Alice Liddell", "alice@example.com"),
        "bob": user("bob", "Bob Builder"),
        "carol": user("carol", email="carol@example.com"),
        "a": user("a"),
        "b": user("b"),
    }


@pytest.fixture
def make_directory(sample_users):
    """Factory for fake directories pre-loaded with the ``octo`` org.

    ``octo/core`` (id 1) has alice and bob; ``octo/docs`` (id 2) has carol.
    Keyword arguments override the defaults.
    """

    def _make(**overrides: Any) -> FakeDirectory:
        options: dict[str, Any] = {
            "teams": {
                "octo": [
                    Team(id=1, slug="core", name="Core"),
                    Team(id=2, slug="docs", name="Docs"),
                ]
            },
            "members": {1: ["alice", "bob"], 2: ["carol"]},
            "users": dict(sample_users),
        }
        options.update(overrides)
        return FakeDirectory(**options)

    return _make


@pytest.fixture
def directory(make_directory) -> FakeDirectory:
    """Fake directory with default contents."""
    return make_directory()


@pytest.fixture
def rule():
    """Factory for ownership rules."""

    def _rule(pattern: str, *owners: str) -> OwnershipRule:
        return OwnershipRule(pattern=pattern, owners=owners)

    return _rule
