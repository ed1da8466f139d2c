"""Unit tests for the GitHub directory client.

Requests are served by httpx.MockTransport; nothing leaves the process.
"""

import base64

import httpx
import pytest

from whoowns.directory.github import GitHubDirectory
from whoowns.manifest import load_rules
from whoowns.models import IdentityRecord, Team, TeamMember
from whoowns.resolution.resolver import OwnerResolver

CODEOWNERS = "* @octo/core\ndocs/** docs@example.com @carol\n"

RESPONSES = {
    "/orgs/octo/teams": [
        {"id": 11, "slug": "core", "name": "Core"},
        {"id": 12, "slug": "docs", "name": "Docs"},
    ],
    "/teams/11/members": [{"login": "alice"}, {"login": "bob"}],
    "/users/alice": {"login": "alice", "name": "Alice Liddell", "email": "alice@example.com"},
    "/users/bob": {"login": "bob", "name": None, "email": None},
    "/users/carol": {"login": "carol", "name": "Carol", "email": None},
    "/repos/octo/widgets/contents/.github/CODEOWNERS": {
        "type": "file",
        "encoding": "base64",
        "content": base64.encodebytes(CODEOWNERS.encode()).decode(),
    },
}


@pytest.fixture
def requests_seen() -> list[httpx.Request]:
    return []


@pytest.fixture
def github(requests_seen) -> GitHubDirectory:
    """GitHub directory wired to canned responses."""

    def handler(request: httpx.Request) -> httpx.Response:
        requests_seen.append(request)
        body = RESPONSES.get(request.url.path)
        if body is None:
            return httpx.Response(404, json={"message": "Not Found"})
        return httpx.Response(200, json=body)

    client = httpx.AsyncClient(
        base_url="https://api.github.com",
        transport=httpx.MockTransport(handler),
    )
    return GitHubDirectory(token="", http_client=client)


class TestGitHubDirectory:
    """Tests for individual API calls."""

    @pytest.mark.asyncio
    async def test_list_teams(self, github):
        """Test that teams are parsed with id and slug."""
        teams = await github.list_teams("octo")

        assert teams == [
            Team(id=11, slug="core", name="Core"),
            Team(id=12, slug="docs", name="Docs"),
        ]

    @pytest.mark.asyncio
    async def test_list_team_members(self, github):
        """Test that members are read by team id."""
        members = await github.list_team_members(11)

        assert members == [TeamMember(login="alice"), TeamMember(login="bob")]

    @pytest.mark.asyncio
    async def test_get_user(self, github):
        """Test that a profile maps onto an identity record."""
        identity = await github.get_user("alice")

        assert identity == IdentityRecord(
            login="alice", name="Alice Liddell", email="alice@example.com"
        )

    @pytest.mark.asyncio
    async def test_get_user_not_found_raises(self, github):
        """Test that HTTP errors propagate unchanged."""
        with pytest.raises(httpx.HTTPStatusError) as exc_info:
            await github.get_user("nobody")

        assert exc_info.value.response.status_code == 404

    @pytest.mark.asyncio
    async def test_get_manifest_content_decodes_base64(self, github):
        """Test that file contents are decoded to text."""
        text = await github.get_manifest_content("octo", "widgets", ".github/CODEOWNERS")

        assert text == CODEOWNERS

    @pytest.mark.asyncio
    async def test_injected_client_not_closed(self, github):
        """Test that close() leaves a caller-owned client open."""
        client = github.http_client

        await github.close()

        assert client.is_closed is False
        await client.aclose()


class TestClientConfiguration:
    """Tests for the lazily built HTTP client."""

    @pytest.mark.asyncio
    async def test_token_sent_as_bearer(self):
        """Test that a configured token is sent on every request."""
        directory = GitHubDirectory(token="s3cret", base_url="https://ghe.example.com/api/v3/")

        client = directory.http_client

        assert client.headers["Authorization"] == "Bearer s3cret"
        assert client.headers["Accept"] == "application/vnd.github+json"
        assert str(client.base_url).rstrip("/") == "https://ghe.example.com/api/v3"
        await directory.close()
        assert directory._http_client is None

    @pytest.mark.asyncio
    async def test_no_token_no_authorization_header(self):
        """Test anonymous access."""
        directory = GitHubDirectory(token="")

        assert "Authorization" not in directory.http_client.headers
        await directory.close()


class TestEndToEnd:
    """Tests for loading and resolving against the mocked API."""

    @pytest.mark.asyncio
    async def test_load_and_resolve(self, github, requests_seen):
        """Test the full flow from manifest to identities."""
        async with github:
            manifest = await load_rules(github, "octo", "widgets")
            outcome = await OwnerResolver(github, max_concurrency=4).match(
                manifest.rules, "docs/guide/intro.md"
            )

        assert manifest.source_path == ".github/CODEOWNERS"
        assert outcome.sorted_identities() == [
            IdentityRecord(email="docs@example.com"),
            IdentityRecord(login="carol", name="Carol"),
        ]
        assert outcome.errors == []

    @pytest.mark.asyncio
    async def test_team_resolution_over_http(self, github):
        """Test that team members are fetched through the API."""
        manifest = await load_rules(github, "octo", "widgets")

        outcome = await OwnerResolver(github).match(manifest.rules, "src/app.py")

        assert {i.login for i in outcome.identities} == {"alice", "bob"}
