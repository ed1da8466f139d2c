"""Abstract base class for directory services.

The resolver only talks to a directory through this interface; the
concrete implementation is always passed in explicitly.
"""

from abc import ABC, abstractmethod

from ..models import IdentityRecord, Team, TeamMember


class DirectoryService(ABC):
    """Remote source of teams, team members and user profiles."""

    @abstractmethod
    async def list_teams(self, org: str) -> list[Team]:
        """List the teams of an organization.

        Args:
            org: Organization login

        Returns:
            Teams with their slug and numeric id
        """
        ...

    @abstractmethod
    async def list_team_members(self, team_id: int) -> list[TeamMember]:
        """List the members of a team.

        Args:
            team_id: Numeric team id as returned by ``list_teams``

        Returns:
            Member summaries
        """
        ...

    @abstractmethod
    async def get_user(self, login: str) -> IdentityRecord:
        """Fetch the full profile of a user.

        Args:
            login: User login without the leading ``@``

        Returns:
            Identity record for the user
        """
        ...

    @abstractmethod
    async def get_manifest_content(self, owner: str, repo: str, path: str) -> str:
        """Fetch the decoded text of a file in a repository.

        Args:
            owner: Repository owner
            repo: Repository name
            path: File path inside the repository

        Returns:
            File contents as text
        """
        ...

    async def close(self) -> None:
        """Release any held connections."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()
