"""Owner token classification.

A CODEOWNERS owner is one of:

- ``@org/team-slug`` - an organization team
- ``@login`` - a single user handle
- ``someone@example.com`` - an email address

Classification is purely syntactic; email addresses are only validated
when the token is expanded.
"""

from dataclasses import dataclass

from ..errors import InvalidOwnerTokenError


@dataclass(frozen=True)
class TeamRef:
    """Reference to a team within an organization."""

    org: str
    slug: str

    def __str__(self) -> str:
        return f"@{self.org}/{self.slug}"


@dataclass(frozen=True)
class UserHandle:
    """Reference to a single user by login."""

    login: str

    def __str__(self) -> str:
        return f"@{self.login}"


@dataclass(frozen=True)
class Email:
    """An email owner, not yet validated."""

    address: str

    def __str__(self) -> str:
        return self.address


OwnerToken = TeamRef | UserHandle | Email


def classify(token: str) -> OwnerToken:
    """Classify a raw owner token.

    Args:
        token: Owner token as written in the manifest

    Returns:
        The matching token variant

    Raises:
        InvalidOwnerTokenError: If the token is none of the known forms
    """
    if token.startswith("@"):
        body = token[1:]
        if "/" in body:
            org, slug = body.split("/", 1)
            if not org or not slug:
                raise InvalidOwnerTokenError(token)
            return TeamRef(org=org, slug=slug)
        if not body:
            raise InvalidOwnerTokenError(token)
        return UserHandle(login=body)
    if "@" in token:
        return Email(address=token)
    raise InvalidOwnerTokenError(token)
