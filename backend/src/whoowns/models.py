"""Domain models for whoowns."""

from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

GLOBSTAR = "**"


def normalize_pattern(pattern: str) -> str:
    """Rewrite manifest shorthand into an equivalent doublestar pattern.

    A lone ``*`` owns the whole repository, so it becomes ``**``. A leading
    ``/`` is dropped because paths are always repository-relative, and a
    trailing ``/`` owns everything below that directory.
    """
    pattern = pattern.strip()
    if pattern == "*":
        return GLOBSTAR
    if pattern.startswith("/") and len(pattern) > 1:
        pattern = pattern.lstrip("/")
    if pattern.endswith("/"):
        pattern = pattern + GLOBSTAR
    return pattern


class OwnershipRule(BaseModel):
    """A single pattern line from a CODEOWNERS file."""

    pattern: str = Field(..., min_length=1, description="Glob pattern for matching paths")
    owners: tuple[str, ...] = Field(..., description="Raw owner tokens in file order")
    line: int | None = Field(default=None, ge=1, description="1-based manifest line")

    model_config = ConfigDict(frozen=True)

    @field_validator("pattern")
    @classmethod
    def _normalize_pattern(cls, value: str) -> str:
        return normalize_pattern(value)

    @field_validator("owners", mode="before")
    @classmethod
    def _coerce_owners(cls, value):
        if isinstance(value, str):
            return tuple(value.split())
        return tuple(value)

    def __str__(self) -> str:
        return f"{self.pattern} {' '.join(self.owners)}"


class IdentityRecord(BaseModel):
    """A resolved person."""

    login: str | None = None
    name: str | None = None
    email: str | None = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _require_one_field(self) -> "IdentityRecord":
        if not (self.login or self.name or self.email):
            raise ValueError("identity record needs a login, name or email")
        return self

    @property
    def display(self) -> str:
        """Short human-readable form."""
        if self.login and self.email:
            return f"@{self.login} <{self.email}>"
        if self.login:
            return f"@{self.login}"
        if self.name and self.email:
            return f"{self.name} <{self.email}>"
        return self.email or self.name or ""

    @property
    def sort_key(self) -> tuple[str, str]:
        """Case-insensitive (login, email) ordering key."""
        return ((self.login or "").lower(), (self.email or "").lower())


class Team(BaseModel):
    """Team summary as listed for an organization."""

    id: int
    slug: str
    name: str | None = None


class TeamMember(BaseModel):
    """Team member summary."""

    login: str


@dataclass
class ResolutionOutcome:
    """Identities and errors collected by one resolution run.

    Ordering of both lists follows task completion, not token order.
    """

    identities: list[IdentityRecord] = field(default_factory=list)
    errors: list[Exception] = field(default_factory=list)
    rule: OwnershipRule | None = None
    timed_out: bool = False
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        """True when every expansion finished and succeeded."""
        return not self.errors and not (self.timed_out or self.cancelled)

    def sorted_identities(self) -> list[IdentityRecord]:
        """Identities in a stable order for display."""
        return sorted(self.identities, key=lambda identity: identity.sort_key)
