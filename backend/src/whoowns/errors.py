"""Exception classes for ownership resolution.

Every error the resolver produces itself derives from ``OwnershipError``.
Failures raised by a directory implementation (for example
``httpx.HTTPStatusError``) are passed through untouched.
"""


class OwnershipError(Exception):
    """Base error with a stable machine-readable code."""

    error_code = "OWNERSHIP_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NoMatchingRuleError(OwnershipError):
    """No ownership rule matches the requested path."""

    error_code = "NOT_FOUND"

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Failed to find matching rule for {path}")


class InvalidOwnerTokenError(OwnershipError):
    """Owner token is not a team, handle or email address."""

    error_code = "INVALID_TOKEN"

    def __init__(self, token: str):
        self.token = token
        super().__init__(f"Do not understand owner {token!r}")


class TeamNotFoundError(OwnershipError):
    """Team slug does not exist in the organization."""

    error_code = "TEAM_NOT_FOUND"

    def __init__(self, org: str, slug: str):
        self.org = org
        self.slug = slug
        super().__init__(f"Failed to find team matching {slug} in {org}")


class InvalidEmailError(OwnershipError):
    """Email owner token is not a valid address."""

    error_code = "INVALID_EMAIL"

    def __init__(self, address: str, reason: str = ""):
        self.address = address
        self.reason = reason
        message = f"Invalid email address {address!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ManifestNotFoundError(OwnershipError):
    """No CODEOWNERS file could be read from any candidate location."""

    error_code = "MANIFEST_NOT_FOUND"

    def __init__(self, owner: str, repo: str, last_error: BaseException | None = None):
        self.owner = owner
        self.repo = repo
        self.last_error = last_error
        message = f"No CODEOWNERS file found in {owner}/{repo}"
        if last_error is not None:
            message = f"{message} ({last_error})"
        super().__init__(message)
