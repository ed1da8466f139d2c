"""CODEOWNERS manifest loading.

Fetches the CODEOWNERS file of a repository and parses it into ordered
ownership rules.
"""

from dataclasses import dataclass, field

from .directory.base import DirectoryService
from .errors import ManifestNotFoundError
from .logging import get_context_logger
from .models import OwnershipRule

logger = get_context_logger(__name__)

# Locations GitHub reads CODEOWNERS from, in lookup order
CANDIDATE_PATHS = (
    "CODEOWNERS",
    "docs/CODEOWNERS",
    ".github/CODEOWNERS",
)


@dataclass
class Manifest:
    """A parsed CODEOWNERS file."""

    owner: str
    repo: str
    rules: list[OwnershipRule] = field(default_factory=list)
    source_path: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


def parse_manifest(text: str) -> list[OwnershipRule]:
    """Parse CODEOWNERS text into rules in file order.

    Blank lines, comment lines and lines without any owner are skipped;
    anything from a ``#`` field onwards is treated as a trailing comment.

    Args:
        text: Raw manifest contents

    Returns:
        Ownership rules, earliest line first
    """
    rules = []
    for line_no, line in enumerate(text.splitlines(), start=1):
        words = line.split()
        if not words or words[0].startswith("#"):
            continue

        owners = []
        for word in words[1:]:
            if word.startswith("#"):
                break
            owners.append(word)

        if not owners:
            continue

        rules.append(OwnershipRule(pattern=words[0], owners=owners, line=line_no))
    return rules


async def fetch_manifest(
    directory: DirectoryService, owner: str, repo: str
) -> tuple[str, str]:
    """Fetch the first readable CODEOWNERS file of a repository.

    Args:
        directory: Directory used to read repository contents
        owner: Repository owner
        repo: Repository name

    Returns:
        Tuple of (candidate path, file text)

    Raises:
        ManifestNotFoundError: If no candidate location could be read
    """
    last_error: Exception | None = None
    for path in CANDIDATE_PATHS:
        try:
            content = await directory.get_manifest_content(owner, repo, path)
        except Exception as e:
            logger.info(
                f"No CODEOWNERS at {path}: {e}",
                extra={"repo": f"{owner}/{repo}", "candidate": path},
            )
            last_error = e
            continue
        return path, content
    raise ManifestNotFoundError(owner, repo, last_error)


async def load_rules(directory: DirectoryService, owner: str, repo: str) -> Manifest:
    """Fetch and parse the CODEOWNERS file of a repository."""
    source_path, content = await fetch_manifest(directory, owner, repo)
    rules = parse_manifest(content)
    logger.info(
        f"Loaded {len(rules)} rule(s) from {owner}/{repo}:{source_path}",
        extra={"repo": f"{owner}/{repo}", "source_path": source_path},
    )
    return Manifest(owner=owner, repo=repo, rules=rules, source_path=source_path)
