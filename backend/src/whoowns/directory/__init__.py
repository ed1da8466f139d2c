"""Directory services used to expand owners into people."""

from .base import DirectoryService
from .github import GitHubDirectory

__all__ = [
    "DirectoryService",
    "GitHubDirectory",
]
