"""
whoowns - CODEOWNERS resolution against a remote directory

Resolves ownership rules for a repository path into concrete people by
expanding teams, handles and email addresses through the GitHub API.
"""

__version__ = "0.1.0"
