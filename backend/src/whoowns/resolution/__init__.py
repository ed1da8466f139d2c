"""Owner resolution module for whoowns.

Matches paths against ownership rules and expands the owning teams,
handles and email addresses into identity records.
"""

from .matcher import match_pattern, select_rule, translate
from .resolver import OwnerResolver, ResolutionRun, resolve_owners
from .tokens import Email, OwnerToken, TeamRef, UserHandle, classify

__all__ = [
    "match_pattern",
    "select_rule",
    "translate",
    "OwnerResolver",
    "ResolutionRun",
    "resolve_owners",
    "Email",
    "OwnerToken",
    "TeamRef",
    "UserHandle",
    "classify",
]
