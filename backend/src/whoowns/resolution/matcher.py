"""Path matching for ownership rules.

Patterns use "doublestar" glob semantics:

- ``*`` matches any run of characters within one path segment
- ``?`` matches a single character within one path segment
- ``[abc]`` / ``[!abc]`` match a character class
- ``{a,b}`` matches either alternative
- ``**`` as a whole segment matches zero or more directories

Matching is anchored to the whole path and case-sensitive. When several
rules match, the one appearing last in the manifest wins.
"""

import re
from collections.abc import Sequence
from functools import lru_cache

from ..errors import NoMatchingRuleError
from ..logging import get_context_logger
from ..models import GLOBSTAR, OwnershipRule

logger = get_context_logger(__name__)


def _find_closing(text: str, start: int, opening: str, closing: str) -> int:
    """Index of the bracket closing the one at ``start``, or -1."""
    depth = 0
    i = start
    while i < len(text):
        char = text[i]
        if char == "\\":
            i += 2
            continue
        if char == opening:
            depth += 1
        elif char == closing:
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return -1


def _split_alternatives(body: str) -> list[str]:
    """Split brace contents on top-level commas."""
    parts = []
    depth = 0
    current = []
    i = 0
    while i < len(body):
        char = body[i]
        if char == "\\" and i + 1 < len(body):
            current.append(body[i : i + 2])
            i += 2
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
        elif char == "," and depth == 0:
            parts.append("".join(current))
            current = []
            i += 1
            continue
        current.append(char)
        i += 1
    parts.append("".join(current))
    return parts


def _translate_class(body: str) -> str:
    negate = body[:1] in ("!", "^")
    if negate:
        body = body[1:]
    escaped = "".join(c if c == "-" else re.escape(c) for c in body)
    if negate:
        return f"[^/{escaped}]"
    # A positive class never matches the separator either
    return f"(?!/)[{escaped}]"


def _translate_segment(segment: str) -> str:
    """Translate one path segment (no ``/``) into a regex fragment."""
    out = []
    i = 0
    n = len(segment)
    while i < n:
        char = segment[i]
        if char == "\\" and i + 1 < n:
            out.append(re.escape(segment[i + 1]))
            i += 2
        elif char == "*":
            # Runs of stars inside a segment behave like a single star
            while i < n and segment[i] == "*":
                i += 1
            out.append("[^/]*")
        elif char == "?":
            out.append("[^/]")
            i += 1
        elif char == "[":
            end = _find_closing(segment, i, "[", "]")
            if end == -1:
                out.append(re.escape(char))
                i += 1
            else:
                out.append(_translate_class(segment[i + 1 : end]))
                i = end + 1
        elif char == "{":
            end = _find_closing(segment, i, "{", "}")
            if end == -1:
                out.append(re.escape(char))
                i += 1
            else:
                alternatives = _split_alternatives(segment[i + 1 : end])
                out.append(
                    "(?:" + "|".join(_translate_segment(alt) for alt in alternatives) + ")"
                )
                i = end + 1
        else:
            out.append(re.escape(char))
            i += 1
    return "".join(out)


def translate(pattern: str) -> str:
    """Translate a doublestar glob into an anchored regular expression."""
    segments = pattern.split("/")
    last = len(segments) - 1
    out = []
    need_separator = False

    for idx, segment in enumerate(segments):
        if segment == GLOBSTAR:
            if idx == last:
                out.append("(?:/.*)?" if need_separator else ".*")
            else:
                out.append("/(?:.*/)?" if need_separator else "(?:.*/)?")
                need_separator = False
            continue

        if need_separator:
            out.append("/")
        out.append(_translate_segment(segment))
        need_separator = True

    return r"\A" + "".join(out) + r"\Z"


@lru_cache(maxsize=1024)
def _compile(pattern: str) -> re.Pattern[str] | None:
    """Compile a glob, or return None if it is malformed."""
    try:
        return re.compile(translate(pattern), re.DOTALL)
    except re.error as e:
        logger.warning(
            f"Ignoring malformed pattern {pattern!r}: {e}",
            extra={"pattern": pattern, "error": str(e)},
        )
        return None


def match_pattern(pattern: str, path: str) -> bool:
    """Check whether a repository-relative path matches a glob pattern.

    A malformed pattern, such as an empty or reversed character class,
    never matches.
    """
    compiled = _compile(pattern)
    if compiled is None:
        return False
    return compiled.match(path.lstrip("/")) is not None


def select_rule(rules: Sequence[OwnershipRule], path: str) -> OwnershipRule:
    """Select the rule that owns ``path``.

    Every rule is checked in file order and the last match wins, so more
    specific rules placed later in the manifest override broad ones.

    Args:
        rules: Ownership rules in manifest order
        path: Repository-relative file path

    Returns:
        The last matching rule

    Raises:
        NoMatchingRuleError: If no rule matches the path
    """
    selected = None
    for rule in rules:
        if match_pattern(rule.pattern, path):
            selected = rule
    if selected is None:
        raise NoMatchingRuleError(path)
    return selected
