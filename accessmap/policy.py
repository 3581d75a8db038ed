"""Policy document parsing and IAM action/resource pattern matching."""

from __future__ import annotations

import functools
import json
import re
from collections.abc import Iterable, Mapping
from typing import Any
from urllib.parse import unquote_plus

_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


class PolicyParseError(ValueError):
    """Raised when a policy document cannot be parsed."""


def _query_unescape(text: str) -> str:
    """Decode a query-style escaped string, returning it unchanged if malformed."""
    if _BAD_ESCAPE.search(text):
        return text
    return unquote_plus(text)


def parse_policy(document: str) -> dict[str, Any]:
    """Parse a (possibly URL-encoded) JSON policy document into a dict."""
    decoded = _query_unescape(document)
    try:
        policy = json.loads(decoded)
    except json.JSONDecodeError as exc:
        raise PolicyParseError(f"failed to parse policy document: {exc}") from exc
    if policy is None:
        return {}
    if not isinstance(policy, dict):
        raise PolicyParseError(
            "failed to parse policy document: expected a JSON object, "
            f"got {type(policy).__name__}"
        )
    return policy


def _parse_class(pattern: str, i: int) -> tuple[str, int]:
    negate = i < len(pattern) and pattern[i] == "!"
    if negate:
        i += 1
    end = pattern.find("]", i)
    if end == -1:
        raise ValueError(f"unclosed character class in pattern: {pattern!r}")
    body = pattern[i:end]
    if not body:
        raise ValueError(f"empty character class in pattern: {pattern!r}")
    items: list[str] = []
    k = 0
    while k < len(body):
        if k + 2 < len(body) and body[k + 1] == "-":
            lo, hi = body[k], body[k + 2]
            if lo > hi:
                raise ValueError(f"invalid range {lo}-{hi} in pattern: {pattern!r}")
            items.append(f"{re.escape(lo)}-{re.escape(hi)}")
            k += 3
        else:
            items.append(re.escape(body[k]))
            k += 1
    prefix = "^" if negate else ""
    return f"[{prefix}{''.join(items)}]", end + 1


def _parse_alternatives(pattern: str, i: int, depth: int) -> tuple[str, int]:
    options: list[str] = []
    while True:
        seq, i = _parse_sequence(pattern, i, depth)
        options.append(seq)
        if i >= len(pattern):
            raise ValueError(f"unclosed alternative group in pattern: {pattern!r}")
        if pattern[i] == ",":
            i += 1
            continue
        return "(?:" + "|".join(options) + ")", i + 1


def _parse_sequence(pattern: str, i: int, depth: int) -> tuple[str, int]:
    parts: list[str] = []
    while i < len(pattern):
        char = pattern[i]
        if char == "\\":
            if i + 1 >= len(pattern):
                raise ValueError(f"dangling escape in pattern: {pattern!r}")
            parts.append(re.escape(pattern[i + 1]))
            i += 2
        elif char == "*":
            parts.append(".*")
            i += 1
        elif char == "?":
            parts.append(".")
            i += 1
        elif char == "[":
            cls, i = _parse_class(pattern, i + 1)
            parts.append(cls)
        elif char == "{":
            alt, i = _parse_alternatives(pattern, i + 1, depth + 1)
            parts.append(alt)
        elif depth and char in ",}":
            break
        else:
            parts.append(re.escape(char))
            i += 1
    return "".join(parts), i


@functools.lru_cache(maxsize=1024)
def _compile_glob(pattern: str) -> re.Pattern[str]:
    regex, _ = _parse_sequence(pattern, 0, 0)
    return re.compile(regex, re.DOTALL)


def glob_match(pattern: str, text: str) -> bool:
    """Match text against a glob pattern supporting *, ?, [...], {a,b} and escapes.

    Raises ValueError if the pattern is malformed.
    """
    return _compile_glob(pattern).fullmatch(text) is not None


def _pattern_match(pattern: str, value: str) -> bool:
    try:
        return glob_match(pattern, value)
    except ValueError:
        return pattern == value


def matches_action(pattern: str, action: str) -> bool:
    """Return whether an IAM action pattern matches an action, case-insensitively."""
    if pattern == action or pattern == "*":
        return True
    return _pattern_match(pattern.lower(), action.lower())


def matches_resource(pattern: str, arn: str) -> bool:
    """Return whether a resource pattern matches an ARN."""
    if pattern == arn or pattern == "*":
        return True
    return _pattern_match(pattern, arn)


def matches_not_action(patterns: Iterable[str] | None, action: str) -> bool:
    """Return True unless the action is excluded by one of the NotAction patterns."""
    return not any(matches_action(pattern, action) for pattern in patterns or ())


def matches_not_resource(patterns: Iterable[str] | None, arn: str) -> bool:
    """Return True unless the ARN is excluded by one of the NotResource patterns."""
    return not any(matches_resource(pattern, arn) for pattern in patterns or ())


def evaluate_condition(
    condition: Mapping[str, Mapping[str, Any]] | None,
) -> tuple[bool, list[str]]:
    """Report the conditions present; the condition is always treated as passing."""
    if not condition:
        return True, []
    warnings = [
        f"Condition: {cond_type} {cond_key}"
        for cond_type, operands in condition.items()
        for cond_key in operands
    ]
    return True, warnings