"""Runtime context for condition evaluation and its value helpers."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

_PRINCIPAL_TAG = "aws:PrincipalTag/"
_RESOURCE_TAG = "aws:ResourceTag/"


class ConditionError(ValueError):
    """Raised when a condition cannot be evaluated."""


def _as_utc(moment: datetime) -> datetime:
    return moment.replace(tzinfo=timezone.utc) if moment.tzinfo is None else moment


@dataclass
class EvaluationContext:
    """Runtime information against which policy conditions are evaluated."""

    source_ip: str = ""
    mfa_authenticated: bool = False
    principal_arn: str = ""
    principal_org_id: str = ""
    secure_transport: bool = False
    requested_region: str = ""
    principal_tags: dict[str, str] = field(default_factory=dict)
    resource_tags: dict[str, str] = field(default_factory=dict)
    numeric_context: dict[str, float] = field(default_factory=dict)
    current_time: datetime | None = None
    date_context: dict[str, datetime] = field(default_factory=dict)
    session_policy: dict[str, Any] | None = None

    def string_value(self, key: str) -> str:
        """Return the string value for a key, or "" when it is unknown."""
        simple = {
            "aws:PrincipalOrgID": self.principal_org_id,
            "aws:PrincipalArn": self.principal_arn,
            "aws:RequestedRegion": self.requested_region,
            "aws:SourceIp": self.source_ip,
        }
        if key in simple:
            return simple[key]
        if key.startswith(_PRINCIPAL_TAG):
            return self.principal_tags.get(key[len(_PRINCIPAL_TAG):], "")
        if key.startswith(_RESOURCE_TAG):
            return self.resource_tags.get(key[len(_RESOURCE_TAG):], "")
        return ""

    def bool_value(self, key: str) -> bool | None:
        """Return the boolean value for a key, or None when it is unknown."""
        if key == "aws:MultiFactorAuthPresent":
            return self.mfa_authenticated
        if key == "aws:SecureTransport":
            return self.secure_transport
        return None

    def arn_value(self, key: str) -> str:
        """Return the ARN for a key, or "" when it is unknown or unset."""
        if key == "aws:PrincipalArn":
            return self.principal_arn
        return ""

    def date_value(self, key: str) -> datetime:
        """Return the time for a key; raise ConditionError if it is not available."""
        if key in self.date_context:
            return _as_utc(self.date_context[key])
        if key in ("aws:CurrentTime", "aws:EpochTime"):
            if self.current_time is None:
                raise ConditionError(f"current time not set in context for key: {key}")
            return _as_utc(self.current_time)
        raise ConditionError(f"date key not found in context: {key}")


def new_default_context() -> EvaluationContext:
    """Create a permissive context in which common conditions pass."""
    return EvaluationContext(
        source_ip="0.0.0.0",
        secure_transport=True,
        current_time=datetime.now(timezone.utc),
    )


def wildcard_match(pattern: str, text: str) -> bool:
    """Match text against a pattern where * matches any sequence."""
    parts = pattern.split("*")
    if len(parts) == 1:
        return pattern == text

    first, *middle, last = parts
    if not text.startswith(first):
        return False
    text = text[len(first):]
    if not text.endswith(last):
        return False
    text = text[: len(text) - len(last)]

    for part in middle:
        if not part:
            continue
        idx = text.find(part)
        if idx == -1:
            return False
        text = text[idx + len(part):]
    return True


_LEADING_NUMBER = re.compile(
    r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)"
)


def to_float(value: Any) -> float:
    """Convert a numeric operand (number or numeric string) to float."""
    if isinstance(value, bool):
        raise ConditionError(f"unsupported numeric type: {type(value).__name__}")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            pass
        match = _LEADING_NUMBER.match(value)
        if match is None:
            raise ConditionError(f"failed to parse string as number: {value!r}")
        return float(match.group(1))
    raise ConditionError(f"unsupported numeric type: {type(value).__name__}")


_ISO_TIME = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?(Z|[+-]\d{2}:\d{2})?"
)
_DATE_ONLY = re.compile(r"(\d{4})-(\d{2})-(\d{2})")
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
_RFC1123 = re.compile(
    r"(?:Mon|Tue|Wed|Thu|Fri|Sat|Sun), (\d{2}) ("
    + "|".join(_MONTHS)
    + r") (\d{4}) (\d{2}):(\d{2}):(\d{2}) (?:([A-Z]{3,5})|([+-]\d{4}))"
)


def _offset(sign: str, hours: str, minutes: str) -> timezone:
    delta = timedelta(hours=int(hours), minutes=int(minutes))
    return timezone(-delta if sign == "-" else delta)


def _parse_time_string(text: str) -> datetime:
    match = _ISO_TIME.fullmatch(text)
    if match:
        year, month, day, hour, minute, second, frac, zone = match.groups()
        if zone is None or zone == "Z":
            tz = timezone.utc
        else:
            tz = _offset(zone[0], zone[1:3], zone[4:6])
        micro = int((frac or "0")[:6].ljust(6, "0"))
        return datetime(int(year), int(month), int(day), int(hour), int(minute),
                        int(second), micro, tzinfo=tz)

    match = _DATE_ONLY.fullmatch(text)
    if match:
        year, month, day = match.groups()
        return datetime(int(year), int(month), int(day), tzinfo=timezone.utc)

    match = _RFC1123.fullmatch(text)
    if match:
        day, month, year, hour, minute, second, _abbrev, numeric = match.groups()
        tz = timezone.utc if numeric is None else _offset(numeric[0], numeric[1:3], numeric[3:5])
        return datetime(int(year), _MONTHS.index(month) + 1, int(day), int(hour),
                        int(minute), int(second), tzinfo=tz)

    raise ValueError(text)


def parse_time(value: Any) -> datetime:
    """Parse a date operand (datetime, AWS time string or Unix seconds) to an aware datetime."""
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, str):
        try:
            return _parse_time_string(value)
        except ValueError:
            raise ConditionError(f"failed to parse time string: {value}") from None
    if isinstance(value, bool):
        raise ConditionError(f"unsupported time type: {type(value).__name__}")
    if isinstance(value, int):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ConditionError(f"invalid timestamp: {value}")
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    raise ConditionError(f"unsupported time type: {type(value).__name__}")