from datetime import datetime, timedelta, timezone

import pytest

from accessmap.context import (
    ConditionError,
    EvaluationContext,
    new_default_context,
    parse_time,
    to_float,
    wildcard_match,
)

UTC = timezone.utc
BASE = datetime(2026, 1, 15, 12, 0, 0, tzinfo=UTC)


@pytest.mark.parametrize(
    "pattern, text, want",
    [
        ("exact", "exact", True),
        ("exact", "nomatch", False),
        ("*", "anything", True),
        ("prefix*", "prefixsuffix", True),
        ("prefix*", "nomatch", False),
        ("*suffix", "prefixsuffix", True),
        ("*suffix", "nomatch", False),
        ("pre*fix", "prefix", True),
        ("pre*fix", "preINSIDEfix", True),
        ("pre*fix", "prefixNOPE", False),
        ("arn:aws:*:user/alice", "arn:aws:iam::123456789012:user/alice", True),
        ("arn:aws:*:user/alice", "arn:aws:iam::123456789012:role/alice", False),
    ],
)
def test_wildcard_match(pattern, text, want):
    assert wildcard_match(pattern, text) is want


@pytest.mark.parametrize(
    "value, want",
    [
        (42.5, 42.5),
        (42, 42.0),
        ("42.5", 42.5),
        ("100", 100.0),
        ("123.45", 123.45),
    ],
)
def test_to_float(value, want):
    assert to_float(value) == want


@pytest.mark.parametrize("value", ["not-a-number", True, None, [1]])
def test_to_float_errors(value):
    with pytest.raises(ConditionError):
        to_float(value)


@pytest.mark.parametrize(
    "value, want",
    [
        ("2026-01-15T12:00:00Z", BASE),
        ("2026-01-15T12:00:00", BASE),
        ("2026-01-15", datetime(2026, 1, 15, tzinfo=UTC)),
        ("2026-01-15T14:00:00+02:00", BASE),
        ("Thu, 15 Jan 2026 12:00:00 GMT", BASE),
        ("Thu, 15 Jan 2026 07:00:00 -0500", BASE),
        (1736942400, datetime(2025, 1, 15, 12, 0, 0, tzinfo=UTC)),
        (1736942400.0, datetime(2025, 1, 15, 12, 0, 0, tzinfo=UTC)),
        (1768478400, BASE),
    ],
)
def test_parse_time(value, want):
    assert parse_time(value) == want


@pytest.mark.parametrize("value", ["not-a-date", True, None])
def test_parse_time_errors(value):
    with pytest.raises(ConditionError):
        parse_time(value)


def test_parse_time_naive_datetime_is_utc():
    assert parse_time(datetime(2026, 1, 15, 12, 0, 0)) == BASE


def test_default_context_is_permissive():
    ctx = new_default_context()
    assert ctx.source_ip == "0.0.0.0"
    assert ctx.secure_transport is True
    assert ctx.mfa_authenticated is False
    assert abs(datetime.now(UTC) - ctx.current_time) < timedelta(minutes=1)


def test_string_value_lookup():
    ctx = EvaluationContext(
        principal_org_id="o-123456",
        principal_arn="arn:aws:iam::123456789012:user/alice",
        requested_region="us-east-1",
        source_ip="203.0.113.50",
        principal_tags={"Environment": "production"},
        resource_tags={"Department": "engineering"},
    )
    assert ctx.string_value("aws:PrincipalOrgID") == "o-123456"
    assert ctx.string_value("aws:PrincipalArn") == "arn:aws:iam::123456789012:user/alice"
    assert ctx.string_value("aws:RequestedRegion") == "us-east-1"
    assert ctx.string_value("aws:SourceIp") == "203.0.113.50"
    assert ctx.string_value("aws:PrincipalTag/Environment") == "production"
    assert ctx.string_value("aws:ResourceTag/Department") == "engineering"
    assert ctx.string_value("aws:ResourceTag/Missing") == ""
    assert ctx.string_value("aws:Unknown") == ""


def test_bool_value_lookup():
    ctx = EvaluationContext(mfa_authenticated=True, secure_transport=False)
    assert ctx.bool_value("aws:MultiFactorAuthPresent") is True
    assert ctx.bool_value("aws:SecureTransport") is False
    assert ctx.bool_value("aws:SomeUnknownKey") is None


def test_arn_value_lookup():
    ctx = EvaluationContext(principal_arn="arn:aws:iam::123456789012:user/alice")
    assert ctx.arn_value("aws:PrincipalArn") == "arn:aws:iam::123456789012:user/alice"
    assert ctx.arn_value("aws:SourceArn") == ""
    assert ctx.arn_value("aws:Other") == ""


def test_date_value_prefers_date_context():
    custom = datetime(2020, 5, 1, tzinfo=UTC)
    ctx = EvaluationContext(current_time=BASE, date_context={"aws:CurrentTime": custom})
    assert ctx.date_value("aws:CurrentTime") == custom


def test_date_value_current_and_epoch_time():
    ctx = EvaluationContext(current_time=BASE)
    assert ctx.date_value("aws:CurrentTime") == BASE
    assert ctx.date_value("aws:EpochTime") == BASE


def test_date_value_missing_current_time():
    with pytest.raises(ConditionError):
        EvaluationContext().date_value("aws:CurrentTime")


def test_date_value_unknown_key():
    with pytest.raises(ConditionError):
        EvaluationContext(current_time=BASE).date_value("custom:Date")