# accessmap

A small library for working with IAM-style policy documents. It parses
them, matches actions and resource ARNs against wildcard patterns, and
evaluates policy `Condition` blocks against a request context. It has no
dependencies outside the standard library.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Parsing policies

`accessmap.policy.parse_policy(document)` takes a policy document as JSON
text and returns it as a `dict`. It decodes a URL-encoded document first.
A document with a malformed `%` escape is parsed as it stands.

```python
from accessmap.policy import parse_policy

doc = parse_policy('{"Version": "2012-10-17", "Statement": []}')
doc["Version"]   # "2012-10-17"
```

These inputs raise `PolicyParseError`, a subclass of `ValueError`:

- text that is not valid JSON, including the empty string;
- JSON whose top level is not an object.

The JSON literal `null` gives an empty dict.

## Matching actions and resources

```python
from accessmap.policy import (
    matches_action,
    matches_resource,
    matches_not_action,
    matches_not_resource,
)

matches_action("s3:Get*", "s3:GetObject")                      # True
matches_action("S3:GetObject", "s3:getobject")                 # True, case-insensitive
matches_resource("arn:aws:iam::*:role/*", "arn:aws:iam::123:role/Admin")  # True
matches_not_action(["iam:*"], "s3:GetObject")                  # True, not excluded
matches_not_resource(["arn:aws:s3:::secret-*"], "arn:aws:s3:::secret-data")  # False
```

- `matches_action` compares without regard to case.
- `matches_resource` is case-sensitive.
- In both, the pattern `*` matches everything.
- `matches_not_action` and `matches_not_resource` return `False` when any
  pattern in the list matches. An empty list or `None` excludes nothing.

Patterns go through `glob_match(pattern, text)`, which you can also call
directly. It supports:

- `*` for any sequence and `?` for one character;
- character classes such as `[abc]`, `[a-z]` and `[!x]`;
- alternatives such as `{Get,Put}`;
- backslash escapes.

`glob_match` raises `ValueError` on a malformed pattern. The matching
functions instead fall back to an exact comparison.

## Evaluating conditions

Describe the request with an `EvaluationContext` dataclass. Then check a
policy's `Condition` block against it with `accessmap.conditions.evaluate`.
Every operator in the block must pass.

```python
from accessmap.context import EvaluationContext
from accessmap.conditions import evaluate

ctx = EvaluationContext(
    principal_org_id="o-123456",
    mfa_authenticated=True,
    source_ip="203.0.113.50",
)

condition = {
    "StringEquals": {"aws:PrincipalOrgID": "o-123456"},
    "Bool": {"aws:MultiFactorAuthPresent": True},
    "IpAddress": {"aws:SourceIp": "203.0.113.0/24"},
}

evaluate(condition, ctx)   # True
```

`EvaluationContext` has these fields:

- `source_ip`
- `mfa_authenticated`
- `principal_arn`
- `principal_org_id`
- `secure_transport`
- `requested_region`
- `principal_tags`
- `resource_tags`
- `numeric_context`
- `current_time`
- `date_context`
- `session_policy`

The context answers these keys:

- Strings: `aws:PrincipalOrgID`, `aws:PrincipalArn`, `aws:RequestedRegion`,
  `aws:SourceIp`, `aws:PrincipalTag/<key>` and `aws:ResourceTag/<key>`.
- Booleans: `aws:MultiFactorAuthPresent` and `aws:SecureTransport`.
- ARNs: `aws:PrincipalArn`.
- Numbers: any key in `numeric_context`.
- Dates: any key in `date_context`, plus `aws:CurrentTime` and
  `aws:EpochTime`, which both read `current_time`.

An empty condition passes. If you pass `None` as the context,
`new_default_context()` is used. That context has:

- source IP `0.0.0.0`, so every `IpAddress` check on `aws:SourceIp` passes
  and every `NotIpAddress` check fails;
- `secure_transport=True`;
- the current UTC time as `current_time`.

A context you build yourself starts with `secure_transport=False` and no
current time.

The supported operators are:

- String: `StringEquals`, `StringNotEquals`, `StringLike`
- Boolean: `Bool` (accepts `True`/`False` or the strings `"true"`/`"false"`)
- IP address: `IpAddress`, `NotIpAddress` (CIDR blocks or single addresses,
  IPv4 and IPv6; key `aws:SourceIp` only)
- Numeric: `NumericEquals`, `NumericNotEquals`, `NumericLessThan`,
  `NumericLessThanEquals`, `NumericGreaterThan`, `NumericGreaterThanEquals`
- Date: `DateEquals`, `DateNotEquals`, `DateLessThan`,
  `DateLessThanEquals`, `DateGreaterThan`, `DateGreaterThanEquals`
- ARN: `ArnEquals`, `ArnNotEquals`, `ArnLike`, `ArnNotLike`

A string, ARN, boolean or numeric key that the context does not hold makes
the condition fail. This applies to the negated operators too.

`ConditionError`, a subclass of `ValueError`, is raised for:

- an unknown operator;
- an operand of the wrong type;
- an invalid IP address or CIDR block;
- a key other than `aws:SourceIp` under `IpAddress`;
- a missing date key.

`evaluate_operator(operator, operands, ctx)` evaluates a single operator.

`evaluate_condition` in `accessmap.policy` is a lighter check. It always
passes, and it returns a list of warnings of the form
`"Condition: <operator> <key>"`, one for each key found.

## Helpers

`accessmap.context` also provides:

- `wildcard_match(pattern, text)`: `*`-only matching, as used by
  `StringLike`, `ArnLike` and `ArnNotLike`.
- `to_float(value)`: turns an int, a float or a numeric string into a
  float. A string is read up to its leading number, so `"42abc"` gives
  `42.0`.
- `parse_time(value)`: returns a timezone-aware datetime. It accepts:
  - a `datetime` (a naive one is taken as UTC);
  - an RFC 3339 or ISO 8601 string (no zone means UTC);
  - a date-only string;
  - an RFC 1123 string, with a zone name or a numeric zone;
  - Unix seconds as an int or a float (the float is truncated).

## What this package does not do

This is a library only. It has no command-line tool. It does not fetch
policies from any account or service. It does not build a map of who can
reach which resource. Callers supply the policy documents and the request
context themselves.