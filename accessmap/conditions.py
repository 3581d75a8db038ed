"""Evaluation of IAM policy condition blocks against a runtime context."""

from __future__ import annotations

import ipaddress
import operator as op
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from accessmap.context import (
    ConditionError,
    EvaluationContext,
    new_default_context,
    parse_time,
    to_float,
    wildcard_match,
)

Operands = Mapping[str, Any]
OperatorFn = Callable[[Operands, EvaluationContext], bool]


def _type_name(value: Any) -> str:
    return type(value).__name__


def _string_operator(
    name: str,
    noun: str,
    lookup: Callable[[EvaluationContext, str], str],
    test: Callable[[str, str], bool],
) -> OperatorFn:
    """Build an operator comparing context strings with string operands."""

    def evaluate_strings(operands: Operands, ctx: EvaluationContext) -> bool:
        for key, expected in operands.items():
            actual = lookup(ctx, key)
            if not actual:
                return False
            if not isinstance(expected, str):
                raise ConditionError(
                    f"expected {noun} for {name}, got {_type_name(expected)}"
                )
            if not test(actual, expected):
                return False
        return True

    return evaluate_strings


def _numeric_operator(name: str, test: Callable[[float, float], bool]) -> OperatorFn:
    """Build an operator comparing numeric context values with operands."""

    def evaluate_numbers(operands: Operands, ctx: EvaluationContext) -> bool:
        for key, expected in operands.items():
            if key not in ctx.numeric_context:
                return False
            actual = ctx.numeric_context[key]
            try:
                expected_num = to_float(expected)
            except ConditionError as exc:
                raise ConditionError(
                    f"expected numeric value for {name}, got {_type_name(expected)}: {exc}"
                ) from exc
            if not test(actual, expected_num):
                return False
        return True

    return evaluate_numbers


def _date_operator(name: str, test: Callable[[datetime, datetime], bool]) -> OperatorFn:
    """Build an operator comparing context times with date operands."""

    def evaluate_dates(operands: Operands, ctx: EvaluationContext) -> bool:
        for key, expected in operands.items():
            actual = ctx.date_value(key)
            try:
                expected_time = parse_time(expected)
            except ConditionError as exc:
                raise ConditionError(
                    f"expected date value for {name}, got {_type_name(expected)}: {exc}"
                ) from exc
            if not test(actual, expected_time):
                return False
        return True

    return evaluate_dates


def _evaluate_bool(operands: Operands, ctx: EvaluationContext) -> bool:
    for key, expected in operands.items():
        actual = ctx.bool_value(key)
        if actual is None:
            return False
        if isinstance(expected, bool):
            expected_bool = expected
        elif isinstance(expected, str):
            expected_bool = expected.lower() == "true"
        else:
            raise ConditionError(
                f"expected bool or string value for Bool, got {_type_name(expected)}"
            )
        if actual != expected_bool:
            return False
    return True


def _parse_network(text: str) -> ipaddress.IPv4Network | ipaddress.IPv6Network:
    if "/" in text:
        try:
            return ipaddress.ip_network(text, strict=False)
        except ValueError:
            pass
    try:
        address = ipaddress.ip_address(text)
    except ValueError:
        raise ConditionError(f"invalid IP or CIDR: {text}") from None
    return ipaddress.ip_network(address)


def _evaluate_ip_address(operands: Operands, ctx: EvaluationContext) -> bool:
    for key, expected in operands.items():
        if key != "aws:SourceIp":
            raise ConditionError(f"unsupported key for IpAddress: {key}")
        # The permissive default context places no restriction on the source.
        if ctx.source_ip == "0.0.0.0":
            return True
        if not ctx.source_ip:
            return False
        if not isinstance(expected, str):
            raise ConditionError(
                f"expected string CIDR for IpAddress, got {_type_name(expected)}"
            )
        network = _parse_network(expected)
        try:
            source = ipaddress.ip_address(ctx.source_ip)
        except ValueError:
            raise ConditionError(
                f"invalid source IP in context: {ctx.source_ip}"
            ) from None
        if source.version != network.version or source not in network:
            return False
    return True


def _evaluate_not_ip_address(operands: Operands, ctx: EvaluationContext) -> bool:
    return not _evaluate_ip_address(operands, ctx)


def _string_lookup(ctx: EvaluationContext, key: str) -> str:
    return ctx.string_value(key)


def _arn_lookup(ctx: EvaluationContext, key: str) -> str:
    return ctx.arn_value(key)


def _like(actual: str, pattern: str) -> bool:
    return wildcard_match(pattern, actual)


def _not_like(actual: str, pattern: str) -> bool:
    return not wildcard_match(pattern, actual)


_OPERATORS: dict[str, OperatorFn] = {
    "StringEquals": _string_operator("StringEquals", "string value", _string_lookup, op.eq),
    "StringNotEquals": _string_operator(
        "StringNotEquals", "string value", _string_lookup, op.ne
    ),
    "StringLike": _string_operator("StringLike", "string value", _string_lookup, _like),
    "Bool": _evaluate_bool,
    "IpAddress": _evaluate_ip_address,
    "NotIpAddress": _evaluate_not_ip_address,
    "NumericEquals": _numeric_operator("NumericEquals", op.eq),
    "NumericNotEquals": _numeric_operator("NumericNotEquals", op.ne),
    "NumericLessThan": _numeric_operator("NumericLessThan", op.lt),
    "NumericLessThanEquals": _numeric_operator("NumericLessThanEquals", op.le),
    "NumericGreaterThan": _numeric_operator("NumericGreaterThan", op.gt),
    "NumericGreaterThanEquals": _numeric_operator("NumericGreaterThanEquals", op.ge),
    "DateEquals": _date_operator("DateEquals", op.eq),
    "DateNotEquals": _date_operator("DateNotEquals", op.ne),
    "DateLessThan": _date_operator("DateLessThan", op.lt),
    "DateLessThanEquals": _date_operator("DateLessThanEquals", op.le),
    "DateGreaterThan": _date_operator("DateGreaterThan", op.gt),
    "DateGreaterThanEquals": _date_operator("DateGreaterThanEquals", op.ge),
    "ArnEquals": _string_operator("ArnEquals", "string ARN", _arn_lookup, op.eq),
    "ArnNotEquals": _string_operator("ArnNotEquals", "string ARN", _arn_lookup, op.ne),
    "ArnLike": _string_operator("ArnLike", "string pattern", _arn_lookup, _like),
    "ArnNotLike": _string_operator("ArnNotLike", "string pattern", _arn_lookup, _not_like),
}


def evaluate_operator(
    operator: str, operands: Operands, ctx: EvaluationContext | None
) -> bool:
    """Evaluate one condition operator; raise ConditionError if it is unsupported."""
    handler = _OPERATORS.get(operator)
    if handler is None:
        raise ConditionError(f"unsupported condition operator: {operator}")
    return handler(operands, ctx if ctx is not None else new_default_context())


def evaluate(
    condition: Mapping[str, Operands] | None, ctx: EvaluationContext | None
) -> bool:
    """Return whether every operator in a condition block passes for the context."""
    if not condition:
        return True
    if ctx is None:
        ctx = new_default_context()
    for operator, operands in condition.items():
        try:
            matched = evaluate_operator(operator, operands, ctx)
        except ConditionError as exc:
            raise ConditionError(f"evaluating {operator}: {exc}") from exc
        if not matched:
            return False
    return True