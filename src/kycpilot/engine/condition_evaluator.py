"""
KYCPilot Condition Evaluator

Evaluates composable conditions against a profile attribute map using
three-valued logic.

Key features:
- TriBool evaluation (TRUE, FALSE, UNKNOWN)
- Dot-path resolution (e.g., "risk.risk_level")
- Declaration-order evaluation with short-circuiting
- Tracks missing attributes for UNKNOWN results
"""
from __future__ import annotations

import re
from decimal import Decimal
from typing import Any, Mapping, Union

from ..exceptions import ConditionEvaluationError
from ..models import (
    Condition,
    ConditionOperator,
    EvaluationResult,
    TriBool,
)


# =============================================================================
# Field Path Resolution
# =============================================================================

def resolve_field_path(attributes: Mapping[str, Any], path: str) -> tuple[Any, bool]:
    """
    Resolve a dot-notation path against nested mappings.

    Returns:
        Tuple of (resolved_value, found). If not found, returns (None, False).
        A key that is present with a null value counts as found.
    """
    current: Any = attributes
    for part in path.split("."):
        if isinstance(current, Mapping) and part in current:
            current = current[part]
        else:
            return (None, False)
    return (current, True)


# =============================================================================
# Comparison Operators
# =============================================================================

def compare_values(
    actual: Any,
    operator: ConditionOperator,
    expected: Any,
) -> TriBool:
    """
    Compare two values using the specified operator.

    Returns:
        TriBool result of the comparison. Null actual values yield
        UNKNOWN for everything except the null checks.
    """
    if operator == ConditionOperator.IS_NULL:
        return TriBool.TRUE if actual is None else TriBool.FALSE

    if operator == ConditionOperator.IS_NOT_NULL:
        return TriBool.TRUE if actual is not None else TriBool.FALSE

    if actual is None:
        return TriBool.UNKNOWN

    if operator == ConditionOperator.IS_EMPTY:
        if isinstance(actual, (str, list, tuple, dict, set)):
            return TriBool.TRUE if len(actual) == 0 else TriBool.FALSE
        return TriBool.FALSE

    if operator == ConditionOperator.IS_NOT_EMPTY:
        if isinstance(actual, (str, list, tuple, dict, set)):
            return TriBool.TRUE if len(actual) > 0 else TriBool.FALSE
        return TriBool.TRUE

    # Type coercion for numeric comparisons
    if operator in {
        ConditionOperator.GT, ConditionOperator.GTE,
        ConditionOperator.LT, ConditionOperator.LTE,
        ConditionOperator.BETWEEN,
    }:
        actual = _coerce_numeric(actual)
        if isinstance(expected, (list, tuple)):
            expected = tuple(_coerce_numeric(v) for v in expected)
        else:
            expected = _coerce_numeric(expected)

    try:
        if operator == ConditionOperator.EQ:
            return TriBool.TRUE if actual == expected else TriBool.FALSE

        elif operator == ConditionOperator.NE:
            return TriBool.TRUE if actual != expected else TriBool.FALSE

        elif operator == ConditionOperator.GT:
            return TriBool.TRUE if actual > expected else TriBool.FALSE

        elif operator == ConditionOperator.GTE:
            return TriBool.TRUE if actual >= expected else TriBool.FALSE

        elif operator == ConditionOperator.LT:
            return TriBool.TRUE if actual < expected else TriBool.FALSE

        elif operator == ConditionOperator.LTE:
            return TriBool.TRUE if actual <= expected else TriBool.FALSE

        elif operator == ConditionOperator.IN:
            if isinstance(expected, (list, tuple, set, frozenset)):
                return TriBool.TRUE if actual in expected else TriBool.FALSE
            return TriBool.FALSE

        elif operator == ConditionOperator.NOT_IN:
            if isinstance(expected, (list, tuple, set, frozenset)):
                return TriBool.TRUE if actual not in expected else TriBool.FALSE
            return TriBool.TRUE

        elif operator == ConditionOperator.CONTAINS:
            if isinstance(actual, str) and isinstance(expected, str):
                return TriBool.TRUE if expected in actual else TriBool.FALSE
            elif isinstance(actual, (list, tuple, set)):
                return TriBool.TRUE if expected in actual else TriBool.FALSE
            return TriBool.FALSE

        elif operator == ConditionOperator.STARTS_WITH:
            if isinstance(actual, str) and isinstance(expected, str):
                return TriBool.TRUE if actual.startswith(expected) else TriBool.FALSE
            return TriBool.FALSE

        elif operator == ConditionOperator.ENDS_WITH:
            if isinstance(actual, str) and isinstance(expected, str):
                return TriBool.TRUE if actual.endswith(expected) else TriBool.FALSE
            return TriBool.FALSE

        elif operator == ConditionOperator.MATCHES:
            if isinstance(actual, str) and isinstance(expected, str):
                return TriBool.TRUE if re.search(expected, actual) else TriBool.FALSE
            return TriBool.FALSE

        elif operator == ConditionOperator.BETWEEN:
            if isinstance(expected, (list, tuple)) and len(expected) == 2:
                low, high = expected
                return TriBool.TRUE if low <= actual <= high else TriBool.FALSE
            return TriBool.FALSE

        else:
            return TriBool.UNKNOWN

    except (TypeError, ValueError):
        # Incompatible types
        return TriBool.UNKNOWN


def _coerce_numeric(value: Any) -> Union[int, float, Decimal, Any]:
    """Coerce a value to numeric type for comparison."""
    if isinstance(value, (int, float, Decimal)):
        return value
    if isinstance(value, str):
        try:
            if "." in value:
                return Decimal(value)
            return int(value)
        except (ValueError, ArithmeticError):
            return value
    return value


# =============================================================================
# Condition Evaluator
# =============================================================================

class ConditionEvaluator:
    """
    Evaluates composable conditions against an attribute map.

    Stateless, so one instance can be shared by concurrent sessions.

    Usage:
        evaluator = ConditionEvaluator()
        result = evaluator.evaluate(condition, fact.attributes())

        if result.is_satisfied:
            ...
        elif result.is_uncertain:
            print(f"Missing: {result.missing_fields}")
    """

    def evaluate(
        self,
        condition: Condition,
        attributes: Mapping[str, Any],
    ) -> EvaluationResult:
        if condition.is_logical:
            return self._evaluate_logical(condition, attributes)
        return self._evaluate_predicate(condition, attributes)

    def _evaluate_logical(
        self,
        condition: Condition,
        attributes: Mapping[str, Any],
    ) -> EvaluationResult:
        op = condition.op

        if op == ConditionOperator.AND:
            result = EvaluationResult(value=TriBool.TRUE, explanation="AND")
            for child in condition.children:
                result = result & self.evaluate(child, attributes)
                # False dominates in AND
                if result.value == TriBool.FALSE:
                    break
            return result

        if op == ConditionOperator.OR:
            result = EvaluationResult(value=TriBool.FALSE, explanation="OR")
            for child in condition.children:
                result = result | self.evaluate(child, attributes)
                # True dominates in OR
                if result.value == TriBool.TRUE:
                    break
            return result

        if op == ConditionOperator.NOT:
            return ~self.evaluate(condition.children[0], attributes)

        raise ConditionEvaluationError(
            message=f"Unknown logical operator: {op}",
            details={"operator": op.value},
        )

    def _evaluate_predicate(
        self,
        condition: Condition,
        attributes: Mapping[str, Any],
    ) -> EvaluationResult:
        predicate = condition.predicate
        if predicate is None:
            raise ConditionEvaluationError(
                message="Predicate condition missing predicate",
                details={"condition_id": condition.id},
            )

        actual, found = resolve_field_path(attributes, predicate.field)
        value = compare_values(actual, predicate.operator, predicate.value)

        missing: list[str] = []
        if not found:
            missing.append(predicate.field)
            if predicate.operator not in {
                ConditionOperator.IS_NULL,
                ConditionOperator.IS_NOT_NULL,
            }:
                value = TriBool.UNKNOWN

        if value == TriBool.TRUE:
            explanation = f"{predicate.field} {predicate.operator.value} {predicate.value}: PASSED"
        elif value == TriBool.FALSE:
            explanation = (
                f"{predicate.field} {predicate.operator.value} {predicate.value}: "
                f"FAILED (actual: {actual})"
            )
        else:
            explanation = f"{predicate.field} {predicate.operator.value} {predicate.value}: UNKNOWN"

        return EvaluationResult(value=value, explanation=explanation, missing_fields=missing)

    def get_required_fields(self, condition: Condition) -> set[str]:
        """All attribute paths referenced by a condition."""
        fields: set[str] = set()
        self._collect_fields(condition, fields)
        return fields

    def _collect_fields(self, condition: Condition, fields: set[str]) -> None:
        if condition.is_logical:
            for child in condition.children:
                self._collect_fields(child, fields)
        elif condition.predicate:
            fields.add(condition.predicate.field)


def check_condition(condition: Condition, attributes: Mapping[str, Any]) -> bool:
    """
    Check if a condition is satisfied (TRUE).

    Returns False for both FALSE and UNKNOWN results.
    """
    return ConditionEvaluator().evaluate(condition, attributes).is_satisfied
