"""
KYCPilot Composable Conditions

Three-valued logic (TriBool) and composable condition trees used by
rule packs to decide when a rule fires.

Key components:
- TriBool: Three-valued logic (TRUE, FALSE, UNKNOWN) with Kleene algebra
- Predicate: Leaf-level comparison against a profile attribute
- Condition: Composable AND/OR/NOT tree structure
- Helper functions: AND(), OR(), NOT(), PRED(), EQ(), IN() ...

Conditions are frozen so a compiled rule set can be shared by
concurrent evaluations.

Truth Tables (Kleene Logic):
    AND: False dominates, Unknown propagates
    OR: True dominates, Unknown propagates
    NOT: Unknown stays Unknown
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from .enums import ConditionOperator


# =============================================================================
# Three-Valued Logic (TriBool)
# =============================================================================

class TriBool(Enum):
    """
    Three-valued Boolean logic (Kleene logic).

    UNKNOWN is produced when an attribute a predicate needs is absent
    or null. A rule only fires on TRUE.
    """
    TRUE = True
    FALSE = False
    UNKNOWN = None

    def __and__(self, other: TriBool) -> TriBool:
        if not isinstance(other, TriBool):
            return NotImplemented
        if self == TriBool.FALSE or other == TriBool.FALSE:
            return TriBool.FALSE
        if self == TriBool.UNKNOWN or other == TriBool.UNKNOWN:
            return TriBool.UNKNOWN
        return TriBool.TRUE

    def __or__(self, other: TriBool) -> TriBool:
        if not isinstance(other, TriBool):
            return NotImplemented
        if self == TriBool.TRUE or other == TriBool.TRUE:
            return TriBool.TRUE
        if self == TriBool.UNKNOWN or other == TriBool.UNKNOWN:
            return TriBool.UNKNOWN
        return TriBool.FALSE

    def __invert__(self) -> TriBool:
        if self == TriBool.UNKNOWN:
            return TriBool.UNKNOWN
        return TriBool.FALSE if self == TriBool.TRUE else TriBool.TRUE

    def __bool__(self) -> bool:
        """
        Convert to bool for Python if statements.

        Raises ValueError for UNKNOWN to force explicit handling.
        """
        if self == TriBool.UNKNOWN:
            raise ValueError(
                "Cannot convert TriBool.UNKNOWN to bool. "
                "Handle UNKNOWN explicitly in your logic."
            )
        return self == TriBool.TRUE

    @classmethod
    def from_bool(cls, value: Optional[bool]) -> TriBool:
        """Convert Python bool/None to TriBool."""
        if value is None:
            return cls.UNKNOWN
        return cls.TRUE if value else cls.FALSE

    def is_true(self) -> bool:
        return self == TriBool.TRUE

    def is_unknown(self) -> bool:
        return self == TriBool.UNKNOWN


# =============================================================================
# Evaluation Result
# =============================================================================

@dataclass
class EvaluationResult:
    """
    Result of evaluating a condition.

    Carries the TriBool value, a readable explanation and the
    attributes that were missing when the result is UNKNOWN.
    """
    value: TriBool
    explanation: str
    missing_fields: list[str] = field(default_factory=list)

    @property
    def is_satisfied(self) -> bool:
        return self.value == TriBool.TRUE

    @property
    def is_uncertain(self) -> bool:
        return self.value == TriBool.UNKNOWN

    def __and__(self, other: EvaluationResult) -> EvaluationResult:
        return EvaluationResult(
            value=self.value & other.value,
            explanation=f"({self.explanation}) AND ({other.explanation})",
            missing_fields=_merge_unique(self.missing_fields, other.missing_fields),
        )

    def __or__(self, other: EvaluationResult) -> EvaluationResult:
        return EvaluationResult(
            value=self.value | other.value,
            explanation=f"({self.explanation}) OR ({other.explanation})",
            missing_fields=_merge_unique(self.missing_fields, other.missing_fields),
        )

    def __invert__(self) -> EvaluationResult:
        return EvaluationResult(
            value=~self.value,
            explanation=f"NOT ({self.explanation})",
            missing_fields=self.missing_fields.copy(),
        )


def _merge_unique(left: list[str], right: list[str]) -> list[str]:
    merged = list(left)
    for item in right:
        if item not in merged:
            merged.append(item)
    return merged


# =============================================================================
# Predicate (Leaf Condition)
# =============================================================================

@dataclass(frozen=True)
class Predicate:
    """
    A leaf-level comparison in a condition tree.

    Attributes:
        field: Attribute name or dot path (e.g., "nationality", "risk.risk_level")
        operator: Comparison operator (eq, ne, gt, lt, in, etc.)
        value: Value to compare against
        description: Optional human-readable description
    """
    field: str
    operator: ConditionOperator
    value: Any
    description: Optional[str] = None

    def __post_init__(self) -> None:
        if self.operator.is_logical:
            raise ValueError(
                f"Predicate cannot use logical operator '{self.operator.value}'. "
                f"Use Condition for AND/OR/NOT."
            )


# =============================================================================
# Condition (Composable Tree)
# =============================================================================

@dataclass(frozen=True)
class Condition:
    """
    A composable condition that can be nested (AND/OR/NOT).

    For logical operators (AND, OR, NOT), use `children`.
    For comparison operators, use `predicate`.

    Examples:
        # Simple predicate
        EQ("nationality", "SINGAPORE")

        # Composition
        AND(EQ("variant", "individual"), EQ("pep", True))
    """
    op: ConditionOperator

    # For logical composition (AND, OR, NOT)
    children: tuple[Condition, ...] = ()

    # For leaf predicates (comparisons)
    predicate: Optional[Predicate] = None

    id: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self) -> None:
        if self.op.is_logical:
            if not self.children:
                raise ValueError(f"Logical operator '{self.op.value}' requires children")
            if self.predicate is not None:
                raise ValueError(f"Logical operator '{self.op.value}' cannot have predicate")
            if self.op == ConditionOperator.NOT and len(self.children) != 1:
                raise ValueError("NOT operator must have exactly one child")
        else:
            if self.predicate is None:
                raise ValueError(f"Comparison operator '{self.op.value}' requires predicate")
            if self.children:
                raise ValueError(f"Comparison operator '{self.op.value}' cannot have children")

    @property
    def is_logical(self) -> bool:
        return self.op.is_logical

    @property
    def is_leaf(self) -> bool:
        return not self.is_logical


# =============================================================================
# Helper Functions for Building Conditions
# =============================================================================

def AND(*conditions: Condition) -> Condition:
    """Create an AND condition from multiple child conditions."""
    return Condition(
        op=ConditionOperator.AND,
        children=tuple(conditions),
        description=f"AND of {len(conditions)} conditions",
    )


def OR(*conditions: Condition) -> Condition:
    """Create an OR condition from multiple child conditions."""
    return Condition(
        op=ConditionOperator.OR,
        children=tuple(conditions),
        description=f"OR of {len(conditions)} conditions",
    )


def NOT(condition: Condition) -> Condition:
    """Create a NOT condition (negation)."""
    return Condition(
        op=ConditionOperator.NOT,
        children=(condition,),
        description=f"NOT ({condition.description or 'condition'})",
    )


def PRED(
    field: str,
    operator: ConditionOperator,
    value: Any,
    description: Optional[str] = None,
) -> Condition:
    """
    Create a predicate condition (leaf).

    Example:
        condition = PRED("risk.estimated_processing_days", ConditionOperator.GTE, 10)
    """
    predicate = Predicate(
        field=field,
        operator=operator,
        value=value,
        description=description,
    )
    return Condition(
        op=operator,
        predicate=predicate,
        description=description or f"{field} {operator.value} {value}",
    )


def EQ(field: str, value: Any, description: Optional[str] = None) -> Condition:
    """Create an equality predicate: field == value"""
    return PRED(field, ConditionOperator.EQ, value, description)


def NE(field: str, value: Any, description: Optional[str] = None) -> Condition:
    """Create a not-equal predicate: field != value"""
    return PRED(field, ConditionOperator.NE, value, description)


def IN(field: str, values: list[Any], description: Optional[str] = None) -> Condition:
    """Create an IN predicate: field in [values]"""
    return PRED(field, ConditionOperator.IN, tuple(values), description)


def NOT_IN(field: str, values: list[Any], description: Optional[str] = None) -> Condition:
    """Create a NOT IN predicate: field not in [values]"""
    return PRED(field, ConditionOperator.NOT_IN, tuple(values), description)


def IS_NULL(field: str, description: Optional[str] = None) -> Condition:
    """Create an IS NULL predicate: field is None"""
    return PRED(field, ConditionOperator.IS_NULL, None, description)


def IS_NOT_NULL(field: str, description: Optional[str] = None) -> Condition:
    """Create an IS NOT NULL predicate: field is not None"""
    return PRED(field, ConditionOperator.IS_NOT_NULL, None, description)
