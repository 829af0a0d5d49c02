"""
KYCPilot Models

Domain models for the KYC requirement engine:

    from kycpilot.models import (
        # Enums
        CustomerVariant, FieldType, RiskLevel, PresentationMode,
        # Conditions
        TriBool, Condition, Predicate, AND, OR, NOT, EQ, IN,
        # Profile
        ProfileFact, ErrorResponse,
        # Requirements
        FieldAssertion, RiskParameters, RuleCollectors, EvaluationOutcome,
    )
"""
from __future__ import annotations

# =============================================================================
# Enums
# =============================================================================
from .enums import (
    ConditionOperator,
    CustomerVariant,
    FieldType,
    PresentationMode,
    RiskLevel,
)

# =============================================================================
# Conditions
# =============================================================================
from .conditions import (
    AND,
    EQ,
    IN,
    IS_NOT_NULL,
    IS_NULL,
    NE,
    NOT,
    NOT_IN,
    OR,
    PRED,
    Condition,
    EvaluationResult,
    Predicate,
    TriBool,
)

# =============================================================================
# Profile
# =============================================================================
from .profile import (
    ErrorResponse,
    ProfileFact,
    utc_timestamp,
)

# =============================================================================
# Requirements
# =============================================================================
from .requirements import (
    EvaluationOutcome,
    FieldAssertion,
    RiskParameters,
    RuleCollectors,
)

__all__ = [
    # Enums
    "ConditionOperator",
    "CustomerVariant",
    "FieldType",
    "PresentationMode",
    "RiskLevel",
    # Conditions
    "TriBool",
    "EvaluationResult",
    "Predicate",
    "Condition",
    "AND",
    "OR",
    "NOT",
    "PRED",
    "EQ",
    "NE",
    "IN",
    "NOT_IN",
    "IS_NULL",
    "IS_NOT_NULL",
    # Profile
    "ProfileFact",
    "ErrorResponse",
    "utc_timestamp",
    # Requirements
    "FieldAssertion",
    "RiskParameters",
    "RuleCollectors",
    "EvaluationOutcome",
]
