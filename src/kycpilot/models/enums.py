"""
KYCPilot Enumerations

All enumeration types used throughout the KYCPilot system.

All enums inherit from (str, Enum) for JSON serialization compatibility.
"""
from __future__ import annotations

from enum import Enum


# =============================================================================
# Request Variants
# =============================================================================

class CustomerVariant(str, Enum):
    """
    Shape of an inbound request.

    The variant decides which discriminants are required, which are
    echoed back, and which default risk parameters seed evaluation.
    """
    INDIVIDUAL = "individual"                    # customerType + accountType
    INDIVIDUAL_PRODUCT = "individual_product"    # product, individual customer
    CORPORATE = "corporate"                      # product, corporate customer


# =============================================================================
# Presentation
# =============================================================================

class PresentationMode(str, Enum):
    """How the requirement document is rendered."""
    SCHEMA = "schema"    # Nested JSON-Schema-like document
    FLAT = "flat"        # Flat category -> field record map


# =============================================================================
# Field Types
# =============================================================================

class FieldType(str, Enum):
    """
    Field types with a dedicated schema mapping.

    Rules may emit other values (or none at all); those render as
    plain strings.
    """
    NUMBER = "NUMBER"
    CHECKBOX = "CHECKBOX"
    DATE = "DATE"
    EMAIL = "EMAIL"
    PHONE = "PHONE"
    DOCUMENT = "DOCUMENT"
    ADDRESS = "ADDRESS"


# =============================================================================
# Risk
# =============================================================================

class RiskLevel(str, Enum):
    """Due-diligence tier assigned by the rule pass."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


# =============================================================================
# Condition Operators
# =============================================================================

class ConditionOperator(str, Enum):
    """Operators for composable rule conditions."""
    # Logical
    AND = "and"
    OR = "or"
    NOT = "not"

    # Comparison
    EQ = "eq"
    NE = "ne"
    GT = "gt"
    LT = "lt"
    GTE = "gte"
    LTE = "lte"

    # Membership
    IN = "in"
    NOT_IN = "not_in"
    CONTAINS = "contains"

    # String
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    MATCHES = "matches"          # Regex

    # Null/empty checks
    IS_NULL = "is_null"
    IS_NOT_NULL = "is_not_null"
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"

    # Range
    BETWEEN = "between"

    @property
    def is_logical(self) -> bool:
        return self in {ConditionOperator.AND, ConditionOperator.OR, ConditionOperator.NOT}
