"""
KYCPilot Exception Hierarchy

Domain-specific exceptions for KYC requirement generation.
All exceptions include error codes for tracking and logging.

Exception codes follow the pattern: KYC_<CATEGORY>_<SPECIFIC>

Three families matter to callers:
- ValidationError: a request is missing a required discriminant.
  Converted to an error object at the normalizer boundary.
- EvaluationFailure: the rule engine failed for one request.
- ConfigurationError: the rule set cannot be built, so no request can
  be served until it is fixed.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class KycPilotError(Exception):
    """
    Base exception for all KYCPilot errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (KYC_*)
        details: Additional context about the error
        variant: Request variant if applicable
    """
    message: str
    code: str = "KYC_INTERNAL_ERROR"
    details: dict[str, Any] = field(default_factory=dict)
    variant: Optional[str] = None

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        parts = [f"[{self.code}] {self.message}"]
        if self.variant:
            parts.append(f"(variant: {self.variant})")
        return " ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Serialize exception for logging/API responses."""
        result: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        if self.variant:
            result["variant"] = self.variant
        return result


# =============================================================================
# Request Errors
# =============================================================================

@dataclass
class ValidationError(KycPilotError):
    """A required discriminant is missing or null."""
    code: str = "KYC_VALIDATION_ERROR"


# =============================================================================
# Evaluation Errors
# =============================================================================

@dataclass
class EvaluationFailure(KycPilotError):
    """The rule engine was unavailable or raised during evaluation."""
    code: str = "KYC_EVALUATION_FAILURE"


@dataclass
class ConditionEvaluationError(KycPilotError):
    """Condition evaluation failed."""
    code: str = "KYC_CONDITION_EVAL_ERROR"


# =============================================================================
# Configuration / Rule Pack Errors
# =============================================================================

@dataclass
class ConfigurationError(KycPilotError):
    """The rule set could not be built; the engine is unusable."""
    code: str = "KYC_CONFIGURATION_ERROR"


@dataclass
class RulePackLoadError(ConfigurationError):
    """Failed to read a rule pack file."""
    code: str = "KYC_RULE_PACK_LOAD_ERROR"


@dataclass
class RulePackValidationError(ConfigurationError):
    """Rule pack schema or integrity validation failed."""
    code: str = "KYC_RULE_PACK_VALIDATION_ERROR"


@dataclass
class RulePackVersionMismatch(ConfigurationError):
    """Rule pack schema version is not supported."""
    code: str = "KYC_RULE_PACK_VERSION_MISMATCH"
