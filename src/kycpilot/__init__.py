"""
KYCPilot - KYC Requirement Aggregation and Document Composition

KYCPilot decides which data fields, documents and instructions a bank
must collect when onboarding a customer, and renders them as a nested
JSON-Schema form or a flat category map.

Pipeline:
    request -> ProfileNormalizer -> RuleEvaluationGateway -> aggregate()
            -> SchemaComposer -> response document

Quick Start:
    from kycpilot.packs import load_rule_set
    from kycpilot.engine import KycRequirementService, RuleEngine
    from kycpilot.models import CustomerVariant

    service = KycRequirementService(RuleEngine(load_rule_set("packs/")))
    document = service.get_requirements(
        CustomerVariant.INDIVIDUAL,
        {"customerType": "INDIVIDUAL", "accountType": "SAVINGS"},
    )

Version: 0.1.0
"""
from __future__ import annotations

__version__ = "0.1.0"
__author__ = "KYCPilot Team"

from .exceptions import (
    ConfigurationError,
    EvaluationFailure,
    KycPilotError,
    ValidationError,
)
from .models import (
    CustomerVariant,
    ErrorResponse,
    FieldAssertion,
    PresentationMode,
    ProfileFact,
    RiskLevel,
    RiskParameters,
)

__all__ = [
    "__version__",
    # Exceptions
    "KycPilotError",
    "ValidationError",
    "EvaluationFailure",
    "ConfigurationError",
    # Models
    "CustomerVariant",
    "PresentationMode",
    "RiskLevel",
    "RiskParameters",
    "ProfileFact",
    "ErrorResponse",
    "FieldAssertion",
]
