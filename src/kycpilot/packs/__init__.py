"""
KYCPilot Rule Packs

Schema validation and loading for rule packs.

Rule packs are YAML or JSON files listing the rules for one customer
segment. Each rule asserts fields, documents, instructions and risk
overrides when its condition holds.

Usage:
    from kycpilot.packs import load_rule_set, RulePackLoader

    # Compile every pack in a directory
    rule_set = load_rule_set("packs/")

    # Or load packs one at a time
    loader = RulePackLoader()
    pack = loader.load("packs/corporate.yaml")
"""
from __future__ import annotations

from .loader import (
    RulePack,
    RulePackLoader,
    build_rule_set,
    load_rule_pack,
    load_rule_set,
    validate_rule_integrity,
)
from .schema import (
    SCHEMA_VERSION,
    ConditionSchema,
    FieldSchema,
    RiskOverrideSchema,
    RuleActionSchema,
    RulePackSchema,
    RuleSchema,
    check_schema_version,
    validate_rule_pack,
)

__all__ = [
    # Version
    "SCHEMA_VERSION",
    # Loader
    "RulePack",
    "RulePackLoader",
    "build_rule_set",
    "load_rule_pack",
    "load_rule_set",
    # Validation
    "validate_rule_pack",
    "validate_rule_integrity",
    "check_schema_version",
    # Schemas
    "RulePackSchema",
    "RuleSchema",
    "RuleActionSchema",
    "FieldSchema",
    "RiskOverrideSchema",
    "ConditionSchema",
]
