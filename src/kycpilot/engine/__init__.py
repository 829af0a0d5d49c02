"""
KYCPilot Engine

Rule evaluation and document composition:
- ConditionEvaluator: TriBool condition evaluation
- RuleEngine: embedded rule engine over a compiled RuleSet
- RuleEvaluationGateway: one evaluation pass per request
- aggregate(): grouping, ordering, dedup and counts
- SchemaComposer: schema and flat presentation modes
- KycRequirementService: the full request pipeline
"""
from __future__ import annotations

from .aggregator import (
    AggregatedRequirements,
    CategoryGroup,
    aggregate,
    dedupe,
    format_category_name,
)
from .composer import (
    SchemaComposer,
    category_fragment,
    field_fragment,
)
from .condition_evaluator import (
    ConditionEvaluator,
    check_condition,
    compare_values,
    resolve_field_path,
)
from .gateway import (
    RequirementEngine,
    RuleEvaluationGateway,
)
from .rule_engine import (
    RiskOverride,
    RuleAction,
    RuleDefinition,
    RuleEngine,
    RuleSession,
    RuleSet,
)
from .service import KycRequirementService

__all__ = [
    # Conditions
    "ConditionEvaluator",
    "check_condition",
    "compare_values",
    "resolve_field_path",
    # Rule engine
    "RiskOverride",
    "RuleAction",
    "RuleDefinition",
    "RuleEngine",
    "RuleSession",
    "RuleSet",
    # Gateway
    "RequirementEngine",
    "RuleEvaluationGateway",
    # Aggregation
    "AggregatedRequirements",
    "CategoryGroup",
    "aggregate",
    "dedupe",
    "format_category_name",
    # Composition
    "SchemaComposer",
    "category_fragment",
    "field_fragment",
    # Service
    "KycRequirementService",
]
