"""
KYCPilot Rule Evaluation Gateway

Adapter between the request pipeline and a rule engine.

The gateway seeds empty collectors and a copy of the variant's default
risk parameters, runs exactly one evaluation pass, and returns the
result as an immutable EvaluationOutcome. It never retries and enforces
no timeout; callers needing a deadline wrap the call themselves.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping, Protocol, runtime_checkable

from ..exceptions import ConfigurationError, EvaluationFailure
from ..models import (
    EvaluationOutcome,
    FieldAssertion,
    ProfileFact,
    RiskLevel,
    RiskParameters,
    RuleCollectors,
)

logger = logging.getLogger(__name__)


@runtime_checkable
class RequirementEngine(Protocol):
    """
    Protocol for rule engines.

    The engine receives the fact as a generic attribute map and five
    output slots. All output is delivered by mutating the slots; the
    return value is the number of rules fired.
    """

    def evaluate(self, attributes: Mapping[str, Any], collectors: RuleCollectors) -> int:
        ...


class RuleEvaluationGateway:
    """
    Runs one evaluation pass for one fact.

    Usage:
        gateway = RuleEvaluationGateway(RuleEngine(rule_set))
        outcome = gateway.evaluate(fact, profile.risk_defaults())
    """

    def __init__(self, engine: RequirementEngine):
        self.engine = engine

    def evaluate(self, fact: ProfileFact, risk_defaults: RiskParameters) -> EvaluationOutcome:
        """
        Evaluate a fact.

        Args:
            fact: Normalized request
            risk_defaults: Variant defaults; copied, never mutated

        Returns:
            EvaluationOutcome with the collected assertions

        Raises:
            EvaluationFailure: If the engine raises or emits malformed output
            ConfigurationError: Passed through unchanged
        """
        collectors = RuleCollectors(risk=risk_defaults.copy())

        try:
            fired = self.engine.evaluate(fact.attributes(), collectors)
        except ConfigurationError:
            raise
        except Exception as e:
            logger.error(
                "Rule evaluation failed: %s",
                e,
                extra={"variant": fact.variant.value},
            )
            raise EvaluationFailure(
                message=f"Rule evaluation failed: {e}",
                details={"error_type": type(e).__name__},
                variant=fact.variant.value,
            ) from e

        try:
            field_assertions = tuple(_coerce_field(f) for f in collectors.fields)
            documents = _coerce_strings("document", collectors.documents)
            instructions = _coerce_strings("instruction", collectors.instructions)
            trace = _coerce_strings("trace entry", collectors.trace)
            risk = _coerce_risk(collectors.risk)
        except (ValueError, TypeError, AttributeError) as e:
            logger.error(
                "Rule engine emitted malformed output: %s",
                e,
                extra={"variant": fact.variant.value},
            )
            raise EvaluationFailure(
                message=f"Rule engine emitted malformed output: {e}",
                details={"error_type": type(e).__name__},
                variant=fact.variant.value,
            ) from e

        if isinstance(fired, bool) or not isinstance(fired, int):
            raise EvaluationFailure(
                message=f"Rule engine returned a non-integer fired count: {fired!r}",
                variant=fact.variant.value,
            )

        return EvaluationOutcome(
            fields=field_assertions,
            documents=documents,
            instructions=instructions,
            trace=trace,
            risk=risk,
            fired_count=fired,
        )


def _coerce_field(value: Any) -> FieldAssertion:
    """Accept FieldAssertion instances or camelCase records."""
    if isinstance(value, FieldAssertion):
        value.validate()
        return value
    if isinstance(value, Mapping):
        return FieldAssertion.from_mapping(value)
    raise ValueError(f"unsupported assertion type {type(value).__name__}")


def _coerce_strings(kind: str, values: Any) -> tuple[str, ...]:
    items = tuple(values)
    for item in items:
        if not isinstance(item, str):
            raise ValueError(f"{kind} must be a string, got {item!r}")
    return items


def _coerce_risk(risk: Any) -> RiskParameters:
    if not isinstance(risk, RiskParameters):
        raise ValueError(f"risk slot replaced with {type(risk).__name__}")
    # Engines working on plain attribute maps may set the level as a string
    if not isinstance(risk.risk_level, RiskLevel):
        risk.risk_level = RiskLevel(str(risk.risk_level).upper())
    if not isinstance(risk.enhanced_due_diligence_required, bool):
        raise ValueError("enhanced_due_diligence_required must be a boolean")
    if isinstance(risk.estimated_processing_days, bool) or not isinstance(
        risk.estimated_processing_days, int
    ):
        raise ValueError("estimated_processing_days must be an integer")
    return risk
