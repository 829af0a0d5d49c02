"""
Pytest configuration and fixtures for KYCPilot tests.

Provides helper factories, stub rule engines and fixtures built from
the shipped rule packs.
"""
import itertools
from typing import Any, Callable, Mapping, Optional

import pytest

from kycpilot.config import DEFAULT_RULES_DIR
from kycpilot.engine import (
    KycRequirementService,
    RuleEngine,
    SchemaComposer,
    aggregate,
)
from kycpilot.models import (
    CustomerVariant,
    EvaluationOutcome,
    FieldAssertion,
    ProfileFact,
    RiskLevel,
    RiskParameters,
    RuleCollectors,
)
from kycpilot.packs import load_rule_set


FIXED_TIMESTAMP = "2024-06-15T09:30:00+00:00"


# =============================================================================
# Factory Helpers
# =============================================================================

def make_field(
    field_id: str,
    category: str = "PERSONAL_DETAILS",
    mandatory: bool = True,
    display_order: int = 1,
    field_type: Optional[str] = None,
    field_name: Optional[str] = None,
    **kwargs,
) -> FieldAssertion:
    """Create a FieldAssertion with sensible defaults."""
    return FieldAssertion(
        field_id=field_id,
        category=category,
        field_name=field_name or field_id.replace("_", " ").title(),
        description=kwargs.pop("description", ""),
        mandatory=mandatory,
        display_order=display_order,
        field_type=field_type,
        **kwargs,
    )


def make_fact(
    variant: CustomerVariant = CustomerVariant.INDIVIDUAL,
    **attributes,
) -> ProfileFact:
    """Create a ProfileFact; individual requests default to INDIVIDUAL/SAVINGS."""
    if variant == CustomerVariant.INDIVIDUAL:
        attributes.setdefault("customer_type", "INDIVIDUAL")
        attributes.setdefault("account_type", "SAVINGS")
    elif variant == CustomerVariant.CORPORATE:
        attributes.setdefault("customer_type", "CORPORATE")
        attributes.setdefault("product", "FX")
    else:
        attributes.setdefault("customer_type", "INDIVIDUAL")
        attributes.setdefault("product", "CASA")
    return ProfileFact(variant=variant, **attributes)


def make_outcome(
    fields: tuple = (),
    documents: tuple = (),
    instructions: tuple = (),
    trace: tuple = (),
    risk: Optional[RiskParameters] = None,
    fired_count: Optional[int] = None,
) -> EvaluationOutcome:
    """Create an EvaluationOutcome; fired_count defaults to len(trace)."""
    return EvaluationOutcome(
        fields=tuple(fields),
        documents=tuple(documents),
        instructions=tuple(instructions),
        trace=tuple(trace),
        risk=risk or RiskParameters(),
        fired_count=len(trace) if fired_count is None else fired_count,
    )


def fixed_composer(prefix: str = "REF") -> SchemaComposer:
    """Composer with a counting reference id and a frozen clock."""
    counter = itertools.count(1)
    return SchemaComposer(
        reference_id_factory=lambda: f"{prefix}-{next(counter):04d}",
        clock=lambda: FIXED_TIMESTAMP,
    )


class StubEngine:
    """
    Rule engine double that fills the collectors with canned output.

    `on_evaluate` runs after the canned output is appended and may
    mutate the collectors further or raise.
    """

    def __init__(
        self,
        fields: tuple = (),
        documents: tuple = (),
        instructions: tuple = (),
        trace: tuple = (),
        risk_level: Optional[RiskLevel] = None,
        fired: Any = None,
        on_evaluate: Optional[Callable[[Mapping[str, Any], RuleCollectors], None]] = None,
    ):
        self.fields = fields
        self.documents = documents
        self.instructions = instructions
        self.trace = trace
        self.risk_level = risk_level
        self.fired = fired
        self.on_evaluate = on_evaluate
        self.calls: list[dict[str, Any]] = []

    def evaluate(self, attributes, collectors):
        self.calls.append(dict(attributes))
        collectors.fields.extend(self.fields)
        collectors.documents.extend(self.documents)
        collectors.instructions.extend(self.instructions)
        collectors.trace.extend(self.trace)
        if self.risk_level is not None:
            collectors.risk.risk_level = self.risk_level
        if self.on_evaluate is not None:
            self.on_evaluate(attributes, collectors)
        return len(self.trace) if self.fired is None else self.fired


class FailingEngine:
    """Rule engine double that always raises."""

    def __init__(self, error: Optional[Exception] = None):
        self.error = error or RuntimeError("rule session crashed")

    def evaluate(self, attributes, collectors):
        collectors.fields.append(make_field("half_written"))
        raise self.error


def aggregate_outcome(outcome: EvaluationOutcome):
    return aggregate(outcome.fields, outcome.documents, outcome.instructions)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture(scope="session")
def rule_set():
    """Rule set compiled from the shipped packs."""
    return load_rule_set(DEFAULT_RULES_DIR)


@pytest.fixture
def engine(rule_set):
    return RuleEngine(rule_set)


@pytest.fixture
def service(engine):
    """Full pipeline over the shipped packs with deterministic ids and time."""
    return KycRequirementService(engine, composer=fixed_composer())


@pytest.fixture
def savings_fields():
    """Assertions for the individual/SAVINGS reference example."""
    return (
        make_field("full_name", "PERSONAL_DETAILS", mandatory=True, display_order=1),
        make_field("date_of_birth", "PERSONAL_DETAILS", mandatory=True, display_order=2, field_type="DATE"),
        make_field("nric", "IDENTIFICATION", mandatory=True, display_order=1),
    )
