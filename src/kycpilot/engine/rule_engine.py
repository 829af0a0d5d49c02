"""
KYCPilot Rule Engine

Embedded forward-chaining rule engine that fills the output collectors.

A RuleSet is compiled once from rule packs and shared read-only. Every
evaluate() call runs in its own RuleSession, so concurrent requests
never see each other's collectors or risk mutations.

Firing model:
- Agenda order is salience (descending), then declaration order
- Each rule fires at most once per evaluation
- A rule fires only when its condition is TRUE (UNKNOWN does not fire)
- Conditions see the live risk slot under "risk.*", so a later rule can
  react to a risk level raised by an earlier one
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from typing import Any, Mapping, Optional

from ..canon import content_hash
from ..models import (
    Condition,
    FieldAssertion,
    RiskLevel,
    RiskParameters,
    RuleCollectors,
)
from .condition_evaluator import ConditionEvaluator

logger = logging.getLogger(__name__)


# =============================================================================
# Rule Definitions
# =============================================================================

@dataclass(frozen=True)
class RiskOverride:
    """Partial update of the risk slot. None leaves a value untouched."""
    risk_level: Optional[RiskLevel] = None
    enhanced_due_diligence_required: Optional[bool] = None
    estimated_processing_days: Optional[int] = None
    product_type: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def apply(self, risk: RiskParameters) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if value is not None:
                setattr(risk, f.name, value)


@dataclass(frozen=True)
class RuleAction:
    """Assertions made when a rule fires."""
    fields: tuple[FieldAssertion, ...] = ()
    documents: tuple[str, ...] = ()
    instructions: tuple[str, ...] = ()
    risk: RiskOverride = field(default_factory=RiskOverride)


@dataclass(frozen=True)
class RuleDefinition:
    """
    A single compiled rule.

    Attributes:
        name: Identifier recorded in the rule trace
        action: Assertions made when the rule fires
        when: Activation condition (None = always)
        salience: Agenda priority, higher fires first
        enabled: Disabled rules never fire
        pack_id: Rule pack the rule came from
    """
    name: str
    action: RuleAction
    when: Optional[Condition] = None
    salience: int = 0
    enabled: bool = True
    pack_id: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class RuleSet:
    """
    Immutable, compiled set of rules.

    `rules` keeps declaration order; `agenda` is the firing order.
    """
    rules: tuple[RuleDefinition, ...]
    pack_ids: tuple[str, ...] = ()

    @property
    def agenda(self) -> tuple[RuleDefinition, ...]:
        # sorted() is stable, so equal salience keeps declaration order
        return tuple(sorted(
            (r for r in self.rules if r.enabled),
            key=lambda r: -r.salience,
        ))

    @property
    def content_hash(self) -> str:
        return content_hash({"packs": self.pack_ids, "rules": self.rules})

    def __len__(self) -> int:
        return len(self.rules)

    def get_rule(self, name: str) -> Optional[RuleDefinition]:
        for rule in self.rules:
            if rule.name == name:
                return rule
        return None


# =============================================================================
# Session
# =============================================================================

class RuleSession:
    """One isolated evaluation pass over a RuleSet."""

    def __init__(
        self,
        agenda: tuple[RuleDefinition, ...],
        evaluator: ConditionEvaluator,
        attributes: Mapping[str, Any],
        collectors: RuleCollectors,
    ):
        self._agenda = agenda
        self._evaluator = evaluator
        self._attributes = dict(attributes)
        self._collectors = collectors
        self._fired: set[str] = set()

    def _working_memory(self) -> dict[str, Any]:
        memory = dict(self._attributes)
        memory["risk"] = self._collectors.risk.attributes()
        return memory

    def _matches(self, rule: RuleDefinition) -> bool:
        if rule.when is None:
            return True
        return self._evaluator.evaluate(rule.when, self._working_memory()).is_satisfied

    def _fire(self, rule: RuleDefinition) -> None:
        action = rule.action
        self._collectors.fields.extend(action.fields)
        self._collectors.documents.extend(action.documents)
        self._collectors.instructions.extend(action.instructions)
        if not action.risk.is_empty:
            action.risk.apply(self._collectors.risk)
        self._collectors.trace.append(rule.name)
        self._fired.add(rule.name)
        logger.debug("Rule fired: %s", rule.name, extra={"rule": rule.name})

    def run(self) -> int:
        for rule in self._agenda:
            if rule.name in self._fired:
                continue
            if self._matches(rule):
                self._fire(rule)
        return len(self._fired)


# =============================================================================
# Engine
# =============================================================================

class RuleEngine:
    """
    Evaluates a compiled RuleSet against a fact attribute map.

    Usage:
        engine = RuleEngine(rule_set)
        collectors = RuleCollectors(risk=RiskParameters())
        fired = engine.evaluate(fact.attributes(), collectors)
    """

    def __init__(self, rule_set: RuleSet):
        self.rule_set = rule_set
        self._agenda = rule_set.agenda
        self._evaluator = ConditionEvaluator()

    def evaluate(self, attributes: Mapping[str, Any], collectors: RuleCollectors) -> int:
        """
        Run one pass, appending assertions to the collectors.

        Returns:
            Number of rules fired
        """
        session = RuleSession(self._agenda, self._evaluator, attributes, collectors)
        return session.run()
