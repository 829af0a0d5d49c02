"""
KYCPilot Requirement Service

The request pipeline: Normalizer -> Gateway -> Aggregator -> Composer.

A response is either a complete requirement document or a well-formed
error object. Validation problems come back as {"error": true, ...};
an EvaluationFailure propagates to the caller and no partial document
is ever produced.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Mapping, Optional, Union

from ..models import CustomerVariant, ErrorResponse, PresentationMode
from ..normalizer import normalize_request
from ..variants import get_variant
from .aggregator import aggregate
from .composer import SchemaComposer
from .gateway import RequirementEngine, RuleEvaluationGateway

logger = logging.getLogger(__name__)


class KycRequirementService:
    """
    Produces requirement documents for all three request variants.

    The engine is shared read-only between calls; every call builds its
    own fact, collectors and document.

    Usage:
        service = KycRequirementService(RuleEngine(rule_set))
        document = service.get_requirements(
            CustomerVariant.CORPORATE, {"product": "FX"}, PresentationMode.FLAT,
        )
    """

    def __init__(
        self,
        engine: RequirementEngine,
        composer: Optional[SchemaComposer] = None,
    ):
        self.gateway = RuleEvaluationGateway(engine)
        self.composer = composer or SchemaComposer()

    def get_requirements(
        self,
        variant: Union[CustomerVariant, str],
        payload: Optional[Mapping[str, Any]],
        mode: Union[PresentationMode, str] = PresentationMode.SCHEMA,
    ) -> dict[str, Any]:
        """
        Build the requirement document for one request.

        Returns:
            The composed document, or an error object when a required
            discriminant is missing

        Raises:
            EvaluationFailure: If the rule engine fails
            ValueError: If mode is not a presentation mode
        """
        mode = PresentationMode(mode)
        start_time = time.time()

        result = normalize_request(variant, payload)
        if isinstance(result, ErrorResponse):
            return result.to_dict()

        fact = result
        profile = get_variant(fact.variant)
        outcome = self.gateway.evaluate(fact, profile.risk_defaults())
        aggregated = aggregate(outcome.fields, outcome.documents, outcome.instructions)
        document = self.composer.compose(mode, profile, fact, outcome, aggregated)

        duration_ms = int((time.time() - start_time) * 1000)
        logger.info(
            "Requirements composed",
            extra={
                "variant": fact.variant.value,
                "mode": mode.value,
                "rules_fired": outcome.fired_count,
                "risk_level": outcome.risk.risk_level.value,
                "reference_id": document.get("x-metadata", {}).get("referenceId"),
                "duration_ms": duration_ms,
            },
        )
        return document
