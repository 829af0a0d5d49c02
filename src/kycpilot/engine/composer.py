"""
KYCPilot Schema Composer

Renders aggregated requirements as the response document.

Two presentation modes share the same aggregated input:
- schema: nested JSON-Schema (draft-07) document, one object property
  per category, with UI hints and metadata under vendor "x-" keys
- flat: discriminants, risk parameters and raw field records grouped by
  category, all at the top level

Reference ids and timestamps come from injectable factories, so two
compositions of the same input differ only in those two values.
"""
from __future__ import annotations

import uuid
from typing import Any, Callable, Optional, Union

from ..models import (
    EvaluationOutcome,
    FieldAssertion,
    FieldType,
    PresentationMode,
    ProfileFact,
    utc_timestamp,
)
from ..variants import VariantProfile
from .aggregator import AggregatedRequirements, CategoryGroup


# =============================================================================
# Constants
# =============================================================================

SCHEMA_DRAFT = "http://json-schema.org/draft-07/schema#"
PHONE_PATTERN = "^[0-9]{8,15}$"

UI_HINTS_KEY = "x-ui-hints"
CATEGORY_ORDER_KEY = "x-category-order"
METADATA_KEY = "x-metadata"

ADDRESS_PROPERTIES = ("street", "city", "postalCode", "country")


# =============================================================================
# Field Fragments
# =============================================================================

def _type_fragment(field_type: Optional[str]) -> dict[str, Any]:
    if field_type == FieldType.NUMBER.value:
        return {"type": "number"}
    if field_type == FieldType.CHECKBOX.value:
        return {"type": "boolean"}
    if field_type == FieldType.DATE.value:
        return {"type": "string", "format": "date"}
    if field_type == FieldType.EMAIL.value:
        return {"type": "string", "format": "email"}
    if field_type == FieldType.PHONE.value:
        return {"type": "string", "pattern": PHONE_PATTERN}
    if field_type == FieldType.DOCUMENT.value:
        return {"type": "string", "format": "uri", "contentMediaType": "application/pdf"}
    if field_type == FieldType.ADDRESS.value:
        return {
            "type": "object",
            "properties": {name: {"type": "string"} for name in ADDRESS_PROPERTIES},
        }
    return {"type": "string"}


def field_fragment(field: FieldAssertion) -> dict[str, Any]:
    """Schema fragment for one field."""
    fragment = _type_fragment(field.field_type)
    fragment["title"] = field.field_name
    fragment["description"] = field.description

    if field.validation_pattern is not None:
        fragment["pattern"] = field.validation_pattern

    hints: dict[str, Any] = {
        "displayOrder": field.display_order,
        "fieldType": field.field_type,
    }
    if field.document_required:
        hints["documentRequired"] = True
        hints["acceptedDocuments"] = list(field.accepted_documents or ())
    if field.additional_notes is not None:
        hints["additionalNotes"] = field.additional_notes
    fragment[UI_HINTS_KEY] = hints

    return fragment


def category_fragment(category: CategoryGroup) -> dict[str, Any]:
    """Schema object for one category."""
    fragment: dict[str, Any] = {
        "type": "object",
        "title": category.title,
        "description": f"Fields related to {category.title.lower()}",
        "properties": {f.field_id: field_fragment(f) for f in category.fields},
    }
    if category.required:
        fragment["required"] = list(category.required)
    fragment[CATEGORY_ORDER_KEY] = category.order
    return fragment


# =============================================================================
# Composer
# =============================================================================

class SchemaComposer:
    """
    Builds response documents in either presentation mode.

    Usage:
        composer = SchemaComposer()
        document = composer.compose(PresentationMode.SCHEMA, profile, fact, outcome, aggregated)
    """

    def __init__(
        self,
        reference_id_factory: Optional[Callable[[], str]] = None,
        clock: Optional[Callable[[], str]] = None,
    ):
        self._new_reference_id = reference_id_factory or (lambda: str(uuid.uuid4()))
        self._now = clock or utc_timestamp

    def compose(
        self,
        mode: Union[PresentationMode, str],
        profile: VariantProfile,
        fact: ProfileFact,
        outcome: EvaluationOutcome,
        aggregated: AggregatedRequirements,
    ) -> dict[str, Any]:
        if PresentationMode(mode) == PresentationMode.FLAT:
            return self.compose_flat(profile, fact, outcome, aggregated)
        return self.compose_schema(profile, fact, outcome, aggregated)

    def compose_schema(
        self,
        profile: VariantProfile,
        fact: ProfileFact,
        outcome: EvaluationOutcome,
        aggregated: AggregatedRequirements,
    ) -> dict[str, Any]:
        """Nested JSON-Schema document."""
        risk = outcome.risk

        metadata: dict[str, Any] = {"referenceId": self._new_reference_id()}
        metadata.update(profile.discriminants(fact, risk))
        metadata.update({
            "riskLevel": risk.risk_level.value,
            "enhancedDueDiligenceRequired": risk.enhanced_due_diligence_required,
            "totalRequiredFields": aggregated.total_required,
            "totalOptionalFields": aggregated.total_optional,
            "requiredDocuments": list(aggregated.documents),
            "specialInstructions": list(aggregated.instructions),
            "estimatedProcessingDays": risk.estimated_processing_days,
            "timestamp": self._now(),
            "appliedRules": list(outcome.trace),
            "rulesFired": outcome.fired_count,
            "categories": aggregated.category_titles,
        })

        return {
            "$schema": SCHEMA_DRAFT,
            "title": profile.title(fact),
            "description": profile.description(fact),
            "type": "object",
            "properties": {c.key: category_fragment(c) for c in aggregated.categories},
            "required": list(aggregated.required_categories),
            METADATA_KEY: metadata,
        }

    def compose_flat(
        self,
        profile: VariantProfile,
        fact: ProfileFact,
        outcome: EvaluationOutcome,
        aggregated: AggregatedRequirements,
    ) -> dict[str, Any]:
        """Flat document with raw field records grouped by category."""
        risk = outcome.risk

        document: dict[str, Any] = dict(profile.discriminants(fact, risk))
        document.update({
            "riskLevel": risk.risk_level.value,
            "enhancedDueDiligenceRequired": risk.enhanced_due_diligence_required,
            "estimatedProcessingDays": risk.estimated_processing_days,
            "fieldsByCategory": {
                c.name: [f.to_record() for f in c.fields] for c in aggregated.categories
            },
            "totalRequiredFields": aggregated.total_required,
            "totalOptionalFields": aggregated.total_optional,
            "requiredDocuments": list(aggregated.documents),
            "specialInstructions": list(aggregated.instructions),
            "timestamp": self._now(),
            "appliedRules": list(outcome.trace),
            "rulesFired": outcome.fired_count,
        })
        return document
