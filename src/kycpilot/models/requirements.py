"""
KYCPilot Requirement Records

Records produced by a rule evaluation pass:
- FieldAssertion: one data field the customer must (or may) provide
- RiskParameters: risk tier, EDD flag, processing estimate
- RuleCollectors: the five mutable output slots a rule session fills
- EvaluationOutcome: immutable snapshot of the slots after one pass

Documents and instructions are plain strings.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Optional

from .enums import RiskLevel


# =============================================================================
# Field Assertion
# =============================================================================

@dataclass(frozen=True)
class FieldAssertion:
    """
    One requirement field asserted by a rule.

    Attributes:
        field_id: Property key within its category
        category: Grouping label (e.g., "PERSONAL_DETAILS")
        field_name: Human-readable label
        description: Help text for the field
        mandatory: Whether the customer must supply it
        display_order: Position within the category (ascending)
        field_type: NUMBER, CHECKBOX, DATE, EMAIL, PHONE, DOCUMENT,
            ADDRESS, any other string, or None
        validation_pattern: Regex overriding the type's default pattern
        document_required: Whether a supporting document is needed
        accepted_documents: Documents accepted as support
        additional_notes: Free-text guidance
    """
    field_id: str
    category: str
    field_name: str = ""
    description: str = ""
    mandatory: bool = False
    display_order: int = 0
    field_type: Optional[str] = None
    validation_pattern: Optional[str] = None
    document_required: Optional[bool] = None
    accepted_documents: Optional[tuple[str, ...]] = None
    additional_notes: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> FieldAssertion:
        """
        Build an assertion from a camelCase record.

        This is the shape generic rule engines emit. Raises ValueError
        when the record is malformed.
        """
        field_id = data.get("fieldId")
        if not isinstance(field_id, str) or not field_id:
            raise ValueError(f"Field assertion missing fieldId: {dict(data)!r}")

        accepted = data.get("acceptedDocuments")
        if accepted is not None:
            if not isinstance(accepted, (list, tuple)):
                raise ValueError(f"Field assertion '{field_id}' has non-list acceptedDocuments")
            accepted = tuple(accepted)

        assertion = cls(
            field_id=field_id,
            category=data.get("category"),
            field_name=data.get("fieldName") or "",
            description=data.get("description") or "",
            mandatory=data.get("mandatory", False),
            display_order=data.get("displayOrder", 0),
            field_type=data.get("fieldType"),
            validation_pattern=data.get("validationPattern"),
            document_required=data.get("documentRequired"),
            accepted_documents=accepted,
            additional_notes=data.get("additionalNotes"),
        )
        assertion.validate()
        return assertion

    def validate(self) -> None:
        """
        Check value types.

        Raises:
            ValueError: If any attribute has the wrong type
        """
        if not isinstance(self.field_id, str) or not self.field_id:
            raise ValueError(f"Field assertion has invalid field_id: {self.field_id!r}")
        if not isinstance(self.category, str) or not self.category:
            raise ValueError(f"Field assertion '{self.field_id}' missing category")
        if not isinstance(self.mandatory, bool):
            raise ValueError(f"Field assertion '{self.field_id}' has non-boolean mandatory flag")
        if isinstance(self.display_order, bool) or not isinstance(self.display_order, int):
            raise ValueError(f"Field assertion '{self.field_id}' has non-integer displayOrder")
        if self.document_required is not None and not isinstance(self.document_required, bool):
            raise ValueError(f"Field assertion '{self.field_id}' has non-boolean documentRequired")
        if self.accepted_documents is not None:
            if not isinstance(self.accepted_documents, tuple) or not all(
                isinstance(d, str) for d in self.accepted_documents
            ):
                raise ValueError(
                    f"Field assertion '{self.field_id}' acceptedDocuments must be a list of strings"
                )
        for name in ("field_name", "description"):
            if not isinstance(getattr(self, name), str):
                raise ValueError(f"Field assertion '{self.field_id}' has non-string {name}")
        for name in ("field_type", "validation_pattern", "additional_notes"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, str):
                raise ValueError(f"Field assertion '{self.field_id}' has non-string {name}")

    def to_record(self) -> dict[str, Any]:
        """Raw camelCase record, used by the flat presentation."""
        record: dict[str, Any] = {
            "fieldId": self.field_id,
            "category": self.category,
            "fieldType": self.field_type,
            "fieldName": self.field_name,
            "description": self.description,
            "mandatory": self.mandatory,
            "displayOrder": self.display_order,
        }
        if self.validation_pattern is not None:
            record["validationPattern"] = self.validation_pattern
        if self.document_required is not None:
            record["documentRequired"] = self.document_required
        if self.accepted_documents is not None:
            record["acceptedDocuments"] = list(self.accepted_documents)
        if self.additional_notes is not None:
            record["additionalNotes"] = self.additional_notes
        return record


# =============================================================================
# Risk Parameters
# =============================================================================

@dataclass
class RiskParameters:
    """
    Risk parameters for one request.

    Seeded with variant defaults before evaluation and mutated by the
    rule pass. Each evaluation works on its own copy.
    """
    risk_level: RiskLevel = RiskLevel.LOW
    enhanced_due_diligence_required: bool = False
    estimated_processing_days: int = 3
    product_type: Optional[str] = None

    def copy(self) -> RiskParameters:
        return replace(self)

    def attributes(self) -> dict[str, Any]:
        """Attribute view for rule conditions (risk.*)."""
        return {
            "risk_level": self.risk_level.value,
            "enhanced_due_diligence_required": self.enhanced_due_diligence_required,
            "estimated_processing_days": self.estimated_processing_days,
            "product_type": self.product_type,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "riskLevel": self.risk_level.value,
            "enhancedDueDiligenceRequired": self.enhanced_due_diligence_required,
            "estimatedProcessingDays": self.estimated_processing_days,
            "productType": self.product_type,
        }


# =============================================================================
# Collectors and Outcome
# =============================================================================

@dataclass
class RuleCollectors:
    """
    The five output slots handed to a rule engine.

    A rule engine reports everything by appending to these lists and
    mutating `risk`; its only return value is the fired-rule count.
    """
    risk: RiskParameters
    fields: list[FieldAssertion] = field(default_factory=list)
    documents: list[str] = field(default_factory=list)
    instructions: list[str] = field(default_factory=list)
    trace: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class EvaluationOutcome:
    """
    Result of one evaluation pass, detached from the collectors.

    Attributes:
        fields: Field assertions in emission order
        documents: Required documents in emission order (may repeat)
        instructions: Special instructions in emission order (may repeat)
        trace: Names of the rules that fired, in firing order
        risk: Final risk parameters
        fired_count: Number of rules fired as reported by the engine
    """
    fields: tuple[FieldAssertion, ...]
    documents: tuple[str, ...]
    instructions: tuple[str, ...]
    trace: tuple[str, ...]
    risk: RiskParameters
    fired_count: int
