"""
KYCPilot Rule Pack Schemas

Pydantic models for validating rule pack YAML/JSON files.

A rule pack is a list of rules for one customer segment. Each rule
has an optional `when` condition and a `then` block of assertions:

    rules:
      - name: "Singapore Citizen - NRIC"
        salience: 90
        when:
          op: eq
          field: nationality
          value: SINGAPORE
        then:
          fields:
            - field_id: nric
              category: IDENTIFICATION
              field_name: NRIC Number
              mandatory: true
              display_order: 1
          documents: ["NRIC (front and back)"]

Schema versioning:
- schema_version field tracks breaking changes
- Loaders check major version compatibility
"""
from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


# =============================================================================
# Schema Version
# =============================================================================

SCHEMA_VERSION = "1.0.0"


# =============================================================================
# Enums as Literals (for YAML validation)
# =============================================================================

ConditionOperatorValue = Literal[
    "and", "or", "not",
    "eq", "ne", "gt", "lt", "gte", "lte",
    "in", "not_in", "contains", "starts_with", "ends_with",
    "matches", "is_null", "is_not_null", "is_empty", "is_not_empty", "between"
]

RiskLevelValue = Literal["LOW", "MEDIUM", "HIGH"]

VariantValue = Literal["individual", "individual_product", "corporate"]


# =============================================================================
# Conditions
# =============================================================================

class ConditionSchema(BaseModel):
    """
    Schema for a composable condition.

    For logical operators (and, or, not), use children.
    For comparison operators, use field/value directly.
    """
    op: ConditionOperatorValue = Field(..., description="Operator")

    # For logical composition
    children: Optional[list["ConditionSchema"]] = Field(
        None, description="Child conditions for AND/OR/NOT"
    )

    # For leaf predicates
    field: Optional[str] = Field(None, description="Attribute path (e.g., 'risk.risk_level')")
    value: Optional[Any] = Field(None, description="Value for comparison")

    id: Optional[str] = Field(None, description="Condition ID")
    description: Optional[str] = Field(None, description="Human-readable description")

    model_config = {"extra": "forbid"}

    @model_validator(mode="after")
    def validate_structure(self) -> "ConditionSchema":
        """Validate condition structure based on operator type."""
        logical_ops = {"and", "or", "not"}

        if self.op in logical_ops:
            if not self.children:
                raise ValueError(f"Logical operator '{self.op}' requires 'children'")
            if self.op == "not" and len(self.children) != 1:
                raise ValueError("NOT operator must have exactly one child")
        else:
            if self.field is None:
                raise ValueError(f"Comparison operator '{self.op}' requires 'field'")
            if self.op in {"in", "not_in"} and not isinstance(self.value, list):
                raise ValueError(f"Operator '{self.op}' requires a list value")
            if self.op == "between" and (
                not isinstance(self.value, list) or len(self.value) != 2
            ):
                raise ValueError("Operator 'between' requires a [low, high] value")

        return self


# =============================================================================
# Assertions
# =============================================================================

class FieldSchema(BaseModel):
    """Schema for one field assertion."""
    field_id: str = Field(..., min_length=1, description="Property key within the category")
    category: str = Field(..., min_length=1, description="Category label (e.g., 'PERSONAL_DETAILS')")
    field_name: str = Field("", description="Human-readable label")
    description: str = Field("", description="Help text")
    field_type: Optional[str] = Field(
        None, description="NUMBER, CHECKBOX, DATE, EMAIL, PHONE, DOCUMENT, ADDRESS or free text"
    )
    mandatory: bool = False
    display_order: int = 0
    validation_pattern: Optional[str] = Field(None, description="Regex overriding the type default")
    document_required: Optional[bool] = None
    accepted_documents: Optional[list[str]] = None
    additional_notes: Optional[str] = None

    model_config = {"extra": "forbid"}

    @field_validator("category", "field_type")
    @classmethod
    def normalize_upper(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v is not None else v


class RiskOverrideSchema(BaseModel):
    """Partial risk parameter update."""
    risk_level: Optional[RiskLevelValue] = None
    enhanced_due_diligence_required: Optional[bool] = None
    estimated_processing_days: Optional[int] = Field(None, ge=0)
    product_type: Optional[str] = None

    model_config = {"extra": "forbid"}


class RuleActionSchema(BaseModel):
    """Assertions made when a rule fires."""
    fields: list[FieldSchema] = Field(default_factory=list)
    documents: list[str] = Field(default_factory=list)
    instructions: list[str] = Field(default_factory=list)
    risk: Optional[RiskOverrideSchema] = None

    model_config = {"extra": "forbid"}


# =============================================================================
# Rules and Packs
# =============================================================================

class RuleSchema(BaseModel):
    """Schema for one rule."""
    name: str = Field(..., min_length=1, description="Identifier recorded in the rule trace")
    description: Optional[str] = None
    salience: int = Field(0, description="Agenda priority, higher fires first")
    enabled: bool = True
    when: Optional[ConditionSchema] = Field(None, description="Activation condition (absent = always)")
    then: RuleActionSchema

    model_config = {"extra": "forbid"}


class RulePackSchema(BaseModel):
    """
    Top-level schema for a rule pack YAML/JSON file.
    """
    schema_version: str = Field(SCHEMA_VERSION, description="Schema version for compatibility")
    id: str = Field(..., description="Unique identifier (e.g., 'SG-KYC-INDIVIDUAL')")
    name: str = Field(..., description="Human-readable name")
    version: str = Field(..., description="Version string (e.g., '2024.1')")
    jurisdiction: str = Field("SG", description="Jurisdiction code")
    description: Optional[str] = None
    variant: Optional[VariantValue] = Field(
        None, description="Request variant every rule in the pack is scoped to"
    )

    rules: list[RuleSchema] = Field(default_factory=list)

    @field_validator("jurisdiction")
    @classmethod
    def validate_jurisdiction(cls, v: str) -> str:
        return v.upper()

    model_config = {
        "extra": "forbid",  # Reject unknown fields
    }


# =============================================================================
# Validation Helpers
# =============================================================================

def validate_rule_pack(data: dict[str, Any]) -> RulePackSchema:
    """
    Validate a rule pack dictionary against the schema.

    Raises:
        pydantic.ValidationError: If validation fails
    """
    return RulePackSchema.model_validate(data)


def check_schema_version(data: dict[str, Any]) -> bool:
    """
    Check if a rule pack's schema version is compatible.

    Only the major version has to match.
    """
    pack_version = str(data.get("schema_version", SCHEMA_VERSION))
    pack_major = pack_version.split(".")[0]
    current_major = SCHEMA_VERSION.split(".")[0]
    return pack_major == current_major
