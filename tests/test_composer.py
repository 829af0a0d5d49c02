"""
Tests for the Schema Composer

Tests cover:
- Field type to schema fragment mapping
- UI hints and pattern overrides
- Category objects and ordering
- Schema mode envelope and metadata
- Flat mode layout
- Determinism apart from referenceId and timestamp
"""
import pytest
from jsonschema import Draft7Validator

from kycpilot.engine import SchemaComposer, category_fragment, field_fragment
from kycpilot.engine.composer import PHONE_PATTERN, SCHEMA_DRAFT
from kycpilot.models import CustomerVariant, PresentationMode, RiskLevel, RiskParameters
from kycpilot.variants import get_variant

from tests.conftest import (
    FIXED_TIMESTAMP,
    aggregate_outcome,
    fixed_composer,
    make_fact,
    make_field,
    make_outcome,
)


def _compose(outcome, variant=CustomerVariant.INDIVIDUAL, mode=PresentationMode.SCHEMA, fact=None, composer=None):
    composer = composer or fixed_composer()
    fact = fact or make_fact(variant)
    return composer.compose(mode, get_variant(variant), fact, outcome, aggregate_outcome(outcome))


# =============================================================================
# Field Fragments
# =============================================================================

class TestFieldFragment:

    @pytest.mark.parametrize("field_type,expected", [
        ("NUMBER", {"type": "number"}),
        ("CHECKBOX", {"type": "boolean"}),
        ("DATE", {"type": "string", "format": "date"}),
        ("EMAIL", {"type": "string", "format": "email"}),
        ("PHONE", {"type": "string", "pattern": PHONE_PATTERN}),
        ("DOCUMENT", {"type": "string", "format": "uri", "contentMediaType": "application/pdf"}),
        (None, {"type": "string"}),
        ("TEXT", {"type": "string"}),
        ("DROPDOWN", {"type": "string"}),
    ])
    def test_type_mapping(self, field_type, expected):
        fragment = field_fragment(make_field("f", field_type=field_type))
        for key, value in expected.items():
            assert fragment[key] == value
        if field_type not in ("PHONE",):
            assert "pattern" not in fragment

    def test_address(self):
        fragment = field_fragment(make_field("residential_address", field_type="ADDRESS"))

        assert fragment["type"] == "object"
        assert list(fragment["properties"]) == ["street", "city", "postalCode", "country"]
        assert all(p == {"type": "string"} for p in fragment["properties"].values())

    def test_phone_pattern(self):
        assert PHONE_PATTERN == "^[0-9]{8,15}$"

    def test_validation_pattern_overrides_type_default(self):
        fragment = field_fragment(
            make_field("mobile", field_type="PHONE", validation_pattern=r"^\+65[0-9]{8}$")
        )
        assert fragment["pattern"] == r"^\+65[0-9]{8}$"

    def test_validation_pattern_on_plain_string(self):
        fragment = field_fragment(make_field("nric", validation_pattern="^[STFG][0-9]{7}[A-Z]$"))

        assert fragment["type"] == "string"
        assert fragment["pattern"] == "^[STFG][0-9]{7}[A-Z]$"

    def test_title_and_description(self):
        fragment = field_fragment(make_field("full_name", field_name="Full Name", description="As per NRIC"))

        assert fragment["title"] == "Full Name"
        assert fragment["description"] == "As per NRIC"

    def test_description_always_present(self):
        assert field_fragment(make_field("gender"))["description"] == ""

    def test_ui_hints_basic(self):
        hints = field_fragment(make_field("dob", field_type="DATE", display_order=2))["x-ui-hints"]
        assert hints == {"displayOrder": 2, "fieldType": "DATE"}

    def test_ui_hints_unset_field_type(self):
        hints = field_fragment(make_field("gender"))["x-ui-hints"]
        assert hints["fieldType"] is None

    def test_ui_hints_document_required(self):
        field = make_field(
            "nric_copy",
            field_type="DOCUMENT",
            document_required=True,
            accepted_documents=("NRIC (front)", "NRIC (back)"),
        )
        hints = field_fragment(field)["x-ui-hints"]

        assert hints["documentRequired"] is True
        assert hints["acceptedDocuments"] == ["NRIC (front)", "NRIC (back)"]

    def test_accepted_documents_hidden_without_document_required(self):
        field = make_field("proof", document_required=False, accepted_documents=("Utility bill",))
        hints = field_fragment(field)["x-ui-hints"]

        assert "acceptedDocuments" not in hints
        assert "documentRequired" not in hints

    def test_additional_notes(self):
        field = make_field("work_pass_type", additional_notes="Employment Pass or S Pass")
        assert field_fragment(field)["x-ui-hints"]["additionalNotes"] == "Employment Pass or S Pass"


# =============================================================================
# Category Fragments
# =============================================================================

class TestCategoryFragment:

    def test_category_object(self):
        outcome = make_outcome(fields=(
            make_field("tin", "TAX_INFORMATION", mandatory=True, display_order=2),
            make_field("us_person", "TAX_INFORMATION", mandatory=False, display_order=1),
        ))
        fragment = category_fragment(aggregate_outcome(outcome).categories[0])

        assert fragment["type"] == "object"
        assert fragment["title"] == "Tax Information"
        assert fragment["description"] == "Fields related to tax information"
        assert list(fragment["properties"]) == ["us_person", "tin"]
        assert fragment["required"] == ["tin"]
        assert fragment["x-category-order"] == 0

    def test_required_omitted_when_empty(self):
        outcome = make_outcome(fields=(make_field("marketing", "DECLARATIONS", mandatory=False),))
        fragment = category_fragment(aggregate_outcome(outcome).categories[0])
        assert "required" not in fragment


# =============================================================================
# Schema Mode
# =============================================================================

class TestSchemaMode:

    def test_savings_example(self, savings_fields):
        document = _compose(make_outcome(fields=savings_fields))

        assert document["properties"]["personal_details"]["required"] == ["full_name", "date_of_birth"]
        assert document["required"] == ["personal_details", "identification"]
        assert document["x-metadata"]["totalRequiredFields"] == 3
        assert document["x-metadata"]["totalOptionalFields"] == 0

    def test_envelope(self, savings_fields):
        document = _compose(make_outcome(fields=savings_fields))

        assert document["$schema"] == SCHEMA_DRAFT
        assert document["type"] == "object"
        assert document["title"] == "Singapore KYC Form"
        assert document["description"] == "KYC requirements for INDIVIDUAL opening SAVINGS account"

    def test_is_valid_json_schema(self, savings_fields):
        fields = savings_fields + (
            make_field("address", "CONTACT_DETAILS", field_type="ADDRESS"),
            make_field("mobile", "CONTACT_DETAILS", field_type="PHONE", display_order=2),
            make_field("proof", "CONTACT_DETAILS", field_type="DOCUMENT", display_order=3,
                       document_required=True, accepted_documents=("Utility bill",)),
        )
        document = _compose(make_outcome(fields=fields))
        Draft7Validator.check_schema(document)

    def test_accepts_a_matching_form(self, savings_fields):
        document = _compose(make_outcome(fields=savings_fields))
        errors = list(Draft7Validator(document).iter_errors({
            "personal_details": {"full_name": "Tan Ah Kow"},
            "identification": {"nric": "S1234567D"},
        }))

        assert [e.message for e in errors] == ["'date_of_birth' is a required property"]

    def test_category_order(self):
        outcome = make_outcome(fields=(
            make_field("nric", "IDENTIFICATION"),
            make_field("full_name", "PERSONAL_DETAILS"),
        ))
        document = _compose(outcome)

        assert list(document["properties"]) == ["identification", "personal_details"]
        assert document["properties"]["identification"]["x-category-order"] == 0
        assert document["properties"]["personal_details"]["x-category-order"] == 1
        assert document["x-metadata"]["categories"] == ["Identification", "Personal Details"]

    def test_metadata(self):
        outcome = make_outcome(
            fields=(make_field("full_name"),),
            documents=("NRIC", "Proof of address", "NRIC"),
            instructions=("Verify passport validity",),
            trace=("Individual - Personal Details", "Singapore Citizen - NRIC"),
            risk=RiskParameters(risk_level=RiskLevel.MEDIUM, estimated_processing_days=5),
        )
        metadata = _compose(outcome)["x-metadata"]

        assert metadata["referenceId"] == "REF-0001"
        assert metadata["customerType"] == "INDIVIDUAL"
        assert metadata["accountType"] == "SAVINGS"
        assert metadata["riskLevel"] == "MEDIUM"
        assert metadata["enhancedDueDiligenceRequired"] is False
        assert metadata["estimatedProcessingDays"] == 5
        assert metadata["requiredDocuments"] == ["NRIC", "Proof of address"]
        assert metadata["specialInstructions"] == ["Verify passport validity"]
        assert metadata["timestamp"] == FIXED_TIMESTAMP
        assert metadata["appliedRules"] == ["Individual - Personal Details", "Singapore Citizen - NRIC"]
        assert metadata["rulesFired"] == 2
        assert metadata["categories"] == ["Personal Details"]

    def test_corporate_metadata_order(self):
        outcome = make_outcome(
            fields=(make_field("company_name", "COMPANY_INFORMATION"),),
            risk=RiskParameters(product_type="TREASURY", estimated_processing_days=7),
        )
        document = _compose(outcome, variant=CustomerVariant.CORPORATE)
        metadata = document["x-metadata"]

        assert list(metadata)[:5] == ["referenceId", "customerType", "product", "productType", "riskLevel"]
        assert metadata["customerType"] == "CORPORATE"
        assert metadata["product"] == "FX"
        assert metadata["productType"] == "TREASURY"
        assert "accountType" not in metadata
        assert document["title"] == "Singapore Corporate KYC Form - FX"

    def test_individual_product_envelope(self):
        outcome = make_outcome(fields=(make_field("full_name"),))
        document = _compose(outcome, variant=CustomerVariant.INDIVIDUAL_PRODUCT)

        assert document["title"] == "Singapore KYC Form - CASA"
        assert document["description"] == "Individual KYC requirements for CASA product"
        assert document["x-metadata"]["customerType"] == "INDIVIDUAL"
        assert "productType" in document["x-metadata"]

    def test_reference_id_fresh_per_document(self, savings_fields):
        composer = fixed_composer()
        outcome = make_outcome(fields=savings_fields)

        first = _compose(outcome, composer=composer)
        second = _compose(outcome, composer=composer)
        assert first["x-metadata"]["referenceId"] != second["x-metadata"]["referenceId"]

    def test_default_reference_id_is_uuid(self, savings_fields):
        import uuid

        document = _compose(make_outcome(fields=savings_fields), composer=SchemaComposer())
        uuid.UUID(document["x-metadata"]["referenceId"])

    def test_identical_except_reference_and_timestamp(self, savings_fields):
        outcome = make_outcome(fields=savings_fields, documents=("NRIC",), trace=("a",))

        first = _compose(outcome, composer=SchemaComposer())
        second = _compose(outcome, composer=SchemaComposer())
        for document in (first, second):
            document["x-metadata"].pop("referenceId")
            document["x-metadata"].pop("timestamp")
        assert first == second

    def test_empty_outcome(self):
        document = _compose(make_outcome())

        assert document["properties"] == {}
        assert document["required"] == []
        assert document["x-metadata"]["categories"] == []
        Draft7Validator.check_schema(document)


# =============================================================================
# Flat Mode
# =============================================================================

class TestFlatMode:

    def test_layout(self, savings_fields):
        outcome = make_outcome(
            fields=savings_fields,
            documents=("NRIC", "NRIC"),
            instructions=("Verify",),
            trace=("rule-a",),
        )
        document = _compose(outcome, mode=PresentationMode.FLAT)

        assert "$schema" not in document
        assert "properties" not in document
        assert "x-metadata" not in document
        assert document["customerType"] == "INDIVIDUAL"
        assert document["accountType"] == "SAVINGS"
        assert document["riskLevel"] == "LOW"
        assert document["enhancedDueDiligenceRequired"] is False
        assert document["estimatedProcessingDays"] == 3
        assert document["totalRequiredFields"] == 3
        assert document["totalOptionalFields"] == 0
        assert document["requiredDocuments"] == ["NRIC"]
        assert document["specialInstructions"] == ["Verify"]
        assert document["timestamp"] == FIXED_TIMESTAMP
        assert document["appliedRules"] == ["rule-a"]

    def test_fields_by_category_are_raw_records(self, savings_fields):
        document = _compose(make_outcome(fields=savings_fields), mode=PresentationMode.FLAT)
        grouped = document["fieldsByCategory"]

        assert list(grouped) == ["PERSONAL_DETAILS", "IDENTIFICATION"]
        assert [r["fieldId"] for r in grouped["PERSONAL_DETAILS"]] == ["full_name", "date_of_birth"]
        record = grouped["PERSONAL_DETAILS"][1]
        assert record["fieldType"] == "DATE"
        assert record["mandatory"] is True
        assert record["displayOrder"] == 2
        assert record["category"] == "PERSONAL_DETAILS"

    def test_flat_records_sorted(self):
        outcome = make_outcome(fields=(
            make_field("b", "X", display_order=2),
            make_field("a", "X", display_order=1),
        ))
        document = _compose(outcome, mode="flat")
        assert [r["fieldId"] for r in document["fieldsByCategory"]["X"]] == ["a", "b"]

    def test_flat_has_no_reference_id(self, savings_fields):
        document = _compose(make_outcome(fields=savings_fields), mode=PresentationMode.FLAT)
        assert "referenceId" not in document

    def test_corporate_flat(self):
        outcome = make_outcome(
            fields=(make_field("company_name", "COMPANY_INFORMATION"),),
            risk=RiskParameters(estimated_processing_days=7),
        )
        document = _compose(outcome, variant=CustomerVariant.CORPORATE, mode=PresentationMode.FLAT)

        assert document["customerType"] == "CORPORATE"
        assert document["product"] == "FX"
        assert document["estimatedProcessingDays"] == 7

    def test_same_counts_as_schema_mode(self, savings_fields):
        outcome = make_outcome(fields=savings_fields + (make_field("gender", mandatory=False, display_order=3),))
        flat = _compose(outcome, mode=PresentationMode.FLAT)
        schema = _compose(outcome)

        assert flat["totalRequiredFields"] == schema["x-metadata"]["totalRequiredFields"]
        assert flat["totalOptionalFields"] == schema["x-metadata"]["totalOptionalFields"]
