"""
Tests for rule pack schemas and loading

Validates:
- Shipped packs load and compile
- Malformed YAML fails
- Missing keys and unknown keys fail
- Schema version mismatch fails
- Integrity errors (duplicate rules, bad regex) fail
- Variant scoping of rule conditions
- Determinism: same packs -> same rule set hash
"""
import json
from pathlib import Path

import pytest
import yaml

from kycpilot.config import DEFAULT_RULES_DIR
from kycpilot.exceptions import (
    ConfigurationError,
    RulePackLoadError,
    RulePackValidationError,
    RulePackVersionMismatch,
)
from kycpilot.models import ConditionOperator, RiskLevel
from kycpilot.packs import (
    SCHEMA_VERSION,
    RulePackLoader,
    build_rule_set,
    check_schema_version,
    load_rule_pack,
    load_rule_set,
    validate_rule_pack,
)


PACK_FILES = sorted(DEFAULT_RULES_DIR.glob("*.yaml"))


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def minimal_pack():
    """Minimal valid pack for testing."""
    return {
        "schema_version": SCHEMA_VERSION,
        "id": "TEST-PACK",
        "name": "Test Pack",
        "version": "1.0",
        "variant": "corporate",
        "rules": [
            {
                "name": "Base",
                "salience": 10,
                "then": {
                    "fields": [
                        {
                            "field_id": "company_name",
                            "category": "company_information",
                            "field_name": "Company Name",
                            "mandatory": True,
                            "display_order": 1,
                        }
                    ],
                    "documents": ["ACRA Business Profile"],
                },
            },
            {
                "name": "FX",
                "when": {"op": "eq", "field": "product", "value": "FX"},
                "then": {
                    "instructions": ["Refer to Treasury"],
                    "risk": {"risk_level": "MEDIUM", "product_type": "TREASURY"},
                },
            },
        ],
    }


@pytest.fixture
def write_pack(tmp_path):
    def _write(data, name="pack.yaml"):
        path = tmp_path / name
        if name.endswith(".json"):
            path.write_text(json.dumps(data), encoding="utf-8")
        else:
            path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
        return path
    return _write


# ============================================================================
# SHIPPED PACKS
# ============================================================================

class TestShippedPacks:

    def test_packs_present(self):
        assert [p.name for p in PACK_FILES] == [
            "corporate.yaml",
            "individual.yaml",
            "individual_product.yaml",
        ]

    @pytest.mark.parametrize("path", PACK_FILES, ids=lambda p: p.stem)
    def test_pack_loads(self, path):
        pack = load_rule_pack(path)

        assert pack.rules
        assert pack.jurisdiction == "SG"
        assert pack.variant in {"individual", "individual_product", "corporate"}
        assert all(rule.pack_id == pack.id for rule in pack.rules)

    @pytest.mark.parametrize("path", PACK_FILES, ids=lambda p: p.stem)
    def test_every_rule_scoped_to_variant(self, path):
        pack = load_rule_pack(path)

        for rule in pack.rules:
            guard = rule.when if rule.when.is_leaf else rule.when.children[0]
            assert guard.predicate.field == "variant"
            assert guard.predicate.value == pack.variant

    def test_rule_set_compiles(self, rule_set):
        assert len(rule_set) > 20
        assert rule_set.pack_ids == (
            "SG-KYC-CORPORATE",
            "SG-KYC-INDIVIDUAL",
            "SG-KYC-INDIVIDUAL-PRODUCT",
        )

    def test_rule_set_hash_deterministic(self, rule_set):
        assert load_rule_set(DEFAULT_RULES_DIR).content_hash == rule_set.content_hash


# ============================================================================
# LOADING
# ============================================================================

class TestLoader:

    def test_load_minimal(self, write_pack, minimal_pack):
        pack = RulePackLoader().load(write_pack(minimal_pack))

        assert pack.id == "TEST-PACK"
        assert len(pack.rules) == 2
        base = pack.rules[0]
        assert base.salience == 10
        assert base.action.fields[0].category == "COMPANY_INFORMATION"
        assert base.action.documents == ("ACRA Business Profile",)

    def test_risk_override_converted(self, write_pack, minimal_pack):
        fx = RulePackLoader().load(write_pack(minimal_pack)).rules[1]

        assert fx.action.risk.risk_level == RiskLevel.MEDIUM
        assert fx.action.risk.product_type == "TREASURY"
        assert fx.action.risk.estimated_processing_days is None

    def test_condition_scoped(self, write_pack, minimal_pack):
        fx = RulePackLoader().load(write_pack(minimal_pack)).rules[1]

        assert fx.when.op == ConditionOperator.AND
        guard, condition = fx.when.children
        assert guard.predicate.value == "corporate"
        assert condition.predicate.field == "product"

    def test_unscoped_pack(self, write_pack, minimal_pack):
        del minimal_pack["variant"]
        pack = RulePackLoader().load(write_pack(minimal_pack))

        assert pack.rules[0].when is None
        assert pack.rules[1].when.predicate.field == "product"

    def test_list_values_become_tuples(self, write_pack, minimal_pack):
        minimal_pack["rules"][1]["when"] = {"op": "in", "field": "product", "value": ["FX", "TRADING"]}
        fx = RulePackLoader().load(write_pack(minimal_pack)).rules[1]
        assert fx.when.children[1].predicate.value == ("FX", "TRADING")

    def test_load_json(self, write_pack, minimal_pack):
        pack = RulePackLoader().load(write_pack(minimal_pack, name="pack.json"))
        assert pack.id == "TEST-PACK"

    def test_load_string(self, minimal_pack):
        loader = RulePackLoader()
        pack = loader.load_string(yaml.safe_dump(minimal_pack))

        assert pack.id == "TEST-PACK"
        assert loader.get_pack("TEST-PACK") is pack
        assert loader.list_packs() == ["TEST-PACK"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(RulePackLoadError):
            RulePackLoader().load(tmp_path / "absent.yaml")

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("id: [unclosed\nname: Broken\n", encoding="utf-8")

        with pytest.raises(RulePackLoadError):
            RulePackLoader().load(path)

    def test_not_utf8(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_bytes(b"id: \xff\xfe\n")

        with pytest.raises(RulePackLoadError):
            RulePackLoader().load(path)
        with pytest.raises(ConfigurationError):
            RulePackLoader().load_directory(tmp_path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")

        with pytest.raises(RulePackValidationError):
            RulePackLoader().load(path)


# ============================================================================
# VALIDATION
# ============================================================================

class TestValidation:

    def test_missing_required_key(self, minimal_pack):
        del minimal_pack["id"]
        with pytest.raises(RulePackValidationError) as exc_info:
            RulePackLoader().load_string(yaml.safe_dump(minimal_pack))

        errors = exc_info.value.details["errors"]
        assert errors[0]["loc"] == ["id"]
        json.dumps(exc_info.value.to_dict())

    def test_unknown_key_rejected(self, minimal_pack):
        minimal_pack["rules"][0]["then"]["fields"][0]["colour"] = "blue"
        with pytest.raises(RulePackValidationError):
            RulePackLoader().load_string(yaml.safe_dump(minimal_pack))

    def test_unknown_operator(self, minimal_pack):
        minimal_pack["rules"][1]["when"]["op"] = "approximately"
        with pytest.raises(RulePackValidationError):
            RulePackLoader().load_string(yaml.safe_dump(minimal_pack))

    def test_in_requires_list(self, minimal_pack):
        minimal_pack["rules"][1]["when"] = {"op": "in", "field": "product", "value": "FX"}
        with pytest.raises(RulePackValidationError):
            RulePackLoader().load_string(yaml.safe_dump(minimal_pack))

    def test_not_requires_single_child(self, minimal_pack):
        minimal_pack["rules"][1]["when"] = {"op": "not", "children": []}
        with pytest.raises(RulePackValidationError):
            RulePackLoader().load_string(yaml.safe_dump(minimal_pack))

    def test_invalid_risk_level(self, minimal_pack):
        minimal_pack["rules"][1]["then"]["risk"]["risk_level"] = "SEVERE"
        with pytest.raises(RulePackValidationError):
            RulePackLoader().load_string(yaml.safe_dump(minimal_pack))

    def test_negative_processing_days(self, minimal_pack):
        minimal_pack["rules"][1]["then"]["risk"]["estimated_processing_days"] = -1
        with pytest.raises(RulePackValidationError):
            RulePackLoader().load_string(yaml.safe_dump(minimal_pack))

    def test_unknown_variant(self, minimal_pack):
        minimal_pack["variant"] = "trust"
        with pytest.raises(RulePackValidationError):
            RulePackLoader().load_string(yaml.safe_dump(minimal_pack))

    def test_field_type_uppercased(self, minimal_pack):
        minimal_pack["rules"][0]["then"]["fields"][0]["field_type"] = "date"
        schema = validate_rule_pack(minimal_pack)
        assert schema.rules[0].then.fields[0].field_type == "DATE"


# ============================================================================
# INTEGRITY
# ============================================================================

class TestIntegrity:

    def test_duplicate_rule_name(self, minimal_pack):
        minimal_pack["rules"][1]["name"] = "Base"
        with pytest.raises(RulePackValidationError) as exc_info:
            RulePackLoader().load_string(yaml.safe_dump(minimal_pack))
        assert "Duplicate rule name" in exc_info.value.details["errors"]

    def test_field_asserted_twice_in_rule(self, minimal_pack):
        fields = minimal_pack["rules"][0]["then"]["fields"]
        fields.append(dict(fields[0]))
        with pytest.raises(RulePackValidationError):
            RulePackLoader().load_string(yaml.safe_dump(minimal_pack))

    def test_invalid_validation_pattern(self, minimal_pack):
        minimal_pack["rules"][0]["then"]["fields"][0]["validation_pattern"] = "^[0-9{8$"
        with pytest.raises(RulePackValidationError) as exc_info:
            RulePackLoader().load_string(yaml.safe_dump(minimal_pack))
        assert "invalid pattern" in exc_info.value.details["errors"]

    def test_invalid_matches_regex(self, minimal_pack):
        minimal_pack["rules"][1]["when"] = {"op": "matches", "field": "product", "value": "(FX"}
        with pytest.raises(RulePackValidationError):
            RulePackLoader().load_string(yaml.safe_dump(minimal_pack))


# ============================================================================
# VERSIONING
# ============================================================================

class TestSchemaVersion:

    def test_compatible_minor(self):
        assert check_schema_version({"schema_version": "1.4.0"})

    def test_incompatible_major(self):
        assert not check_schema_version({"schema_version": "2.0.0"})

    def test_mismatch_rejected(self, minimal_pack):
        minimal_pack["schema_version"] = "2.0.0"
        with pytest.raises(RulePackVersionMismatch) as exc_info:
            RulePackLoader().load_string(yaml.safe_dump(minimal_pack))
        assert exc_info.value.details["expected_version"] == SCHEMA_VERSION

    def test_mismatch_allowed_when_not_strict(self, minimal_pack):
        minimal_pack["schema_version"] = "2.0.0"
        pack = RulePackLoader(strict_version=False).load_string(yaml.safe_dump(minimal_pack))
        assert pack.id == "TEST-PACK"


# ============================================================================
# DIRECTORIES AND RULE SETS
# ============================================================================

class TestRuleSetBuild:

    def test_load_directory(self, tmp_path, minimal_pack, write_pack):
        write_pack(minimal_pack)
        rule_set = RulePackLoader().load_directory(tmp_path)

        assert len(rule_set) == 2
        assert rule_set.pack_ids == ("TEST-PACK",)

    def test_missing_directory(self, tmp_path):
        with pytest.raises(ConfigurationError):
            RulePackLoader().load_directory(tmp_path / "nowhere")

    def test_empty_directory(self, tmp_path):
        with pytest.raises(ConfigurationError) as exc_info:
            RulePackLoader().load_directory(tmp_path)
        assert "No rule packs" in exc_info.value.message

    def test_broken_pack_fails_whole_set(self, tmp_path, minimal_pack, write_pack):
        write_pack(minimal_pack, name="a.yaml")
        (tmp_path / "b.yaml").write_text("id: [", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            RulePackLoader().load_directory(tmp_path)

    def test_duplicate_rule_across_packs(self, minimal_pack, write_pack):
        first = RulePackLoader().load(write_pack(minimal_pack, name="a.yaml"))
        minimal_pack["id"] = "OTHER-PACK"
        second = RulePackLoader().load(write_pack(minimal_pack, name="b.yaml"))

        with pytest.raises(RulePackValidationError) as exc_info:
            build_rule_set([first, second])
        assert exc_info.value.details["packs"] == ["TEST-PACK", "OTHER-PACK"]

    def test_empty_rule_set(self, minimal_pack, write_pack):
        minimal_pack["rules"] = []
        pack = RulePackLoader().load(write_pack(minimal_pack))

        with pytest.raises(ConfigurationError):
            build_rule_set([pack])

    def test_configuration_errors_are_not_evaluation_failures(self, tmp_path):
        from kycpilot.exceptions import EvaluationFailure

        with pytest.raises(ConfigurationError) as exc_info:
            load_rule_set(tmp_path)
        assert not isinstance(exc_info.value, EvaluationFailure)

    def test_other_suffixes_ignored(self, tmp_path, minimal_pack, write_pack):
        write_pack(minimal_pack)
        (tmp_path / "README.md").write_text("# notes", encoding="utf-8")

        assert len(load_rule_set(tmp_path)) == 2


def test_default_rules_dir_is_repo_packs():
    assert DEFAULT_RULES_DIR == Path(__file__).resolve().parent.parent / "packs"
