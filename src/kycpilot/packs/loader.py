"""
KYCPilot Rule Pack Loader

Loads and validates rule packs from YAML or JSON files and compiles
them into an immutable RuleSet.

Converts Pydantic schema models to engine rule definitions.
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Optional, Union

import yaml
from pydantic import ValidationError

from ..engine.rule_engine import RiskOverride, RuleAction, RuleDefinition, RuleSet
from ..exceptions import (
    ConfigurationError,
    RulePackLoadError,
    RulePackValidationError,
    RulePackVersionMismatch,
)
from ..models import (
    Condition,
    ConditionOperator,
    FieldAssertion,
    Predicate,
    RiskLevel,
)
from .schema import (
    SCHEMA_VERSION,
    ConditionSchema,
    FieldSchema,
    RiskOverrideSchema,
    RuleSchema,
    RulePackSchema,
    check_schema_version,
    validate_rule_pack,
)

logger = logging.getLogger(__name__)

PACK_SUFFIXES = {".yaml", ".yml", ".json"}


@dataclass(frozen=True)
class RulePack:
    """A validated, converted rule pack."""
    id: str
    name: str
    version: str
    jurisdiction: str
    rules: tuple[RuleDefinition, ...]
    variant: Optional[str] = None
    description: Optional[str] = None
    source: Optional[str] = None


# =============================================================================
# Reference Integrity Validation
# =============================================================================

def _iter_conditions(condition: Optional[Condition]) -> Iterable[Condition]:
    if condition is None:
        return
    yield condition
    for child in condition.children:
        yield from _iter_conditions(child)


def validate_rule_integrity(pack: RulePack, path: str = "") -> None:
    """
    Validate a pack's rules are internally consistent.

    Catches:
    - Duplicate rule names
    - Validation patterns and `matches` values that are not valid regexes
    - A rule asserting the same field twice in one category

    Raises:
        ValueError: If integrity errors are found
    """
    errors = []

    seen_names: set[str] = set()
    for rule in pack.rules:
        if rule.name in seen_names:
            errors.append(f"Duplicate rule name: '{rule.name}'")
        seen_names.add(rule.name)

        seen_fields: set[tuple[str, str]] = set()
        for assertion in rule.action.fields:
            key = (assertion.category, assertion.field_id)
            if key in seen_fields:
                errors.append(
                    f"Rule '{rule.name}' asserts '{assertion.field_id}' twice in {assertion.category}"
                )
            seen_fields.add(key)

            if assertion.validation_pattern is not None:
                try:
                    re.compile(assertion.validation_pattern)
                except re.error as e:
                    errors.append(
                        f"Rule '{rule.name}' field '{assertion.field_id}' has invalid pattern: {e}"
                    )

        for condition in _iter_conditions(rule.when):
            predicate = condition.predicate
            if predicate is not None and predicate.operator == ConditionOperator.MATCHES:
                try:
                    re.compile(str(predicate.value))
                except re.error as e:
                    errors.append(f"Rule '{rule.name}' has invalid regex condition: {e}")

    if errors:
        path_str = f" in {path}" if path else ""
        raise ValueError(
            f"Reference integrity errors{path_str}:\n" +
            "\n".join(f"  - {e}" for e in errors)
        )


# =============================================================================
# Schema to Model Converters
# =============================================================================

def _convert_condition(schema: ConditionSchema) -> Condition:
    """Convert ConditionSchema to Condition model."""
    op = ConditionOperator(schema.op)

    if op.is_logical:
        children = tuple(_convert_condition(c) for c in (schema.children or []))
        return Condition(
            op=op,
            children=children,
            id=schema.id,
            description=schema.description,
        )

    value = schema.value
    if isinstance(value, list):
        value = tuple(value)
    predicate = Predicate(
        field=schema.field or "",
        operator=op,
        value=value,
        description=schema.description,
    )
    return Condition(
        op=op,
        predicate=predicate,
        id=schema.id,
        description=schema.description or f"{schema.field} {op.value} {schema.value}",
    )


def _convert_field(schema: FieldSchema) -> FieldAssertion:
    """Convert FieldSchema to FieldAssertion model."""
    return FieldAssertion(
        field_id=schema.field_id,
        category=schema.category,
        field_name=schema.field_name,
        description=schema.description,
        mandatory=schema.mandatory,
        display_order=schema.display_order,
        field_type=schema.field_type,
        validation_pattern=schema.validation_pattern,
        document_required=schema.document_required,
        accepted_documents=(
            tuple(schema.accepted_documents) if schema.accepted_documents is not None else None
        ),
        additional_notes=schema.additional_notes,
    )


def _convert_risk(schema: Optional[RiskOverrideSchema]) -> RiskOverride:
    """Convert RiskOverrideSchema to RiskOverride model."""
    if schema is None:
        return RiskOverride()
    return RiskOverride(
        risk_level=RiskLevel(schema.risk_level) if schema.risk_level else None,
        enhanced_due_diligence_required=schema.enhanced_due_diligence_required,
        estimated_processing_days=schema.estimated_processing_days,
        product_type=schema.product_type,
    )


def _scope_condition(when: Optional[Condition], variant: Optional[str]) -> Optional[Condition]:
    """AND a pack-level variant guard in front of a rule condition."""
    if variant is None:
        return when
    guard = Condition(
        op=ConditionOperator.EQ,
        predicate=Predicate(field="variant", operator=ConditionOperator.EQ, value=variant),
        description=f"variant eq {variant}",
    )
    if when is None:
        return guard
    return Condition(op=ConditionOperator.AND, children=(guard, when), description=when.description)


def _convert_rule(
    schema: RuleSchema,
    pack_id: str,
    variant: Optional[str] = None,
) -> RuleDefinition:
    """Convert RuleSchema to RuleDefinition model."""
    action = RuleAction(
        fields=tuple(_convert_field(f) for f in schema.then.fields),
        documents=tuple(schema.then.documents),
        instructions=tuple(schema.then.instructions),
        risk=_convert_risk(schema.then.risk),
    )
    return RuleDefinition(
        name=schema.name,
        action=action,
        when=_scope_condition(
            _convert_condition(schema.when) if schema.when else None,
            variant,
        ),
        salience=schema.salience,
        enabled=schema.enabled,
        pack_id=pack_id,
        description=schema.description,
    )


def _convert_rule_pack(schema: RulePackSchema, source: Optional[str] = None) -> RulePack:
    """Convert RulePackSchema to RulePack model."""
    return RulePack(
        id=schema.id,
        name=schema.name,
        version=schema.version,
        jurisdiction=schema.jurisdiction,
        rules=tuple(_convert_rule(r, schema.id, schema.variant) for r in schema.rules),
        variant=schema.variant,
        description=schema.description,
        source=source,
    )


# =============================================================================
# Rule Set Compilation
# =============================================================================

def build_rule_set(packs: Iterable[RulePack]) -> RuleSet:
    """
    Compile packs into one RuleSet, keeping declaration order.

    Raises:
        RulePackValidationError: If two packs define the same rule name
        ConfigurationError: If no rules were supplied
    """
    packs = list(packs)
    rules: list[RuleDefinition] = []
    owners: dict[str, str] = {}

    for pack in packs:
        for rule in pack.rules:
            if rule.name in owners:
                raise RulePackValidationError(
                    message=f"Duplicate rule name '{rule.name}'",
                    details={"rule": rule.name, "packs": [owners[rule.name], pack.id]},
                )
            owners[rule.name] = pack.id
            rules.append(rule)

    if not rules:
        raise ConfigurationError(
            message="Rule set is empty",
            details={"packs": [p.id for p in packs]},
        )

    return RuleSet(rules=tuple(rules), pack_ids=tuple(p.id for p in packs))


# =============================================================================
# Rule Pack Loader
# =============================================================================

class RulePackLoader:
    """
    Loads rule packs from YAML or JSON files.

    Usage:
        loader = RulePackLoader()
        pack = loader.load("packs/individual.yaml")
        rule_set = loader.load_directory("packs/")
    """

    def __init__(self, strict_version: bool = True):
        """
        Initialize the loader.

        Args:
            strict_version: If True, reject packs with incompatible schema versions
        """
        self.strict_version = strict_version
        self._packs: dict[str, RulePack] = {}

    def load(self, path: Union[str, Path]) -> RulePack:
        """
        Load a rule pack from a file.

        Raises:
            RulePackLoadError: If file cannot be read
            RulePackValidationError: If validation fails
            RulePackVersionMismatch: If schema version incompatible
        """
        path = Path(path)

        try:
            data = self._load_file(path)
        except (OSError, UnicodeDecodeError, yaml.YAMLError, json.JSONDecodeError) as e:
            raise RulePackLoadError(
                message=f"Failed to load rule pack: {e}",
                details={"path": str(path), "error": str(e)},
            ) from e

        pack = self._load_data(data, str(path))
        self._packs[pack.id] = pack
        logger.info(
            "Loaded rule pack %s (%d rules)",
            pack.id,
            len(pack.rules),
            extra={"pack_id": pack.id, "path": str(path)},
        )
        return pack

    def _load_data(self, data: Any, source: str) -> RulePack:
        if not isinstance(data, dict):
            raise RulePackValidationError(
                message="Rule pack must be a mapping",
                details={"path": source},
            )

        if self.strict_version and not check_schema_version(data):
            pack_version = data.get("schema_version", "unknown")
            raise RulePackVersionMismatch(
                message=f"Schema version mismatch: pack has {pack_version}, expected {SCHEMA_VERSION}",
                details={
                    "pack_version": pack_version,
                    "expected_version": SCHEMA_VERSION,
                    "path": source,
                },
            )

        try:
            schema = validate_rule_pack(data)
        except ValidationError as e:
            raise RulePackValidationError(
                message=f"Rule pack validation failed: {e.error_count()} errors",
                details={
                    "errors": [{"loc": list(err["loc"]), "msg": err["msg"]} for err in e.errors()],
                    "path": source,
                },
            ) from e

        pack = _convert_rule_pack(schema, source)

        try:
            validate_rule_integrity(pack, source)
        except ValueError as e:
            raise RulePackValidationError(
                message="Reference integrity validation failed",
                details={"errors": str(e), "path": source},
            ) from e

        return pack

    def load_string(self, content: str, format: str = "yaml") -> RulePack:
        """Load a rule pack from a YAML or JSON string."""
        try:
            if format.lower() == "json":
                data = json.loads(content)
            else:
                data = yaml.safe_load(content)
        except (UnicodeDecodeError, yaml.YAMLError, json.JSONDecodeError) as e:
            raise RulePackLoadError(
                message=f"Failed to parse rule pack: {e}",
                details={"format": format},
            ) from e

        pack = self._load_data(data, "<string>")
        self._packs[pack.id] = pack
        return pack

    def load_directory(self, directory: Union[str, Path]) -> RuleSet:
        """
        Load every pack in a directory and compile one RuleSet.

        Files are read in sorted name order, which fixes the declaration
        order of equal-salience rules.

        Raises:
            ConfigurationError: If the directory is missing, holds no packs,
                or any pack fails to load
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise ConfigurationError(
                message=f"Rules directory not found: {directory}",
                details={"path": str(directory)},
            )

        paths = sorted(p for p in directory.iterdir() if p.suffix.lower() in PACK_SUFFIXES)
        if not paths:
            raise ConfigurationError(
                message=f"No rule packs found in {directory}",
                details={"path": str(directory)},
            )

        return build_rule_set(self.load(p) for p in paths)

    def _load_file(self, path: Path) -> Any:
        """Load data from YAML or JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                return json.load(f)
            return yaml.safe_load(f)

    def get_pack(self, pack_id: str) -> Optional[RulePack]:
        """Get a cached pack by ID."""
        return self._packs.get(pack_id)

    def list_packs(self) -> list[str]:
        """List IDs of all loaded packs."""
        return list(self._packs.keys())


# =============================================================================
# Convenience Functions
# =============================================================================

def load_rule_pack(path: Union[str, Path]) -> RulePack:
    """Load a single rule pack with a temporary loader."""
    return RulePackLoader().load(path)


def load_rule_set(directory: Union[str, Path], strict_version: bool = True) -> RuleSet:
    """Load and compile every pack in a directory."""
    return RulePackLoader(strict_version=strict_version).load_directory(directory)
