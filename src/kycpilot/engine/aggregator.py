"""
KYCPilot Requirement Aggregator

Turns the flat assertion sequences of one evaluation pass into
category-partitioned, ordered structures with derived counts.

Pure functions only: no engine, no clock, no I/O.

Ordering rules:
- Categories appear in first-encounter order, never lexical order
- Fields within a category are sorted by display_order (stable)
- Documents and instructions keep first-occurrence order with
  duplicates removed
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, TypeVar

from ..models import FieldAssertion

logger = logging.getLogger(__name__)

T = TypeVar("T")


def format_category_name(category: str) -> str:
    """
    Human-readable category title.

    Example:
        >>> format_category_name("TAX_INFORMATION")
        'Tax Information'
    """
    return " ".join(word[:1].upper() + word[1:].lower() for word in category.split("_"))


def dedupe(values: Iterable[T]) -> tuple[T, ...]:
    """Remove exact duplicates, keeping the first occurrence and order."""
    return tuple(dict.fromkeys(values))


@dataclass(frozen=True)
class CategoryGroup:
    """
    Fields of one category, ready for composition.

    Attributes:
        name: Raw category value (e.g., "PERSONAL_DETAILS")
        order: Zero-based rank in first-encounter order
        fields: Fields sorted by display_order, unique by field_id
        required: Mandatory field ids in field order
    """
    name: str
    order: int
    fields: tuple[FieldAssertion, ...]
    required: tuple[str, ...]

    @property
    def key(self) -> str:
        return self.name.lower()

    @property
    def title(self) -> str:
        return format_category_name(self.name)

    @property
    def is_required(self) -> bool:
        return bool(self.required)


@dataclass(frozen=True)
class AggregatedRequirements:
    """
    Aggregator output shared by both presentation modes.

    Totals count every assertion the evaluation pass produced, so
    total_required + total_optional == number of field assertions.
    """
    categories: tuple[CategoryGroup, ...]
    required_categories: tuple[str, ...]
    documents: tuple[str, ...]
    instructions: tuple[str, ...]
    total_required: int
    total_optional: int

    @property
    def total_fields(self) -> int:
        return self.total_required + self.total_optional

    @property
    def category_titles(self) -> list[str]:
        return [c.title for c in self.categories]

    def get_category(self, name: str) -> Optional[CategoryGroup]:
        for category in self.categories:
            if category.name == name:
                return category
        return None


def _build_group(name: str, order: int, assertions: list[FieldAssertion]) -> CategoryGroup:
    ordered = sorted(assertions, key=lambda f: f.display_order)

    fields: list[FieldAssertion] = []
    seen: set[str] = set()
    for assertion in ordered:
        if assertion.field_id in seen:
            logger.warning(
                "Duplicate field '%s' in category %s ignored",
                assertion.field_id,
                name,
                extra={"category": name, "field_id": assertion.field_id},
            )
            continue
        seen.add(assertion.field_id)
        fields.append(assertion)

    required = tuple(f.field_id for f in fields if f.mandatory)
    return CategoryGroup(name=name, order=order, fields=tuple(fields), required=required)


def aggregate(
    fields: Sequence[FieldAssertion],
    documents: Sequence[str] = (),
    instructions: Sequence[str] = (),
) -> AggregatedRequirements:
    """
    Group, sort and count the assertions of one evaluation pass.

    Args:
        fields: Field assertions in emission order
        documents: Required documents in emission order
        instructions: Special instructions in emission order

    Returns:
        AggregatedRequirements
    """
    by_category: dict[str, list[FieldAssertion]] = {}
    for assertion in fields:
        by_category.setdefault(assertion.category, []).append(assertion)

    categories = tuple(
        _build_group(name, order, assertions)
        for order, (name, assertions) in enumerate(by_category.items())
    )

    keys: dict[str, str] = {}
    for category in categories:
        if category.key in keys:
            logger.warning(
                "Categories %s and %s share property key '%s'",
                keys[category.key],
                category.name,
                category.key,
                extra={"category": category.name},
            )
        else:
            keys[category.key] = category.name

    total_required = sum(1 for f in fields if f.mandatory)

    return AggregatedRequirements(
        categories=categories,
        required_categories=dedupe(c.key for c in categories if c.is_required),
        documents=dedupe(documents),
        instructions=dedupe(instructions),
        total_required=total_required,
        total_optional=len(fields) - total_required,
    )
