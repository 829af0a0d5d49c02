"""
KYCPilot Profile Records

The normalized request (ProfileFact) and the structured error object
returned when a request cannot be normalized.

A ProfileFact is ephemeral: one per request, never persisted.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from .enums import CustomerVariant


def utc_timestamp() -> str:
    """ISO 8601 timestamp in UTC."""
    return datetime.now(timezone.utc).isoformat()


# =============================================================================
# Profile Fact
# =============================================================================

@dataclass(frozen=True)
class ProfileFact:
    """
    Canonical fact record for one request.

    Which attributes are populated depends on the variant:
    - individual: customer_type, account_type (+ nationality, pep, country)
    - individual_product: product (+ country)
    - corporate: product (+ country)

    Optional attributes are carried exactly as received.
    """
    variant: CustomerVariant
    customer_type: Optional[str] = None
    account_type: Optional[str] = None
    product: Optional[str] = None
    nationality: Optional[str] = None
    pep: Optional[Any] = None
    country: Optional[str] = None

    def attributes(self) -> dict[str, Any]:
        """
        Generic attribute map handed to the rule engine.

        Null attributes are kept so rules can test for them explicitly.
        """
        return {
            "variant": self.variant.value,
            "customer_type": self.customer_type,
            "account_type": self.account_type,
            "product": self.product,
            "nationality": self.nationality,
            "pep": self.pep,
            "country": self.country,
        }


# =============================================================================
# Error Response
# =============================================================================

@dataclass(frozen=True)
class ErrorResponse:
    """
    Well-formed error object returned in place of a requirement document.

    Serializes to {"error": true, "message": ..., "timestamp": ...}.
    """
    message: str
    timestamp: str = field(default_factory=utc_timestamp)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": True,
            "message": self.message,
            "timestamp": self.timestamp,
        }
