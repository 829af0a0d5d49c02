"""
KYCPilot Request Variants

One table entry per request shape. A variant decides:
- which request fields are required discriminants
- which optional fields are carried into the fact
- which default risk parameters seed the evaluation
- the document title/description and the echoed discriminants

Aggregation and composition are identical across variants.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Union

from .exceptions import ValidationError
from .models import CustomerVariant, ProfileFact, RiskLevel, RiskParameters


@dataclass(frozen=True)
class VariantProfile:
    """
    Static description of one request variant.

    Attributes:
        variant: The variant discriminant
        required: Request keys that must be present and non-null
        optional: Request keys passed through when present
        error_message: Message returned when a discriminant is missing
        customer_type: Customer type fixed by the variant (None = from request)
        default_risk: Risk parameters seeded before evaluation
    """
    variant: CustomerVariant
    required: tuple[str, ...]
    optional: tuple[str, ...]
    error_message: str
    customer_type: Optional[str]
    default_risk: RiskParameters
    title_template: str
    description_template: str
    echo_product_type: bool = False

    def risk_defaults(self) -> RiskParameters:
        """Fresh copy of the default risk parameters."""
        return self.default_risk.copy()

    def title(self, fact: ProfileFact) -> str:
        return self.title_template.format(**_template_values(fact))

    def description(self, fact: ProfileFact) -> str:
        return self.description_template.format(**_template_values(fact))

    def discriminants(self, fact: ProfileFact, risk: RiskParameters) -> dict[str, Any]:
        """Discriminant values echoed in the response, in display order."""
        echoed: dict[str, Any] = {"customerType": fact.customer_type}
        if self.variant == CustomerVariant.INDIVIDUAL:
            echoed["accountType"] = fact.account_type
        else:
            echoed["product"] = fact.product
        if self.echo_product_type:
            echoed["productType"] = risk.product_type
        return echoed


def _template_values(fact: ProfileFact) -> dict[str, Any]:
    return {
        "customer_type": fact.customer_type,
        "account_type": fact.account_type,
        "product": fact.product,
    }


# =============================================================================
# Variant Table
# =============================================================================

VARIANTS: dict[CustomerVariant, VariantProfile] = {
    CustomerVariant.INDIVIDUAL: VariantProfile(
        variant=CustomerVariant.INDIVIDUAL,
        required=("customerType", "accountType"),
        optional=("nationality", "pep", "country"),
        error_message="customerType and accountType are required",
        customer_type=None,
        default_risk=RiskParameters(
            risk_level=RiskLevel.LOW,
            enhanced_due_diligence_required=False,
            estimated_processing_days=3,
        ),
        title_template="Singapore KYC Form",
        description_template="KYC requirements for {customer_type} opening {account_type} account",
    ),
    CustomerVariant.INDIVIDUAL_PRODUCT: VariantProfile(
        variant=CustomerVariant.INDIVIDUAL_PRODUCT,
        required=("product",),
        optional=("country",),
        error_message="product is required",
        customer_type="INDIVIDUAL",
        default_risk=RiskParameters(
            risk_level=RiskLevel.LOW,
            enhanced_due_diligence_required=False,
            estimated_processing_days=3,
        ),
        title_template="Singapore KYC Form - {product}",
        description_template="Individual KYC requirements for {product} product",
        echo_product_type=True,
    ),
    CustomerVariant.CORPORATE: VariantProfile(
        variant=CustomerVariant.CORPORATE,
        required=("product",),
        optional=("country",),
        error_message="product is required (CASA, FX, or TRADING)",
        customer_type="CORPORATE",
        default_risk=RiskParameters(
            risk_level=RiskLevel.LOW,
            enhanced_due_diligence_required=False,
            estimated_processing_days=7,
        ),
        title_template="Singapore Corporate KYC Form - {product}",
        description_template="Corporate KYC requirements for {product} product",
        echo_product_type=True,
    ),
}


def get_variant(variant: Union[CustomerVariant, str]) -> VariantProfile:
    """
    Look up a variant profile.

    Accepts the enum or its string value ("individual",
    "individual_product", "individual-product", "corporate").

    Raises:
        ValidationError: If the variant is unknown
    """
    if isinstance(variant, CustomerVariant):
        return VARIANTS[variant]
    key = str(variant).strip().lower().replace("-", "_")
    try:
        return VARIANTS[CustomerVariant(key)]
    except ValueError:
        raise ValidationError(
            message=f"Unknown request variant: {variant}",
            details={"available": [v.value for v in CustomerVariant]},
        )
