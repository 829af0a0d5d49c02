"""
KYCPilot Profile Normalizer

Turns a raw request of one of the three variants into a ProfileFact.

Only discriminant presence is checked here. Optional attributes are
passed through untouched, with no business defaulting. A missing or
null discriminant never escapes as an exception: normalize_request()
returns an ErrorResponse instead.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Union

from .exceptions import ValidationError
from .models import CustomerVariant, ErrorResponse, ProfileFact
from .variants import VariantProfile, get_variant

logger = logging.getLogger(__name__)

# Request key -> ProfileFact attribute
_ATTRIBUTE_NAMES = {
    "customerType": "customer_type",
    "accountType": "account_type",
    "product": "product",
    "nationality": "nationality",
    "pep": "pep",
    "country": "country",
}


class ProfileNormalizer:
    """
    Validates discriminants for one variant and builds the fact.

    Usage:
        normalizer = ProfileNormalizer(CustomerVariant.CORPORATE)
        fact = normalizer.normalize({"product": "FX"})
    """

    def __init__(self, variant: Union[CustomerVariant, str]):
        self.profile: VariantProfile = get_variant(variant)

    def normalize(self, payload: Optional[Mapping[str, Any]]) -> ProfileFact:
        """
        Build a ProfileFact from a raw request.

        Raises:
            ValidationError: If a required discriminant is missing or null
        """
        payload = payload or {}
        missing = [key for key in self.profile.required if payload.get(key) is None]
        if missing:
            raise ValidationError(
                message=self.profile.error_message,
                details={"missing": missing},
                variant=self.profile.variant.value,
            )

        values: dict[str, Any] = {}
        for key in self.profile.required + self.profile.optional:
            values[_ATTRIBUTE_NAMES[key]] = payload.get(key)
        if self.profile.customer_type is not None:
            values["customer_type"] = self.profile.customer_type

        return ProfileFact(variant=self.profile.variant, **values)


def normalize_request(
    variant: Union[CustomerVariant, str],
    payload: Optional[Mapping[str, Any]],
) -> Union[ProfileFact, ErrorResponse]:
    """
    Normalize a request, converting validation failures to an error object.

    Returns:
        ProfileFact on success, ErrorResponse when a discriminant is
        missing or the variant is unknown
    """
    try:
        return ProfileNormalizer(variant).normalize(payload)
    except ValidationError as e:
        logger.info(
            "Request rejected: %s",
            e.message,
            extra={"variant": e.variant or str(variant), "error_code": e.code},
        )
        return ErrorResponse(message=e.message)
