"""Requirement document endpoints."""

from typing import Any, Optional

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from api.schemas.requests import (
    CorporateKycRequest,
    IndividualKycRequest,
    IndividualProductKycRequest,
)
from kycpilot import config
from kycpilot.engine import KycRequirementService
from kycpilot.exceptions import ConfigurationError
from kycpilot.models import CustomerVariant, PresentationMode

router = APIRouter(prefix="/api/v1/kyc", tags=["KYC Requirements"])

# Shared service instance (set by main.py)
service: Optional[KycRequirementService] = None


def set_service(s: Optional[KycRequirementService]):
    global service
    service = s


def _requirements(
    variant: CustomerVariant,
    request: BaseModel,
    mode: PresentationMode,
) -> Any:
    if service is None:
        raise ConfigurationError(message="Rule set not loaded")

    document = service.get_requirements(variant, request.model_dump(), mode)
    if document.get("error"):
        return JSONResponse(status_code=400, content=document)
    return document


@router.post("/requirements")
def individual_requirements(
    request: IndividualKycRequest,
    mode: PresentationMode = Query(config.KYC_DEFAULT_FORMAT, alias="format"),
):
    """
    Requirements for an individual opening an account.

    Requires customerType and accountType.
    """
    return _requirements(CustomerVariant.INDIVIDUAL, request, mode)


@router.post("/individual/product/requirements")
def individual_product_requirements(
    request: IndividualProductKycRequest,
    mode: PresentationMode = Query(config.KYC_DEFAULT_FORMAT, alias="format"),
):
    """Requirements for an individual subscribing to a product. Requires product."""
    return _requirements(CustomerVariant.INDIVIDUAL_PRODUCT, request, mode)


@router.post("/corporate/requirements")
def corporate_requirements(
    request: CorporateKycRequest,
    mode: PresentationMode = Query(config.KYC_DEFAULT_FORMAT, alias="format"),
):
    """Requirements for a corporate customer. Requires product (CASA, FX or TRADING)."""
    return _requirements(CustomerVariant.CORPORATE, request, mode)
