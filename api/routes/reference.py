"""Reference list endpoints."""

from fastapi import APIRouter

from kycpilot import catalog

router = APIRouter(prefix="/api/v1/kyc", tags=["Reference"])


@router.get("/customer-types")
async def get_customer_types():
    """Customer types accepted by the individual endpoint."""
    return catalog.customer_types()


@router.get("/account-types")
async def get_account_types():
    """Account types accepted by the individual endpoint."""
    return catalog.account_types()


@router.get("/corporate/products")
async def get_corporate_products():
    """Products available to corporate customers."""
    return catalog.corporate_products()
