"""Request schemas for the API.

Every field is optional: discriminant checks belong to the normalizer,
which answers with the structured error object instead of a 422.
"""

from pydantic import BaseModel, Field
from typing import Optional


class IndividualKycRequest(BaseModel):
    """Individual account opening request."""
    customerType: Optional[str] = Field(None, description="Customer type, e.g., 'INDIVIDUAL'")
    accountType: Optional[str] = Field(None, description="Account type, e.g., 'SAVINGS'")
    nationality: Optional[str] = Field(None, description="Nationality, e.g., 'SINGAPORE'")
    pep: Optional[bool] = Field(None, description="Politically exposed person")
    country: Optional[str] = Field(None, description="Country of residence")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "customerType": "INDIVIDUAL",
                    "accountType": "SAVINGS",
                    "nationality": "SINGAPORE",
                    "pep": False,
                },
            ]
        }
    }


class IndividualProductKycRequest(BaseModel):
    """Individual product onboarding request."""
    product: Optional[str] = Field(None, description="Product code: CASA, FX or TRADING")
    country: Optional[str] = Field(None, description="Country of residence")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"product": "FX", "country": "SINGAPORE"},
            ]
        }
    }


class CorporateKycRequest(BaseModel):
    """Corporate onboarding request."""
    product: Optional[str] = Field(None, description="Product code: CASA, FX or TRADING")
    country: Optional[str] = Field(None, description="Country of incorporation")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"product": "FX"},
            ]
        }
    }
