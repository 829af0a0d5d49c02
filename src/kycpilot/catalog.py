"""
KYCPilot Reference Catalog

Static reference lists served to form builders.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class Product:
    """A product a corporate customer can onboard for."""
    code: str
    name: str
    description: str


CUSTOMER_TYPES: tuple[str, ...] = (
    "INDIVIDUAL",
    "CORPORATE",
    "SOLE_PROPRIETOR",
    "PARTNERSHIP",
    "TRUST",
    "FOREIGNER",
)

ACCOUNT_TYPES: tuple[str, ...] = (
    "SAVINGS",
    "CURRENT",
    "FIXED_DEPOSIT",
    "INVESTMENT",
    "LOAN",
    "CREDIT_CARD",
)

CORPORATE_PRODUCTS: tuple[Product, ...] = (
    Product("CASA", "Current Account Savings Account", "Basic banking account for corporate customers"),
    Product("FX", "Foreign Exchange", "Foreign exchange trading and hedging services"),
    Product("TRADING", "Securities Trading", "Securities and derivatives trading account"),
)


def customer_types() -> dict[str, Any]:
    return {"customerTypes": list(CUSTOMER_TYPES)}


def account_types() -> dict[str, Any]:
    return {"accountTypes": list(ACCOUNT_TYPES)}


def corporate_products() -> dict[str, Any]:
    return {"products": [asdict(p) for p in CORPORATE_PRODUCTS]}
