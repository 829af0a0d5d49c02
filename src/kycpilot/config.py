"""
KYCPilot Configuration

Environment-driven settings, read once at import time.
"""
from __future__ import annotations

import os
from pathlib import Path

from .models import PresentationMode

DEFAULT_RULES_DIR = Path(__file__).resolve().parent.parent.parent / "packs"

KYC_RULES_DIR = Path(os.getenv("KYC_RULES_DIR", str(DEFAULT_RULES_DIR)))
KYC_LOG_LEVEL = os.getenv("KYC_LOG_LEVEL", "INFO")
KYC_DOCS_ENABLED = os.getenv("KYC_DOCS_ENABLED", "true").lower() == "true"
KYC_SERVICE_NAME = os.getenv("KYC_SERVICE_NAME", "kyc-rules-service")
KYC_STRICT_SCHEMA_VERSION = os.getenv("KYC_STRICT_SCHEMA_VERSION", "true").lower() == "true"
KYC_DEFAULT_FORMAT = PresentationMode(os.getenv("KYC_DEFAULT_FORMAT", "schema").lower())
