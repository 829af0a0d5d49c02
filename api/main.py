"""
KYCPilot API

REST binding for the KYC requirement engine.

Run: uvicorn api.main:app
"""

import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from api.routes import reference, requirements
from kycpilot import __version__, config
from kycpilot.engine import KycRequirementService, RuleEngine, RuleSet
from kycpilot.exceptions import ConfigurationError, EvaluationFailure, KycPilotError
from kycpilot.models import utc_timestamp
from kycpilot.packs import RulePackLoader


# =============================================================================
# Logging Setup (Structured JSON)
# =============================================================================

EXTRA_LOG_FIELDS = (
    "variant",
    "mode",
    "rules_fired",
    "risk_level",
    "reference_id",
    "duration_ms",
    "error_code",
    "pack_id",
    "path",
    "rule",
    "category",
    "field_id",
    "rules_dir",
    "rule_set_hash",
)


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        # Add extra fields if present
        for name in EXTRA_LOG_FIELDS:
            if hasattr(record, name):
                log_entry[name] = getattr(record, name)
        return json.dumps(log_entry, default=str)


# Configure logging
logger = logging.getLogger("kycpilot")
logger.setLevel(getattr(logging, config.KYC_LOG_LEVEL.upper(), logging.INFO))
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())
    logger.addHandler(handler)


# Compiled rule set (set on startup)
RULE_SET: Optional[RuleSet] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load rule packs on startup. A broken rule set stops the service."""
    global RULE_SET

    logger.info("Loading rule packs", extra={"rules_dir": str(config.KYC_RULES_DIR)})
    loader = RulePackLoader(strict_version=config.KYC_STRICT_SCHEMA_VERSION)
    try:
        RULE_SET = loader.load_directory(config.KYC_RULES_DIR)
    except ConfigurationError as e:
        logger.error(
            "Rule set failed to load: %s",
            e.message,
            extra={"error_code": e.code, "rules_dir": str(config.KYC_RULES_DIR)},
        )
        raise

    requirements.set_service(KycRequirementService(RuleEngine(RULE_SET)))
    logger.info(
        "Loaded %d rules from %d packs",
        len(RULE_SET),
        len(RULE_SET.pack_ids),
        extra={"rule_set_hash": RULE_SET.content_hash[:16]},
    )

    yield

    requirements.set_service(None)
    RULE_SET = None
    logger.info("Shutting down")


# Create app
app = FastAPI(
    title="KYCPilot API",
    description="""
**KYC requirement aggregation and document composition.**

Given a customer profile, returns the data fields, documents and special
instructions the bank must collect, as a JSON-Schema form or a flat
category map.

## Endpoints

- `POST /api/v1/kyc/requirements` - individual account opening
- `POST /api/v1/kyc/individual/product/requirements` - individual product
- `POST /api/v1/kyc/corporate/requirements` - corporate product
- `?format=schema|flat` selects the presentation mode
    """,
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if config.KYC_DOCS_ENABLED else None,
    redoc_url="/redoc" if config.KYC_DOCS_ENABLED else None,
)


# =============================================================================
# Error Handlers
# =============================================================================

def _error_content(e: KycPilotError) -> dict:
    return {
        "error": True,
        "code": e.code,
        "message": e.message,
        "timestamp": utc_timestamp(),
    }


@app.exception_handler(EvaluationFailure)
async def evaluation_failure_handler(request: Request, e: EvaluationFailure):
    logger.error(
        "Evaluation failed: %s",
        e.message,
        extra={"variant": e.variant, "error_code": e.code},
    )
    return JSONResponse(status_code=500, content=_error_content(e))


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, e: ConfigurationError):
    return JSONResponse(status_code=503, content=_error_content(e))


# Include routers
app.include_router(requirements.router)
app.include_router(reference.router)


@app.get("/api/v1/kyc/health", tags=["Health"])
async def health():
    """Health check endpoint."""
    ready = RULE_SET is not None and requirements.service is not None
    content = {
        "status": "UP" if ready else "DOWN",
        "service": config.KYC_SERVICE_NAME,
        "timestamp": utc_timestamp(),
        "rulesLoaded": len(RULE_SET) if RULE_SET is not None else 0,
        "ruleSetHash": RULE_SET.content_hash[:16] if RULE_SET is not None else None,
    }
    if not ready:
        return JSONResponse(status_code=503, content=content)
    return content


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
