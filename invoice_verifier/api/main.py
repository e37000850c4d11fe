"""
FastAPI application for the Invoice Verification Service.

Endpoints
---------
- GET  /health, /api/health
- POST /api/verify-invoice      (bearer token required)
- POST /api/verify-invoices     (bearer token required, bulk)
- GET  /api/invoice/{invoiceId}
- GET  /api/invoices
- POST /debug/verify-invoice    (only when DEBUG_ENDPOINTS is set)
"""

from __future__ import annotations

import logging
import secrets
from functools import lru_cache
from http import HTTPStatus
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..config import Settings, settings
from ..errors import ConfigurationError, InfrastructureFault, NormalizationFailure
from ..normalizer import normalize_invoice_id
from ..schema import (
    BulkVerificationResponse,
    ErrorResponse,
    InvoiceListResponse,
    InvoiceLookupResponse,
    VerificationRequest,
    VerificationResponse,
    now_ms,
)
from ..store import InMemoryRecordStore, load_store
from ..verifier import VerificationEngine

logging.basicConfig(
    level=settings.LOG_LEVEL, format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Invoice Verification Service", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

bearer_scheme = HTTPBearer(auto_error=False)


def _error(status_code: int, error: str, message: str) -> JSONResponse:
    body = ErrorResponse(error=error, message=message)
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True))


# --- Dependencies ---


def get_settings() -> Settings:
    return settings


@lru_cache
def get_record_store() -> InMemoryRecordStore:
    return load_store(settings)


def get_engine(
    store: InMemoryRecordStore = Depends(get_record_store),
    current: Settings = Depends(get_settings),
) -> VerificationEngine:
    return VerificationEngine.from_settings(store, current)


def require_api_key(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    current: Settings = Depends(get_settings),
) -> None:
    """
    Static bearer-token check against the configured API_KEY.
    """
    if not current.API_KEY:
        raise ConfigurationError("API key not configured")
    if credentials is None:
        raise HTTPException(
            status_code=401,
            detail="Valid Bearer token required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not secrets.compare_digest(
        credentials.credentials.encode("utf-8"), current.API_KEY.encode("utf-8")
    ):
        logger.warning("Rejected request with invalid API key")
        raise HTTPException(
            status_code=401,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "Bearer"},
        )


def require_debug_endpoints(current: Settings = Depends(get_settings)) -> None:
    if not current.DEBUG_ENDPOINTS:
        raise HTTPException(status_code=404, detail="Debug endpoints are disabled")


# --- Error handlers ---


@app.exception_handler(InfrastructureFault)
async def infrastructure_fault_handler(request: Request, exc: InfrastructureFault):
    logger.error("Infrastructure fault on %s %s: %s", request.method, request.url.path, exc)
    return _error(500, "Internal server error", str(exc))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
    )
    return _error(400, "Invalid request body", details)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    response = _error(exc.status_code, HTTPStatus(exc.status_code).phrase, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


# --- Endpoints ---


@app.get("/health")
@app.get("/api/health")
async def health(current: Settings = Depends(get_settings)) -> dict:
    """
    Liveness check. Does not touch the record store.
    """
    return {
        "status": "OK",
        "timestamp": now_ms(),
        "environment": current.ENVIRONMENT,
    }


@app.post(
    "/api/verify-invoice",
    response_model=VerificationResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(require_api_key)],
)
def verify_invoice(
    request: VerificationRequest,
    engine: VerificationEngine = Depends(get_engine),
):
    """
    Verify one invoice id and optional amount.

    Valid and invalid verdicts are both 200; only a missing id is a 400.
    """
    if request.invoice_id is None:
        return _error(400, "Missing required parameters", "invoiceId is required")

    result = engine.verify(request.invoice_id, request.amount)
    return VerificationResponse.from_result(result)


@app.post(
    "/api/verify-invoices",
    response_model=BulkVerificationResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(require_api_key)],
)
def verify_invoices(
    requests: List[VerificationRequest],
    engine: VerificationEngine = Depends(get_engine),
) -> BulkVerificationResponse:
    """
    Verify a JSON array of `{invoiceId, amount}` objects, each independently.
    """
    report = engine.verify_bulk(requests)
    return BulkVerificationResponse(
        results=[VerificationResponse.from_result(r) for r in report.results],
        summary=report.summary,
    )


@app.get("/api/invoice/{invoice_id}", response_model=InvoiceLookupResponse)
def get_invoice(
    invoice_id: str,
    store: InMemoryRecordStore = Depends(get_record_store),
):
    """
    Return the stored record for an invoice id, or 404.
    """
    try:
        record = store.get(normalize_invoice_id(invoice_id))
    except NormalizationFailure:
        record = None

    if record is None:
        return JSONResponse(
            status_code=404,
            content={
                "error": "Invoice not found",
                "invoiceId": invoice_id,
                "availableInvoices": store.ids(),
            },
        )
    return InvoiceLookupResponse(invoice=record)


@app.get("/api/invoices", response_model=InvoiceListResponse)
def list_invoices(
    store: InMemoryRecordStore = Depends(get_record_store),
) -> InvoiceListResponse:
    records = store.all()
    return InvoiceListResponse(invoices=records, count=len(records))


@app.post("/debug/verify-invoice", dependencies=[Depends(require_debug_endpoints)])
def debug_verify_invoice(
    request: VerificationRequest,
    engine: VerificationEngine = Depends(get_engine),
) -> dict:
    """
    Unauthenticated verification with input diagnostics, for local testing.
    """
    try:
        normalized_id = normalize_invoice_id(request.invoice_id)
    except NormalizationFailure:
        normalized_id = None

    result = engine.verify(request.invoice_id, request.amount)
    return {
        "isValid": result.is_valid,
        "invoiceId": request.invoice_id,
        "normalizedId": normalized_id,
        "amount": request.amount,
        "message": result.message,
        "debug": {
            "invoiceIdType": type(request.invoice_id).__name__,
            "amountType": type(request.amount).__name__,
            "statusGating": engine.status_gating,
            "amountCheck": engine.amount_check,
        },
    }


# For local development convenience:
#   uvicorn invoice_verifier.api.main:app --reload
