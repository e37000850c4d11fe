"""
Data models for invoice records and verification input/output.

All external components (store, verifier, API, CLI) should use these
Pydantic models to ensure a consistent contract. Wire-facing models
serialize with camelCase aliases (`isValid`, `invoiceId`, ...) because that
is what on-chain oracle callers parse.
"""

from __future__ import annotations

import time
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    field_validator,
)
from pydantic.alias_generators import to_camel

from .normalizer import normalize_invoice_id

# Strict members keep JSON booleans as booleans so the engine can reject
# them, instead of lax coercion turning true into 1.
RawValue = Union[StrictStr, StrictBool, StrictInt, StrictFloat, Decimal, None]


def now_ms() -> int:
    """Epoch milliseconds, used for response timestamps."""
    return int(time.time() * 1000)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class InvoiceStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    DISPUTED = "disputed"


class InvoiceRecord(CamelModel):
    """
    One payable obligation as supplied by the record store.

    Records are read-only snapshots; the engine never mutates them.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    id: str = Field(..., description="Canonical invoice identifier.")
    amount: Decimal = Field(..., description="Exact amount owed.")
    status: InvoiceStatus = Field(..., description="Lifecycle status.")
    supplier: str = Field(..., description="Supplier the invoice is owed to.")
    created_at: Optional[datetime] = Field(
        default=None, description="When the invoice was raised. Pass-through only."
    )
    category: Optional[str] = Field(
        default=None, description="Expense category. Pass-through only."
    )
    currency: Optional[str] = Field(
        default=None, description="Currency code, e.g. 'USD'. Pass-through only."
    )

    @field_validator("id", mode="before")
    @classmethod
    def canonical_id(cls, v):
        """
        Store records under the same canonical key the engine looks up.
        """
        return normalize_invoice_id(v)

    @field_validator("amount", mode="before")
    @classmethod
    def float_via_repr(cls, v):
        # 19.99 must become Decimal("19.99"), not its binary expansion.
        if isinstance(v, float):
            return str(v)
        return v

    @field_validator("status", mode="before")
    @classmethod
    def lowercase_status(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v


class VerificationRequest(CamelModel):
    """
    A single claim to verify, exactly as the caller sent it.

    Both fields stay untyped here; normalization and amount coercion happen
    once, inside the engine.
    """

    invoice_id: RawValue = Field(
        default=None, description="Raw invoice identifier (string or number)."
    )
    amount: RawValue = Field(
        default=None, description="Optional claimed amount (string or number)."
    )


class VerificationResult(CamelModel):
    """
    Verdict for a single verification request.
    """

    is_valid: bool = Field(..., description="True if the claim verified.")
    invoice_id: RawValue = Field(
        default=None,
        description="Canonical id, or the raw input when it could not be normalized.",
    )
    amount: RawValue = Field(default=None, description="Claimed amount, echoed.")
    message: str = Field(..., description="Human-readable outcome.")
    reason: Optional[str] = Field(
        default=None, description="Machine-readable rejection code, None when valid."
    )
    record: Optional[InvoiceRecord] = Field(
        default=None, description="Record consulted, if one was found."
    )


class VerificationSummary(CamelModel):
    """
    Aggregate counts for a bulk verification.
    """

    total: int = Field(..., description="Number of requests evaluated.")
    valid_count: int = Field(..., description="Number of valid verdicts.")
    invalid_count: int = Field(..., description="Number of invalid verdicts.")


class BulkVerificationReport(CamelModel):
    results: List[VerificationResult] = Field(
        default_factory=list, description="Per-request verdicts, in input order."
    )
    summary: VerificationSummary


# --- HTTP response shapes ---


class VerificationResponse(CamelModel):
    is_valid: bool
    invoice_id: RawValue = None
    amount: RawValue = None
    message: str
    reason: Optional[str] = None
    timestamp: int = Field(default_factory=now_ms)

    @classmethod
    def from_result(cls, result: VerificationResult) -> "VerificationResponse":
        return cls(
            is_valid=result.is_valid,
            invoice_id=result.invoice_id,
            amount=result.amount,
            message=result.message,
            reason=result.reason,
        )


class BulkVerificationResponse(CamelModel):
    results: List[VerificationResponse]
    summary: VerificationSummary
    timestamp: int = Field(default_factory=now_ms)


class ErrorResponse(CamelModel):
    error: str
    message: str
    is_valid: bool = False
    timestamp: int = Field(default_factory=now_ms)


class InvoiceLookupResponse(CamelModel):
    success: bool = True
    invoice: InvoiceRecord
    timestamp: int = Field(default_factory=now_ms)


class InvoiceListResponse(CamelModel):
    success: bool = True
    invoices: List[InvoiceRecord]
    count: int
