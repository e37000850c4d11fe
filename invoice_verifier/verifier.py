"""
Invoice verification logic.

This module implements:
- Identifier normalization and record lookup
- Status gating (only pending invoices are payable)
- Amount reconciliation against the recorded amount, within a tolerance

The main entrypoints are:
- `VerificationEngine.verify` for a single claim
- `VerificationEngine.verify_bulk` for a batch, including a summary
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation, Overflow, localcontext
from typing import List, Optional, Sequence

from . import errors
from .errors import NormalizationFailure
from .normalizer import normalize_invoice_id
from .schema import (
    BulkVerificationReport,
    InvoiceRecord,
    InvoiceStatus,
    RawValue,
    VerificationRequest,
    VerificationResult,
    VerificationSummary,
)
from .store import RecordStore

logger = logging.getLogger(__name__)


# Absorbs rounding picked up when amounts travel as JSON doubles. It is not
# an allowance for a genuinely different amount.
TOLERANCE = Decimal("0.001")

VERIFIED_MESSAGE = "Invoice verified successfully"


def _parse_amount(value: RawValue) -> Optional[Decimal]:
    """
    Coerce a claimed amount to Decimal. Returns None if it is not numeric.
    """
    if isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, Decimal)):
            amount = Decimal(value)
        elif isinstance(value, float):
            amount = Decimal(str(value))
        elif isinstance(value, str):
            amount = Decimal(value.strip())
        else:
            return None
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite():
        return None
    return amount


def _within_tolerance(expected: Decimal, claimed: Decimal, tol: Decimal = TOLERANCE) -> bool:
    """
    Check if two amounts are equal within a given tolerance (inclusive).

    A difference too large for the decimal context counts as infinite.
    """
    with localcontext() as ctx:
        ctx.traps[Overflow] = False
        return abs(expected - claimed) <= tol


class VerificationEngine:
    """
    Decides whether a claimed invoice id (and optional amount) is payable.

    Parameters
    ----------
    store:
        Record store used for lookups.
    status_gating:
        When True, only records with status `pending` verify.
    amount_check:
        When True and an amount is claimed, it must match the record within
        `tolerance`.
    tolerance:
        Maximum absolute difference accepted by the amount check.
    """

    def __init__(
        self,
        store: RecordStore,
        status_gating: bool = True,
        amount_check: bool = True,
        tolerance: Decimal = TOLERANCE,
    ) -> None:
        if tolerance < 0:
            raise ValueError("tolerance must not be negative")
        self.store = store
        self.status_gating = status_gating
        self.amount_check = amount_check
        self.tolerance = Decimal(tolerance)

    @classmethod
    def from_settings(cls, store: RecordStore, settings) -> "VerificationEngine":
        return cls(
            store,
            status_gating=settings.STATUS_GATING,
            amount_check=settings.AMOUNT_CHECK,
            tolerance=settings.AMOUNT_TOLERANCE,
        )

    def _reject(
        self,
        invoice_id: RawValue,
        amount: RawValue,
        reason: str,
        message: str,
        record: Optional[InvoiceRecord] = None,
    ) -> VerificationResult:
        logger.info("Verification rejected (%s): %s", reason, message)
        return VerificationResult(
            is_valid=False,
            invoice_id=invoice_id,
            amount=amount,
            message=message,
            reason=reason,
            record=record,
        )

    def verify(self, raw_id: RawValue, raw_amount: RawValue = None) -> VerificationResult:
        """
        Verify a single claim.

        Business-rule failures come back as `is_valid=False` with a reason;
        this never raises for malformed input. `RecordStoreError` from the
        store is not caught.

        Parameters
        ----------
        raw_id:
            Identifier as received (string, number or None).
        raw_amount:
            Claimed amount as received, or None to skip the amount check.

        Returns
        -------
        VerificationResult
            Verdict, reason and the record consulted (if any).
        """
        try:
            invoice_id = normalize_invoice_id(raw_id)
        except NormalizationFailure as exc:
            return self._reject(raw_id, raw_amount, errors.INVALID_INVOICE_ID, str(exc))

        record = self.store.get(invoice_id)
        if record is None:
            return self._reject(
                invoice_id,
                raw_amount,
                errors.INVOICE_NOT_FOUND,
                f"Invoice {invoice_id} not found",
            )

        if self.status_gating and record.status is not InvoiceStatus.PENDING:
            return self._reject(
                invoice_id,
                raw_amount,
                errors.STATUS_NOT_PENDING,
                f"Invoice {invoice_id} status is '{record.status.value}', not 'pending'",
                record,
            )

        if self.amount_check and raw_amount is not None:
            claimed = _parse_amount(raw_amount)
            if claimed is None:
                return self._reject(
                    invoice_id,
                    raw_amount,
                    errors.INVALID_AMOUNT,
                    f"Claimed amount {raw_amount!r} is not a number",
                    record,
                )
            if not _within_tolerance(record.amount, claimed, self.tolerance):
                return self._reject(
                    invoice_id,
                    raw_amount,
                    errors.AMOUNT_MISMATCH,
                    f"Invoice {invoice_id} amount mismatch: expected {record.amount}, "
                    f"got {claimed}",
                    record,
                )

        logger.info("Invoice %s verified", invoice_id)
        return VerificationResult(
            is_valid=True,
            invoice_id=invoice_id,
            amount=raw_amount,
            message=VERIFIED_MESSAGE,
            record=record,
        )

    def verify_bulk(self, items: Sequence[VerificationRequest]) -> BulkVerificationReport:
        """
        Verify each request independently and return results plus a summary.

        Results keep the input order. A rejected item has no effect on the
        others.
        """
        results: List[VerificationResult] = [
            self.verify(item.invoice_id, item.amount) for item in items
        ]

        total = len(results)
        valid_count = sum(1 for r in results if r.is_valid)
        summary = VerificationSummary(
            total=total,
            valid_count=valid_count,
            invalid_count=total - valid_count,
        )
        return BulkVerificationReport(results=results, summary=summary)
