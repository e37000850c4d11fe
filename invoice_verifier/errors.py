"""
Error types and verdict reason codes.

Business-rule failures (bad identifier, unknown invoice, wrong status, amount
drift) never escape the engine as exceptions; they are reported through the
reason codes below. Only `InfrastructureFault` and its subclasses propagate.
"""

from __future__ import annotations


INVALID_INVOICE_ID = "INVALID_INVOICE_ID"
INVOICE_NOT_FOUND = "INVOICE_NOT_FOUND"
STATUS_NOT_PENDING = "STATUS_NOT_PENDING"
INVALID_AMOUNT = "INVALID_AMOUNT"
AMOUNT_MISMATCH = "AMOUNT_MISMATCH"


class NormalizationFailure(ValueError):
    """
    Raised by the normalizer when a raw identifier is absent, blank or unusable.
    """

    def __init__(self, raw, detail: str = "missing or blank") -> None:
        self.raw = raw
        try:
            shown = repr(raw)
        except ValueError:
            # ints beyond sys.get_int_max_str_digits() cannot be rendered
            shown = f"<{type(raw).__name__}>"
        super().__init__(f"Invoice identifier is {detail}: {shown}")


class InfrastructureFault(Exception):
    """
    The service itself is broken (misconfigured or its store is unreachable).

    Distinct from a negative verdict: callers must not read this as
    "the invoice is invalid".
    """


class ConfigurationError(InfrastructureFault):
    """Required configuration is missing or malformed."""


class RecordStoreError(InfrastructureFault):
    """The backing record store could not be read."""
