"""
Invoice identifier normalization.

Callers hand us whatever arrived on the wire: a string, a number, a string with
padding or leading zeros. `normalize_invoice_id` is the only place that turns
such a value into the canonical key used for record lookups.
"""

from __future__ import annotations

import logging
from typing import Union

from .errors import NormalizationFailure

logger = logging.getLogger(__name__)

RawIdentifier = Union[str, int, float, None]


def _to_text(raw: Union[str, int, float]) -> str:
    # 7.0 arrives from JSON transports that only know doubles; key it as "7".
    if isinstance(raw, float) and raw.is_integer():
        return str(int(raw))
    return str(raw)


def normalize_invoice_id(raw: RawIdentifier) -> str:
    """
    Return the canonical form of a raw invoice identifier.

    Leading zeros are stripped, but an all-zero identifier collapses to "0"
    rather than to an empty key, so "no identifier" and "identifier zero"
    stay distinguishable.

    Raises
    ------
    NormalizationFailure
        If `raw` is None, blank after trimming, or cannot be rendered as text.
    """
    if raw is None:
        raise NormalizationFailure(raw)
    if isinstance(raw, bool):
        raise NormalizationFailure(raw, "not a string or number")

    try:
        text = _to_text(raw).strip()
    except ValueError as exc:
        raise NormalizationFailure(raw, "too long to convert") from exc
    if not text:
        raise NormalizationFailure(raw)

    canonical = text.lstrip("0") or "0"
    logger.debug("Normalized invoice id %r (%s) -> %r", raw, type(raw).__name__, canonical)
    return canonical
