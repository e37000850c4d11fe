import sys
from decimal import Decimal

import pytest

from invoice_verifier import errors
from invoice_verifier.schema import VerificationRequest
from invoice_verifier.verifier import TOLERANCE, VerificationEngine, _parse_amount


def test_matching_pending_invoice_is_valid(engine):
    result = engine.verify("12345", "5000")

    assert result.is_valid is True
    assert result.reason is None
    assert result.invoice_id == "12345"
    assert result.amount == "5000"
    assert result.record.supplier == "Test Supplier"
    assert result.message == "Invoice verified successfully"


def test_amount_mismatch_is_invalid(engine):
    result = engine.verify("12345", "9999")

    assert result.is_valid is False
    assert result.reason == errors.AMOUNT_MISMATCH
    assert "expected 5000.00" in result.message
    assert result.record is not None


def test_unknown_invoice_is_invalid(engine):
    result = engine.verify("99999", "1000")

    assert result.is_valid is False
    assert result.reason == errors.INVOICE_NOT_FOUND
    assert result.record is None


def test_leading_zeros_are_stripped_before_lookup(engine):
    result = engine.verify("007")

    assert result.is_valid is False
    assert result.invoice_id == "7"
    assert result.reason == errors.INVOICE_NOT_FOUND


@pytest.mark.parametrize("raw_id", ["0", "000", 0])
def test_zero_invoice_without_amount_is_valid(engine, raw_id):
    result = engine.verify(raw_id)

    assert result.is_valid is True
    assert result.invoice_id == "0"


@pytest.mark.parametrize("raw_id", [None, "", "   "])
def test_missing_identifier_is_invalid_without_lookup(failing_store, raw_id):
    engine = VerificationEngine(failing_store)

    result = engine.verify(raw_id, "5000")

    assert result.is_valid is False
    assert result.reason == errors.INVALID_INVOICE_ID
    assert result.invoice_id == raw_id


@pytest.mark.parametrize("raw_id", ["12345", 12345, "0012345", "  12345 ", 12345.0])
def test_equivalent_ids_give_identical_results(engine, raw_id):
    assert engine.verify(raw_id, "5000") == engine.verify("12345", "5000")
    assert engine.verify(raw_id, "1") == engine.verify("12345", "1")


@pytest.mark.parametrize(
    "claimed",
    ["5000.001", "4999.999", "5000", "5000.0000", 5000, 5000.001, Decimal("4999.999"), " 5000.00 "],
)
def test_amount_within_tolerance_is_accepted(engine, claimed):
    assert engine.verify("12345", claimed).is_valid is True


@pytest.mark.parametrize("claimed", [
    "5000.0011",
    "4999.9989",
    5000.0011,
    "5000.01",
    "0",
    "1e1000000",
    "-1e1000000",
    "1e-1000000",
    "9" * 5000,
    "0." + "0" * 5000 + "1",
])
def test_amount_beyond_tolerance_is_rejected(engine, claimed):
    result = engine.verify("12345", claimed)

    assert result.is_valid is False
    assert result.reason == errors.AMOUNT_MISMATCH


@pytest.mark.parametrize(
    "claimed",
    ["abc", "", "   ", "NaN", "-Infinity", "sNaN", "5,000", "1e", True, False, float("inf")],
)
def test_non_numeric_amount_is_rejected(engine, claimed):
    result = engine.verify("12345", claimed)

    assert result.is_valid is False
    assert result.reason == errors.INVALID_AMOUNT


@pytest.mark.parametrize("invoice_id, amount", [
    ("2001", "3200.00"),
    ("2002", "1800.75"),
    ("2003", "640.00"),
    ("2004", "1125.40"),
])
def test_non_pending_status_never_verifies(engine, invoice_id, amount):
    assert engine.verify(invoice_id, amount).reason == errors.STATUS_NOT_PENDING
    assert engine.verify(invoice_id).is_valid is False


def test_status_gating_can_be_disabled(store):
    engine = VerificationEngine(store, status_gating=False)

    assert engine.verify("2001", "3200").is_valid is True
    assert engine.verify("2001", "1").reason == errors.AMOUNT_MISMATCH


def test_amount_check_can_be_disabled(store):
    engine = VerificationEngine(store, amount_check=False)

    assert engine.verify("12345", "9999").is_valid is True
    assert engine.verify("12345", "not a number").is_valid is True
    assert engine.verify("2001", "3200").reason == errors.STATUS_NOT_PENDING


def test_existence_only_mode(store):
    engine = VerificationEngine(store, status_gating=False, amount_check=False)

    assert engine.verify("2002", "1").is_valid is True
    assert engine.verify("424242").is_valid is False


def test_custom_tolerance(store):
    engine = VerificationEngine(store, tolerance=Decimal("0.5"))

    assert engine.verify("12345", "5000.5").is_valid is True
    assert engine.verify("12345", "5000.51").is_valid is False


def test_negative_tolerance_is_refused(store):
    with pytest.raises(ValueError):
        VerificationEngine(store, tolerance=Decimal("-0.001"))


def test_store_faults_are_not_turned_into_verdicts(failing_store):
    engine = VerificationEngine(failing_store)

    with pytest.raises(errors.RecordStoreError):
        engine.verify("12345", "5000")


def test_parse_amount_uses_float_repr_not_binary_expansion():
    assert _parse_amount(0.1) == Decimal("0.1")
    assert _parse_amount(1250.5) == Decimal("1250.5")
    assert _parse_amount("1e3") == Decimal("1000")
    assert _parse_amount(None) is None
    assert TOLERANCE == Decimal("0.001")


def test_verify_bulk_preserves_order_and_counts(engine):
    items = [
        VerificationRequest(invoice_id="12345", amount="5000"),
        VerificationRequest(invoice_id="99999", amount="1000"),
        VerificationRequest(invoice_id="", amount="1"),
        VerificationRequest(invoice_id=1001, amount=1250.5),
        VerificationRequest(invoice_id="2001"),
    ]

    report = engine.verify_bulk(items)

    assert [r.is_valid for r in report.results] == [True, False, False, True, False]
    assert [r.reason for r in report.results] == [
        None,
        errors.INVOICE_NOT_FOUND,
        errors.INVALID_INVOICE_ID,
        None,
        errors.STATUS_NOT_PENDING,
    ]
    assert report.summary.total == 5
    assert report.summary.valid_count == 2
    assert report.summary.invalid_count == 3


def test_bulk_result_matches_single_evaluation(engine):
    a = VerificationRequest(invoice_id="12345", amount="5000")
    b = VerificationRequest(invoice_id="12345", amount="1")

    batch = engine.verify_bulk([a, b]).results

    assert batch[0] == engine.verify(a.invoice_id, a.amount)
    assert batch[1] == engine.verify(b.invoice_id, b.amount)
    assert engine.verify_bulk([b, a]).results == [batch[1], batch[0]]


def test_verify_bulk_empty(engine):
    report = engine.verify_bulk([])

    assert report.results == []
    assert report.summary.total == 0
    assert report.summary.valid_count == 0


def test_boolean_identifier_is_invalid(engine):
    result = engine.verify(True, "5000")

    assert result.is_valid is False
    assert result.reason == errors.INVALID_INVOICE_ID


@pytest.mark.skipif(
    not hasattr(sys, "get_int_max_str_digits"), reason="interpreter has no int string limit"
)
def test_identifier_too_long_to_render_is_invalid(engine):
    result = engine.verify(10 ** 5000, "5000")

    assert result.is_valid is False
    assert result.reason == errors.INVALID_INVOICE_ID


def test_huge_integer_amount_is_a_verdict(engine):
    result = engine.verify("12345", 10 ** 5000)

    assert result.is_valid is False
    assert result.reason in (errors.AMOUNT_MISMATCH, errors.INVALID_AMOUNT)


def test_overflowing_amount_does_not_abort_the_batch(engine):
    items = [
        VerificationRequest(invoice_id="12345", amount="1e1000000"),
        VerificationRequest(invoice_id=True),
        VerificationRequest(invoice_id="12345", amount="5000"),
    ]

    report = engine.verify_bulk(items)

    assert [r.reason for r in report.results] == [
        errors.AMOUNT_MISMATCH,
        errors.INVALID_INVOICE_ID,
        None,
    ]
    assert report.summary.valid_count == 1
