"""
Command-line interface for the Invoice Verification Service.

Usage examples:
    py -m invoice_verifier.cli verify 12345 --amount 5000
    py -m invoice_verifier.cli verify-batch --input requests.json --report output/verification_report.json
    py -m invoice_verifier.cli show 007
    py -m invoice_verifier.cli serve --port 3000
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

from .config import settings
from .errors import InfrastructureFault, NormalizationFailure
from .normalizer import normalize_invoice_id
from .schema import BulkVerificationReport, VerificationRequest
from .store import InMemoryRecordStore, load_store
from .verifier import VerificationEngine

app = typer.Typer(help="Invoice verification CLI.")


def _ensure_parent_directory(path: Path) -> None:
    """
    Ensure the parent directory for a file path exists.
    """
    if path.parent and not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)


def _load_store_or_exit() -> InMemoryRecordStore:
    try:
        return load_store(settings)
    except InfrastructureFault as exc:
        typer.echo(f"Could not load invoice records: {exc}", err=True)
        raise typer.Exit(code=1)


def _build_engine(status_gating: bool, amount_check: bool) -> VerificationEngine:
    return VerificationEngine(
        _load_store_or_exit(),
        status_gating=status_gating,
        amount_check=amount_check,
        tolerance=settings.AMOUNT_TOLERANCE,
    )


@app.command()
def verify(
    invoice_id: str = typer.Argument(..., help="Invoice identifier to verify."),
    amount: Optional[str] = typer.Option(
        None, "--amount", help="Claimed amount to reconcile against the record."
    ),
    status_gating: bool = typer.Option(
        settings.STATUS_GATING,
        "--status-gating/--no-status-gating",
        help="Only accept pending invoices.",
    ),
    amount_check: bool = typer.Option(
        settings.AMOUNT_CHECK,
        "--amount-check/--no-amount-check",
        help="Reconcile the claimed amount against the record.",
    ),
) -> None:
    """
    Verify a single invoice id (and optional amount).
    """
    engine = _build_engine(status_gating, amount_check)
    result = engine.verify(invoice_id, amount)

    typer.echo(f"Invoice: {result.invoice_id}")
    typer.echo(f"Valid: {result.is_valid}")
    typer.echo(f"Message: {result.message}")

    # Exit non-zero if the invoice did not verify
    if not result.is_valid:
        raise typer.Exit(code=2)


@app.command("verify-batch")
def verify_batch(
    input: str = typer.Option(
        ...,
        "--input",
        help="JSON file containing an array of {invoiceId, amount} objects.",
    ),
    report: str = typer.Option(
        "output/verification_report.json",
        "--report",
        help="Path to write the verification report as JSON.",
    ),
) -> None:
    """
    Verify every request in a JSON file and write a report.
    """
    input_path = Path(input)
    if not input_path.exists():
        typer.echo(f"Input JSON not found: {input_path}", err=True)
        raise typer.Exit(code=1)

    requests_data = json.loads(input_path.read_text(encoding="utf-8") or "[]")
    requests = [VerificationRequest.model_validate(obj) for obj in requests_data]

    engine = _build_engine(settings.STATUS_GATING, settings.AMOUNT_CHECK)
    report_obj: BulkVerificationReport = engine.verify_bulk(requests)

    report_path = Path(report)
    _ensure_parent_directory(report_path)
    with report_path.open("w", encoding="utf-8") as f:
        json.dump(report_obj.model_dump(mode="json", by_alias=True), f, indent=2)

    summary = report_obj.summary
    typer.echo(f"Total requests: {summary.total}")
    typer.echo(f"Valid: {summary.valid_count}")
    typer.echo(f"Invalid: {summary.invalid_count}")

    if summary.invalid_count > 0:
        raise typer.Exit(code=2)


@app.command()
def show(
    invoice_id: str = typer.Argument(..., help="Invoice identifier to look up."),
) -> None:
    """
    Print the stored record for an invoice id.
    """
    store = _load_store_or_exit()
    try:
        record = store.get(normalize_invoice_id(invoice_id))
    except NormalizationFailure:
        record = None

    if record is None:
        typer.echo(f"Invoice not found: {invoice_id}", err=True)
        raise typer.Exit(code=1)

    typer.echo(record.model_dump_json(by_alias=True, indent=2))


@app.command("list")
def list_invoices() -> None:
    """
    List every invoice in the record store.
    """
    store = _load_store_or_exit()
    for record in store.all():
        typer.echo(f"{record.id}\t{record.amount}\t{record.status.value}\t{record.supplier}")
    typer.echo(f"{len(store)} invoices")


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host", help="Interface to bind."),
    port: int = typer.Option(3000, "--port", help="Port to listen on."),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes."),
) -> None:
    """
    Run the HTTP API with uvicorn.
    """
    import uvicorn

    if not settings.API_KEY:
        typer.echo("WARNING: API_KEY is not set; verification requests will fail.", err=True)
    uvicorn.run("invoice_verifier.api.main:app", host=host, port=port, reload=reload)


def main() -> None:
    """
    Entrypoint used when executing as a module.
    """
    app()


if __name__ == "__main__":
    main()
