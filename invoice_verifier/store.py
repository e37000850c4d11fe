"""
Record store: the read-only source of invoice records.

The engine depends only on `RecordStore.get`, a single point lookup by
canonical id. `InMemoryRecordStore` is the reference implementation, seeded
either from the built-in fixture set or from a JSON file.
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from pydantic import ValidationError

from .errors import RecordStoreError
from .schema import InvoiceRecord

logger = logging.getLogger(__name__)

MAX_LOOKUP_DELAY_SECONDS = 5.0

SEED_RECORDS: List[dict] = [
    {"id": "1001", "amount": "1250.50", "status": "pending", "supplier": "TechCorp Solutions"},
    {"id": "1002", "amount": "3750.00", "status": "pending", "supplier": "Global Manufacturing Ltd"},
    {"id": "1003", "amount": "890.25", "status": "pending", "supplier": "Office Supplies Pro"},
    {"id": "12345", "amount": "5000.00", "status": "pending", "supplier": "Test Supplier"},
    {"id": "4984", "amount": "2500.00", "status": "pending", "supplier": "Chainlink Test Supplier"},
    {"id": "0", "amount": "0.00", "status": "pending", "supplier": "Zero Invoice"},
    {"id": "2001", "amount": "3200.00", "status": "paid", "supplier": "Paid Supplier A"},
    {"id": "2002", "amount": "1800.75", "status": "rejected", "supplier": "Rejected Supplier B"},
    {"id": "2003", "amount": "640.00", "status": "cancelled", "supplier": "Cancelled Supplier C"},
    {"id": "2004", "amount": "1125.40", "status": "disputed", "supplier": "Disputed Supplier D"},
]


class RecordStore:
    """
    Contract for record lookups. Implementations must not mutate records.
    """

    def get(self, invoice_id: str) -> Optional[InvoiceRecord]:
        """
        Return the record for a canonical id, or None when there is none.

        Raises `RecordStoreError` if the backing storage cannot be read.
        """
        raise NotImplementedError


class InMemoryRecordStore(RecordStore):
    """
    Fixed mapping of canonical id -> record, built once at startup.
    """

    def __init__(
        self,
        records: Iterable[InvoiceRecord] = (),
        lookup_delay: float = 0.0,
    ) -> None:
        if not 0 <= lookup_delay <= MAX_LOOKUP_DELAY_SECONDS:
            raise ValueError(
                f"lookup_delay must be between 0 and {MAX_LOOKUP_DELAY_SECONDS} seconds"
            )
        self._records: Dict[str, InvoiceRecord] = {}
        for record in records:
            if record.id in self._records:
                raise RecordStoreError(f"Duplicate invoice id in record set: {record.id}")
            self._records[record.id] = record
        self.lookup_delay = lookup_delay

    @classmethod
    def from_dicts(cls, rows: Iterable[dict], lookup_delay: float = 0.0) -> "InMemoryRecordStore":
        try:
            records = [InvoiceRecord.model_validate(row) for row in rows]
        except ValidationError as exc:
            raise RecordStoreError(f"Malformed invoice record: {exc}") from exc
        return cls(records, lookup_delay=lookup_delay)

    @classmethod
    def seeded(cls, lookup_delay: float = 0.0) -> "InMemoryRecordStore":
        return cls.from_dicts(SEED_RECORDS, lookup_delay=lookup_delay)

    @classmethod
    def from_json_file(
        cls, path: Union[str, Path], lookup_delay: float = 0.0
    ) -> "InMemoryRecordStore":
        """
        Load records from a JSON array of record objects.
        """
        path = Path(path)
        try:
            rows = json.loads(path.read_text(encoding="utf-8") or "[]")
        except (OSError, json.JSONDecodeError) as exc:
            raise RecordStoreError(f"Could not read records from {path}: {exc}") from exc
        if not isinstance(rows, list):
            raise RecordStoreError(f"Expected a JSON array of records in {path}")

        store = cls.from_dicts(rows, lookup_delay=lookup_delay)
        logger.info("Loaded %d invoice records from %s", len(store), path)
        return store

    def get(self, invoice_id: str) -> Optional[InvoiceRecord]:
        if self.lookup_delay:
            # Simulated ERP round trip: one bounded wait, no retries.
            time.sleep(self.lookup_delay)
        return self._records.get(invoice_id)

    def all(self) -> List[InvoiceRecord]:
        return list(self._records.values())

    def ids(self) -> List[str]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)


def load_store(settings) -> InMemoryRecordStore:
    """
    Build the record store described by `settings` (RECORDS_FILE or the seed set).
    """
    if settings.RECORDS_FILE:
        return InMemoryRecordStore.from_json_file(
            settings.RECORDS_FILE, lookup_delay=settings.LOOKUP_DELAY_SECONDS
        )
    return InMemoryRecordStore.seeded(lookup_delay=settings.LOOKUP_DELAY_SECONDS)
