import pytest

from invoice_verifier.api.main import app, get_record_store, get_settings
from invoice_verifier.config import Settings
from invoice_verifier.errors import RecordStoreError
from invoice_verifier.schema import InvoiceRecord
from invoice_verifier.store import InMemoryRecordStore, RecordStore
from invoice_verifier.verifier import VerificationEngine

API_KEY = "test-api-key"


class FailingStore(RecordStore):
    """Store whose backend is unreachable."""

    def get(self, invoice_id):
        raise RecordStoreError("ERP connection refused")


@pytest.fixture
def sample_records():
    return [
        InvoiceRecord(id="12345", amount="5000.00", status="pending", supplier="Test Supplier"),
        InvoiceRecord(id="1001", amount="1250.50", status="pending", supplier="TechCorp Solutions",
                      currency="USD", category="hardware"),
        InvoiceRecord(id="0", amount="10.00", status="pending", supplier="Zero Invoice"),
        InvoiceRecord(id="2001", amount="3200.00", status="paid", supplier="Paid Supplier A"),
        InvoiceRecord(id="2002", amount="1800.75", status="rejected", supplier="Rejected Supplier B"),
        InvoiceRecord(id="2003", amount="640.00", status="cancelled", supplier="Cancelled Supplier C"),
        InvoiceRecord(id="2004", amount="1125.40", status="disputed", supplier="Disputed Supplier D"),
    ]


@pytest.fixture
def store(sample_records):
    return InMemoryRecordStore(sample_records)


@pytest.fixture
def engine(store):
    return VerificationEngine(store)


@pytest.fixture
def test_settings():
    return Settings(_env_file=None, API_KEY=API_KEY, DEBUG_ENDPOINTS=False)


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {API_KEY}"}


@pytest.fixture
def api(store, test_settings):
    """Point the app at the fixture store and settings for one test."""
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_record_store] = lambda: store
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def failing_store():
    return FailingStore()
