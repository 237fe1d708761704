"""
Pytest fixtures for the GST invoicing test suite.

Provides:
- Structured logging configuration and log capture
- SQLite in-memory database sessions with immutability listeners
- The active india_gst regime and a deterministic clock
"""

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from io import StringIO

import pytest
from sqlalchemy.orm import Session

from gst_config import TaxRegime, get_active_regime
from gst_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from gst_kernel.db.immutability import (
    register_immutability_listeners,
    unregister_immutability_listeners,
)
from gst_kernel.domain.clock import DeterministicClock
from gst_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from gst_kernel.models.invoice import Invoice
from gst_services.invoice_service import (
    InvoiceHeader,
    InvoiceLineRequest,
    InvoiceService,
)

TEST_TENANT = "tenant-test"

# Maharashtra supplier, Maharashtra and Karnataka customers
SUPPLIER_GSTIN = "27AAPFU0939F1ZV"
SAME_STATE_GSTIN = "27AAACG1234H1Z5"
OTHER_STATE_GSTIN = "29AABCT1332L1ZD"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture gst_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, invoice_service):
            invoice_service.create_invoice(...)
            logs = captured_logs()
            assert any(r["message"] == "invoice_created" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("gst_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def session() -> Session:
    """Fresh in-memory database per test, with immutability enforced."""
    init_engine_from_url("sqlite://")
    create_tables()
    register_immutability_listeners()
    db_session = get_session()
    yield db_session
    db_session.rollback()
    db_session.close()
    unregister_immutability_listeners()
    drop_tables()
    reset_engine()


# =============================================================================
# Domain fixtures
# =============================================================================


@pytest.fixture(scope="session")
def regime() -> TaxRegime:
    return get_active_regime("india_gst")


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock(datetime(2024, 4, 1, 10, 0, 0, tzinfo=timezone.utc))


# =============================================================================
# Service fixtures
# =============================================================================


@pytest.fixture
def invoice_service(session, regime, clock) -> InvoiceService:
    return InvoiceService(session, regime, clock)


@pytest.fixture
def intra_state_header() -> InvoiceHeader:
    return InvoiceHeader(
        business_name="Acme Traders",
        business_gstin=SUPPLIER_GSTIN,
        business_address="Pune, Maharashtra",
        customer_name="Globex Retail",
        customer_gstin=SAME_STATE_GSTIN,
        customer_address="Mumbai, Maharashtra",
    )


@pytest.fixture
def inter_state_header() -> InvoiceHeader:
    return InvoiceHeader(
        business_name="Acme Traders",
        business_gstin=SUPPLIER_GSTIN,
        customer_name="Initech",
        customer_gstin=OTHER_STATE_GSTIN,
    )


@pytest.fixture
def sample_lines() -> list[InvoiceLineRequest]:
    """Three 18% lines: taxable 640, tax 115.2, total 755.2."""
    return [
        InvoiceLineRequest("Widget", 2, Decimal("100"), gst_rate=18, hsn_code="8471"),
        InvoiceLineRequest("Gadget", 1, Decimal("250"), gst_rate=18, discount=Decimal("10")),
        InvoiceLineRequest("Cable", 5, Decimal("40"), gst_rate=18, hsn_code="8544"),
    ]


@pytest.fixture
def draft_invoice(invoice_service, intra_state_header, sample_lines) -> Invoice:
    return invoice_service.create_invoice(TEST_TENANT, intra_state_header, sample_lines)


@pytest.fixture
def issued_invoice(invoice_service, draft_invoice) -> Invoice:
    return invoice_service.finalize(draft_invoice.id)
