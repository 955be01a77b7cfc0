"""Shared fixtures for the CloudPrint test suite."""

import io
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from pypdf import PdfWriter

from app import create_app
from config import TestingConfig
from core import payment_gate
from core.job_store import JobStore
from services.job_service import JobService


SECRET = "test_secret"
NAMESPACE = "/connectprinter"


def sign(order_id: str, payment_id: str, secret: str = SECRET) -> str:
    """Signature Razorpay would issue for this order/payment pair."""
    return payment_gate.compute_signature(order_id, payment_id, secret)


def make_pdf(pages: int = 1) -> bytes:
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=612, height=792)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


# Service-level fixtures

@pytest.fixture
def job_store():
    store = JobStore(":memory:")
    yield store
    store.close()


@pytest.fixture
def dispatcher():
    """Stand-in broadcaster that reports one connected agent."""
    mock = MagicMock()
    mock.dispatch.return_value = 1
    return mock


@pytest.fixture
def job_service(job_store, dispatcher):
    return JobService(job_store, dispatcher, payment_secret=SECRET, per_page_rate=2)


@pytest.fixture
def ordered_job(job_service):
    """A job with a Razorpay order attached, awaiting payment."""
    job = job_service.create_job("doc.pdf", "Library-1", page_count=10, copies=3)
    return job_service.attach_order(job.id, "order_123")


@pytest.fixture
def paid_job(job_service, ordered_job):
    return job_service.confirm_payment(ordered_job.id, "pay_1", sign("order_123", "pay_1"))


# Application fixtures

@pytest.fixture
def payment_provider():
    provider = MagicMock()
    provider.currency = "INR"
    provider.key_id = "rzp_test_key"
    provider.is_configured = True
    provider.create_order.return_value = "order_test_1"
    return provider


@pytest.fixture
def app_config(tmp_path):
    upload_dir = tmp_path / "uploads"

    class Config(TestingConfig):
        UPLOAD_FOLDER = str(upload_dir)

    return Config


@pytest.fixture
def app(app_config, payment_provider):
    app = create_app(app_config)
    app.config["PAYMENT_PROVIDER"] = payment_provider
    yield app
    app.config["JOB_STORE"].close()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def socketio(app):
    return app.extensions["socketio"]


@pytest.fixture
def agent_socket(app, socketio):
    """A Socket.IO test client connected to the printer namespace."""
    sio_client = socketio.test_client(app, namespace=NAMESPACE)
    yield sio_client
    if sio_client.is_connected(NAMESPACE):
        sio_client.disconnect(namespace=NAMESPACE)


@pytest.fixture
def uploaded_file(app):
    """Name of a 10-page PDF already sitting in the upload folder."""
    name = "1700000000000-abcd1234-doc.pdf"
    (Path(app.config["UPLOAD_FOLDER"]) / name).write_bytes(make_pdf(10))
    return name
