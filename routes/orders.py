"""
Order and payment routes.

Handles:
- /create-order   - create the print job and its Razorpay order
- /verify-payment - verify the checkout signature and dispatch the job

Field names follow the Razorpay checkout callback (razorpay_order_id, ...);
the camelCase names are accepted as well.
"""

from pathlib import Path

from flask import Blueprint, current_app, jsonify, request
from werkzeug.utils import secure_filename

from core.exceptions import PaymentProviderError, ValidationError
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

orders_bp = Blueprint("orders", __name__)


def _json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _first(data: dict, *keys):
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return value
    return None


def _resolve_artifact(file_id) -> str:
    """Return the stored upload name for ``file_id``, or raise ValidationError."""
    if not file_id or not isinstance(file_id, str):
        raise ValidationError("Missing required field: fileId", field="fileId")

    # Stored names are already secure; anything else is a path trick
    if secure_filename(file_id) != file_id:
        raise ValidationError("Invalid file id", field="fileId")

    upload_folder = Path(current_app.config["UPLOAD_FOLDER"])
    if not (upload_folder / file_id).is_file():
        raise ValidationError(f"Unknown file id: {file_id}", field="fileId")

    return file_id


def _count_pages(artifact_ref: str) -> int:
    path = Path(current_app.config["UPLOAD_FOLDER"]) / artifact_ref
    try:
        return current_app.config["PDF_ANALYZER"].count_pages(path)
    except ValueError:
        raise ValidationError("Uploaded file is not a readable PDF", field="fileId")


@orders_bp.route("/create-order", methods=["POST"])
def create_order():
    """
    Create a print job and a payment order for it.

    Body: {fileId, originalName?, printerName, pageCount?, copies}

    The price is based on the page count of the stored file. A pageCount
    sent by the client is only compared against it.
    """
    data = _json_body()

    artifact_ref = _resolve_artifact(_first(data, "fileId", "artifactRef"))
    for field in ("printerName", "copies"):
        if data.get(field) in (None, ""):
            raise ValidationError(f"Missing required field: {field}", field=field)

    page_count = _count_pages(artifact_ref)
    claimed = data.get("pageCount")
    if claimed not in (None, "") and str(claimed).strip() != str(page_count):
        logger.warning(
            f"Client claimed {claimed!r} pages for {artifact_ref}, "
            f"file has {page_count}; pricing the file"
        )

    job_service = current_app.config["JOB_SERVICE"]
    provider = current_app.config["PAYMENT_PROVIDER"]

    job = job_service.create_job(
        artifact_ref=artifact_ref,
        printer_name=data.get("printerName"),
        page_count=page_count,
        copies=data.get("copies"),
        original_name=data.get("originalName"),
    )

    try:
        order_id = provider.create_order(
            job.amount,
            notes={
                "jobId": job.id,
                "fileId": job.artifact_ref,
                "printerName": job.printer_name,
                "pageCount": job.page_count,
                "copies": job.copies,
            },
        )
    except PaymentProviderError as e:
        job_service.abandon_order(job.id, e.message)
        raise
    job = job_service.attach_order(job.id, order_id)

    logger.info(
        f"Order {order_id} created: {job.amount} {provider.currency} "
        f"({job.page_count} pages x {job_service.per_page_rate} x {job.copies} copies)"
    )

    return jsonify({
        "success": True,
        "jobId": job.id,
        "orderId": order_id,
        "amount": job.amount,
        "currency": provider.currency,
        "key": provider.key_id,
    })


@orders_bp.route("/verify-payment", methods=["POST"])
def verify_payment():
    """
    Verify a completed checkout and release the job to the printers.

    Body: {razorpay_order_id, razorpay_payment_id, razorpay_signature, jobId}
    """
    data = _json_body()

    job_id = _first(data, "jobId")
    payment_id = _first(data, "razorpay_payment_id", "paymentId")
    signature = _first(data, "razorpay_signature", "signature")
    claimed_order_id = _first(data, "razorpay_order_id", "orderId")

    if not job_id:
        raise ValidationError("Missing required field: jobId", field="jobId")
    if not payment_id or not signature:
        raise ValidationError("Missing payment id or signature", field="signature")

    job_service = current_app.config["JOB_SERVICE"]
    job = job_service.get_job(job_id)

    if claimed_order_id and claimed_order_id != job.payment_ref:
        logger.warning(
            f"Order id {claimed_order_id} does not match job {job_id[:8]} "
            f"(order {job.payment_ref}); verifying against the job's order"
        )

    job = job_service.confirm_payment(job_id, payment_id, signature)

    return jsonify({
        "success": True,
        "message": "Payment verified and print job sent to printer",
        "jobId": job.id,
        "printer": job.printer_name,
        "filename": job.original_name,
        "copies": job.copies,
    })
