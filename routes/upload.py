"""
PDF upload route.

Stores the uploaded PDF, counts its pages and returns the stored file id.
The client then creates an order for that file id.
"""

import secrets
import time
from pathlib import Path

import bleach
from flask import Blueprint, current_app, jsonify, request
from werkzeug.utils import secure_filename

from core.exceptions import ValidationError
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

upload_bp = Blueprint("upload", __name__)

# Constants
ALLOWED_EXTENSIONS = {"pdf"}
MAX_FILENAME_LENGTH = 255


def _allowed_file(filename: str) -> bool:
    """Check if file extension is allowed."""
    return "." in filename and filename.rsplit(".", 1)[1].lower() in ALLOWED_EXTENSIONS


def _sanitize_text(text: str, max_length: int = None) -> str:
    """Strip whitespace and HTML from user-supplied display text."""
    if not text:
        return ""

    text = bleach.clean(text.strip(), tags=[], strip=True)

    if max_length and len(text) > max_length:
        text = text[:max_length]

    return text


@upload_bp.route("/upload", methods=["POST"])
def upload():
    """
    Handle PDF file upload.

    Form fields:
        pdf: the PDF file
        printerName: printer the job is meant for
    """
    pdf_file = request.files.get("pdf")
    printer_name = _sanitize_text(request.form.get("printerName", ""))

    if not pdf_file or pdf_file.filename == "":
        raise ValidationError("No PDF file uploaded", field="pdf")

    if not printer_name:
        raise ValidationError("Printer name is required", field="printerName")

    if not _allowed_file(pdf_file.filename):
        raise ValidationError("Only PDF files are allowed", field="pdf")

    if len(pdf_file.filename) > MAX_FILENAME_LENGTH:
        raise ValidationError(
            f"Filename too long. Maximum {MAX_FILENAME_LENGTH} characters.", field="pdf"
        )

    upload_folder = Path(current_app.config["UPLOAD_FOLDER"])

    # Unique prefix so two uploads of "doc.pdf" never collide
    original_name = _sanitize_text(pdf_file.filename, max_length=MAX_FILENAME_LENGTH)
    safe_name = secure_filename(pdf_file.filename) or "document.pdf"
    stored_name = f"{int(time.time() * 1000)}-{secrets.token_hex(4)}-{safe_name}"
    stored_path = upload_folder / stored_name

    logger.info(f"Saving uploaded file: {stored_name}")
    pdf_file.save(stored_path)

    try:
        page_count = current_app.config["PDF_ANALYZER"].count_pages(stored_path)
    except ValueError as e:
        stored_path.unlink(missing_ok=True)
        logger.warning(f"Rejected upload {stored_name}: {e}")
        raise ValidationError("Uploaded file is not a readable PDF", field="pdf")

    logger.info(f"PDF uploaded: {original_name} ({page_count} pages)")

    return jsonify({
        "success": True,
        "message": "PDF uploaded successfully",
        "fileId": stored_name,
        "originalName": original_name,
        "pageCount": page_count,
        "printerName": printer_name,
    })
