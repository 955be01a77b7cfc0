"""
Artifact retrieval.

Printer agents download the uploaded PDF from here by the URL carried in
the ``new-print-job`` announcement.
"""

from flask import Blueprint, current_app, send_from_directory

files_bp = Blueprint("files", __name__)


@files_bp.route("/uploads/<path:filename>", methods=["GET"])
def download(filename: str):
    return send_from_directory(
        current_app.config["UPLOAD_FOLDER"],
        filename,
        mimetype="application/pdf",
    )
