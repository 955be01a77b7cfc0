"""
CloudPrint coordinator - Flask application entry point.

This is a slim app factory that:
1. Opens the job store
2. Creates the Socket.IO server and the agent registry
3. Wires the job state machine, dispatch broadcaster and status sink
4. Registers route blueprints and the printer namespace handlers
5. Sets up JSON error handlers

ARCHITECTURE:
    Flask request handling (one thread per request)
    ├── /upload, /create-order          -> JobService.create_job / attach_order
    ├── /verify-payment                 -> JobService.confirm_payment
    │                                        └── DispatchBroadcaster.dispatch
    └── /api/jobs/...                   -> JobService queries / status updates

    Socket.IO namespace /connectprinter
    ├── connect / disconnect            -> AgentRegistry
    └── job-status-update               -> StatusSink -> JobService

JobService is the only writer of job state; the job store makes each of
its mutations atomic.
"""

from __future__ import annotations

import atexit
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask, jsonify
from flask_socketio import SocketIO
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from logging_config import setup_logging, get_logger
from core.exceptions import CloudPrintError
from core.job_store import JobStore
from modules.pdf_analyzer import PDFAnalyzer
from services.dispatch import AgentRegistry, DispatchBroadcaster
from services.job_service import JobService
from services.payment_provider import RazorpayClient
from services.status_sink import StatusSink
from routes import register_blueprints
from sockets import register_socket_handlers


# Module logger (configured after setup_logging)
logger = get_logger(__name__)


def _get_base_path() -> Path:
    """
    Get the base path for the application.

    In PyInstaller bundle: Returns the directory containing the executable
    In development: Returns the directory containing app.py
    """
    if getattr(sys, 'frozen', False):
        return Path(sys.executable).parent
    else:
        return Path(__file__).parent


def create_app(config_object: str = "config.Config") -> Flask:
    """
    Application factory - creates and configures the coordinator.

    Args:
        config_object: Import path of the configuration class

    Returns:
        Configured Flask application. The Socket.IO server is available as
        ``app.extensions["socketio"]``.
    """
    env_file = _get_base_path() / '.env'
    if env_file.exists():
        load_dotenv(env_file, override=True)
    else:
        load_dotenv(override=True)

    app = Flask(__name__)
    app.config.from_object(config_object)

    # Configure logging
    log_level = logging.DEBUG if app.config.get("DEBUG") else logging.INFO
    enable_file_logging = app.config.get("ENVIRONMENT") == "production"

    root_logger = setup_logging(
        app_name="cloud_print",
        log_level=log_level,
        enable_file_logging=enable_file_logging
    )
    app.logger.handlers = root_logger.handlers
    app.logger.setLevel(log_level)

    logger.info(f"Starting CloudPrint coordinator in {app.config.get('ENVIRONMENT')} mode")

    upload_folder = Path(app.config["UPLOAD_FOLDER"])
    upload_folder.mkdir(parents=True, exist_ok=True)

    # =========================================================================
    # CORE
    # =========================================================================

    job_store = JobStore(app.config["JOB_DB_PATH"])
    app.config["JOB_STORE"] = job_store

    socketio = SocketIO(
        app,
        async_mode="threading",
        cors_allowed_origins=app.config.get("SOCKETIO_CORS_ALLOWED_ORIGINS", "*"),
    )

    namespace = app.config["DISPATCH_NAMESPACE"]
    registry = AgentRegistry()
    broadcaster = DispatchBroadcaster(socketio, registry, namespace=namespace)
    app.config["AGENT_REGISTRY"] = registry
    app.config["DISPATCHER"] = broadcaster

    # =========================================================================
    # SERVICES
    # =========================================================================

    if not app.config.get("RAZORPAY_KEY_SECRET"):
        logger.warning("RAZORPAY_KEY_SECRET is not set - payments cannot be verified")

    job_service = JobService(
        job_store,
        broadcaster,
        payment_secret=app.config.get("RAZORPAY_KEY_SECRET", ""),
        per_page_rate=app.config["PER_PAGE_RATE"],
    )
    app.config["JOB_SERVICE"] = job_service

    status_sink = StatusSink(job_service)
    app.config["STATUS_SINK"] = status_sink

    app.config["PAYMENT_PROVIDER"] = RazorpayClient(
        key_id=app.config.get("RAZORPAY_KEY_ID", ""),
        key_secret=app.config.get("RAZORPAY_KEY_SECRET", ""),
        api_url=app.config["RAZORPAY_API_URL"],
        currency=app.config["CURRENCY"],
        timeout_seconds=app.config["PAYMENT_PROVIDER_TIMEOUT"],
    )
    app.config["PDF_ANALYZER"] = PDFAnalyzer()

    # =========================================================================
    # CLEANUP REGISTRATION
    # =========================================================================

    def cleanup():
        """Cleanup on application shutdown."""
        logger.info("Shutting down...")
        job_store.close()
        logger.info("Shutdown complete")

    atexit.register(cleanup)

    # =========================================================================
    # ROUTES AND SOCKET HANDLERS
    # =========================================================================

    register_blueprints(app)
    register_socket_handlers(
        socketio,
        registry,
        broadcaster,
        status_sink,
        job_service,
        namespace=namespace,
        replay_on_register=app.config.get("DISPATCH_REPLAY_ON_REGISTER", False),
    )

    # =========================================================================
    # ERROR HANDLERS
    # =========================================================================

    @app.errorhandler(CloudPrintError)
    def handle_cloud_print_error(e: CloudPrintError):
        if e.status_code >= 500:
            logger.error(f"{e.__class__.__name__}: {e}")
        else:
            logger.info(f"Request rejected ({e.status_code}): {e.message}")
        return jsonify({"success": False, "error": e.message}), e.status_code

    @app.errorhandler(RequestEntityTooLarge)
    def handle_file_too_large(e):
        max_mb = app.config.get("MAX_CONTENT_LENGTH", 10 * 1024 * 1024) / (1024 * 1024)
        return jsonify({
            "success": False,
            "error": f"File too large. Maximum upload size is {max_mb:.0f} MB.",
        }), 413

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return jsonify({"success": False, "error": e.description}), e.code

    @app.errorhandler(Exception)
    def handle_server_error(e):
        logger.error(f"500 error: {e}", exc_info=True)
        return jsonify({"success": False, "error": "Internal server error"}), 500

    logger.info("Application initialized successfully")
    return app


if __name__ == "__main__":
    app = create_app()
    debug_mode = os.environ.get("FLASK_DEBUG", "1") == "1"
    port = int(os.environ.get("PORT", "3000"))
    app.extensions["socketio"].run(
        app,
        host=os.environ.get("HOST", "0.0.0.0"),
        port=port,
        debug=debug_mode,
        allow_unsafe_werkzeug=True,
    )
