"""
API routes (JSON endpoints).

Handles:
- /api/jobs               - Recent jobs, newest first
- /api/jobs/<id>          - One job
- /api/jobs/<id>/status   - Administrative status update
- /api/agents             - Connected printer agents
- /health                 - Health check endpoint
"""

from flask import Blueprint, current_app, jsonify, request

from core.exceptions import ValidationError
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

api_bp = Blueprint("api", __name__)


@api_bp.route("/api/jobs", methods=["GET"])
def list_jobs():
    """Recent jobs, newest first, bounded by JOB_LIST_MAX."""
    default_limit = current_app.config.get("JOB_LIST_LIMIT", 50)
    max_limit = current_app.config.get("JOB_LIST_MAX", 200)

    limit = request.args.get("limit", default_limit, type=int)
    if limit is None or limit < 1:
        raise ValidationError("limit must be a positive integer", field="limit")
    limit = min(limit, max_limit)

    jobs = current_app.config["JOB_SERVICE"].list_jobs(limit)
    return jsonify([job.to_dict() for job in jobs])


@api_bp.route("/api/jobs/<job_id>", methods=["GET"])
def get_job(job_id: str):
    job = current_app.config["JOB_SERVICE"].get_job(job_id)
    return jsonify(job.to_dict())


@api_bp.route("/api/jobs/<job_id>/status", methods=["PUT"])
def update_job_status(job_id: str):
    """
    Administrative status update.

    Goes through the same transition rules as agent reports.
    """
    data = request.get_json(silent=True) or {}
    status = data.get("status") if isinstance(data, dict) else None
    if not status:
        raise ValidationError("Missing required field: status", field="status")

    job = current_app.config["JOB_SERVICE"].update_execution_status(job_id, status)
    logger.info(f"Admin status update for job {job_id[:8]}: {status}")
    return jsonify(job.to_dict())


@api_bp.route("/api/agents", methods=["GET"])
def list_agents():
    """Agent channels connected right now."""
    registry = current_app.config["AGENT_REGISTRY"]
    return jsonify([agent.to_dict() for agent in registry.agents()])


@api_bp.route("/health", methods=["GET"])
def health():
    """Health check endpoint with service status."""
    health_status = {
        "status": "ok",
        "environment": current_app.config.get("ENVIRONMENT", "unknown"),
        "checks": {}
    }

    provider = current_app.config.get("PAYMENT_PROVIDER")
    if provider and provider.is_configured:
        health_status["checks"]["payment_provider"] = "configured"
    else:
        health_status["checks"]["payment_provider"] = "not_configured"
        health_status["status"] = "degraded"

    registry = current_app.config.get("AGENT_REGISTRY")
    connected = len(registry) if registry is not None else 0
    health_status["checks"]["connected_agents"] = connected

    status_code = 200 if health_status["status"] == "ok" else 503
    return health_status, status_code
