"""
Flask route blueprints for CloudPrint.

- upload: PDF upload and page counting
- orders: order creation and payment verification
- api: job listing, status updates, agents, health
- files: artifact download for printer agents

Each blueprint is registered with the Flask app in create_app().
"""

from .upload import upload_bp
from .orders import orders_bp
from .api import api_bp
from .files import files_bp

__all__ = [
    "upload_bp",
    "orders_bp",
    "api_bp",
    "files_bp",
]


def register_blueprints(app):
    """
    Register all blueprints with the Flask app.

    Args:
        app: Flask application instance
    """
    app.register_blueprint(upload_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(api_bp)
    app.register_blueprint(files_bp)
