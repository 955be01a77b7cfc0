"""Helper modules for the CloudPrint coordinator."""

__all__ = [
    "pdf_analyzer",
]
