"""
HTTP API for governance helpers and DRep enrichment.
"""

from backend_govtwool.api_server.server import app

__all__ = ["app"]
