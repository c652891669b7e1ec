"""
Structured logging for Backend GovTwool.

JSON logs with timestamp, drep_id, provider, event_type.
"""

from backend_govtwool.govtwool_logging.logger import bind_drep, get_logger

__all__ = ["bind_drep", "get_logger"]
