"""Cross-cutting infrastructure: request context, logging, errors, database."""

from src.core.context import get_request_id, set_user_id
from src.core.database import init_async_cassandra, shutdown_async_cassandra
from src.core.exceptions import AppError, ErrorKind, kind_for_status
from src.core.logging import configure_structlog, get_logger
from src.core.middleware import RequestContextMiddleware


__all__ = [
    "AppError",
    "ErrorKind",
    "RequestContextMiddleware",
    "configure_structlog",
    "get_logger",
    "get_request_id",
    "init_async_cassandra",
    "kind_for_status",
    "set_user_id",
    "shutdown_async_cassandra",
]
