# Core infrastructure
from src.core.context import (
    clear_context,
    get_client_ip,
    get_context,
    get_request_id,
    get_trace_id,
    get_user_id,
    set_client_ip,
    set_request_id,
    set_trace_id,
    set_user_id,
)
from src.core.exceptions import (
    AuthenticationError,
    ConflictError,
    ForbiddenError,
    NewsdeskError,
    NotFoundError,
    ValidationError,
)
from src.core.logging import configure_structlog, get_logger
from src.core.middleware import RequestContextMiddleware


__all__ = [
    "AuthenticationError",
    "ConflictError",
    "ForbiddenError",
    "NewsdeskError",
    "NotFoundError",
    "RequestContextMiddleware",
    "ValidationError",
    "clear_context",
    "configure_structlog",
    "get_client_ip",
    "get_context",
    "get_logger",
    "get_request_id",
    "get_trace_id",
    "get_user_id",
    "set_client_ip",
    "set_request_id",
    "set_trace_id",
    "set_user_id",
]
