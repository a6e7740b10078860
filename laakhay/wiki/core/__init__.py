"""Core configuration, enums and exceptions."""

from .config import (
    ANONYMOUS_TOKEN,
    BACKOFF_CEILING,
    BADTOKEN,
    CHUNK_SIZE,
    DEFAULT_API_ENDPOINT,
    DEFAULT_TIMEOUT,
    DEFAULT_USER_AGENT,
    MAX_GROUP_QUERY,
    MAX_RESULT_LIMIT,
    PROTECTED_CODES,
    RATELIMITED,
    WikiConfig,
)
from .enums import ReplyType
from .exceptions import (
    TRANSPORT_ERRORS,
    AuthenticationError,
    QueryExhaustedError,
    ReplyStateError,
    ValidationError,
    WikiError,
)

__all__ = [
    "ANONYMOUS_TOKEN",
    "BACKOFF_CEILING",
    "BADTOKEN",
    "CHUNK_SIZE",
    "DEFAULT_API_ENDPOINT",
    "DEFAULT_TIMEOUT",
    "DEFAULT_USER_AGENT",
    "MAX_GROUP_QUERY",
    "MAX_RESULT_LIMIT",
    "PROTECTED_CODES",
    "RATELIMITED",
    "WikiConfig",
    "ReplyType",
    "WikiError",
    "ValidationError",
    "QueryExhaustedError",
    "ReplyStateError",
    "AuthenticationError",
    "TRANSPORT_ERRORS",
]
