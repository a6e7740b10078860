"""Laakhay Wiki - Async MediaWiki API client library."""

from .clients import Wiki
from .core import (
    AuthenticationError,
    QueryExhaustedError,
    ReplyStateError,
    ReplyType,
    ValidationError,
    WikiConfig,
    WikiError,
)
from .models import (
    NULL_REPLY,
    ActionReply,
    ErrorReply,
    ImageInfo,
    QueryReply,
    SuccessReply,
    UnknownReply,
)
from .runtime import (
    EDIT_POLICY,
    ActionExecutor,
    BatchGrouper,
    ParamTemplate,
    QueryCursor,
    RetryPolicy,
    WikiSession,
    templates,
)
from .upload import ChunkedUploadManager

__version__ = "0.1.0"

__all__ = [
    # Client
    "Wiki",
    # Session and execution
    "WikiSession",
    "ActionExecutor",
    "RetryPolicy",
    "EDIT_POLICY",
    "QueryCursor",
    "BatchGrouper",
    "ParamTemplate",
    "templates",
    "ChunkedUploadManager",
    # Models
    "ActionReply",
    "SuccessReply",
    "ErrorReply",
    "UnknownReply",
    "NULL_REPLY",
    "QueryReply",
    "ImageInfo",
    # Core
    "WikiConfig",
    "ReplyType",
    # Exceptions
    "WikiError",
    "ValidationError",
    "QueryExhaustedError",
    "ReplyStateError",
    "AuthenticationError",
]
