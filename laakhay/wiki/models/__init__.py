"""Reply and record models.

Model Categories:
    - Replies: ActionReply and its SuccessReply/ErrorReply/UnknownReply variants
    - Query replies: QueryReply with list/prop/meta comprehension helpers
    - Records: ImageInfo (Pydantic v2, frozen)
"""

from .image_info import ImageInfo
from .query_reply import QueryReply
from .reply import (
    NULL_REPLY,
    ActionReply,
    ErrorReply,
    SuccessReply,
    UnknownReply,
    error_code_of,
    wrap_reply,
)

__all__ = [
    "ActionReply",
    "SuccessReply",
    "ErrorReply",
    "UnknownReply",
    "NULL_REPLY",
    "wrap_reply",
    "error_code_of",
    "QueryReply",
    "ImageInfo",
]
