"""Structured logging for query, action and upload operations.

Every helper emits a fixed event name with its details in ``extra`` so log
pipelines can filter on fields instead of parsing messages.
"""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)


def log_query_round(
    *,
    wiki: str | None,
    round_index: int,
    params: dict[str, Any],
    has_more: bool,
    limit: str | None = None,
) -> None:
    """Log one completed query round.

    Args:
        wiki: ``[user @ host]`` label, or None when log prefixing is off
        round_index: One-based index of the round within its cursor
        params: Parameters the round was sent with
        has_more: Whether the cursor can continue after this round
        limit: Effective page size sent (``max`` or a number), if the query pages
    """
    logger.debug(
        "query_round_completed",
        extra={
            "wiki": wiki,
            "round_index": round_index,
            "query_modules": {k: params[k] for k in ("list", "prop", "meta") if k in params},
            "limit": limit,
            "has_more": has_more,
        },
    )


def log_backoff(
    *,
    wiki: str | None,
    action: str,
    method: str,
    attempt: int,
    upper_bound: int,
    wait_seconds: int,
) -> None:
    """Log a rate-limit backoff before the action is retried.

    Args:
        wiki: ``[user @ host]`` label
        action: API action that was rate limited
        method: ``GET`` or ``POST``
        attempt: Number of consecutive rate-limit replies so far
        upper_bound: Exclusive upper bound the wait was drawn from
        wait_seconds: Seconds the caller will sleep
    """
    logger.warning(
        "action_rate_limited",
        extra={
            "wiki": wiki,
            "action": action,
            "method": method,
            "attempt": attempt,
            "upper_bound": upper_bound,
            "wait_seconds": wait_seconds,
        },
    )


def log_transport_error(
    *,
    wiki: str | None,
    operation: str,
    error_type: str,
    error_message: str,
) -> None:
    """Log a transport fault that was converted into the null reply.

    Args:
        wiki: ``[user @ host]`` label
        operation: What was being attempted (e.g. ``POST edit``, ``query``)
        error_type: Exception class name
        error_message: Exception message
    """
    logger.error(
        "transport_error",
        extra={
            "wiki": wiki,
            "operation": operation,
            "error_type": error_type,
            "error_message": error_message,
        },
    )


def log_upload_chunk(
    *,
    wiki: str | None,
    filename: str,
    chunk_index: int,
    total_chunks: int,
    offset: int,
    size: int,
    attempt: int,
    status: str,
) -> None:
    """Log the outcome of one chunk upload attempt.

    Args:
        wiki: ``[user @ host]`` label
        filename: Target file name on the wiki
        chunk_index: One-based index of the chunk
        total_chunks: Number of chunks in the upload
        offset: Byte offset of the chunk
        size: Byte length of the chunk
        attempt: Zero-based attempt number for this chunk
        status: ``stashed``, ``http_<code>``, ``no_filekey`` or ``transport_error``
    """
    level = logging.DEBUG if status == "stashed" else logging.ERROR
    logger.log(
        level,
        "upload_chunk",
        extra={
            "wiki": wiki,
            "upload_name": filename,
            "chunk_index": chunk_index,
            "total_chunks": total_chunks,
            "offset": offset,
            "size": size,
            "attempt": attempt,
            "status": status,
        },
    )


def log_unstash(
    *,
    wiki: str | None,
    filename: str,
    filekey: str,
    attempt: int,
    success: bool,
) -> None:
    """Log an unstash (finalize) attempt of a chunked upload."""
    logger.log(
        logging.INFO if success else logging.ERROR,
        "upload_unstash",
        extra={
            "wiki": wiki,
            "upload_name": filename,
            "filekey": filekey,
            "attempt": attempt,
            "success": success,
        },
    )
