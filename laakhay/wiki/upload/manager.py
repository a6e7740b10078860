"""Chunked file upload through the server's stash.

Architecture:
    A file is uploaded in fixed-size chunks, each one a multipart POST with
    ``stash=1``. The first chunk's reply assigns a ``filekey`` that every
    later chunk carries. Once all chunks are stashed, one ordinary
    (token-bearing) ``upload`` action publishes the stashed file under its
    final title.

    Init -> chunk 1..N (<= ``max_chunk_attempts`` each) -> unstash
    (<= ``max_unstash_attempts``) -> done

    Any phase that runs out of attempts abandons the upload and returns
    ``NULL_REPLY``.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any

import aiohttp

from ..core.config import CHUNK_SIZE
from ..core.exceptions import TRANSPORT_ERRORS
from ..models.reply import NULL_REPLY, ActionReply
from ..runtime.rest.executor import ActionExecutor
from ..runtime.rest.http_client import FilePart
from ..runtime.telemetry import log_unstash, log_upload_chunk
from .chunks import ChunkReader, UploadChunk

if TYPE_CHECKING:
    from ..runtime.rest.session import WikiSession

logger = logging.getLogger(__name__)


def strip_file_namespace(title: str) -> str:
    """``File:Foo.jpg`` -> ``Foo.jpg``; other titles are returned unchanged."""
    prefix, sep, rest = title.partition(":")
    if sep and prefix.strip().lower() in ("file", "image"):
        return rest.strip()
    return title


class ChunkedUploadManager:
    """Uploads local files to one wiki in stash chunks."""

    def __init__(
        self,
        session: WikiSession,
        executor: ActionExecutor | None = None,
        *,
        chunk_size: int = CHUNK_SIZE,
        max_chunk_attempts: int = 5,
        max_unstash_attempts: int = 3,
    ) -> None:
        """Initialize upload manager.

        Args:
            session: Session the chunks are sent through
            executor: Executor for the final unstash (built from ``session`` if omitted)
            chunk_size: Bytes per chunk
            max_chunk_attempts: Attempts per chunk before the upload is abandoned
            max_unstash_attempts: Attempts at publishing the stashed file
        """
        self._session = session
        self._executor = executor or ActionExecutor(session)
        self._chunk_size = chunk_size
        self._max_chunk_attempts = max_chunk_attempts
        self._max_unstash_attempts = max_unstash_attempts

    async def upload(
        self,
        path: str | os.PathLike[str],
        title: str,
        text: str = "",
        comment: str = "",
    ) -> ActionReply:
        """Upload a local file. Overwrites existing files.

        Args:
            path: Local file to upload
            title: Target title, with or without the ``File:`` prefix
            text: Wikitext of the new file description page
            comment: Upload summary

        Returns:
            The unstash reply, or ``NULL_REPLY`` if the upload was abandoned
        """
        filename = strip_file_namespace(title)
        reader = ChunkReader(path, self._chunk_size)
        wiki = self._session.log_label
        logger.info("Uploading %s", reader.path, extra={"wiki": wiki, "upload_name": filename})

        try:
            if reader.file_size == 0:
                logger.error("Refusing to upload empty file %s", reader.path, extra={"wiki": wiki})
                return NULL_REPLY

            filekey: str | None = None
            total = reader.total_chunks
            async for chunk in reader:
                filekey = await self._send_chunk(reader, chunk, total, filename, filekey)
                if filekey is None:
                    logger.error(
                        "Giving up on %s after chunk %d of %d",
                        filename,
                        chunk.index,
                        total,
                        extra={"wiki": wiki},
                    )
                    return NULL_REPLY
        except OSError as e:
            logger.error("Error while reading %s: %s", reader.path, e, extra={"wiki": wiki})
            return NULL_REPLY

        if filekey is None:
            return NULL_REPLY
        return await self._unstash(filename, filekey, text, comment)

    async def _send_chunk(
        self,
        reader: ChunkReader,
        chunk: UploadChunk,
        total: int,
        filename: str,
        filekey: str | None,
    ) -> str | None:
        """Stash one chunk, retrying; returns the file key or None on failure."""
        form = {
            "format": "json",
            "filename": filename,
            "ignorewarnings": "1",
            "stash": "1",
            "offset": str(chunk.offset),
            "filesize": str(chunk.file_size),
        }
        if filekey is not None:
            form["filekey"] = filekey
        part = FilePart(filename=reader.path.name, data=chunk.data)

        for attempt in range(self._max_chunk_attempts):
            key: str | None = None
            try:
                response = await self._session.request(
                    {"action": "upload"}, form=form, post=True, token_key="token", file=part
                )
            except aiohttp.ClientResponseError as e:
                status = f"http_{e.status}"
            except TRANSPORT_ERRORS:
                status = "transport_error"
            else:
                key = _filekey_of(response)
                status = "stashed" if key is not None else "no_filekey"

            log_upload_chunk(
                wiki=self._session.log_label,
                filename=filename,
                chunk_index=chunk.index,
                total_chunks=total,
                offset=chunk.offset,
                size=chunk.size,
                attempt=attempt,
                status=status,
            )
            if key is not None:
                return key
        return None

    async def _unstash(self, filename: str, filekey: str, text: str, comment: str) -> ActionReply:
        fields = {
            "filename": filename,
            "text": text,
            "comment": comment,
            "filekey": filekey,
            "ignorewarnings": "true",
        }
        for attempt in range(self._max_unstash_attempts):
            reply = await self._executor.post_action("upload", fields=fields, apply_token=True)
            log_unstash(
                wiki=self._session.log_label,
                filename=filename,
                filekey=filekey,
                attempt=attempt,
                success=reply.is_success,
            )
            if reply.is_success:
                return reply
        return NULL_REPLY


def _filekey_of(response: Any) -> str | None:
    if not isinstance(response, dict):
        return None
    section = response.get("upload")
    if not isinstance(section, dict) or section.get("filekey") is None:
        return None
    return str(section["filekey"])
