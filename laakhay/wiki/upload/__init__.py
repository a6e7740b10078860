"""Chunked file uploads."""

from .chunks import ChunkReader, UploadChunk
from .manager import ChunkedUploadManager, strip_file_namespace

__all__ = [
    "ChunkReader",
    "UploadChunk",
    "ChunkedUploadManager",
    "strip_file_namespace",
]
