"""Fixed-size chunking of local files for stash uploads."""

from __future__ import annotations

import asyncio
import os
from collections.abc import AsyncIterator, Iterator
from dataclasses import dataclass, field
from pathlib import Path

from ..core.config import CHUNK_SIZE


@dataclass(frozen=True)
class UploadChunk:
    """One slice of a file.

    Attributes:
        index: One-based position of the chunk
        offset: Byte offset of the chunk within the file
        file_size: Size of the whole file in bytes
        data: The chunk's bytes
    """

    index: int
    offset: int
    file_size: int
    data: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)


class ChunkReader:
    """Reads a file as consecutive chunks of ``chunk_size`` bytes.

    Every chunk but the last is exactly ``chunk_size`` long, and the chunk
    sizes sum to the file size.
    """

    def __init__(self, path: str | os.PathLike[str], chunk_size: int = CHUNK_SIZE) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self.path = Path(path)
        self.chunk_size = chunk_size
        self._file_size: int | None = None

    @property
    def file_size(self) -> int:
        """Size of the file in bytes.

        Raises:
            OSError: If the file cannot be inspected
        """
        if self._file_size is None:
            self._file_size = self.path.stat().st_size
        return self._file_size

    @property
    def total_chunks(self) -> int:
        return -(-self.file_size // self.chunk_size)

    def __iter__(self) -> Iterator[UploadChunk]:
        """Yield the chunks in order.

        Raises:
            OSError: If the file cannot be read
        """
        size = self.file_size
        with self.path.open("rb") as fh:
            index, offset = 1, 0
            while offset < size:
                data = fh.read(self.chunk_size)
                if not data:
                    break
                yield UploadChunk(index=index, offset=offset, file_size=size, data=data)
                index += 1
                offset += len(data)

    async def __aiter__(self) -> AsyncIterator[UploadChunk]:
        """Yield the chunks in order, reading each one in a worker thread.

        Raises:
            OSError: If the file cannot be read
        """
        size = self.file_size
        fh = await asyncio.to_thread(self.path.open, "rb")
        try:
            index, offset = 1, 0
            while offset < size:
                data = await asyncio.to_thread(fh.read, self.chunk_size)
                if not data:
                    break
                yield UploadChunk(index=index, offset=offset, file_size=size, data=data)
                index += 1
                offset += len(data)
        finally:
            fh.close()
