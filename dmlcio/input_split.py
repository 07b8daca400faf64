"""Splitting the bytes of one or more files into parts made of whole records."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from bisect import bisect_right
from typing import BinaryIO, Optional

from dmlcio.filesys import URI, FileInfo, FileSystem, FileType

logger = logging.getLogger(__name__)

WORD_SIZE = 8
BUFFER_SIZE = 1 << 15


class Chunk:
    """A buffer of whole records with a cursor moving along them."""

    def __init__(self, buffer_size: int) -> None:
        self.data = bytearray()
        self.begin = 0
        self.end = 0
        self._words = buffer_size + 1

    def load(self, split: "InputSplitBase", buffer_size: int) -> bool:
        """Fill the chunk from ``split``; return False at the end of the data."""
        self._words = max(self._words, buffer_size + 1)
        while True:
            data = split.read_chunk((self._words - 1) * WORD_SIZE)
            if data is None:
                return False
            if not data:
                self._words *= 2
                continue
            self.data = bytearray(data)
            self.begin = 0
            self.end = len(data)
            return True


class InputSplitBase(ABC):
    """Reads part ``rank`` of ``nsplit`` of the files named by ``uri``.

    ``uri`` may list several paths separated by ``;``; directories contribute
    their non-empty files.  Part boundaries are moved forward to the start of
    the next record.
    """

    def __init__(
        self,
        filesys: FileSystem,
        uri: str,
        rank: int,
        nsplit: int,
        align_bytes: int,
    ) -> None:
        self._filesys = filesys
        self._fs: Optional[BinaryIO] = None
        self._tmp_chunk = Chunk(BUFFER_SIZE)
        self._buffer_size = BUFFER_SIZE
        self._overflow = b""
        self._files = self._init_input_file_info(uri)
        self._file_offset = [0]
        for info in self._files:
            if info.size % align_bytes:
                raise ValueError(f"file do not align by {align_bytes} bytes")
            self._file_offset.append(self._file_offset[-1] + info.size)
        ntotal = self._file_offset[-1]
        nstep = -(-ntotal // nsplit)
        nstep = -(-nstep // align_bytes) * align_bytes
        self._offset_begin = min(nstep * rank, ntotal)
        self._offset_end = min(nstep * (rank + 1), ntotal)
        self._offset_curr = self._offset_begin
        self._file_ptr = 0
        if self._offset_begin == self._offset_end:
            return
        self._file_ptr = self._file_index(self._offset_begin)
        file_ptr_end = self._file_index(self._offset_end)
        if self._offset_end != self._file_offset[file_ptr_end]:
            if file_ptr_end >= len(self._files):
                raise RuntimeError("file offset not calculated correctly")
            with self._open(file_ptr_end) as fs:
                fs.seek(self._offset_end - self._file_offset[file_ptr_end])
                self._offset_end += self.seek_record_begin(fs)
        self._fs = self._open(self._file_ptr)
        if self._offset_begin != self._file_offset[self._file_ptr]:
            self._fs.seek(self._offset_begin - self._file_offset[self._file_ptr])
            self._offset_begin += self.seek_record_begin(self._fs)
        self.before_first()

    def _file_index(self, offset: int) -> int:
        return bisect_right(self._file_offset, offset) - 1

    def _open(self, index: int) -> BinaryIO:
        return self._filesys.open_for_read(self._files[index].path)

    def _init_input_file_info(self, uri: str) -> list[FileInfo]:
        files = []
        for part in filter(None, uri.split(";")):
            info = self._filesys.get_path_info(URI.from_string(part))
            if info.type is FileType.DIRECTORY:
                files.extend(
                    entry
                    for entry in self._filesys.list_directory(info.path)
                    if entry.size != 0 and entry.type is FileType.FILE
                )
            elif info.size != 0:
                files.append(info)
        return files

    def before_first(self) -> None:
        """Rewind to the first record of this part."""
        if self._offset_begin >= self._offset_end:
            return
        index = self._file_index(self._offset_begin)
        if self._file_ptr != index or self._fs is None:
            self.close()
            self._file_ptr = index
            self._fs = self._open(index)
        self._fs.seek(self._offset_begin - self._file_offset[self._file_ptr])
        self._offset_curr = self._offset_begin
        self._tmp_chunk.begin = self._tmp_chunk.end = 0
        self._overflow = b""

    def hint_chunk_size(self, chunk_size: int) -> None:
        """Ask for chunks of at least ``chunk_size`` bytes."""
        self._buffer_size = max(chunk_size // WORD_SIZE, self._buffer_size)

    def next_record(self) -> Optional[bytes]:
        """Return the next record, or None at the end of the part."""
        while (record := self.extract_next_record(self._tmp_chunk)) is None:
            if not self._tmp_chunk.load(self, self._buffer_size):
                return None
        return record

    def next_chunk(self) -> Optional[bytes]:
        """Return the next chunk of whole records, or None at the end of the part."""
        while (chunk := self.extract_next_chunk(self._tmp_chunk)) is None:
            if not self._tmp_chunk.load(self, self._buffer_size):
                return None
        return chunk

    def _read(self, size: int) -> bytes:
        if self._offset_begin >= self._offset_end:
            return b""
        size = min(size, self._offset_end - self._offset_curr)
        if size <= 0:
            return b""
        parts = []
        nleft = size
        while True:
            data = self._fs.read(nleft)
            parts.append(data)
            nleft -= len(data)
            self._offset_curr += len(data)
            if nleft == 0:
                break
            if not data:
                expected = self._file_offset[self._file_ptr + 1]
                if self._offset_curr != expected:
                    logger.error(
                        "curr=%d,begin=%d,end=%d,fileptr=%d,fileoffset=%d",
                        self._offset_curr, self._offset_begin, self._offset_end,
                        self._file_ptr, expected,
                    )
                    raise RuntimeError("file offset not calculated correctly")
                if self._file_ptr + 1 >= len(self._files):
                    break
                self.close()
                self._file_ptr += 1
                self._fs = self._open(self._file_ptr)
        return b"".join(parts)

    def read_chunk(self, max_size: int) -> Optional[bytes]:
        """Read at most ``max_size`` bytes ending on a record boundary.

        Returns None at the end of the part and an empty string when not even
        one record fits in ``max_size``.
        """
        if max_size <= len(self._overflow):
            return b""
        data = self._overflow + self._read(max_size - len(self._overflow))
        self._overflow = b""
        if not data:
            return None
        if len(data) != max_size:
            return data
        bend = self.find_last_record_begin(data)
        self._overflow = data[bend:]
        return data[:bend]

    def extract_next_chunk(self, chunk: Chunk) -> Optional[bytes]:
        """Take everything left in ``chunk``, or None if it is used up."""
        if chunk.begin == chunk.end:
            return None
        out = bytes(chunk.data[chunk.begin:chunk.end])
        chunk.begin = chunk.end
        return out

    @abstractmethod
    def extract_next_record(self, chunk: Chunk) -> Optional[bytes]:
        """Take the next record from ``chunk``, or None if it is used up."""

    @abstractmethod
    def seek_record_begin(self, stream: BinaryIO) -> int:
        """Advance ``stream`` to the next record start; return the bytes skipped."""

    @abstractmethod
    def find_last_record_begin(self, data: bytes) -> int:
        """Return the offset in ``data`` where its last record begins."""

    def close(self) -> None:
        """Close the open file, if any."""
        if self._fs is not None:
            self._fs.close()
            self._fs = None

    def __enter__(self) -> "InputSplitBase":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()