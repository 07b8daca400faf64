"""Line splitting of a single file or of standard input."""

from __future__ import annotations

import contextlib
import re
import sys
from typing import BinaryIO, Optional

BUFFER_SIZE = 1 << 18
_RECORD = re.compile(rb"[^\r\n]*[\r\n]*")


def _find_last_record_begin(data: bytes) -> int:
    if not data:
        return 0
    pos = max(data.rfind(b"\n", 1), data.rfind(b"\r", 1))
    return pos + 1 if pos >= 0 else 0


class SingleFileSplit:
    """Reads one file (or ``stdin``) line by line; records keep their line endings."""

    def __init__(self, fname: str) -> None:
        self._use_stdin = fname == "stdin"
        self._fp: Optional[BinaryIO]
        if self._use_stdin:
            self._fp = sys.stdin.buffer
        else:
            try:
                self._fp = open(fname, "rb")
            except OSError as err:
                raise OSError(
                    err.errno, f"SingleFileSplit: fail to open {fname}", fname
                ) from err
        self._buffer_size = BUFFER_SIZE
        self._buffer_len = BUFFER_SIZE
        self._overflow = b""
        self._chunk = b""
        self._pos = 0

    def before_first(self) -> None:
        """Rewind to the start of the file."""
        with contextlib.suppress(OSError):
            self._fp.seek(0)
        self._overflow = b""
        self._chunk = b""
        self._pos = 0

    def hint_chunk_size(self, chunk_size: int) -> None:
        """Ask for chunks of at least ``chunk_size`` bytes."""
        self._buffer_size = max(chunk_size, self._buffer_size)

    def read(self, size: int) -> bytes:
        """Read up to ``size`` raw bytes from the file."""
        return self._fp.read(size)

    def next_record(self) -> Optional[bytes]:
        """Return the next line with its line endings, or None at the end."""
        if self._pos == len(self._chunk) and not self._load_chunk():
            return None
        end = _RECORD.match(self._chunk, self._pos).end()
        record = self._chunk[self._pos:end]
        self._pos = end
        return record

    def next_chunk(self) -> Optional[bytes]:
        """Return the next chunk of whole lines, or None at the end."""
        if self._pos == len(self._chunk) and not self._load_chunk():
            return None
        chunk = self._chunk[self._pos:]
        self._pos = len(self._chunk)
        return chunk

    def read_chunk(self, max_size: int) -> Optional[bytes]:
        """Read at most ``max_size`` bytes ending on a line boundary.

        Returns None at the end of the file and an empty string when not even
        one line fits in ``max_size``.
        """
        if max_size <= len(self._overflow):
            return b""
        data = self._overflow + self.read(max_size - len(self._overflow))
        self._overflow = b""
        if not data:
            return None
        if len(data) != max_size:
            return data
        bend = _find_last_record_begin(data)
        self._overflow = data[bend:]
        return data[:bend]

    def _load_chunk(self) -> bool:
        size = max(self._buffer_len, self._buffer_size)
        while True:
            data = self.read_chunk(size)
            if data is None:
                return False
            if data:
                self._buffer_len = size
                self._chunk = data
                self._pos = 0
                return True
            size *= 2

    def close(self) -> None:
        """Close the file unless it is standard input."""
        if self._fp is not None and not self._use_stdin:
            self._fp.close()
        self._fp = None

    def __enter__(self) -> "SingleFileSplit":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()