"""RecordIO: a binary format of 4-byte aligned, self-synchronising records."""

from __future__ import annotations

import struct
from typing import BinaryIO, Iterator, Optional, Union

MAGIC = 0xCED7230A
_MAGIC_BYTES = struct.pack("<I", MAGIC)
_HEADER = struct.Struct("<II")
_LENGTH_BITS = 29
_LENGTH_MASK = (1 << _LENGTH_BITS) - 1
_MAX_RECORD = 1 << _LENGTH_BITS

Buffer = Union[bytes, bytearray, memoryview]


def encode_lrec(cflag: int, length: int) -> int:
    """Pack a continuation flag and a part length into one header word."""
    return (cflag << _LENGTH_BITS) | length


def decode_flag(rec: int) -> int:
    """Continuation flag of a header word."""
    return (rec >> _LENGTH_BITS) & 7


def decode_length(rec: int) -> int:
    """Part length of a header word."""
    return rec & _LENGTH_MASK


def _align4(n: int) -> int:
    return (n + 3) & ~3


def _aligned_magic_positions(data: bytes, start: int, stop: int) -> Iterator[int]:
    """Yield 4-byte aligned offsets where the magic word lies within [start, stop)."""
    pos = data.find(_MAGIC_BYTES, start, stop)
    while pos >= 0:
        if pos % 4 == 0:
            yield pos
        pos = data.find(_MAGIC_BYTES, pos + 1, stop)


def find_next_record_head(data: Buffer, begin: int, end: int) -> int:
    """Return the offset of the first record head in ``data[begin:end]``, or ``end``."""
    if begin % 4 or end % 4:
        raise ValueError("RecordIO offsets must be 4-byte aligned")
    data = bytes(data) if isinstance(data, memoryview) else data
    for pos in _aligned_magic_positions(data, begin, end - 4):
        _, lrec = _HEADER.unpack_from(data, pos)
        if decode_flag(lrec) in (0, 1):
            return pos
    return end


class RecordIOWriter:
    """Writes records to a binary stream, escaping magic words in the payload."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self.except_counter = 0

    def _write_part(self, cflag: int, part: bytes) -> None:
        self._stream.write(_HEADER.pack(MAGIC, encode_lrec(cflag, len(part))))
        if part:
            self._stream.write(part)

    def write_record(self, data: Buffer) -> None:
        """Append one record."""
        size = len(data)
        if size >= _MAX_RECORD:
            raise ValueError("RecordIO only accept record less than 2^29 bytes")
        payload = bytes(data)
        dptr = 0
        for pos in _aligned_magic_positions(payload, 0, size):
            self._write_part(1 if dptr == 0 else 2, payload[dptr:pos])
            dptr = pos + 4
            self.except_counter += 1
        self._write_part(3 if dptr else 0, payload[dptr:])
        padding = _align4(size) - size
        if padding:
            self._stream.write(b"\0" * padding)


class RecordIOReader:
    """Reads records back from a binary stream."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self._end_of_stream = False

    def next_record(self) -> Optional[bytes]:
        """Return the next record, or None at the end of the stream."""
        if self._end_of_stream:
            return None
        parts = []
        while True:
            header = self._stream.read(_HEADER.size)
            if not header:
                self._end_of_stream = True
                return None
            if len(header) != _HEADER.size:
                raise ValueError("Invalid RecordIO File")
            magic, lrec = _HEADER.unpack(header)
            if magic != MAGIC:
                raise ValueError("Invalid RecordIO File")
            cflag = decode_flag(lrec)
            length = decode_length(lrec)
            upper_align = _align4(length)
            payload = self._stream.read(upper_align) if upper_align else b""
            if len(payload) != upper_align:
                raise ValueError(f"Invalid RecordIO File upper_align={upper_align}")
            parts.append(payload[:length])
            if cflag in (0, 3):
                break
            parts.append(_MAGIC_BYTES)
        return b"".join(parts)

    def __iter__(self) -> Iterator[bytes]:
        while (record := self.next_record()) is not None:
            yield record


class RecordIOChunkReader:
    """Reads the records of one part of an in-memory RecordIO chunk."""

    def __init__(self, chunk: Buffer, part_index: int = 0, num_parts: int = 1) -> None:
        self._data = bytes(chunk)
        size = len(self._data)
        nstep = _align4(-(-size // num_parts))
        begin = min(size, nstep * part_index)
        end = min(size, nstep * (part_index + 1))
        self._pos = find_next_record_head(self._data, begin, size)
        self._end = find_next_record_head(self._data, end, size)

    def _header_at(self, pos: int) -> tuple[int, int]:
        magic, lrec = _HEADER.unpack_from(self._data, pos)
        if magic != MAGIC:
            raise ValueError("Invalid RecordIO Format")
        return decode_flag(lrec), decode_length(lrec)

    def next_record(self) -> Optional[bytes]:
        """Return the next record of this part, or None when it is exhausted."""
        if self._pos >= self._end:
            return None
        cflag, clen = self._header_at(self._pos)
        if cflag == 0:
            start = self._pos + _HEADER.size
            self._pos = start + _align4(clen)
            if self._pos > self._end:
                raise ValueError("Invalid RecordIO Format")
            return self._data[start:start + clen]
        if cflag != 1:
            raise ValueError("Invalid RecordIO Format")
        parts = []
        while True:
            if self._pos + _HEADER.size > self._end:
                raise ValueError("Invalid RecordIO Format")
            cflag, clen = self._header_at(self._pos)
            start = self._pos + _HEADER.size
            parts.append(self._data[start:start + clen])
            self._pos = start + _align4(clen)
            if cflag == 3:
                break
            parts.append(_MAGIC_BYTES)
        return b"".join(parts)

    def __iter__(self) -> Iterator[bytes]:
        while (record := self.next_record()) is not None:
            yield record