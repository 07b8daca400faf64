"""Blocks of sparse rows: labels, weights, feature indices and feature values."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import BinaryIO, Iterator, Optional, Sequence

_INDEX_FORMATS = {32: "I", 64: "Q"}
_SIZE_FORMAT = "Q"
_REAL_FORMAT = "f"
_SIZE_BYTES = struct.calcsize("<" + _SIZE_FORMAT)
_REAL_BYTES = struct.calcsize("<" + _REAL_FORMAT)


@dataclass
class Row:
    """One instance: a label, a weight and its sparse features."""

    label: float
    index: Sequence[int]
    value: Optional[Sequence[float]] = None
    weight: float = 1.0

    @property
    def length(self) -> int:
        """Number of features in the row."""
        return len(self.index)


@dataclass(frozen=True)
class RowBlock:
    """An immutable batch of rows in compressed sparse row layout.

    ``offset`` has one more entry than there are rows; the features of row
    ``i`` are ``index[offset[i] - offset[0]:offset[i + 1] - offset[0]]``.
    An empty ``weight`` or ``value`` means the block carries none.
    """

    offset: tuple = (0,)
    label: tuple = ()
    weight: tuple = ()
    index: tuple = ()
    value: tuple = ()

    @property
    def size(self) -> int:
        """Number of rows."""
        return len(self.offset) - 1

    def __len__(self) -> int:
        return self.size

    def __getitem__(self, i: int) -> Row:
        i = range(self.size)[i]
        start = self.offset[i] - self.offset[0]
        end = self.offset[i + 1] - self.offset[0]
        return Row(
            label=self.label[i],
            index=self.index[start:end],
            value=self.value[start:end] if self.value else None,
            weight=self.weight[i] if self.weight else 1.0,
        )

    def __iter__(self) -> Iterator[Row]:
        for i in range(self.size):
            yield self[i]


def _pack_vector(code: str, items: Sequence) -> bytes:
    return struct.pack(f"<{_SIZE_FORMAT}", len(items)) + struct.pack(
        f"<{len(items)}{code}", *items
    )


def _read_vector(stream: BinaryIO, code: str) -> Optional[list]:
    head = stream.read(_SIZE_BYTES)
    if len(head) != _SIZE_BYTES:
        return None
    (count,) = struct.unpack(f"<{_SIZE_FORMAT}", head)
    nbytes = count * struct.calcsize("<" + code)
    data = stream.read(nbytes) if nbytes else b""
    if len(data) != nbytes:
        return None
    return list(struct.unpack(f"<{count}{code}", data))


class RowBlockContainer:
    """Growable storage of rows that can be frozen into a :class:`RowBlock`."""

    def __init__(self, index_bits: int = 32) -> None:
        if index_bits not in _INDEX_FORMATS:
            raise ValueError(f"index_bits must be 32 or 64, not {index_bits}")
        self.index_bits = index_bits
        self._index_format = _INDEX_FORMATS[index_bits]
        self._index_limit = (1 << index_bits) - 1
        self.clear()

    def clear(self) -> None:
        """Remove all rows."""
        self.offset: list[int] = [0]
        self.label: list[float] = []
        self.weight: list[float] = []
        self.index: list[int] = []
        self.value: list[float] = []
        self.max_index = 0

    def __len__(self) -> int:
        return len(self.offset) - 1

    def mem_cost_bytes(self) -> int:
        """Estimate of the memory the stored data takes."""
        return (
            len(self.offset) * _SIZE_BYTES
            + (len(self.label) + len(self.weight) + len(self.value)) * _REAL_BYTES
            + len(self.index) * (self.index_bits // 8)
        )

    def _append_indices(self, indices: Sequence[int]) -> None:
        for findex in indices:
            if findex < 0 or findex > self._index_limit:
                raise OverflowError("index exceed numeric bound of current type")
            self.index.append(findex)
            self.max_index = max(self.max_index, findex)

    def push_row(self, row: Row) -> None:
        """Append one row."""
        self.label.append(row.label)
        self.weight.append(row.weight)
        self._append_indices(row.index)
        if row.value is not None:
            self.value.extend(row.value)
        self.offset.append(len(self.index))

    def push_block(self, block: RowBlock) -> None:
        """Append every row of ``block``."""
        n = block.size
        self.label.extend(block.label[:n])
        if block.weight:
            self.weight.extend(block.weight[:n])
        ndata = block.offset[n] - block.offset[0]
        shift = self.offset[-1]
        self._append_indices(block.index[:ndata])
        if block.value:
            self.value.extend(block.value[:ndata])
        base = block.offset[0]
        self.offset.extend(shift + o - base for o in block.offset[1:n + 1])

    def get_block(self) -> RowBlock:
        """Freeze the stored rows into a :class:`RowBlock` after checking consistency."""
        if len(self.label) + 1 != len(self.offset):
            raise ValueError("label and offset sizes do not agree")
        if self.offset[-1] != len(self.index):
            raise ValueError("offset and index sizes do not agree")
        if self.value and self.offset[-1] != len(self.value):
            raise ValueError("index and value sizes do not agree")
        return RowBlock(
            offset=tuple(self.offset),
            label=tuple(self.label),
            weight=tuple(self.weight),
            index=tuple(self.index),
            value=tuple(self.value),
        )

    def save(self, stream: BinaryIO) -> None:
        """Write the container in binary form."""
        for code, items in (
            (_SIZE_FORMAT, self.offset),
            (_REAL_FORMAT, self.label),
            (_REAL_FORMAT, self.weight),
            (self._index_format, self.index),
            (_REAL_FORMAT, self.value),
        ):
            stream.write(_pack_vector(code, items))
        stream.write(struct.pack("<" + self._index_format, self.max_index))

    def load(self, stream: BinaryIO) -> bool:
        """Read a container written by :meth:`save`; return False at the end of the stream."""
        offset = _read_vector(stream, _SIZE_FORMAT)
        if offset is None:
            return False
        vectors = []
        for code in (_REAL_FORMAT, _REAL_FORMAT, self._index_format, _REAL_FORMAT):
            items = _read_vector(stream, code)
            if items is None:
                raise ValueError("Bad RowBlock format")
            vectors.append(items)
        size = struct.calcsize("<" + self._index_format)
        raw = stream.read(size)
        if len(raw) != size:
            raise ValueError("Bad RowBlock format")
        self.offset = offset
        self.label, self.weight, self.index, self.value = vectors
        (self.max_index,) = struct.unpack("<" + self._index_format, raw)
        return True