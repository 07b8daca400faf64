import io
import struct

import pytest

from dmlcio.row_block import Row, RowBlock, RowBlockContainer


def _container(index_bits=32):
    c = RowBlockContainer(index_bits)
    c.push_row(Row(label=1.0, index=[3, 7], value=[0.5, 2.0]))
    c.push_row(Row(label=0.0, index=[1], value=[1.0], weight=0.5))
    return c


def test_push_row_builds_csr_layout():
    c = _container()
    assert len(c) == 2
    assert c.offset == [0, 2, 3]
    assert c.index == [3, 7, 1]
    assert c.weight == [1.0, 0.5]
    assert c.max_index == 7


def test_get_block_and_row_access():
    block = _container().get_block()
    assert block.size == 2
    row = block[1]
    assert row.label == 0.0
    assert tuple(row.index) == (1,)
    assert tuple(row.value) == (1.0,)
    assert row.weight == 0.5
    assert [r.length for r in block] == [2, 1]


def test_get_block_rejects_inconsistent_data():
    c = _container()
    c.label.append(1.0)
    with pytest.raises(ValueError):
        c.get_block()


def test_get_block_rejects_value_mismatch():
    c = _container()
    c.value.append(3.0)
    with pytest.raises(ValueError):
        c.get_block()


def test_push_block_appends_with_shifted_offsets():
    block = _container().get_block()
    c = _container()
    c.push_block(block)
    assert len(c) == 4
    assert c.offset[-1] == len(c.index)
    assert c.index[3:] == list(block.index)
    merged = c.get_block()
    assert [tuple(r.index) for r in merged][2:] == [tuple(r.index) for r in block]


def test_push_block_into_empty_container_equals_block():
    block = _container().get_block()
    c = RowBlockContainer()
    c.push_block(block)
    assert c.get_block() == block
    assert c.max_index == 7


def test_index_overflow_is_rejected_for_32_bits():
    c = RowBlockContainer(32)
    with pytest.raises(OverflowError):
        c.push_row(Row(label=1.0, index=[1 << 32]))


def test_index_of_64_bits_accepted():
    c = RowBlockContainer(64)
    c.push_row(Row(label=1.0, index=[1 << 40]))
    assert c.max_index == 1 << 40


def test_invalid_index_bits():
    with pytest.raises(ValueError):
        RowBlockContainer(16)


def test_mem_cost_grows_with_index_width():
    c32 = _container(32)
    c64 = _container(64)
    assert c64.mem_cost_bytes() - c32.mem_cost_bytes() == 4 * len(c32.index)


def test_clear_resets():
    c = _container()
    c.clear()
    assert len(c) == 0
    assert c.offset == [0]
    assert c.max_index == 0


@pytest.mark.parametrize("bits", [32, 64])
def test_save_load_round_trip(bits):
    c = _container(bits)
    buf = io.BytesIO()
    c.save(buf)
    c.save(buf)
    buf.seek(0)
    loaded = RowBlockContainer(bits)
    assert loaded.load(buf)
    assert loaded.get_block() == c.get_block()
    assert loaded.max_index == c.max_index
    assert loaded.load(buf)
    assert not loaded.load(buf)


def test_saved_empty_container_starts_with_offset_vector():
    buf = io.BytesIO()
    RowBlockContainer().save(buf)
    assert buf.getvalue()[:16] == struct.pack("<QQ", 1, 0)


def test_load_truncated_stream_raises():
    buf = io.BytesIO()
    _container().save(buf)
    truncated = io.BytesIO(buf.getvalue()[:-2])
    with pytest.raises(ValueError):
        RowBlockContainer().load(truncated)


def test_load_empty_stream_returns_false():
    assert not RowBlockContainer().load(io.BytesIO(b""))


def test_row_block_default_is_empty():
    assert len(RowBlock()) == 0
    with pytest.raises(IndexError):
        RowBlock()[0]