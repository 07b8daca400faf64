# dmlcio

Building blocks for reading large training data in parts, so that several
workers can each take their own share of the same files. The package has no
dependencies outside the standard library.

## Modules

- **`dmlcio.config`**: `Config` reads `key = value` text with `#` comments
  and double-quoted strings (`\"` is the only escape). With
  `multi_value=True` every value of a repeated key is kept; otherwise a later
  value replaces the earlier one. Iterating a `Config` yields `(key, value)`
  pairs in insertion order. `get_param` returns the latest value of a key and
  raises `KeyError` for an unknown one; `is_genuine_string` tells whether the
  value was quoted; `to_proto_string` renders `key : value` lines, quoting
  string values with `make_proto_string_value`. Malformed input is logged,
  not raised; `TokenizeError` is used internally for that.
- **`dmlcio.strtonum`**: lenient number parsing. `strtof`, `strtoint` and
  `strtouint` return the value with the index where parsing stopped;
  `atof` and `atol` return only the value. `strtof` rounds to single
  precision and does not know infinity, NaN or hexadecimal. `strtouint`
  raises `ValueError` on a minus sign. `parse_pair` reads a `v1[:v2]` pair and
  returns `(count, v1, v2, end)`.
- **`dmlcio.recordio`**: the 4-byte aligned RecordIO format.
  `RecordIOWriter.write_record` writes a record (under 2^29 bytes), splitting
  it where the magic word appears in the payload; `RecordIOReader` reads
  records back from a stream; `RecordIOChunkReader` reads the records of one
  part of an in-memory buffer. `encode_lrec`, `decode_flag`, `decode_length`
  and `find_next_record_head` work on the header words.
- **`dmlcio.filesys`**: `URI` (`protocol`, `host`, `name`), `FileType`,
  `FileInfo`, `URISpec` (the `path#cachefile` notation, with
  `.split<N>.part<I>` appended to the cache name when there is more than one
  part), the abstract `FileSystem` and `LocalFileSystem`. `LocalFileSystem`
  also opens the names `stdin` and `stdout`, lists directories in sorted name
  order, and raises `OSError` on failure unless `allow_null` is set, in which
  case `open` returns `None`.
- **`dmlcio.input_split`**: `InputSplitBase` takes part `rank` of `nsplit` of
  the files named by a `;`-separated URI list (directories contribute their
  non-empty files) and moves part boundaries forward to record starts. It
  offers `next_record`, `next_chunk`, `read_chunk`, `before_first`,
  `hint_chunk_size` and `close`, and works as a context manager. It is
  abstract: a subclass supplies `extract_next_record`, `seek_record_begin`
  and `find_last_record_begin` to say what a record is. `Chunk` is the buffer
  it fills.
- **`dmlcio.single_file_split`**: `SingleFileSplit` reads one file, or
  standard input when given `stdin`, line by line. Records keep their line
  endings.
- **`dmlcio.row_block`**: `Row`, the frozen compressed-row `RowBlock`, and
  `RowBlockContainer`, which grows with `push_row` and `push_block`, is frozen
  with `get_block`, and is written and read with `save` and `load`
  (32- or 64-bit feature indices).

## Examples

RecordIO:

```python
import io
from dmlcio.recordio import RecordIOWriter, RecordIOReader

buf = io.BytesIO()
writer = RecordIOWriter(buf)
writer.write_record(b"hello")
writer.write_record(b"world")

buf.seek(0)
print(list(RecordIOReader(buf)))  # [b'hello', b'world']
```

A configuration:

```python
from dmlcio.config import Config

cfg = Config(multi_value=False)
cfg.load('eta = 0.1\nname = "my model"  # comment\n')
print(cfg.get_param("eta"))       # 0.1
print(cfg.to_proto_string())      # eta : 0.1\nname : "my model"\n
```

Lines of one file:

```python
from dmlcio.single_file_split import SingleFileSplit

with SingleFileSplit("data/train.txt") as split:
    for line in iter(split.next_record, None):
        print(line)
```

Parsing and storing sparse rows:

```python
import io
from dmlcio.strtonum import parse_pair
from dmlcio.row_block import Row, RowBlockContainer

print(parse_pair("3:0.5", int, float))   # (2, 3, 0.5, 5)

rows = RowBlockContainer(index_bits=32)
rows.push_row(Row(label=1.0, index=[0, 3], value=[0.5, 1.0]))
block = rows.get_block()
print(block[0].index, rows.max_index)     # (0, 3) 3

buf = io.BytesIO()
rows.save(buf)
buf.seek(0)
copy = RowBlockContainer(index_bits=32)
copy.load(buf)
```

## What the package does not do

- It has no ready-made line or RecordIO splitter over a file system:
  `InputSplitBase` must be subclassed to define records.
- It does not parse whole libsvm files into row blocks, iterate over such
  data, prefetch in a background thread or cache splits on disk.
- It reaches only the local file system; there is no HDFS, S3 or Azure
  access, and no function that picks a file system from a URI's protocol.
- It has no command-line program.

## Installing and testing

```
pip install .
pip install ".[test]"
pytest
```