"""Partitioned data input: RecordIO, input splits, sparse row blocks and config files."""

__version__ = "0.1.0"

__all__ = [
    "config",
    "strtonum",
    "recordio",
    "filesys",
    "input_split",
    "single_file_split",
    "row_block",
]