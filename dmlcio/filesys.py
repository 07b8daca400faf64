"""URIs, file information and the local file system."""

from __future__ import annotations

import enum
import os
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import BinaryIO, Optional

_PROTOCOL_SEP = "://"
_MODES = {"w": "wb", "r": "rb", "a": "ab"}


@dataclass
class URI:
    """A URI split into protocol (with ``://``), host and path name."""

    protocol: str = ""
    host: str = ""
    name: str = ""

    @classmethod
    def from_string(cls, text: str) -> "URI":
        """Split ``text`` into its parts; text without ``://`` is a plain name."""
        sep = text.find(_PROTOCOL_SEP)
        if sep < 0:
            return cls(name=text)
        protocol = text[:sep + len(_PROTOCOL_SEP)]
        rest = text[sep + len(_PROTOCOL_SEP):]
        slash = rest.find("/")
        if slash < 0:
            return cls(protocol=protocol, host=rest, name="/")
        return cls(protocol=protocol, host=rest[:slash], name=rest[slash:])

    def __str__(self) -> str:
        return self.protocol + self.host + self.name


class FileType(enum.Enum):
    """Kind of a file system entry."""

    FILE = "file"
    DIRECTORY = "directory"


@dataclass
class FileInfo:
    """Path, size and kind of a file system entry."""

    path: URI = field(default_factory=URI)
    size: int = 0
    type: FileType = FileType.FILE


@dataclass
class URISpec:
    """A URI with an optional ``#cachefile`` suffix separated out."""

    uri: str
    cache_file: str = ""

    @classmethod
    def parse(cls, uri: str, part_index: int, num_parts: int) -> "URISpec":
        """Split ``path#cache`` into the real URI and a per-part cache file name."""
        head, sep, cache = uri.partition("#")
        if not sep:
            return cls(uri=uri)
        if "#" in cache:
            raise ValueError(
                "only one `#` is allowed in file path for cachefile specification"
            )
        if num_parts != 1:
            cache += f".split{num_parts}.part{part_index}"
        return cls(uri=head, cache_file=cache)


class FileSystem(ABC):
    """Interface of a file system reachable through URIs."""

    @abstractmethod
    def get_path_info(self, path: URI) -> FileInfo:
        """Return information about ``path``."""

    @abstractmethod
    def list_directory(self, path: URI) -> list[FileInfo]:
        """Return information about every entry of the directory ``path``."""

    @abstractmethod
    def open(self, path: URI, flag: str, allow_null: bool = False) -> Optional[BinaryIO]:
        """Open a binary stream; return None on failure only if ``allow_null``."""

    @abstractmethod
    def open_for_read(self, path: URI, allow_null: bool = False) -> Optional[BinaryIO]:
        """Open a seekable binary stream for reading."""


class LocalFileSystem(FileSystem):
    """File system of the local machine."""

    def get_path_info(self, path: URI) -> FileInfo:
        try:
            st = os.stat(path.name)
        except OSError as err:
            raise OSError(
                err.errno,
                f"LocalFileSystem.get_path_info {path.name} Error: {err.strerror}",
                path.name,
            ) from err
        kind = FileType.DIRECTORY if os.path.isdir(path.name) else FileType.FILE
        return FileInfo(path=path, size=st.st_size, type=kind)

    def list_directory(self, path: URI) -> list[FileInfo]:
        """List a directory; entries come in sorted name order."""
        try:
            names = sorted(os.listdir(path.name))
        except OSError as err:
            raise OSError(
                err.errno,
                f"LocalFileSystem.list_directory {path} error: {err.strerror}",
                path.name,
            ) from err
        base = path.name if path.name.endswith("/") else path.name + "/"
        return [
            self.get_path_info(URI(path.protocol, path.host, base + name))
            for name in names
        ]

    def open(self, path: URI, flag: str, allow_null: bool = False) -> Optional[BinaryIO]:
        fname = path.name
        mode = _MODES.get(flag, flag)
        try:
            if fname == "stdin":
                return open(sys.stdin.fileno(), "rb", closefd=False)
            if fname == "stdout":
                return open(sys.stdout.fileno(), "wb", closefd=False)
            if fname.startswith("file://"):
                fname = fname[len("file://"):]
            return open(fname, mode)
        except OSError as err:
            if allow_null:
                return None
            raise OSError(
                err.errno, f'LocalFileSystem: fail to open "{path}"', fname
            ) from err

    def open_for_read(self, path: URI, allow_null: bool = False) -> Optional[BinaryIO]:
        return self.open(path, "r", allow_null)