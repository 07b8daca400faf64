"""Key-value configuration files made of ``key = value`` lines."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterator, TextIO, Union

logger = logging.getLogger(__name__)

_WHITESPACE = " \t\n\r"


class TokenizeError(Exception):
    """Raised when the configuration text cannot be split into tokens."""

    def __init__(self, msg: str = "tokenize error") -> None:
        super().__init__(msg)


@dataclass
class _Token:
    buf: str = ""
    is_string: bool = False


class _Tokenizer:
    """Splits configuration text into bare words, quoted strings and ``=``."""

    def __init__(self, text: str) -> None:
        self._text = text
        self._pos = 0

    def _peek(self) -> str:
        return self._text[self._pos] if self._pos < len(self._text) else ""

    def _eat(self) -> None:
        if self._pos < len(self._text):
            self._pos += 1

    def next_token(self) -> _Token:
        tok = _Token()
        in_token = False
        while ch := self._peek():
            if ch in _WHITESPACE:
                if in_token:
                    break
                self._eat()
            elif ch == '"':
                tok.buf += self._parse_string()
                tok.is_string = True
                break
            elif ch == "=":
                if not in_token:
                    tok.buf = "="
                    self._eat()
                break
            elif ch == "#":
                self._skip_comment()
            else:
                in_token = True
                tok.buf += ch
                self._eat()
        return tok

    def _parse_string(self) -> str:
        self._eat()  # opening quotation mark
        parts = []
        while (ch := self._peek()) != '"':
            if ch == "\\":
                self._eat()
                if self._peek() != '"':
                    raise TokenizeError("error parsing escape characters")
                parts.append('"')
            elif ch in ("\n", "\r", ""):
                raise TokenizeError("quotation mark is not closed")
            else:
                parts.append(ch)
            self._eat()
        self._eat()  # closing quotation mark
        return "".join(parts)

    def _skip_comment(self) -> None:
        while (ch := self._peek()) and ch not in "\n\r":
            self._eat()


def make_proto_string_value(value: str) -> str:
    """Quote ``value`` for protobuf text format, escaping quotation marks."""
    return '"' + value.replace('"', '\\"') + '"'


@dataclass
class _ConfigValue:
    values: list[str] = field(default_factory=list)
    insert_index: list[int] = field(default_factory=list)
    is_string: bool = False


class Config:
    """Ordered configuration store, optionally keeping every value of a key."""

    def __init__(self, multi_value: bool = False) -> None:
        self.multi_value = multi_value
        self._map: dict[str, _ConfigValue] = {}
        self._order: list[tuple[str, int]] = []

    def clear(self) -> None:
        """Remove all entries."""
        self._map.clear()
        self._order.clear()

    def load(self, stream: Union[TextIO, str]) -> None:
        """Read ``key = value`` entries from a text stream or a string."""
        text = stream if isinstance(stream, str) else stream.read()
        tokenizer = _Tokenizer(text)
        try:
            while True:
                key = tokenizer.next_token()
                if not key.buf:
                    break
                eqop = tokenizer.next_token()
                value = tokenizer.next_token()
                if eqop.buf != "=":
                    logger.error(
                        'Parsing error: expect format "k = v"; but got "%s%s%s"',
                        key.buf, eqop.buf, value.buf,
                    )
                self.insert(key.buf, value.buf, value.is_string)
        except TokenizeError as err:
            logger.error("Tokenize error: %s", err)

    def _lookup(self, key: str) -> _ConfigValue:
        try:
            return self._map[key]
        except KeyError:
            raise KeyError(f'key "{key}" not found in configure') from None

    def get_param(self, key: str) -> str:
        """Return the most recently inserted value of ``key``."""
        return self._lookup(key).values[-1]

    def is_genuine_string(self, key: str) -> bool:
        """Tell whether the value of ``key`` was written as a quoted string."""
        return self._lookup(key).is_string

    def to_proto_string(self) -> str:
        """Render the entries in protobuf text format."""
        return "".join(
            f"{key} : "
            f"{make_proto_string_value(value) if self.is_genuine_string(key) else value}\n"
            for key, value in self
        )

    def insert(self, key: str, value: str, is_string: bool) -> None:
        """Add an entry; without multi-value mode it replaces earlier ones."""
        insert_index = len(self._order)
        if not self.multi_value:
            self._map[key] = _ConfigValue()
        entry = self._map.setdefault(key, _ConfigValue())
        val_index = len(entry.values)
        entry.values.append(value)
        entry.insert_index.append(insert_index)
        entry.is_string = is_string
        self._order.append((key, val_index))

    def __iter__(self) -> Iterator[tuple[str, str]]:
        for index, (key, val_index) in enumerate(self._order):
            entry = self._map[key]
            if entry.insert_index[val_index] == index:
                yield key, entry.values[val_index]