'''
turning bencoded bytes into a tree of Nodes.
every Node remembers the exact byte span it was decoded from,
so the raw 'info' dictionary can be hashed without encoding it again
'''

import re
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import NamedTuple, Optional

from .config import DecoderLimits
from .errors import (
    BencodeError,
    DataAfterBencode,
    InvalidInteger,
    InvalidPrefix,
    NestingTooDeep,
    NodeBudgetExceeded,
    NonByteStringDictKey,
    NonUtf8DictKey,
    NonUtf8Integer,
    UnexpectedEndOfData,
)

TOKEN_INTEGER = ord('i')
TOKEN_LIST = ord('l')
TOKEN_DICT = ord('d')
TOKEN_END = ord('e')

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1
INT64_DIGITS = len(str(INT64_MAX))

_INTEGER_LITERAL = re.compile(r'-?[0-9]+')


class ValueKind(Enum):
    INTEGER = 'integer'
    BYTE_STRING = 'byte string'
    LIST = 'list'
    DICTIONARY = 'dictionary'


class Span(NamedTuple):
    start: int
    end: int #exclusive

    @property
    def length(self):
        return self.end - self.start

    def slice(self, buffer):
        return buffer[self.start:self.end]


@dataclass(frozen=True)
class Node:
    """
    One decoded value and the bytes it came from.

    ``value`` depends on ``kind``: an ``int`` for INTEGER, an owned ``bytes``
    copy for BYTE_STRING, a tuple of Nodes for LIST and a read-only
    ``str -> Node`` mapping for DICTIONARY.
    """
    kind: ValueKind
    value: object
    span: Span
    source: bytes = field(repr=False, compare=False)

    @property
    def raw(self):
        """Exact encoding of this value, framing included."""
        return self.span.slice(self.source)

    def as_int(self) -> Optional[int]:
        return self.value if self.kind is ValueKind.INTEGER else None

    def as_bytes(self) -> Optional[bytes]:
        return self.value if self.kind is ValueKind.BYTE_STRING else None

    def as_str(self, encoding='utf-8') -> Optional[str]:
        if self.kind is not ValueKind.BYTE_STRING:
            return None
        try:
            return self.value.decode(encoding)
        except UnicodeDecodeError:
            return None

    def as_list(self):
        return self.value if self.kind is ValueKind.LIST else None

    def as_dict(self):
        return self.value if self.kind is ValueKind.DICTIONARY else None

    def get(self, key, default=None):
        entries = self.as_dict()
        if entries is None:
            return default
        return entries.get(key, default)

    def to_python(self):
        """Plain ints, bytes, lists and dicts, without spans."""
        if self.kind is ValueKind.LIST:
            return [item.to_python() for item in self.value]
        if self.kind is ValueKind.DICTIONARY:
            return {key: item.to_python() for key, item in self.value.items()}
        return self.value

    def __str__(self):
        if self.kind is ValueKind.INTEGER:
            return f"Integer: {self.value}"
        if self.kind is ValueKind.BYTE_STRING:
            return f"String: {self.value.decode('utf-8', errors='replace')}"
        if self.kind is ValueKind.LIST:
            return "List: " + ", ".join(str(item) for item in self.value)
        return "Dict: " + ", ".join(f"{key}: {item}" for key, item in self.value.items())


class Outcome(Enum):
    NOT_APPLICABLE = 'not applicable' #leading byte belongs to another production
    INVALID = 'invalid'
    DECODED = 'decoded'


class Attempt(NamedTuple):
    outcome: Outcome
    node: Optional[Node] = None
    error: Optional[BencodeError] = None


NOT_APPLICABLE = Attempt(Outcome.NOT_APPLICABLE)


def _invalid(error):
    return Attempt(Outcome.INVALID, error=error)


class BencodeDecoder:
    """
    Recursive descent over one immutable buffer.

    Each ``_try_*`` method attempts a single production at an offset and
    reports an :class:`Attempt`; nothing is raised until :meth:`decode`
    hands the first error back to the caller.
    """

    def __init__(self, data, limits=None):
        if isinstance(data, (bytearray, memoryview)):
            data = bytes(data) #freeze, spans must stay valid
        elif not isinstance(data, bytes):
            raise TypeError(f"Expected bytes-like data, got {type(data).__name__}")
        self.data = data
        self.limits = limits or DecoderLimits()
        self._depth = 0
        self._nodes = 0

    def decode(self):
        self._depth = 0
        self._nodes = 0

        try:
            attempt = self._decode_next(0)
        except RecursionError:
            raise NestingTooDeep(0, "interpreter stack exhausted") from None
        if attempt.outcome is Outcome.INVALID:
            raise attempt.error

        node = attempt.node
        if node.span.end < len(self.data):
            raise DataAfterBencode(
                node.span.end, f"{len(self.data) - node.span.end} trailing bytes")
        return node

    def _decode_next(self, pos): #dispatcher, never NOT_APPLICABLE
        if pos >= len(self.data):
            return _invalid(UnexpectedEndOfData(pos))

        for production in (self._try_integer, self._try_string,
                           self._try_list, self._try_dict):
            attempt = production(pos)
            if attempt.outcome is not Outcome.NOT_APPLICABLE:
                return attempt

        return _invalid(InvalidPrefix(pos, repr(self.data[pos:pos + 1])))

    def _emit(self, kind, value, start, end):
        self._nodes += 1
        if self._nodes > self.limits.max_nodes:
            return _invalid(NodeBudgetExceeded(start, f"limit is {self.limits.max_nodes}"))
        return Attempt(Outcome.DECODED, node=Node(kind, value, Span(start, end), self.data))

    def _enter(self, pos):
        if self._depth >= self.limits.max_depth:
            return _invalid(NestingTooDeep(pos, f"limit is {self.limits.max_depth}"))
        self._depth += 1
        return None

    def _try_integer(self, pos): # i<>e
        if self.data[pos] != TOKEN_INTEGER:
            return NOT_APPLICABLE

        end = self.data.find(b'e', pos + 1)
        if end == -1:
            return _invalid(UnexpectedEndOfData(pos, "integer is missing 'e'"))

        try:
            literal = self.data[pos + 1:end].decode('utf-8')
        except UnicodeDecodeError:
            return _invalid(NonUtf8Integer(pos))

        if not _INTEGER_LITERAL.fullmatch(literal):
            return _invalid(InvalidInteger(pos, repr(literal)))

        digits = literal.lstrip('-').lstrip('0')
        if len(digits) > INT64_DIGITS: #int() refuses very long literals
            return _invalid(InvalidInteger(pos, f"{len(digits)} digits do not fit in 64 bits"))

        number = int(digits or '0')
        if literal.startswith('-'):
            number = -number
        if not INT64_MIN <= number <= INT64_MAX:
            return _invalid(InvalidInteger(pos, "value does not fit in 64 bits"))

        return self._emit(ValueKind.INTEGER, number, pos, end + 1)

    def _try_string(self, pos): # n:<>
        if not 0x30 <= self.data[pos] <= 0x39: #ASCII '0'..'9'
            return NOT_APPLICABLE

        colon = self.data.find(b':', pos)
        if colon == -1:
            return _invalid(UnexpectedEndOfData(pos, "string length is missing ':'"))

        length_literal = self.data[pos:colon]
        if not length_literal.isdigit():
            return _invalid(InvalidInteger(pos, f"bad string length {length_literal!r}"))

        significant = length_literal.lstrip(b'0') or b'0'
        if len(significant) > len(str(len(self.data))): #longer than the whole buffer
            return _invalid(UnexpectedEndOfData(
                pos, f"string length of {len(length_literal)} digits exceeds the data"))

        length = int(significant)
        start = colon + 1
        end = start + length
        if end > len(self.data):
            return _invalid(UnexpectedEndOfData(
                pos, f"string needs {length} bytes, {len(self.data) - start} left"))

        return self._emit(ValueKind.BYTE_STRING, self.data[start:end], pos, end)

    def _try_list(self, pos): # l<>e
        if self.data[pos] != TOKEN_LIST:
            return NOT_APPLICABLE

        too_deep = self._enter(pos)
        if too_deep:
            return too_deep

        items = []
        index = pos + 1
        try:
            while True:
                if index >= len(self.data):
                    return _invalid(UnexpectedEndOfData(pos, "list is missing 'e'"))
                if self.data[index] == TOKEN_END:
                    break

                attempt = self._decode_next(index)
                if attempt.outcome is Outcome.INVALID:
                    return attempt
                items.append(attempt.node)
                index = attempt.node.span.end
        finally:
            self._depth -= 1

        return self._emit(ValueKind.LIST, tuple(items), pos, index + 1)

    def _try_dict(self, pos): # d<>e
        if self.data[pos] != TOKEN_DICT:
            return NOT_APPLICABLE

        too_deep = self._enter(pos)
        if too_deep:
            return too_deep

        entries = {}
        index = pos + 1
        try:
            while True:
                if index >= len(self.data):
                    return _invalid(UnexpectedEndOfData(pos, "dictionary is missing 'e'"))
                if self.data[index] == TOKEN_END:
                    break

                key_attempt = self._try_string(index) #keys = bytes in bencode
                if key_attempt.outcome is Outcome.NOT_APPLICABLE:
                    return _invalid(NonByteStringDictKey(index, repr(self.data[index:index + 1])))
                if key_attempt.outcome is Outcome.INVALID:
                    return key_attempt

                try:
                    key = key_attempt.node.value.decode('utf-8')
                except UnicodeDecodeError:
                    return _invalid(NonUtf8DictKey(index, repr(key_attempt.node.value)))

                value_attempt = self._decode_next(key_attempt.node.span.end)
                if value_attempt.outcome is Outcome.INVALID:
                    return value_attempt

                entries[key] = value_attempt.node #repeated key: last one wins
                index = value_attempt.node.span.end
        finally:
            self._depth -= 1

        return self._emit(ValueKind.DICTIONARY, MappingProxyType(entries), pos, index + 1)


def parse(buffer, limits=None):
    """
    Decode exactly one bencoded value covering all of ``buffer``.

    Raises a :class:`~minitorrent.errors.BencodeError` subclass if the
    buffer is malformed, truncated or has bytes after the value.
    """
    return BencodeDecoder(buffer, limits).decode()
