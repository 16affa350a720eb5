from .bencode import BencodeDecoder, Node, Span, ValueKind, parse
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

__version__ = "0.1.0"
