"""
torrent file parser and info_hash calculator
Calculates SHA1 hash of the raw 'info' dictionary bytes
Gives tracker url, piece hashes and file list
"""

import hashlib
import logging
from pathlib import Path
from typing import NamedTuple

from .bencode import parse
from .config import PIECE_HASH_SIZE
from .errors import BencodeError

logger = logging.getLogger(__name__)

DEFAULT_NAME = "Default name"


class TorrentError(ValueError):
    pass


class InvalidTorrentBencode(TorrentError):
    def __init__(self):
        super().__init__("Invalid bencode")


class MissingField(TorrentError):
    def __init__(self, field):
        self.field = field
        super().__init__(f"Missing field {field}")


class InvalidPieces(TorrentError):
    def __init__(self, size):
        super().__init__(f"Invalid pieces field: {size} bytes is not a multiple of {PIECE_HASH_SIZE}")


class FileEntry(NamedTuple):
    path: str
    length: int


class TorrentFile:
    def __init__(self, filepath):
        self.filepath = Path(filepath)

        if not self.filepath.exists():
            raise FileNotFoundError(f"Torrent file not found: {self.filepath}")

        with open(self.filepath, 'rb') as f:
            content = f.read()

        self._parse(content)

    @classmethod
    def from_bytes(cls, content):
        torrent = cls.__new__(cls)
        torrent.filepath = None
        torrent._parse(content)
        return torrent

    def _parse(self, content):
        try:
            self.root = parse(content)
        except BencodeError as e:
            raise InvalidTorrentBencode() from e

        if self.root.as_dict() is None:
            raise MissingField("root")

        self.announce = _required_str(self.root, "announce")

        info = self.root.get("info")
        if info is None or info.as_dict() is None:
            raise MissingField("info")
        self.info = info

        self.info_hash = hashlib.sha1(info.raw).digest() #hash of the exact bytes, not a re-encoding
        logger.debug("Info hash: %s", self.info_hash.hex())

        name = info.get("name")
        self.name = name.as_str() if name is not None else None

        self.piece_length = _required_int(info, "piece length")
        self.pieces = self._split_pieces(info)
        self.files = self._read_files(info)

    @staticmethod
    def _split_pieces(info):
        pieces_node = info.get("pieces")
        pieces_data = pieces_node.as_bytes() if pieces_node is not None else None
        if pieces_data is None:
            raise MissingField("pieces")

        if len(pieces_data) % PIECE_HASH_SIZE != 0:
            raise InvalidPieces(len(pieces_data))

        return [pieces_data[i:i + PIECE_HASH_SIZE]
                for i in range(0, len(pieces_data), PIECE_HASH_SIZE)]

    def _read_files(self, info):
        length = info.get("length")
        if length is not None and length.as_int() is not None: #single file
            return [FileEntry(self.name or DEFAULT_NAME, length.as_int())]

        files_node = info.get("files")
        files = files_node.as_list() if files_node is not None else None
        if files is None:
            raise MissingField("length/files")

        entries = []
        for file_node in files:
            if file_node.as_dict() is None:
                raise MissingField("file")
            entries.append(FileEntry(_file_path(file_node), _required_int(file_node, "length")))
        return entries

    @property
    def total_size(self):
        return sum(f.length for f in self.files)

    @property
    def is_multi_file(self):
        return self.info.get("files") is not None

    def __repr__(self):
        return (f"TorrentFile(name='{self.name}', "
                f"size={self.total_size}, "
                f"pieces={len(self.pieces)})")


def _required_str(node, key):
    value = node.get(key)
    text = value.as_str() if value is not None else None
    if text is None:
        raise MissingField(key)
    return text


def _required_int(node, key):
    value = node.get(key)
    number = value.as_int() if value is not None else None
    if number is None:
        raise MissingField(key)
    return number


def _file_path(file_node): #path is a list of components, older files use one string
    path = file_node.get("path")
    if path is None:
        raise MissingField("path")

    if path.as_list() is not None:
        parts = [part.as_str() for part in path.as_list()]
        if not parts or any(part is None for part in parts):
            raise MissingField("path")
        return "/".join(parts)

    text = path.as_str()
    if text is None:
        raise MissingField("path")
    return text
