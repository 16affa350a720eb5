import hashlib

import pytest

from minitorrent import BencodeError
from minitorrent.torrent import (
    FileEntry,
    InvalidPieces,
    InvalidTorrentBencode,
    MissingField,
    TorrentFile,
)

SINGLE_FILE_INFO = (
    b"d6:lengthi1024e4:name8:file.txt12:piece lengthi512e"
    b"6:pieces40:" + b"a" * 20 + b"b" * 20 + b"e"
)


def test_single_file(single_file_torrent):
    torrent = TorrentFile.from_bytes(single_file_torrent)
    assert torrent.announce == "http://tracker.example/announce"
    assert torrent.name == "file.txt"
    assert torrent.piece_length == 512
    assert torrent.pieces == [b"a" * 20, b"b" * 20]
    assert torrent.files == [FileEntry("file.txt", 1024)]
    assert torrent.total_size == 1024
    assert not torrent.is_multi_file


def test_info_hash_uses_raw_info_bytes(single_file_torrent):
    torrent = TorrentFile.from_bytes(single_file_torrent)
    assert torrent.info.raw == SINGLE_FILE_INFO
    assert torrent.info_hash == hashlib.sha1(SINGLE_FILE_INFO).digest()


def test_info_hash_keeps_non_canonical_order(torrent_builder):
    info = b"d4:name1:x6:lengthi1e12:piece lengthi1e6:pieces0:e" #unsorted keys
    torrent = TorrentFile.from_bytes(torrent_builder(info))
    assert torrent.info_hash == hashlib.sha1(info).digest()


def test_multi_file(multi_file_torrent):
    torrent = TorrentFile.from_bytes(multi_file_torrent)
    assert torrent.is_multi_file
    assert torrent.name == "dir"
    assert torrent.files == [FileEntry("a/b.txt", 3), FileEntry("c.d", 4)]
    assert torrent.total_size == 7
    assert multi_file_torrent.endswith(b"4:info" + torrent.info.raw + b"e")
    assert torrent.info_hash == hashlib.sha1(torrent.info.raw).digest()


def test_single_file_without_name(torrent_builder):
    info = b"d6:lengthi5e12:piece lengthi5e6:pieces0:e"
    torrent = TorrentFile.from_bytes(torrent_builder(info))
    assert torrent.name is None
    assert torrent.files == [FileEntry("Default name", 5)]


def test_invalid_bencode():
    with pytest.raises(InvalidTorrentBencode) as excinfo:
        TorrentFile.from_bytes(b"d8:announce")
    assert isinstance(excinfo.value.__cause__, BencodeError)


def test_root_must_be_dictionary():
    with pytest.raises(MissingField) as excinfo:
        TorrentFile.from_bytes(b"li1ee")
    assert excinfo.value.field == "root"


def test_missing_announce():
    data = b"d4:info" + SINGLE_FILE_INFO + b"e"
    with pytest.raises(MissingField) as excinfo:
        TorrentFile.from_bytes(data)
    assert excinfo.value.field == "announce"


@pytest.mark.parametrize("info, field", [
    (b"d6:lengthi1e6:pieces0:e", "piece length"),
    (b"d6:lengthi1e12:piece lengthi1ee", "pieces"),
    (b"d12:piece lengthi1e6:pieces0:e", "length/files"),
    (b"d5:filesld4:pathl1:aeee12:piece lengthi1e6:pieces0:e", "length"),
    (b"d5:filesld6:lengthi1eee12:piece lengthi1e6:pieces0:e", "path"),
    (b"d5:filesli1ee12:piece lengthi1e6:pieces0:e", "file"),
])
def test_missing_info_fields(torrent_builder, info, field):
    with pytest.raises(MissingField) as excinfo:
        TorrentFile.from_bytes(torrent_builder(info))
    assert excinfo.value.field == field


def test_info_must_be_dictionary(torrent_builder):
    with pytest.raises(MissingField) as excinfo:
        TorrentFile.from_bytes(torrent_builder(b"i1e"))
    assert excinfo.value.field == "info"


def test_huge_integer_is_invalid_bencode(torrent_builder):
    info = b"d6:lengthi" + b"7" * 5000 + b"e12:piece lengthi1e6:pieces0:e"
    with pytest.raises(InvalidTorrentBencode):
        TorrentFile.from_bytes(torrent_builder(info))


def test_invalid_pieces_length(torrent_builder):
    info = b"d6:lengthi1e12:piece lengthi1e6:pieces30:" + b"z" * 30 + b"e"
    with pytest.raises(InvalidPieces):
        TorrentFile.from_bytes(torrent_builder(info))


def test_read_from_disk(tmp_path, single_file_torrent):
    path = tmp_path / "file.torrent"
    path.write_bytes(single_file_torrent)
    torrent = TorrentFile(path)
    assert torrent.filepath == path
    assert torrent.info_hash == hashlib.sha1(SINGLE_FILE_INFO).digest()
    assert repr(torrent) == "TorrentFile(name='file.txt', size=1024, pieces=2)"


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        TorrentFile(tmp_path / "nope.torrent")
