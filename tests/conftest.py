import pytest

ANNOUNCE = b"http://tracker.example/announce"

SINGLE_FILE_INFO = (
    b"d6:lengthi1024e4:name8:file.txt12:piece lengthi512e"
    b"6:pieces40:" + b"a" * 20 + b"b" * 20 + b"e"
)

MULTI_FILE_INFO = (
    b"d5:filesld6:lengthi3e4:pathl1:a5:b.txteed6:lengthi4e4:pathl3:c.deee"
    b"4:name3:dir12:piece lengthi4e6:pieces20:" + b"x" * 20 + b"e"
)


def build_torrent(info, announce=ANNOUNCE):
    return (b"d8:announce" + str(len(announce)).encode() + b":" + announce
            + b"4:info" + info + b"e")


@pytest.fixture
def single_file_torrent():
    return build_torrent(SINGLE_FILE_INFO)


@pytest.fixture
def multi_file_torrent():
    return build_torrent(MULTI_FILE_INFO)


@pytest.fixture
def torrent_builder():
    return build_torrent
