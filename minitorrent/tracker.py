"""
handles HTTP/HTTPS tracker announces
and peer list parsing
"""
import logging
import os
import socket
import struct
from enum import Enum
from typing import NamedTuple, Optional
from urllib.parse import quote

import requests

from .bencode import parse
from .config import DEFAULT_PORT, DEFAULT_TIMEOUT, PEER_ID_PREFIX
from .errors import BencodeError

logger = logging.getLogger(__name__)


class AnnounceEvent(str, Enum):
    STARTED = 'started'
    COMPLETED = 'completed'
    STOPPED = 'stopped'


class Peer(NamedTuple):
    peer_id: Optional[bytes] #None for compact peer lists
    ip: str
    port: int


class AnnounceResponse(NamedTuple):
    interval: int #seconds
    peers: list


class TrackerError(Exception):
    pass


class TrackerConnectionError(TrackerError):
    pass


class InvalidResponseBencode(TrackerError):
    def __init__(self):
        super().__init__("Response contains invalid bencode")


class MissingField(TrackerError):
    def __init__(self, field):
        self.field = field
        super().__init__(f"Response missing field {field}")


class InvalidField(TrackerError):
    def __init__(self, field, detail):
        self.field = field
        super().__init__(f"Response field {field} is invalid: {detail}")


class TrackerFailure(TrackerError):
    def __init__(self, reason):
        self.reason = reason
        super().__init__(f"Tracker responded with error: {reason}")


def parse_announce_response(body):
    try:
        root = parse(body)
    except BencodeError as e:
        raise InvalidResponseBencode() from e

    if root.as_dict() is None:
        raise MissingField("root")

    failure = root.get("failure reason")
    if failure is not None:
        reason = failure.as_bytes()
        if reason is None:
            raise InvalidField("failure reason", f"expected a string, got {failure.kind.value}")
        reason = reason.decode('utf-8', errors='replace')
        raise TrackerFailure(reason)

    interval_node = root.get("interval")
    interval = interval_node.as_int() if interval_node is not None else None
    if interval is None:
        raise MissingField("interval")
    if interval < 0:
        raise InvalidField("interval", f"{interval} is negative")

    peers_node = root.get("peers")
    if peers_node is None:
        raise MissingField("peers")

    if peers_node.as_list() is not None: #dictionary with list of peer id, ip, port
        peers = [_parse_peer(peer) for peer in peers_node.as_list()]
    elif peers_node.as_bytes() is not None:
        peers = _parse_compact_peers(peers_node.as_bytes())
    else:
        raise MissingField("peers")

    return AnnounceResponse(interval, peers)


def _parse_peer(peer):
    if peer.as_dict() is None:
        raise MissingField("peer")

    peer_id = peer.get("peer id")
    peer_id = peer_id.as_bytes() if peer_id is not None else None
    if peer_id is None:
        raise MissingField("peer id")

    ip = peer.get("ip")
    ip = ip.as_str() if ip is not None else None
    if ip is None:
        raise MissingField("ip")

    port = peer.get("port")
    port = port.as_int() if port is not None else None
    if port is None:
        raise MissingField("port")
    if not 0 <= port <= 0xFFFF:
        raise InvalidField("port", f"{port} is out of range")

    return Peer(peer_id, ip, port)


def _parse_compact_peers(peers_data):
    peers = []
    peer_size = 6  #4 IP, 2 port
    for i in range(0, len(peers_data) - peer_size + 1, peer_size):
        chunk = peers_data[i:i + peer_size]
        ip = socket.inet_ntoa(chunk[:4])
        port = struct.unpack(">H", chunk[4:6])[0]
        peers.append(Peer(None, ip, port))
    return peers


class TrackerClient:
    def __init__(self, torrent, port=DEFAULT_PORT, peer_id=None,
                 timeout=DEFAULT_TIMEOUT, compact=False):
        self.torrent = torrent
        self.peer_id = peer_id or self._generate_peer_id()
        self.port = port
        self.timeout = timeout
        self.compact = compact
        self.uploaded = 0
        self.downloaded = 0
        self.left = torrent.total_size

    @staticmethod
    def _generate_peer_id():
        return PEER_ID_PREFIX + os.urandom(20 - len(PEER_ID_PREFIX))

    def announce(self, event=AnnounceEvent.STARTED):
        """
        send announce request to tracker
        Args:
            event: AnnounceEvent or 'started', 'completed', 'stopped'
        Returns:
            AnnounceResponse: interval and peers list
        """
        tracker_url = self.torrent.announce

        if not tracker_url.startswith(('http://', 'https://')): #check if tracker is supported
            raise TrackerError(f"Unsupported tracker protocol: {tracker_url}")

        params = {
            'info_hash': self.torrent.info_hash,
            'peer_id': self.peer_id,
            'port': self.port,
            'uploaded': self.uploaded,
            'downloaded': self.downloaded,
            'left': self.left,
            'event': AnnounceEvent(event).value,
        }
        if self.compact:
            params['compact'] = 1
        full_url = f"{tracker_url}?{self._build_query_string(params)}"

        logger.info("Connecting to tracker: %s", tracker_url)
        logger.debug("Info hash: %s, peer id: %s", self.torrent.info_hash.hex(), self.peer_id.hex())

        try:
            response = requests.get(full_url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise TrackerConnectionError(f"Failed connection to tracker: {e}") from e

        try:
            return parse_announce_response(response.content)
        except TrackerFailure as e:
            logger.warning("Tracker %s refused announce: %s", tracker_url, e.reason)
            raise

    @staticmethod
    def _build_query_string(params): #bytes need percent-encoding by hand
        parts = []
        for key, value in params.items():
            if isinstance(value, bytes):
                encoded_value = quote(value, safe='')
            else:
                encoded_value = str(value)
            parts.append(f"{key}={encoded_value}")
        return '&'.join(parts)

    def get_peers(self):
        response = self.announce()
        logger.info("Received %d peers from tracker", len(response.peers))
        return [(peer.ip, peer.port) for peer in response.peers]

    def update_stats(self, uploaded=0, downloaded=0):
        self.uploaded += uploaded
        self.downloaded += downloaded
        self.left = max(self.torrent.total_size - self.downloaded, 0)
