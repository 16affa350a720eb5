'''
defaults for the decoder limits and the tracker client
'''

import sys
from dataclasses import dataclass

DEFAULT_MAX_DEPTH = 256 #nested lists/dicts
DEFAULT_MAX_NODES = 1_000_000 #values in one document

DEFAULT_PORT = 6881
DEFAULT_TIMEOUT = 15 #seconds
PEER_ID_PREFIX = b'-MT0001-'
PIECE_HASH_SIZE = 20 #SHA1


def max_safe_depth(): #two frames per nesting level, leave room for the caller
    return sys.getrecursionlimit() // 3


@dataclass(frozen=True)
class DecoderLimits:
    max_depth: int = DEFAULT_MAX_DEPTH
    max_nodes: int = DEFAULT_MAX_NODES

    def __post_init__(self):
        if self.max_depth < 1:
            raise ValueError("max_depth must be at least 1")
        if self.max_depth > max_safe_depth():
            raise ValueError(f"max_depth must be at most {max_safe_depth()}, "
                             "deeper input would exhaust the interpreter stack")
        if self.max_nodes < 1:
            raise ValueError("max_nodes must be at least 1")
