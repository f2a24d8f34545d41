from __future__ import annotations

OPCODE_FORMAT = "!H"
HEADER_FORMAT = "!HH"  # opcode, block (or error code)

READ = 1
WRITE = 2
DATA = 3
ACK = 4
ERROR = 5
OACK = 6

MAX_BLOCK = 0xFFFF
NUL = b"\x00"
NULL_PLACEHOLDER = "null"

BLKSIZE = "blksize"
TIMEOUT = "timeout"
TSIZE = "tsize"

BLKSIZE_RANGE = (8, 65464)
TIMEOUT_RANGE = (1, 255)

DEFAULT_BLOCK_SIZE = 512
DEFAULT_PORT = 69
DEFAULT_MODE = "octet"
DEFAULT_TIMEOUT_MS = 5000
MAX_DATAGRAM = 65535
