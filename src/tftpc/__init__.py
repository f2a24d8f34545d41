"""TFTP client (RFC 1350) with option negotiation (RFC 2347-2349).

- packet framing lives in ``options``/``packet``/``codec``
- the transfer state machines live in ``sender``/``receiver``
- ``upload``/``download`` are the blocking entry points
"""

from .errors import MalformedMessageError, ProtocolError, TftpError, ValidationError
from .net import UdpEndpoint
from .options import Option
from .packet import ErrorCode, Operation, Request, Response
from .receiver import Metrics
from .transfer import download, upload

__version__ = "0.1.0"

__all__ = [
    "ErrorCode",
    "MalformedMessageError",
    "Metrics",
    "Operation",
    "Option",
    "ProtocolError",
    "Request",
    "Response",
    "TftpError",
    "UdpEndpoint",
    "ValidationError",
    "download",
    "upload",
]
