from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

from . import constants as c
from .errors import MalformedMessageError, ValidationError
from .options import Option

Address = Tuple[str, int]


class Operation(enum.IntEnum):
    READ = c.READ
    WRITE = c.WRITE
    DATA = c.DATA
    ACK = c.ACK
    ERROR = c.ERROR
    OACK = c.OACK

    @classmethod
    def from_code(cls, code: int) -> "Operation":
        try:
            return cls(code)
        except ValueError:
            raise MalformedMessageError(f"unknown operation: {code}") from None


class ErrorCode(enum.IntEnum):
    NOT_DEFINED = 0
    FILE_NOT_FOUND = 1
    ACCESS_VIOLATION = 2
    DISK_FULL = 3
    ILLEGAL_OPERATION = 4
    UNKNOWN_TRANSFER_ID = 5
    FILE_EXISTS = 6
    NO_SUCH_USER = 7
    OPTION_NEGOTIATION_FAILED = 8

    @classmethod
    def from_code(cls, code: int) -> "ErrorCode":
        try:
            return cls(code)
        except ValueError:
            raise MalformedMessageError(f"unknown error code: {code}") from None


@dataclass(frozen=True, slots=True)
class Request:
    """RRQ/WRQ. ``addr`` is the destination."""

    operation: Operation
    filename: Optional[str]
    mode: Optional[str]
    addr: Address
    options: Tuple[Option, ...] = ()

    @staticmethod
    def read(filename: Optional[str], mode: Optional[str], addr: Address, *options: Option) -> "Request":
        return Request(Operation.READ, filename, mode, addr, tuple(options))

    @staticmethod
    def write(filename: Optional[str], mode: Optional[str], addr: Address, *options: Option) -> "Request":
        return Request(Operation.WRITE, filename, mode, addr, tuple(options))


@dataclass(frozen=True, slots=True)
class Response:
    """DATA, ACK, ERROR or OACK.

    ``addr`` is the destination for outbound messages and the sender for
    received ones. For ERROR, ``block`` holds the error code and ``payload``
    the NUL-terminated message (empty when there is none). OACK always
    reports block 0.
    """

    operation: Operation
    block: int
    addr: Address
    payload: bytes = b""
    options: Mapping[str, Option] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not 0 <= self.block <= c.MAX_BLOCK:
            raise ValueError(f"block out of range: {self.block}")

    @staticmethod
    def data(block: int, payload: bytes, addr: Address) -> "Response":
        return Response(Operation.DATA, block, addr, bytes(payload))

    @staticmethod
    def ack(block: int, addr: Address) -> "Response":
        return Response(Operation.ACK, block, addr)

    @staticmethod
    def error(code: ErrorCode, message: Optional[str], addr: Address) -> "Response":
        if message is None:
            return Response(Operation.ERROR, int(code), addr)
        try:
            text = message.encode("ascii")
        except UnicodeEncodeError as exc:
            raise ValidationError(f"error message is not ASCII: {message!r}") from exc
        if c.NUL in text:
            raise ValidationError(f"error message contains NUL: {message!r}")
        return Response(Operation.ERROR, int(code), addr, text + c.NUL)

    @staticmethod
    def oack(addr: Address, *options: Option) -> "Response":
        return Response(Operation.OACK, 0, addr, options={o.label: o for o in options})

    @property
    def error_code(self) -> Optional[ErrorCode]:
        if self.operation is not Operation.ERROR:
            return None
        return ErrorCode.from_code(self.block)

    @property
    def message(self) -> Optional[str]:
        if self.operation is not Operation.ERROR or not self.payload:
            return None
        return self.payload.split(c.NUL, 1)[0].decode("ascii", errors="replace")

    @property
    def blksize(self) -> Optional[Option]:
        return self.options.get(c.BLKSIZE)

    @property
    def timeout(self) -> Optional[Option]:
        return self.options.get(c.TIMEOUT)

    @property
    def tsize(self) -> Optional[Option]:
        return self.options.get(c.TSIZE)
