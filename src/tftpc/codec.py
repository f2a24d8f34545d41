"""Wire codec: message variants <-> datagram payloads.

All integers are big-endian. Text fields are ASCII followed by one NUL.
Message boundaries are datagram boundaries, so nothing is length-prefixed.
"""
from __future__ import annotations

import struct
from typing import Dict, Iterable, Optional, Union

from .constants import HEADER_FORMAT, NUL, NULL_PLACEHOLDER, OPCODE_FORMAT
from .errors import MalformedMessageError, ProtocolError, ValidationError
from .options import Option, decode_option
from .packet import Address, ErrorCode, Operation, Request, Response

_OPCODE = struct.Struct(OPCODE_FORMAT)
_HEADER = struct.Struct(HEADER_FORMAT)

Message = Union[Request, Response]


def _text(value: Optional[str]) -> bytes:
    text = NULL_PLACEHOLDER if value is None else value
    try:
        raw = text.encode("ascii")
    except UnicodeEncodeError as exc:
        raise ValidationError(f"text field is not ASCII: {text!r}") from exc
    if NUL in raw:
        raise ValidationError(f"text field contains NUL: {text!r}")
    return raw + NUL


def _options(options: Iterable[Option]) -> bytes:
    return b"".join(opt.to_bytes() for opt in options)


def encode(message: Message) -> bytes:
    match message:
        case Request(operation=op, filename=filename, mode=mode, options=options):
            return _OPCODE.pack(op) + _text(filename) + _text(mode) + _options(options)
        case Response(operation=Operation.OACK, options=options):
            return _OPCODE.pack(Operation.OACK) + _options(options.values())
        case Response(operation=Operation.ACK, block=block):
            return _HEADER.pack(Operation.ACK, block)
        case Response(operation=Operation.DATA | Operation.ERROR as op, block=block, payload=payload):
            return _HEADER.pack(op, block) + payload
        case _:
            raise TypeError(f"cannot encode {message!r}")


def _decode_options(raw: bytes, offset: int) -> Dict[str, Option]:
    options: Dict[str, Option] = {}
    opt, offset = decode_option(raw, offset)
    while opt is not None:
        options[opt.label] = opt
        opt, offset = decode_option(raw, offset)
    return options


def _header(raw: bytes, op: Operation) -> int:
    if len(raw) < _HEADER.size:
        raise MalformedMessageError(f"{op.name} datagram too short: {len(raw)} bytes")
    _, value = _HEADER.unpack_from(raw, 0)
    return value


def _opcode(raw: bytes) -> Operation:
    if len(raw) < _OPCODE.size:
        raise MalformedMessageError(f"datagram too short: {len(raw)} bytes")
    (code,) = _OPCODE.unpack_from(raw, 0)
    return Operation.from_code(code)


def parse(raw: bytes, addr: Address) -> Union[Response, ProtocolError]:
    """Decode a received datagram.

    An ERROR datagram is returned as a :class:`ProtocolError` value instead of
    being raised. Use :func:`decode_response` for the raising form.
    """
    op = _opcode(raw)
    match op:
        case Operation.ERROR:
            code = ErrorCode.from_code(_header(raw, op))
            text = raw[_HEADER.size :].split(NUL, 1)[0]
            message = text.decode("ascii", errors="replace") if text else None
            return ProtocolError(code, message)
        case Operation.OACK:
            return Response(op, 0, addr, options=_decode_options(raw, _OPCODE.size))
        case Operation.DATA | Operation.ACK:
            block = _header(raw, op)
            return Response(op, block, addr, raw[_HEADER.size :])
        case _:
            raise MalformedMessageError(f"unexpected {op.name} datagram from {addr[0]}:{addr[1]}")


def decode_response(raw: bytes, addr: Address) -> Response:
    result = parse(raw, addr)
    if isinstance(result, ProtocolError):
        raise result
    return result


def decode_request(raw: bytes, addr: Address) -> Request:
    op = _opcode(raw)
    if op not in (Operation.READ, Operation.WRITE):
        raise MalformedMessageError(f"not a request: {op.name}")
    fields = []
    offset = _OPCODE.size
    for name in ("filename", "mode"):
        end = raw.find(NUL, offset)
        if end < 0:
            raise MalformedMessageError(f"request {name} is not terminated")
        fields.append(raw[offset:end].decode("ascii", errors="replace"))
        offset = end + 1
    options = []
    opt, offset = decode_option(raw, offset)
    while opt is not None:
        options.append(opt)
        opt, offset = decode_option(raw, offset)
    return Request(op, fields[0], fields[1], addr, tuple(options))
