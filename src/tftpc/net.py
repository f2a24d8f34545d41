from __future__ import annotations

import socket
from typing import Protocol, Tuple

from .codec import Message, decode_response, encode
from .constants import MAX_DATAGRAM
from .packet import Response


class Transport(Protocol):
    """What the transfer engines need from a datagram socket."""

    def sendto(self, data: bytes, addr: Tuple[str, int]) -> None: ...

    def recvfrom(self, bufsize: int = MAX_DATAGRAM) -> Tuple[bytes, Tuple[str, int]]: ...


class UdpEndpoint:
    def __init__(self, sock: socket.socket):
        self.sock = sock

    @classmethod
    def listening(cls, host: str, port: int, timeout_ms: int = 0) -> "UdpEndpoint":
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        sock.bind((host, port))
        if timeout_ms > 0:
            sock.settimeout(timeout_ms / 1000.0)
        return cls(sock)

    @classmethod
    def client(cls, timeout_ms: int = 0) -> "UdpEndpoint":
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        if timeout_ms > 0:
            sock.settimeout(timeout_ms / 1000.0)
        return cls(sock)

    @property
    def address(self) -> Tuple[str, int]:
        host, port = self.sock.getsockname()[:2]
        return host, port

    def sendto(self, data: bytes, addr: Tuple[str, int]) -> None:
        self.sock.sendto(data, addr)

    def recvfrom(self, bufsize: int = MAX_DATAGRAM) -> Tuple[bytes, Tuple[str, int]]:
        data, addr = self.sock.recvfrom(bufsize)
        return data, (addr[0], addr[1])

    def close(self) -> None:
        self.sock.close()

    def __enter__(self) -> "UdpEndpoint":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def send_message(udp: Transport, message: Message) -> int:
    raw = encode(message)
    udp.sendto(raw, message.addr)
    return len(raw)


def recv_response(udp: Transport) -> Response:
    raw, addr = udp.recvfrom(MAX_DATAGRAM)
    return decode_response(raw, addr)
