"""Blocking client entry points.

The caller owns the transport: create it, set its timeout, close it. A
receive timeout surfaces here as the socket's ``TimeoutError`` and ends the
transfer; nothing is retried.
"""
from __future__ import annotations

from typing import BinaryIO, Optional

from .constants import DEFAULT_MODE
from .net import Transport
from .options import Option
from .packet import Address
from .receiver import Downloader, Metrics
from .sender import Uploader


def upload(
    udp: Transport,
    addr: Address,
    source: BinaryIO,
    filename: Optional[str],
    mode: Optional[str] = DEFAULT_MODE,
    *options: Option,
) -> Metrics:
    """Write ``source`` to ``filename`` on the server at ``addr``."""
    return Uploader(udp, addr, source, filename, mode, tuple(options)).run()


def download(
    udp: Transport,
    addr: Address,
    sink: BinaryIO,
    filename: Optional[str],
    mode: Optional[str] = DEFAULT_MODE,
    *options: Option,
) -> Metrics:
    """Read ``filename`` from the server at ``addr`` into ``sink``."""
    return Downloader(udp, addr, sink, filename, mode, tuple(options)).run()
