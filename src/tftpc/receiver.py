from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass, field
from typing import BinaryIO, Dict, Optional, Tuple

from .constants import DEFAULT_BLOCK_SIZE, DEFAULT_MODE, MAX_BLOCK
from .errors import MalformedMessageError
from .net import Transport, recv_response, send_message
from .options import Option
from .packet import Address, Operation, Request, Response

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Metrics:
    packets_sent: int = 0
    packets_received: int = 0
    packets_ignored: int = 0
    blocks: int = 0
    bytes_transferred: int = 0
    negotiated: Dict[str, Option] = field(default_factory=dict)
    start_ts: float = field(default_factory=time.monotonic)
    end_ts: float | None = None

    @property
    def duration_s(self) -> float:
        if self.end_ts is None:
            return 0.0
        return max(0.0, self.end_ts - self.start_ts)

    @property
    def throughput_mbps(self) -> float:
        if self.duration_s <= 0:
            return 0.0
        return (self.bytes_transferred * 8 / 1_000_000) / self.duration_s


def negotiated_block_size(resp: Response) -> int:
    """Chunk length for the session: the OACK's blksize, else 512."""
    if resp.blksize is None:
        return DEFAULT_BLOCK_SIZE
    try:
        resp.blksize.validate()
    except ValueError as exc:
        raise MalformedMessageError(f"peer negotiated an unusable block size: {exc}") from exc
    return resp.blksize.value


class DownloadState(enum.Enum):
    AWAITING_FIRST_DATA = "awaiting_first_data"
    RECEIVING = "receiving"
    DONE = "done"


@dataclass(slots=True)
class Downloader:
    """Drives one RRQ session: the peer sends DATA, we write and ACK each block."""

    udp: Transport
    dest: Address
    out: BinaryIO
    filename: Optional[str]
    mode: Optional[str] = DEFAULT_MODE
    options: Tuple[Option, ...] = ()
    state: DownloadState = field(default=DownloadState.AWAITING_FIRST_DATA, init=False)
    block: int = field(default=0, init=False)
    block_size: int = field(default=DEFAULT_BLOCK_SIZE, init=False)
    peer: Optional[Address] = field(default=None, init=False)

    def _send(self, message: Request | Response, metrics: Metrics) -> None:
        send_message(self.udp, message)
        metrics.packets_sent += 1

    def _recv(self, metrics: Metrics) -> Response:
        resp = recv_response(self.udp)
        metrics.packets_received += 1
        return resp

    def run(self) -> Metrics:
        if self.state is not DownloadState.AWAITING_FIRST_DATA or self.peer is not None:
            raise RuntimeError("a Downloader drives a single transfer")
        for opt in self.options:
            opt.validate()

        metrics = Metrics()
        logger.info("RRQ %s (%s) from %s:%d options=%s", self.filename, self.mode, self.dest[0], self.dest[1],
                    [f"{o.label}={o.value}" for o in self.options])
        self._send(Request.read(self.filename, self.mode, self.dest, *self.options), metrics)

        resp = self._recv(metrics)
        self.peer = resp.addr
        if resp.operation is Operation.OACK:
            metrics.negotiated = dict(resp.options)
            self.block_size = negotiated_block_size(resp)
            logger.info("OACK from %s:%d; blksize=%d", self.peer[0], self.peer[1], self.block_size)
            self._send(Response.ack(0, self.peer), metrics)
            resp = self._recv(metrics)

        while True:
            expected = (self.block + 1) & MAX_BLOCK
            if resp.operation is Operation.DATA and resp.block == expected:
                self.block = expected
                self.out.write(resp.payload)
                metrics.blocks += 1
                metrics.bytes_transferred += len(resp.payload)
                self._send(Response.ack(self.block, self.peer), metrics)
                self.state = DownloadState.RECEIVING
                logger.debug("DATA block=%d len=%d acked", self.block, len(resp.payload))
                if len(resp.payload) < self.block_size:
                    self.state = DownloadState.DONE
                    break
            else:
                metrics.packets_ignored += 1
                logger.debug("ignoring %s block=%d; expecting DATA block=%d", resp.operation.name, resp.block, expected)
            resp = self._recv(metrics)

        self.out.flush()
        metrics.end_ts = time.monotonic()
        logger.info("RRQ %s done; %d bytes in %d blocks", self.filename, metrics.bytes_transferred, metrics.blocks)
        return metrics
