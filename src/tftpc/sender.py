from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass, field
from typing import BinaryIO, Optional, Tuple

from .constants import DEFAULT_BLOCK_SIZE, DEFAULT_MODE, MAX_BLOCK
from .net import Transport, recv_response, send_message
from .options import Option
from .packet import Address, Operation, Request, Response
from .receiver import Metrics, negotiated_block_size

logger = logging.getLogger(__name__)


def read_chunk(f: BinaryIO, size: int) -> bytes:
    """Read ``size`` bytes, or fewer only at end of stream."""
    buf = bytearray()
    while len(buf) < size:
        part = f.read(size - len(buf))
        if not part:
            break
        buf += part
    return bytes(buf)


class UploadState(enum.Enum):
    AWAITING_INITIAL_ACK = "awaiting_initial_ack"
    SENDING = "sending"
    DONE = "done"


@dataclass(slots=True)
class Uploader:
    """Drives one WRQ session in lock-step: one DATA out, one response in.

    ``block`` is the last block number the peer acknowledged. The session
    ends once the short final chunk (possibly empty) is acknowledged.
    """

    udp: Transport
    dest: Address
    f: BinaryIO
    filename: Optional[str]
    mode: Optional[str] = DEFAULT_MODE
    options: Tuple[Option, ...] = ()
    state: UploadState = field(default=UploadState.AWAITING_INITIAL_ACK, init=False)
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

    def _acknowledges(self, resp: Response) -> bool:
        if resp.operation is Operation.ACK:
            return resp.block == self.block
        # an OACK stands in for ACK 0, and only as the first answer
        return (
            resp.operation is Operation.OACK
            and self.state is UploadState.AWAITING_INITIAL_ACK
            and resp.block == self.block
        )

    def run(self) -> Metrics:
        if self.state is not UploadState.AWAITING_INITIAL_ACK or self.peer is not None:
            raise RuntimeError("an Uploader drives a single transfer")
        for opt in self.options:
            opt.validate()

        metrics = Metrics()
        logger.info("WRQ %s (%s) to %s:%d options=%s", self.filename, self.mode, self.dest[0], self.dest[1],
                    [f"{o.label}={o.value}" for o in self.options])
        self._send(Request.write(self.filename, self.mode, self.dest, *self.options), metrics)

        resp = self._recv(metrics)
        self.peer = resp.addr
        if resp.operation is Operation.OACK:
            metrics.negotiated = dict(resp.options)
            self.block_size = negotiated_block_size(resp)
            logger.info("OACK from %s:%d; blksize=%d", self.peer[0], self.peer[1], self.block_size)

        finishing = False
        while True:
            if self._acknowledges(resp):
                if finishing:
                    self.state = UploadState.DONE
                    break
                self.block = (self.block + 1) & MAX_BLOCK
                chunk = read_chunk(self.f, self.block_size)
                finishing = len(chunk) < self.block_size
                self._send(Response.data(self.block, chunk, self.peer), metrics)
                self.state = UploadState.SENDING
                metrics.blocks += 1
                metrics.bytes_transferred += len(chunk)
                logger.debug("DATA block=%d len=%d sent", self.block, len(chunk))
            else:
                metrics.packets_ignored += 1
                logger.debug("ignoring %s block=%d; waiting for ACK block=%d", resp.operation.name, resp.block, self.block)
            resp = self._recv(metrics)

        metrics.end_ts = time.monotonic()
        logger.info("WRQ %s done; %d bytes in %d blocks", self.filename, metrics.bytes_transferred, metrics.blocks)
        return metrics
