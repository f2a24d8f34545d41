from __future__ import annotations

import io
import socket
import threading

import pytest

from tftpc.codec import decode_request, encode, parse
from tftpc.net import UdpEndpoint
from tftpc.options import Option
from tftpc.packet import Operation, Response
from tftpc.transfer import download, upload


def _serve_write(listen: UdpEndpoint, received: dict) -> None:
    raw, client = listen.recvfrom()
    req = decode_request(raw, client)
    received["request"] = req
    blksize = req.options[0].value if req.options else 512
    with UdpEndpoint.listening("127.0.0.1", 0, timeout_ms=2000) as tid:
        received["tid"] = tid.address
        if req.options:
            tid.sendto(encode(Response.oack(client, *req.options)), client)
        else:
            tid.sendto(encode(Response.ack(0, client)), client)
        data = bytearray()
        while True:
            raw, addr = tid.recvfrom()
            msg = parse(raw, addr)
            assert msg.operation is Operation.DATA
            data += msg.payload
            tid.sendto(encode(Response.ack(msg.block, client)), client)
            if len(msg.payload) < blksize:
                break
        received["data"] = bytes(data)


def _serve_read(listen: UdpEndpoint, content: bytes) -> None:
    raw, client = listen.recvfrom()
    decode_request(raw, client)
    with UdpEndpoint.listening("127.0.0.1", 0, timeout_ms=2000) as tid:
        block = 1
        while True:
            chunk = content[(block - 1) * 512 : block * 512]
            tid.sendto(encode(Response.data(block, chunk, client)), client)
            raw, addr = tid.recvfrom()
            assert parse(raw, addr).block == block
            if len(chunk) < 512:
                break
            block += 1


@pytest.fixture
def server():
    ep = UdpEndpoint.listening("127.0.0.1", 0, timeout_ms=2000)
    yield ep
    ep.close()


def test_upload_over_udp_follows_transfer_id(server):
    received: dict = {}
    t = threading.Thread(target=_serve_write, args=(server, received), daemon=True)
    t.start()

    content = b"loopback " * 300
    with UdpEndpoint.client(timeout_ms=2000) as udp:
        metrics = upload(udp, server.address, io.BytesIO(content), "remote.txt", "octet", Option.blksize(1024))
    t.join(timeout=5)

    assert received["data"] == content
    assert received["request"].filename == "remote.txt"
    assert received["tid"] != server.address
    assert metrics.negotiated == {"blksize": Option.blksize(1024)}


def test_download_over_udp(server):
    content = bytes(range(256)) * 5
    t = threading.Thread(target=_serve_read, args=(server, content), daemon=True)
    t.start()

    out = io.BytesIO()
    with UdpEndpoint.client(timeout_ms=2000) as udp:
        download(udp, server.address, out, "remote.bin")
    t.join(timeout=5)

    assert out.getvalue() == content


def test_silent_server_times_out(server):
    with UdpEndpoint.client(timeout_ms=100) as udp:
        with pytest.raises((TimeoutError, socket.timeout)):
            upload(udp, server.address, io.BytesIO(b"abc"), "f")
