from __future__ import annotations

import json

import pytest

from tftpc import cli
from tftpc.errors import ProtocolError
from tftpc.options import Option
from tftpc.packet import ErrorCode
from tftpc.receiver import Metrics


class _FakeEndpoint:
    def __init__(self, *args, **kwargs):
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return None


@pytest.fixture(autouse=True)
def _no_sockets(monkeypatch):
    monkeypatch.setattr(cli, "UdpEndpoint", type("E", (), {"client": staticmethod(lambda **kw: _FakeEndpoint())}))


def test_put_sends_options_and_reports(monkeypatch, tmp_path, capsys):
    src = tmp_path / "hello.txt"
    src.write_bytes(b"x" * 1500)
    seen = {}

    def fake_upload(udp, addr, f, remote, mode, *opts):
        seen.update(addr=addr, remote=remote, mode=mode, opts=opts, data=f.read())
        return Metrics(bytes_transferred=1500, blocks=3, negotiated={"blksize": Option.blksize(1024)})

    monkeypatch.setattr(cli, "upload", fake_upload)
    rc = cli.main(["put", str(src), "--host", "10.0.0.5", "--blksize", "1024", "--tsize", "--json"])

    assert rc == 0
    assert seen["addr"] == ("10.0.0.5", 69)
    assert seen["remote"] == "hello.txt"
    assert seen["mode"] == "octet"
    assert seen["opts"] == (Option.blksize(1024), Option.tsize(1500))
    assert seen["data"] == b"x" * 1500
    report = json.loads(capsys.readouterr().out)
    assert report["role"] == "put"
    assert report["bytes"] == 1500
    assert report["negotiated"] == {"blksize": 1024}


def test_get_writes_output(monkeypatch, tmp_path):
    out = tmp_path / "copy.bin"

    def fake_download(udp, addr, sink, remote, mode, *opts):
        sink.write(b"payload")
        assert remote == "boot.img"
        assert opts == (Option.timeout(5),)
        return Metrics(bytes_transferred=7, blocks=1)

    monkeypatch.setattr(cli, "download", fake_download)
    rc = cli.main(["get", "boot.img", "--host", "h", "--port", "6969", "--out", str(out), "--timeout-opt", "5"])

    assert rc == 0
    assert out.read_bytes() == b"payload"


def test_protocol_error_exits_nonzero(monkeypatch, tmp_path):
    def failing(*args, **kwargs):
        raise ProtocolError(ErrorCode.FILE_NOT_FOUND, "nope")

    monkeypatch.setattr(cli, "download", failing)
    assert cli.main(["get", "x", "--host", "h", "--out", str(tmp_path / "x")]) == 1


def test_timeout_exits_nonzero(monkeypatch, tmp_path):
    src = tmp_path / "a"
    src.write_bytes(b"a")

    def failing(*args, **kwargs):
        raise TimeoutError("timed out")

    monkeypatch.setattr(cli, "upload", failing)
    assert cli.main(["put", str(src), "--host", "h"]) == 1
