from __future__ import annotations

import argparse
import json
import logging
import os
from typing import List

from .constants import DEFAULT_MODE, DEFAULT_PORT, DEFAULT_TIMEOUT_MS
from .errors import TftpError
from .net import UdpEndpoint
from .options import Option
from .receiver import Metrics
from .transfer import download, upload

logger = logging.getLogger(__name__)


def _options(args: argparse.Namespace) -> List[Option]:
    opts = []
    if args.blksize is not None:
        opts.append(Option.blksize(args.blksize))
    if args.timeout_opt is not None:
        opts.append(Option.timeout(args.timeout_opt))
    return opts


def _report(role: str, metrics: Metrics, as_json: bool) -> None:
    payload = {
        "role": role,
        "bytes": metrics.bytes_transferred,
        "blocks": metrics.blocks,
        "seconds": metrics.duration_s,
        "mbps": metrics.throughput_mbps,
        "negotiated": {k: o.value for k, o in metrics.negotiated.items()},
    }
    print(json.dumps(payload, indent=2) if as_json else payload)


def cmd_put(args: argparse.Namespace) -> int:
    opts = _options(args)
    if args.tsize:
        opts.append(Option.tsize(os.path.getsize(args.file)))
    remote = args.remote_name or os.path.basename(args.file)

    with UdpEndpoint.client(timeout_ms=args.timeout_ms) as udp, open(args.file, "rb") as f:
        metrics = upload(udp, (args.host, args.port), f, remote, args.mode, *opts)
    _report("put", metrics, args.json)
    return 0


def cmd_get(args: argparse.Namespace) -> int:
    opts = _options(args)
    if args.tsize:
        opts.append(Option.tsize(0))
    out_path = args.out or os.path.basename(args.remote)

    with UdpEndpoint.client(timeout_ms=args.timeout_ms) as udp, open(out_path, "wb") as out:
        metrics = download(udp, (args.host, args.port), out, args.remote, args.mode, *opts)
    _report("get", metrics, args.json)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="tftpc", description="TFTP client with option negotiation.")
    p.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    sub = p.add_subparsers(dest="cmd", required=True)

    def add_common(x: argparse.ArgumentParser) -> None:
        x.add_argument("--host", required=True)
        x.add_argument("--port", type=int, default=DEFAULT_PORT)
        x.add_argument("--mode", default=DEFAULT_MODE, help="transfer mode label, sent as-is")
        x.add_argument("--timeout-ms", type=int, default=DEFAULT_TIMEOUT_MS, help="socket receive timeout")
        x.add_argument("--blksize", type=int, default=None, help="request a block size (8-65464)")
        x.add_argument("--timeout-opt", type=int, default=None, help="request a server timeout in seconds (1-255)")
        x.add_argument("--tsize", action="store_true", help="negotiate the transfer size")
        x.add_argument("--json", action="store_true")

    put = sub.add_parser("put", help="upload a local file")
    add_common(put)
    put.add_argument("file")
    put.add_argument("--remote-name", default=None)
    put.set_defaults(func=cmd_put)

    get = sub.add_parser("get", help="download a remote file")
    add_common(get)
    get.add_argument("remote")
    get.add_argument("--out", default=None)
    get.set_defaults(func=cmd_get)

    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(asctime)s [%(levelname)s] %(message)s")
    try:
        return int(args.func(args))
    except (TftpError, OSError) as exc:
        logger.error("%s failed: %s", args.cmd, exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
