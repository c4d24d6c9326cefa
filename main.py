"""Entry point for the network diagnostics service and command line tools."""

from __future__ import annotations

import argparse
import json
import mimetypes
from pathlib import Path
from typing import List

from netdiag import bootstrap
from netdiag.estimator import FileItem, TransferEstimator


def _parse_item(raw: str) -> FileItem:
    parts = raw.rsplit(":", 2)
    if len(parts) != 3:
        raise argparse.ArgumentTypeError(f"expected NAME:SIZE:UNIT, got {raw!r}")
    name, size, unit = parts
    try:
        return FileItem(name=name, size=float(size), unit=unit)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Network diagnostics and transfer time estimator")
    parser.add_argument("--config", help="Path to config.yaml", default=None)
    commands = parser.add_subparsers(dest="command")

    serve = commands.add_parser("serve", help="Run the JSON API (default)")
    serve.add_argument("--host", default=None, help="Override web server host")
    serve.add_argument("--port", type=int, default=None, help="Override web server port")
    serve.add_argument("--debug", action="store_true", help="Enable Flask debug mode")

    commands.add_parser("probe", help="Run one probe cycle and print the results")

    estimate = commands.add_parser("estimate", help="Estimate transfer times for files")
    estimate.add_argument("paths", nargs="*", help="Files whose sizes are used")
    estimate.add_argument(
        "--item",
        action="append",
        default=[],
        type=_parse_item,
        metavar="NAME:SIZE:UNIT",
        help="Virtual file, e.g. backup:10:GB (repeatable)",
    )
    estimate.add_argument("--download", type=float, help="Download speed in Mbps")
    estimate.add_argument("--upload", type=float, help="Upload speed in Mbps")
    estimate.add_argument("--latency", type=float, help="Network latency in ms")
    estimate.add_argument("--compression", type=float, metavar="PERCENT", help="Enable compression at this rate")
    estimate.add_argument("--cloud", choices=["none", "google-drive", "aws-s3", "onedrive"])
    estimate.add_argument("--vpn", action="store_true", help="Route through a VPN")
    estimate.add_argument("--ethernet", action="store_true", help="Wired instead of wifi")
    estimate.add_argument("--p2p", action="store_true", help="Peer-to-peer instead of direct")
    return parser.parse_args(argv)


def _collect_items(args: argparse.Namespace) -> List[FileItem]:
    items = []
    for raw_path in args.paths:
        path = Path(raw_path)
        mime_type, _ = mimetypes.guess_type(path.name)
        items.append(FileItem.from_bytes(path.name, path.stat().st_size, mime_type or ""))
    items.extend(args.item)
    return items


def _estimator_overrides(args: argparse.Namespace) -> dict:
    overrides = {}
    if args.download is not None:
        overrides["download_speed_mbps"] = args.download
    if args.upload is not None:
        overrides["upload_speed_mbps"] = args.upload
    if args.latency is not None:
        overrides["network_latency_ms"] = args.latency
    if args.compression is not None:
        overrides["compression_enabled"] = True
        overrides["compression_rate_percent"] = args.compression
    if args.cloud:
        overrides["cloud_provider"] = args.cloud
    if args.vpn:
        overrides["vpn_enabled"] = True
    if args.ethernet:
        overrides["connection_type"] = "ethernet"
    if args.p2p:
        overrides["transfer_type"] = "p2p"
    return overrides


def main(argv=None) -> None:
    args = parse_args(argv)
    context = bootstrap(args.config)

    if args.command == "probe":
        entry = context.orchestrator.run_cycle()
        print(json.dumps({"results": context.orchestrator.results.snapshot(), "history": entry.to_dict()}, indent=2))
        return

    if args.command == "estimate":
        estimator_config = context.config.estimator.merged(_estimator_overrides(args))
        result = TransferEstimator(estimator_config).estimate(_collect_items(args))
        print(json.dumps(result.to_dict(), indent=2))
        return

    context.start()
    host = getattr(args, "host", None) or context.config.web.host
    port = getattr(args, "port", None) or context.config.web.port
    try:
        context.web_app.run(host=host, port=port, debug=getattr(args, "debug", False))
    finally:
        context.shutdown()


if __name__ == "__main__":
    main()
