"""Command-line entry point for linkscan.

Usage:
    linkscan scan https://example.com
    linkscan scan https://example.com --full
    linkscan scan https://example.com --json
    linkscan proxy
    linkscan --env-file /etc/linkscan/linkscan.env proxy
"""

import argparse
import asyncio
import json
import logging
import signal
import sys

from .config import Config, load_config, validate_config
from .proxy import ScanProxyServer
from .render import ReportFormatter
from .scanner import ScanError, ScanService

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_SCAN_FAILED = 1
EXIT_CONFIG = 2


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="linkscan",
        description="Scan URLs with VirusTotal through a key-holding proxy.",
    )
    parser.add_argument("--env-file", help="Load environment variables from this file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    scan = sub.add_parser("scan", help="Submit a URL and wait for the verdict")
    scan.add_argument("url")
    scan.add_argument("--full", action="store_true", help="Also print per-engine results")
    scan.add_argument("--json", action="store_true", help="Print the report as JSON")

    sub.add_parser("proxy", help="Run the scan proxy server")
    return parser


async def run_scan(config: Config, url: str, *, full: bool = False, as_json: bool = False) -> int:
    """Scan one URL and print the outcome."""
    service = ScanService.from_config(config)

    def _progress(attempt, remaining):
        logger.info(ReportFormatter.format_progress(attempt, remaining))

    try:
        report = await service.scan(url, on_progress=_progress)
    except ScanError as exc:
        if as_json:
            print(json.dumps({"error": {"type": type(exc).__name__, "message": exc.message}}))
        else:
            print(ReportFormatter.format_error(exc))
        return EXIT_SCAN_FAILED

    if as_json:
        print(json.dumps(report.to_dict(), indent=2))
        return EXIT_OK

    print(ReportFormatter.format_summary(report))
    if full:
        print()
        print(ReportFormatter.format_full_report(report))
    return EXIT_OK


async def run_proxy(config: Config) -> int:
    """Run the proxy until SIGINT/SIGTERM."""
    server = ScanProxyServer(
        host=config.proxy_host,
        port=config.proxy_port,
        api_key=config.virustotal_api_key,
        provider_base_url=config.virustotal_base_url,
        timeout=config.request_timeout,
    )
    stop = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    await server.start()
    try:
        await stop.wait()
    finally:
        await server.stop()
    return EXIT_OK


def main(argv=None) -> int:
    """Entry point."""
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)

    config = load_config(args.env_file)
    errors = validate_config(config, proxy=args.command == "proxy")
    if errors:
        for err in errors:
            logger.error(err)
        return EXIT_CONFIG

    if args.command == "proxy":
        return asyncio.run(run_proxy(config))
    return asyncio.run(run_scan(config, args.url, full=args.full, as_json=args.json))


if __name__ == "__main__":
    sys.exit(main())
