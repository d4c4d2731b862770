"""
ntpquery command line

Usage:
    ntpquery [server] [--timeout MS] [--config PATH] [--ipv4 | --ipv6] [-v]
"""

from __future__ import annotations
import argparse
import logging
import sys
from typing import List, Optional

from ntpquery.client import TimeQueryResult, query_server
from ntpquery.config import ClientConfig, setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ntpquery",
        description="Query an NTP server and print its time in UTC"
    )
    parser.add_argument("server", nargs="?", help="Host name or address of the NTP server")
    parser.add_argument("--timeout", type=int, metavar="MS", help="Receive timeout in milliseconds")
    parser.add_argument("--port", type=int, help="Server UDP port")
    parser.add_argument("--config", metavar="PATH", help="JSON configuration file")
    family = parser.add_mutually_exclusive_group()
    family.add_argument("--ipv4", action="store_const", const="ipv4", dest="family",
                        help="Resolve IPv4 addresses only")
    family.add_argument("--ipv6", action="store_const", const="ipv6", dest="family",
                        help="Resolve IPv6 addresses only")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Print endpoint, round trip and reply header")
    parser.add_argument("--log-level", metavar="LEVEL", help="Logging level")
    return parser


def load_config(args: argparse.Namespace) -> ClientConfig:
    """Merge the optional config file with command-line overrides."""
    config = ClientConfig.load(args.config) if args.config else ClientConfig()

    if args.server:
        config.server = args.server
    if args.timeout is not None:
        config.timeout_ms = args.timeout
    if args.port is not None:
        config.port = args.port
    if args.family:
        config.address_family = args.family
    if args.log_level:
        config.log.level = args.log_level

    return config


def format_result(result: TimeQueryResult, verbose: bool = False) -> List[str]:
    lines = [f"Network time (UTC): {result.timestamp.isoformat(timespec='milliseconds')}"]
    if verbose:
        lines.append(f"  server:   {result.server} ({result.endpoint})")
        lines.append(f"  rtt:      {result.rtt_ms}ms")
        if result.header is not None:
            h = result.header
            lines.append(f"  leap:     {h.leap} ({h.leap_text})")
            lines.append(f"  version:  {h.version}")
            lines.append(f"  mode:     {h.mode} ({h.mode_text})")
            lines.append(f"  stratum:  {h.stratum} ({h.stratum_text})")
    return lines


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args)
    except (OSError, ValueError, TypeError) as e:
        print(f"Unable to load configuration: {e}", file=sys.stderr)
        return 2

    errors = config.validate()
    if errors:
        for error in errors:
            print(f"Invalid configuration: {error}", file=sys.stderr)
        return 2

    setup_logging(config.log)

    result = query_server(
        config.server,
        config.timeout_ms,
        resolver=config.resolver(),
        port=config.port,
        select_address=config.selector(),
    )

    if not result.success:
        print(f"Unable to retrieve network time: {result.error.message}", file=sys.stderr)
        return 1

    for line in format_result(result, args.verbose):
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
