#!/usr/bin/env python3
"""Relay newline-delimited records from stdin to a configured exporter.

Each input line is sent as one record. SIGHUP reopens file destinations,
so the script can sit behind logrotate's ``postrotate`` hook.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import BinaryIO, Optional, Sequence

from event_exporter import ConfigurationError, EventExportPipeline


def relay(pipeline: EventExportPipeline, exporter_name: str, stream: BinaryIO) -> int:
    """Send every line of ``stream`` and return how many were sent."""
    count = 0
    for line in stream:
        pipeline.send(exporter_name, line.rstrip(b"\r\n"))
        count += 1
    return count


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Relay stdin records to an event exporter")
    parser.add_argument(
        "--config",
        type=Path,
        required=True,
        help="YAML file with an 'exporters' list and optional tunables",
    )
    parser.add_argument("--exporter", required=True, help="Name of the exporter to send to")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        pipeline = EventExportPipeline.from_yaml(args.config)
    except ConfigurationError as exc:
        print(f"relay_events: {exc}", file=sys.stderr)
        return 2
    if args.exporter not in pipeline.exporters:
        print(f"relay_events: unknown exporter {args.exporter!r}", file=sys.stderr)
        return 2

    pipeline.install_reopen_signal()
    with pipeline:
        try:
            sent = relay(pipeline, args.exporter, sys.stdin.buffer)
        except KeyboardInterrupt:
            return 130
    logging.getLogger(__name__).info("Relayed %d records", sent)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
