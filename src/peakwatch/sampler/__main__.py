"""
Sampler process entry point.

Usage:
    python -m peakwatch.sampler PID INTERVAL ARTIFACT [--metric-type T] [--log-level L]

Runs until SIGINT/SIGTERM (or until PID exits), then writes the report to
ARTIFACT and to stdout.

Exit codes:
    0  report emitted
    1  invalid arguments
    2  target could not be resolved at startup
"""

import argparse
import logging
import sys
from typing import List, Optional

from ..collectors import PROBE_TYPES
from ..models.runtime import SamplerExitCode
from ..validation import (
    TargetNotFoundError,
    ValidationError,
    handle_cli_error,
    validate_pid,
    validate_sampling_interval,
)
from .handshake import HandshakeArtifact
from .signal_handler import SignalHandler
from .worker import Sampler

logger = logging.getLogger("peakwatch.sampler")


class SamplerArgumentParser(argparse.ArgumentParser):
    """Reports usage errors with the sampler's own exit code instead of argparse's 2."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(SamplerExitCode.USAGE, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = SamplerArgumentParser(
        prog="peakwatch-sampler",
        description="Sample a process's resident memory and report the peak delta over its baseline.",
    )
    parser.add_argument("pid", help="PID of the process to watch")
    parser.add_argument("interval", help="Seconds between samples (fractional allowed)")
    parser.add_argument("artifact", help="Path of the handshake/report file")
    parser.add_argument(
        "--metric-type",
        choices=sorted(PROBE_TYPES),
        default="rss_psutil",
        help="How resident memory is read (default: rss_psutil)",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Logging level for the sampler's stderr output (default: WARNING)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )

    try:
        target_pid = validate_pid(args.pid, field_name="pid")
        interval = validate_sampling_interval(args.interval, field_name="interval")
    except ValidationError as e:
        handle_cli_error(error=e, context="sampler arguments", exit_code=SamplerExitCode.USAGE, logger=logger)

    sampler = Sampler(
        target_pid=target_pid,
        interval=interval,
        artifact=HandshakeArtifact(args.artifact),
        metric_type=args.metric_type,
    )

    # Handlers go in before the pid is published: once the orchestrator knows
    # our pid it may signal us at any moment.
    with SignalHandler(sampler.request_stop):
        try:
            sampler.start()
        except TargetNotFoundError as e:
            logger.error(str(e))
            return SamplerExitCode.TARGET_NOT_FOUND
        sampler.run()

    return SamplerExitCode.REPORTED


if __name__ == "__main__":
    sys.exit(main())
