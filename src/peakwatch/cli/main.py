"""
Command-line interface for peakwatch.

Runs a command and reports the peak growth of its resident memory over the
size it had when the sampler attached:

    peakwatch --interval 0.01 -- python3 heavy_computation.py --size 5000
"""

import argparse
import logging
import subprocess
import sys
import tomllib
from pathlib import Path
from typing import List, Optional

from ..collectors import PROBE_TYPES
from ..config import get_config, set_config_path
from ..orchestration import measure_workload
from ..validation import (
    StartupError,
    ValidationError,
    WorkloadError,
    handle_cli_error,
)

logger = logging.getLogger(__name__)

EXIT_SIGNAL_BASE = 128
EXIT_INTERRUPTED = EXIT_SIGNAL_BASE + 2


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="peakwatch",
        description="Run a command and report its peak resident-memory growth.",
        epilog="""Examples:
  peakwatch -- python3 your_script.py arg1 arg2
  peakwatch --interval 0.05 -- python3 heavy_computation.py

Samples coarser than a memory spike can miss it; pick an interval well
below the duration of the allocations you care about.""",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--interval", type=float, default=None,
                        help="Sampling interval in seconds (default: from config)")
    parser.add_argument("--metric-type", choices=sorted(PROBE_TYPES), default=None,
                        help="How resident memory is read (default: from config)")
    parser.add_argument("--handshake-timeout", type=float, default=None,
                        help="Seconds to wait for the sampler to start (default: from config)")
    parser.add_argument("--config", type=Path, default=None,
                        help="Path to a config.toml")
    parser.add_argument("--log-level", default=None,
                        help="Logging level (default: from config)")
    parser.add_argument("command", nargs=argparse.REMAINDER,
                        help="Command to run (e.g., python3 script.py args...)")
    return parser


def main_cli(argv: Optional[List[str]] = None) -> int:
    """
    Entry point of the ``peakwatch`` command.

    Returns:
        The measured command's exit code (128 + signal number if it was
        killed by a signal), 130 if interrupted
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    command = list(args.command)
    if command and command[0] == "--":
        command = command[1:]
    if not command:
        parser.print_help()
        return 1

    if args.config is not None:
        set_config_path(args.config)
    try:
        config = get_config()
    except (FileNotFoundError, ValidationError, tomllib.TOMLDecodeError) as e:
        _setup_logging(args.log_level or "INFO")
        handle_cli_error(error=e, context="configuration loading", exit_code=1, logger=logger)

    _setup_logging(args.log_level or config.log_level)

    watchdog_options = {}
    if args.metric_type:
        watchdog_options["metric_type"] = args.metric_type
    if args.handshake_timeout is not None:
        watchdog_options["handshake_timeout"] = args.handshake_timeout

    logger.info(f"Starting: {' '.join(command)}")
    try:
        child = subprocess.Popen(command)
    except OSError as e:
        handle_cli_error(error=e, context=f"starting '{command[0]}'", exit_code=127, logger=logger)

    try:
        result = measure_workload(
            child.wait,
            args.interval,
            target_pid=child.pid,
            config=config,
            **watchdog_options,
        )
    except (StartupError, ValidationError) as e:
        child.kill()
        child.wait()
        handle_cli_error(error=e, context="starting the watchdog", exit_code=1, logger=logger)
    except WorkloadError as e:
        child.kill()
        child.wait()
        handle_cli_error(error=e, context="waiting for the command", exit_code=1, logger=logger)
    except KeyboardInterrupt:
        logger.warning("Interrupted; stopping the command")
        child.terminate()
        try:
            child.wait(timeout=5)
        except subprocess.TimeoutExpired:
            child.kill()
            child.wait()
        return EXIT_INTERRUPTED

    returncode = result.value
    if returncode < 0:
        # Killed by a signal: report it the way a shell would.
        print(f"\nCommand was killed by signal {-returncode} after {result.elapsed_seconds:.3f}s.")
        returncode = EXIT_SIGNAL_BASE - returncode
    else:
        print(f"\nCommand exited with code {returncode} after {result.elapsed_seconds:.3f}s.")
    if result.report is None:
        print("No memory report was produced.")
    else:
        print(f"Baseline RSS:  {result.report.baseline_kb} KB")
        print(f"Peak RSS:      {result.report.peak_kb} KB")
        print(f"Peak delta:    {result.report.peak_delta_kb} KB")
    return returncode


def main() -> None:
    sys.exit(main_cli())


if __name__ == "__main__":
    main()
