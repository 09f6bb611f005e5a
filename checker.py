#!/usr/bin/env python3
"""
Domain Expiry Checker
=====================
Reads a list of domain names (one per line) and reports, for each one,
either how many days remain before its registration expires (WHOIS) or how
many days remain before the TLS certificate it serves expires. Checks run
in parallel on a fixed number of worker threads.
"""

import argparse
import logging
import sys
from contextlib import nullcontext

from dispatcher import Mode, WorkDispatcher, probe_for_mode
from reporter import ResultReporter

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_INPUT_FILE = "Default.conf"
DEFAULT_THREADS = 1

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Invalid command-line configuration; nothing has been checked yet."""


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

def select_mode(ssl: bool, domain: bool) -> Mode:
    """Resolve the -s / -d flags to exactly one mode."""
    if ssl and domain:
        raise ConfigurationError(
            "Choose either --ssl or --domain; checking both at once is not supported"
        )
    if not ssl and not domain:
        raise ConfigurationError("Choose one of --ssl or --domain")
    return Mode.CERTIFICATE if ssl else Mode.REGISTRATION


def validate_threads(threads: int) -> int:
    if threads < 1:
        raise ConfigurationError(f"--threads must be at least 1, got {threads}")
    return threads


# ---------------------------------------------------------------------------
# Main orchestration
# ---------------------------------------------------------------------------

def run_checker(
    input_file: str = DEFAULT_INPUT_FILE,
    mode: Mode = Mode.REGISTRATION,
    threads: int = DEFAULT_THREADS,
    stream=None,
) -> ResultReporter:
    """
    Check every domain listed in ``input_file`` and print results as they
    complete. ``"-"`` reads the list from standard input.
    """
    reporter = ResultReporter(subject=mode.value, stream=stream)
    dispatcher = WorkDispatcher(
        probe=probe_for_mode(mode),
        report=reporter.report,
        budget=threads,
    )

    logger.info(
        "Checking %s expiry for domains in %s with %d worker(s)...",
        mode.value,
        "stdin" if input_file == "-" else input_file,
        threads,
    )

    # Undecodable bytes become U+FFFD, which fails validation and ends the input.
    if input_file == "-":
        if hasattr(sys.stdin, "reconfigure"):
            sys.stdin.reconfigure(errors="replace")
        source = nullcontext(sys.stdin)
    else:
        source = open(input_file, encoding="utf-8", errors="replace")

    with source as f:
        scheduled = dispatcher.run(f)

    logger.info("Checked %d domain(s)", scheduled)
    reporter.print_summary()
    return reporter


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Report days until domain registration or TLS certificate expiry.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  python checker.py -d                      # Registration expiry, Default.conf\n"
            "  python checker.py -s -f domains.txt       # Certificate expiry\n"
            "  python checker.py -s -t 20 -f domains.txt\n"
            "  cat domains.txt | python checker.py -d -f -\n"
        ),
    )
    parser.add_argument(
        "--file", "-f",
        type=str,
        default=DEFAULT_INPUT_FILE,
        help=f"Domain list, one per line; '-' for stdin (default: {DEFAULT_INPUT_FILE})",
    )
    parser.add_argument(
        "--threads", "-t",
        type=int,
        default=DEFAULT_THREADS,
        help=f"Number of concurrent checks (default: {DEFAULT_THREADS})",
    )
    parser.add_argument(
        "--ssl", "-s",
        action="store_true",
        help="Report days until the TLS certificate expires",
    )
    parser.add_argument(
        "--domain", "-d",
        action="store_true",
        help="Report days until the domain registration expires",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose/debug logging",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        mode = select_mode(args.ssl, args.domain)
        threads = validate_threads(args.threads)
    except ConfigurationError as exc:
        logger.error("%s", exc)
        sys.exit(1)

    try:
        run_checker(input_file=args.file, mode=mode, threads=threads)
    except OSError as exc:
        logger.error("Cannot read domain list %s: %s", args.file, exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
