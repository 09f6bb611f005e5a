"""
Console output for probe results.
"""

import sys
from threading import Lock
from typing import TextIO

from probes import ProbeResult

EXPIRING_SOON_DAYS = 30


def _days(count: int) -> str:
    return "1 day" if count == 1 else f"{count} days"


class ResultReporter:
    """
    Print one line per probe result as results arrive.

    ``report`` is called from worker threads, so writes and the running counts
    are guarded by a lock.
    """

    def __init__(self, subject: str, stream: TextIO | None = None):
        self.subject = subject
        self.stream = stream if stream is not None else sys.stdout
        self.total = 0
        self.succeeded = 0
        self.expiring_soon: list[str] = []
        self._lock = Lock()

    def format_result(self, result: ProbeResult) -> str:
        if not result.ok:
            return f"{result.domain}  error: {result.detail or result.error.value}"
        if result.days < 0:
            return f"{result.domain}  {self.subject} expired {_days(-result.days)} ago"
        return f"{result.domain}  {self.subject} expires in {_days(result.days)}"

    def report(self, result: ProbeResult) -> None:
        line = self.format_result(result)
        with self._lock:
            self.total += 1
            if result.ok:
                self.succeeded += 1
                if result.days <= EXPIRING_SOON_DAYS:
                    self.expiring_soon.append(result.domain)
            print(line, file=self.stream, flush=True)

    def summary(self) -> dict:
        """Counts for the run, plus domains expiring within 30 days."""
        with self._lock:
            return {
                "total": self.total,
                "succeeded": self.succeeded,
                "failed": self.total - self.succeeded,
                "expiring_soon": sorted(self.expiring_soon),
            }

    def print_summary(self) -> None:
        summary = self.summary()
        out = self.stream
        print("\n" + "=" * 60, file=out)
        print("EXPIRY CHECK SUMMARY", file=out)
        print("=" * 60, file=out)
        print(f"  Total checked:  {summary['total']}", file=out)
        print(f"  Succeeded:      {summary['succeeded']}", file=out)
        print(f"  Failed:         {summary['failed']}", file=out)
        print("=" * 60, file=out)

        expiring = summary["expiring_soon"]
        if expiring:
            print(
                f"\n  ** {len(expiring)} {self.subject}(s) expire within "
                f"{EXPIRING_SOON_DAYS} days: {', '.join(expiring[:10])}",
                file=out,
            )
            if len(expiring) > 10:
                print(f"    ... and {len(expiring) - 10} more", file=out)

        print(file=out)
