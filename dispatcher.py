"""
Work Dispatcher
===============
Reads domain names line by line and runs one probe per domain on a pool of
worker threads. At most ``budget`` probes are in flight at any time; the
reader blocks on the budget when it is used up. ``run`` returns only after
every scheduled probe has reported its result.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from threading import BoundedSemaphore, Condition
from typing import Callable, Iterable

from domain_validator import is_valid_domain, to_hostname
from probes import (
    ErrorKind,
    ProbeError,
    ProbeResult,
    certificate_expiry_days,
    registry_expiry_days,
)

logger = logging.getLogger(__name__)

Probe = Callable[[str], int]


class Mode(Enum):
    CERTIFICATE = "certificate"
    REGISTRATION = "domain"


def probe_for_mode(mode: Mode) -> Probe:
    """Return the probe function used for every domain in ``mode``."""
    if mode is Mode.CERTIFICATE:
        return certificate_expiry_days
    return registry_expiry_days


# ---------------------------------------------------------------------------
# Coordination primitives
# ---------------------------------------------------------------------------

class ConcurrencyBudget:
    """Counting semaphore limiting the number of probes in flight."""

    def __init__(self, size: int):
        if size < 1:
            raise ValueError(f"concurrency budget must be at least 1, got {size}")
        self.size = size
        self._semaphore = BoundedSemaphore(size)

    def acquire(self) -> None:
        self._semaphore.acquire()

    def release(self) -> None:
        self._semaphore.release()


class CompletionBarrier:
    """Counter of outstanding units of work; ``wait`` blocks until it is zero."""

    def __init__(self):
        self._pending = 0
        self._cond = Condition()

    @property
    def pending(self) -> int:
        with self._cond:
            return self._pending

    def add(self, count: int = 1) -> None:
        with self._cond:
            self._pending += count

    def done(self) -> None:
        with self._cond:
            if self._pending <= 0:
                raise RuntimeError("done() called more times than add()")
            self._pending -= 1
            if self._pending == 0:
                self._cond.notify_all()

    def wait(self) -> None:
        with self._cond:
            self._cond.wait_for(lambda: self._pending == 0)


# ---------------------------------------------------------------------------
# Input policy
# ---------------------------------------------------------------------------

def stop_on_first_anomaly(entry: str) -> bool:
    """
    Return True if reading should stop at ``entry``.

    A blank or syntactically invalid line ends the input: nothing after it is
    read or scheduled.
    """
    return not entry or not is_valid_domain(entry)


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------

class WorkDispatcher:
    """Schedule one probe per input domain under a concurrency budget."""

    def __init__(
        self,
        probe: Probe,
        report: Callable[[ProbeResult], None],
        budget: int = 1,
        should_stop: Callable[[str], bool] = stop_on_first_anomaly,
    ):
        self.slots = ConcurrencyBudget(budget)
        self.probe = probe
        self.report = report
        self.budget = self.slots.size
        self.should_stop = should_stop

    def _execute(self, domain: str) -> ProbeResult:
        try:
            days = self.probe(to_hostname(domain))
        except ProbeError as exc:
            return ProbeResult.failure(domain, exc.kind, str(exc) or exc.kind.value)
        except Exception as exc:
            logger.exception("Unhandled error checking %s", domain)
            return ProbeResult.failure(domain, ErrorKind.INTERNAL_ERROR, str(exc))
        return ProbeResult.success(domain, days)

    def _unit_of_work(
        self,
        domain: str,
        slots: ConcurrencyBudget,
        barrier: CompletionBarrier,
    ) -> None:
        try:
            self.report(self._execute(domain))
        except Exception:
            logger.exception("Failed to report result for %s", domain)
        finally:
            slots.release()
            barrier.done()

    def run(self, domain_source: Iterable[str]) -> int:
        """
        Probe every domain read from ``domain_source`` and wait for them all.

        Returns the number of domains scheduled.
        """
        slots = self.slots
        barrier = CompletionBarrier()
        scheduled = 0

        with ThreadPoolExecutor(max_workers=self.budget) as executor:
            try:
                for line in domain_source:
                    domain = line.rstrip("\r\n")
                    if self.should_stop(domain):
                        if domain:
                            logger.warning(
                                "Invalid domain %r, ignoring the rest of the input",
                                domain,
                            )
                        break

                    slots.acquire()
                    barrier.add()
                    try:
                        executor.submit(self._unit_of_work, domain, slots, barrier)
                    except BaseException:
                        slots.release()
                        barrier.done()
                        raise
                    scheduled += 1
                    logger.debug("Scheduled %s (%d so far)", domain, scheduled)
            finally:
                barrier.wait()

        logger.debug("All %d probes finished", scheduled)
        return scheduled
