"""
Expiry Probes
=============
The two checks a run can perform on a domain: days until the registry
expiry recorded in WHOIS, and days until the served TLS certificate's
``NotAfter``. Both return a signed whole number of days; network and
registry problems are raised as ``ProbeError`` subclasses.
"""

import logging
import re
import socket
import ssl
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Callable

import whois
from cryptography import x509
from whois.exceptions import WhoisDomainNotFoundError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

HTTPS_PORT = 443
CONNECT_TIMEOUT = 5  # seconds

REGISTRY_EXPIRY_LABEL = "Registry Expiry Date"
REGISTRY_EXPIRY_RE = re.compile(r"Registry Expiry Date:\s(\d+-\d+-\d+)")


# ---------------------------------------------------------------------------
# Results and errors
# ---------------------------------------------------------------------------

class ErrorKind(Enum):
    LOOKUP_ERROR = "lookup error"
    NOT_REGISTERED = "not registered"
    CONNECTION_ERROR = "connection error"
    INTERNAL_ERROR = "internal error"


class ProbeError(Exception):
    """Base class for failures of a single probe."""

    kind = ErrorKind.INTERNAL_ERROR


class WhoisLookupError(ProbeError):
    kind = ErrorKind.LOOKUP_ERROR


class DomainNotRegisteredError(ProbeError):
    kind = ErrorKind.NOT_REGISTERED


class CertificateConnectionError(ProbeError):
    kind = ErrorKind.CONNECTION_ERROR


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of one probe: ``days`` on success, ``error`` on failure."""

    domain: str
    days: int | None = None
    error: ErrorKind | None = None
    detail: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, domain: str, days: int) -> "ProbeResult":
        return cls(domain=domain, days=days)

    @classmethod
    def failure(cls, domain: str, kind: ErrorKind, detail: str) -> "ProbeResult":
        return cls(domain=domain, error=kind, detail=detail)


# ---------------------------------------------------------------------------
# Helper utilities
# ---------------------------------------------------------------------------

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def round_days(value: float) -> int:
    """Round to a whole day, halves away from zero (10.5 -> 11, -10.5 -> -11)."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def days_until(expiry: datetime, now: datetime | None = None) -> int:
    """Whole days from ``now`` until ``expiry``; negative once expired."""
    if now is None:
        now = _utcnow()
    hours = (expiry - now).total_seconds() / 3600
    return round_days(hours / 24)


# ---------------------------------------------------------------------------
# WHOIS lookup
# ---------------------------------------------------------------------------

def whois_lookup(domain: str) -> str:
    """Return the raw WHOIS text for ``domain``."""
    try:
        entry = whois.whois(domain, quiet=True)
    except WhoisDomainNotFoundError as exc:
        raise DomainNotRegisteredError("domain is not registered") from exc
    return getattr(entry, "text", None) or ""


def parse_registry_expiry(text: str) -> datetime:
    """
    Extract the ``Registry Expiry Date`` from raw WHOIS text.

    The date is read as ``YYYY-MM-DD`` and returned as midnight UTC.
    """
    if REGISTRY_EXPIRY_LABEL not in text:
        raise DomainNotRegisteredError("domain is not registered")
    match = REGISTRY_EXPIRY_RE.search(text)
    if match is None:
        raise WhoisLookupError("unreadable registry expiry date")
    try:
        expiry = datetime.strptime(match.group(1), "%Y-%m-%d")
    except ValueError as exc:
        raise WhoisLookupError(f"invalid registry expiry date {match.group(1)!r}") from exc
    return expiry.replace(tzinfo=timezone.utc)


def registry_expiry_days(
    domain: str,
    lookup: Callable[[str], str] = whois_lookup,
    now: datetime | None = None,
) -> int:
    """Days until the domain's registration expires."""
    try:
        text = lookup(domain)
    except ProbeError:
        raise
    except Exception as exc:
        logger.debug("WHOIS error for %s: %s", domain, exc)
        raise WhoisLookupError(str(exc) or type(exc).__name__) from exc

    return days_until(parse_registry_expiry(text), now)


# ---------------------------------------------------------------------------
# TLS certificate lookup
# ---------------------------------------------------------------------------

def tls_handshake(
    host: str,
    port: int = HTTPS_PORT,
    timeout: float = CONNECT_TIMEOUT,
    verify: bool = False,
) -> list[x509.Certificate]:
    """
    Connect to ``host:port`` and return the peer certificate chain.

    With ``verify=False`` neither the chain nor the host name is checked, so
    untrusted and mismatched certificates are still returned. Only the leaf
    is available through the standard ``ssl`` module.
    """
    context = ssl.create_default_context()
    if not verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE

    with socket.create_connection((host, port), timeout=timeout) as sock:
        with context.wrap_socket(sock, server_hostname=host) as tls_sock:
            der = tls_sock.getpeercert(binary_form=True)

    if not der:
        return []
    return [x509.load_der_x509_certificate(der)]


def certificate_expiry_days(
    domain: str,
    handshake: Callable[..., list] = tls_handshake,
    now: datetime | None = None,
) -> int:
    """Days until the leaf certificate served by ``domain`` expires."""
    try:
        chain = handshake(domain, HTTPS_PORT, CONNECT_TIMEOUT, False)
    except OSError as exc:
        logger.debug("TLS error for %s: %s", domain, exc)
        raise CertificateConnectionError(str(exc) or type(exc).__name__) from exc

    if not chain:
        raise CertificateConnectionError("no certificate presented")
    return days_until(chain[0].not_valid_after_utc, now)
