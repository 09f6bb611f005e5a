"""
Tests for domain_validator.py
"""

import pytest

from domain_validator import is_valid_domain, to_hostname


@pytest.mark.parametrize("value", [
    "example.com",
    "sub.example.co.uk",
    "a.io",
    "xn--bcher-kva.de",
    "my-site.example.com",
    "http://example.com",
    "https://example.com",
    "https://example.com/",
    "example.com/",
    "a" * 63 + ".com",
])
def test_valid_domains(value):
    """Domains matching the grammar are accepted, with or without scheme and slash."""
    assert is_valid_domain(value)


@pytest.mark.parametrize("value", [
    "",
    "com",
    "a" * 64 + ".com",
    "-example.com",
    "example-.com",
    "example.c",
    "example.abcdefg",
    "example.c0m",
    "http://https://example.com",
    "ftp://example.com",
    "example..com",
    "exa mple.com",
    "example.com//",
])
def test_invalid_domains(value):
    """Malformed labels, bad TLDs and empty strings are rejected."""
    assert not is_valid_domain(value)


@pytest.mark.parametrize("value,expected", [
    ("example.com", "example.com"),
    ("https://example.com/", "example.com"),
    ("http://example.com", "example.com"),
])
def test_to_hostname(value, expected):
    assert to_hostname(value) == expected
