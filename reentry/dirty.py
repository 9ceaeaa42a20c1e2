"""
Dirty detection for published bodies.

Two bodies that differ only by line endings or a missing trailing newline
are considered equal, and hash to the same value.
"""

import hashlib


def normalize_body(body: str) -> str:
    """Normalize EOL to LF and ensure a trailing newline."""
    normalized = body.replace("\r\n", "\n")
    return normalized if normalized.endswith("\n") else normalized + "\n"


def bodies_equal(a: str, b: str) -> bool:
    return normalize_body(a) == normalize_body(b)


def sha256(text: str) -> str:
    """Hex SHA-256 of the normalized text."""
    return hashlib.sha256(normalize_body(text).encode("utf-8")).hexdigest()
