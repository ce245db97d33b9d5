"""
Password hashing and verification using PBKDF2-HMAC-SHA256.

Stored credentials are self-describing tokens::

    pbkdf2$<iterations>$<salt hex>$<derived key hex>

Rows created before hashing was introduced hold the plain password; those
are still accepted by comparing the values directly.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets

logger = logging.getLogger(__name__)

ALGORITHM_TAG = "pbkdf2"
DEFAULT_ITERATIONS = 310_000
SALT_BYTES = 16
KEY_LENGTH = 32
DIGEST = "sha256"
_DELIMITER = "$"


def _derive(plain: str, salt: str, iterations: int, key_length: int) -> bytes:
    # The hex salt text itself is the PBKDF2 salt, matching existing tokens.
    return hashlib.pbkdf2_hmac(DIGEST, plain.encode("utf-8"), salt.encode("utf-8"), iterations, key_length)


def hash_password(
    plain: str,
    iterations: int = DEFAULT_ITERATIONS,
    salt_bytes: int = SALT_BYTES,
    key_length: int = KEY_LENGTH,
) -> str:
    """Hash a password with a fresh random salt. Returns the full token."""
    salt = secrets.token_hex(salt_bytes)
    derived = _derive(plain, salt, iterations, key_length)
    return _DELIMITER.join([ALGORITHM_TAG, str(iterations), salt, derived.hex()])


def is_hashed(stored: str) -> bool:
    return bool(stored) and stored.startswith(ALGORITHM_TAG + _DELIMITER)


def verify_password(plain: str, stored: str) -> bool:
    """
    Verify a password against a stored credential.

    Returns True if the password matches. Never raises: malformed tokens
    are treated as a mismatch.
    """
    if not stored:
        return False

    if not is_hashed(stored):
        return stored == plain

    try:
        _, iterations_text, salt, expected_hex = stored.split(_DELIMITER)
        iterations = int(iterations_text)
        expected = bytes.fromhex(expected_hex)
    except ValueError:
        logger.warning("Rejecting malformed credential token")
        return False

    if iterations <= 0 or not salt or not expected:
        return False

    derived = _derive(plain, salt, iterations, len(expected))
    return hmac.compare_digest(derived, expected)


def needs_rehash(stored: str, iterations: int = DEFAULT_ITERATIONS) -> bool:
    """Check if a stored credential is plain text or uses fewer iterations than configured."""
    if not is_hashed(stored):
        return True
    try:
        return int(stored.split(_DELIMITER)[1]) < iterations
    except (IndexError, ValueError):
        return True
