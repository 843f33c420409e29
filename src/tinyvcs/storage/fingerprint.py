"""Content fingerprints.

A fingerprint is the SHA-1 digest of a byte sequence rendered as a
zero-padded, 40 character lowercase hexadecimal string. Identical bytes
always produce the identical fingerprint, whatever path they came from.
"""

import hashlib

from tinyvcs.constants import HASH_ALGORITHM, HASH_LENGTH
from tinyvcs.errors import DigestUnavailableError


def fingerprint(data: bytes, algorithm: str = HASH_ALGORITHM) -> str:
    """Compute the fingerprint of ``data``.

    Args:
        data: Bytes to fingerprint
        algorithm: hashlib algorithm name (default: sha1)

    Returns:
        Lowercase hex digest, zero-padded to the digest's full width

    Raises:
        DigestUnavailableError: If ``algorithm`` is not provided by hashlib

    Example:
        >>> fingerprint(b"hello")
        'aaf4c61ddcc5e8a2dabede0f3b482cd9aea9434d'
    """
    try:
        hasher = hashlib.new(algorithm)
    except ValueError as e:
        raise DigestUnavailableError(
            f"Hash algorithm unavailable: {algorithm}"
        ) from e
    hasher.update(data)
    return hasher.hexdigest().zfill(HASH_LENGTH)


def is_fingerprint(value: object) -> bool:
    """Return True if ``value`` looks like a fingerprint."""
    if not isinstance(value, str) or len(value) != HASH_LENGTH:
        return False
    return all(c in "0123456789abcdef" for c in value)


def validate_fingerprint(value: object) -> str:
    """Return ``value`` unchanged or raise ``ValueError`` if it is malformed."""
    if not isinstance(value, str):
        raise ValueError(f"Fingerprint must be string, got {type(value)}")
    if len(value) != HASH_LENGTH:
        raise ValueError(
            f"Fingerprint must be {HASH_LENGTH} characters, got {len(value)}"
        )
    if not is_fingerprint(value):
        raise ValueError(f"Fingerprint must be lowercase hexadecimal: {value!r}")
    return value
