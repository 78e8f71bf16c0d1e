"""
hmacpw - Cryptography Module

This file contains the cryptographic building blocks of the password
derivation:
- Base62 encoding of digests (arbitrary precision)
- HMAC-SHA256 digest chain that stretches output to a target length
- Secret fingerprint (HKDF) and secret generation

Derivation Architecture:
    1. HMAC-SHA256(secret, site) → base62 → encoded
    2. While encoded is too short:
           encoded += base62(HMAC-SHA256(secret, encoded))
    3. encoded is handed to the segment normalizer (normalize.py)

Why this is reproducible:
    - No randomness anywhere in steps 1-3
    - The key is always the original secret
    - Python ints are arbitrary precision, so base62 works for any digest size

IMPORTANT: Every constant in here is part of the password format. Changing
the alphabet order or the chain message changes every derived password.
"""

import hmac
import hashlib
import secrets
from typing import Final

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from hmacpw.config import DEFAULT_LENGTH


# =============================================================================
# Configuration
# =============================================================================

# Lowercase block first, uppercase second, digits last (indices 0-61)
BASE62_ALPHABET: Final[str] = (
    "abcdefghijklmnopqrstuvwxyz"
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    "0123456789"
)

SECRET_SIZE = 32         # 256-bit secret from the OS CSPRNG
FINGERPRINT_SIZE = 8     # 64-bit fingerprint, shown as 4 hex groups
FINGERPRINT_INFO = b"pw-fingerprint-v1"


# =============================================================================
# Base62 Encoding
# =============================================================================

def base62_encode(data: bytes) -> str:
    """
    Encode bytes as a base62 string (most significant digit first).

    The bytes are read as one big-endian unsigned integer, so leading zero
    bytes do not produce leading 'a' characters.

    Examples:
        b""          → ""
        b"\\x00\\x00"  → "a"     (the value zero)
        b"\\x01\\x00"  → "ei"    (256 = 4*62 + 8)

    Args:
        data: Any byte string (typically a 32-byte digest)

    Returns:
        Base62 string using BASE62_ALPHABET
    """
    if not data:
        return ""

    n = int.from_bytes(data, "big")
    if n == 0:
        return BASE62_ALPHABET[0]

    digits = []
    while n > 0:
        n, rem = divmod(n, 62)
        digits.append(BASE62_ALPHABET[rem])

    digits.reverse()
    return "".join(digits)


def base62_index(ch: str) -> int:
    """Position of ch in BASE62_ALPHABET, 0 for anything outside it."""
    idx = BASE62_ALPHABET.find(ch)
    return idx if idx >= 0 else 0


# =============================================================================
# Digest Chain
# =============================================================================

def hmac_sha256(key: bytes, message: str) -> bytes:
    """HMAC-SHA256 of a text message (UTF-8) under key."""
    return hmac.new(key, message.encode("utf-8"), hashlib.sha256).digest()


def stretch(secret: bytes, site: str, target_length: int = DEFAULT_LENGTH) -> str:
    """
    Produce a base62 string of at least target_length characters.

    How it works:
    - First link: HMAC(secret, site)
    - Every next link: HMAC(secret, <everything encoded so far>)
    - Each link appends its base62 encoding (at least one character)

    A 32-byte digest encodes to ~43 characters, so the default length is
    reached after the first link; long policies need a few more.

    Args:
        secret: The user's secret key (raw bytes of the secret file)
        site: Sanitized site identifier
        target_length: Minimum length of the result

    Returns:
        Base62 string with len(result) >= target_length
    """
    encoded = base62_encode(hmac_sha256(secret, site))

    while len(encoded) < target_length:
        # Message is the running encoded string, not the raw digest
        encoded += base62_encode(hmac_sha256(secret, encoded))

    return encoded


# =============================================================================
# Secret Helpers
# =============================================================================

def generate_secret() -> bytes:
    """
    Generate a new high-entropy secret.

    The secret is hex text rather than raw bytes so the secret file can be
    viewed, copied and typed in by hand if ever needed.

    Returns:
        64 ASCII bytes (32 random bytes, hex encoded)
    """
    return secrets.token_hex(SECRET_SIZE).encode("ascii")


def secret_fingerprint(secret: bytes) -> str:
    """
    Short, non-reversible fingerprint of the secret.

    Why HKDF?
    - The fingerprint is domain separated ('info') from the password HMACs
    - Showing it reveals nothing usable about the secret

    Used to check that a restored secret (recovery kit, new machine) is the
    same one that produced your existing passwords.

    Returns:
        e.g. "3f2a-91c0-77be-04d1"
    """
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=FINGERPRINT_SIZE,
        salt=None,
        info=FINGERPRINT_INFO,
    )
    raw = hkdf.derive(secret).hex()
    return "-".join(raw[i:i + 4] for i in range(0, len(raw), 4))
