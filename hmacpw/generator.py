"""
hmacpw - Password Derivation

One function, no state: derive_password(secret, site, policy).

    stretch (crypto.py) → normalize (normalize.py) → apply_policy (policy.py)

Safe to call from any number of threads; every call only reads its inputs.
"""

import logging
from typing import Optional

from hmacpw.config import DEFAULT_LENGTH
from hmacpw.crypto import stretch
from hmacpw.normalize import normalize
from hmacpw.policy import SitePolicy, apply_policy


logger = logging.getLogger(__name__)


def target_length(policy: Optional[SitePolicy]) -> int:
    """Password length for a policy (12 when there is none)."""
    if policy is None:
        return DEFAULT_LENGTH
    return policy.length


def derive_password(secret: bytes, site: str, policy: Optional[SitePolicy] = None) -> str:
    """
    Derive the password for a site.

    Args:
        secret: Secret key bytes (never stored or logged)
        site: Sanitized site key (see policy.sanitize_site_key)
        policy: Optional site policy; None means 12 characters, no requirements

    Returns:
        The password. Identical inputs always give the identical password.

    Raises:
        LengthInvariantViolation: Internal error, stretched output too short
    """
    length = target_length(policy)
    logger.debug("deriving password for %s (length %d)", site, length)

    encoded = stretch(secret, site, length)
    password = normalize(encoded, length)
    return apply_policy(password, policy, site)
