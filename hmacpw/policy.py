"""
hmacpw - Site Policies

A site policy lives in <config_dir>/sites/<site>.conf as key=value lines:

    # example.com
    len=20
    upper=true
    lower=true
    digit=true
    special=true
    special_chars=!@#$%^&*

The policy sets the password length and which character classes must
appear. Missing classes are added by overwriting one hash-selected
position per requirement (see apply_policy).
"""

import hashlib
import logging
from dataclasses import dataclass
from typing import Optional

from hmacpw.config import DEFAULT_LENGTH, DEFAULT_SPECIAL_CHARS, site_config_path
from hmacpw.crypto import base62_index


logger = logging.getLogger(__name__)

_TRUE_VALUES = frozenset({"1", "true", "yes", "y", "on"})

_LENGTH_KEYS = frozenset({"length", "len", "n"})
_FLAG_KEYS = {
    "require_upper": "require_upper",
    "upper": "require_upper",
    "require_lower": "require_lower",
    "lower": "require_lower",
    "require_digit": "require_digit",
    "digit": "require_digit",
    "require_special": "require_special",
    "special": "require_special",
}


@dataclass(frozen=True)
class SitePolicy:
    """Per-site length and composition requirements (immutable)."""

    site: str = ""
    max_len: int = 0
    require_upper: bool = False
    require_lower: bool = False
    require_digit: bool = False
    require_special: bool = False
    special_chars: str = DEFAULT_SPECIAL_CHARS

    @property
    def length(self) -> int:
        """Password length: max_len, or the default when unset/zero."""
        return self.max_len if self.max_len > 0 else DEFAULT_LENGTH


@dataclass
class Composition:
    has_upper: bool = False
    has_lower: bool = False
    has_digit: bool = False
    has_special: bool = False


# =============================================================================
# Site Keys & Policy Files
# =============================================================================

def sanitize_site_key(site: str) -> str:
    """Lowercase, trim, and replace '/' and ' ' with '_'."""
    key = site.lower().strip()
    return key.replace("/", "_").replace(" ", "_")


def parse_bool(value: str) -> bool:
    return value.strip().lower() in _TRUE_VALUES


def parse_policy(text: str, site: str = "") -> SitePolicy:
    """
    Parse the contents of a policy file.

    Blank lines, '#' comments, lines without '=' and unknown keys are
    ignored. A length that is not a positive integer is ignored too.

    Args:
        text: File contents
        site: Site key the policy belongs to (seeds enforcement)

    Returns:
        SitePolicy (special_chars falls back to the default when empty)
    """
    fields = {"site": site}

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue

        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip()

        if key in _LENGTH_KEYS:
            try:
                n = int(value)
            except ValueError:
                continue
            if n > 0:
                fields["max_len"] = n
        elif key in _FLAG_KEYS:
            fields[_FLAG_KEYS[key]] = parse_bool(value)
        elif key == "special_chars":
            fields["special_chars"] = value

    if not fields.get("special_chars"):
        fields["special_chars"] = DEFAULT_SPECIAL_CHARS

    return SitePolicy(**fields)


def load_site_policy(site: str, config_dir: Optional[str] = None) -> Optional[SitePolicy]:
    """
    Load the policy file for a site.

    Returns:
        SitePolicy, or None when the site has no (readable) policy file
    """
    path = site_config_path(sanitize_site_key(site), config_dir)
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            text = f.read()
    except OSError:
        logger.debug("no site policy for %s (%s)", site, path)
        return None

    policy = parse_policy(text, site)
    logger.debug("loaded site policy for %s: %s", site, policy)
    return policy


# =============================================================================
# Requirement Enforcement
# =============================================================================

def classify(s: str) -> Composition:
    """Which character classes s contains. Anything not A-Z/a-z/0-9 is special."""
    comp = Composition()
    for ch in s:
        if "A" <= ch <= "Z":
            comp.has_upper = True
        elif "a" <= ch <= "z":
            comp.has_lower = True
        elif "0" <= ch <= "9":
            comp.has_digit = True
        else:
            comp.has_special = True
    return comp


def _site_digest(site: str, label: str) -> bytes:
    return hashlib.sha256(f"{site}|{label}".encode("utf-8")).digest()


def pick_index(site: str, label: str, length: int) -> int:
    """Position to overwrite for a requirement: SHA-256(site|label)[0] % length."""
    return _site_digest(site, label)[0] % length


def apply_policy(s: str, policy: Optional[SitePolicy], site: Optional[str] = None) -> str:
    """
    Make sure every required character class appears in s.

    Requirements are checked in a fixed order: upper, lower, digit, special.
    Each missing class overwrites one position chosen from SHA-256 of
    "<site>|<label>". Positions are picked independently, so a later
    requirement may land on the same index and overwrite an earlier one's
    character. This is part of the password format and must stay as is.

    Args:
        s: Normalized password
        policy: Site policy (None → s is returned unchanged)
        site: Seed for position selection (default: policy.site)

    Returns:
        Password with requirements applied
    """
    if policy is None:
        return s

    seed = policy.site if site is None else site
    chars = list(s)
    comp = classify(s)

    logger.debug("current password composition: %s", comp)
    logger.debug(
        "policy requirements: upper=%s lower=%s digit=%s special=%s",
        policy.require_upper, policy.require_lower,
        policy.require_digit, policy.require_special,
    )

    if policy.require_upper and not comp.has_upper and chars:
        i = pick_index(seed, "upper", len(chars))
        chars[i] = chr(ord("A") + base62_index(chars[i]) % 26)
        logger.debug("adding required upper case letter at index %d", i)
        comp.has_upper = True

    if policy.require_lower and not comp.has_lower and chars:
        i = pick_index(seed, "lower", len(chars))
        chars[i] = chr(ord("a") + base62_index(chars[i]) % 26)
        logger.debug("adding required lower case letter at index %d", i)
        comp.has_lower = True

    if policy.require_digit and not comp.has_digit and chars:
        i = pick_index(seed, "digit", len(chars))
        chars[i] = chr(ord("0") + base62_index(chars[i]) % 10)
        logger.debug("adding required digit at index %d", i)
        comp.has_digit = True

    special_chars = policy.special_chars or DEFAULT_SPECIAL_CHARS
    if policy.require_special and not comp.has_special and chars:
        i = pick_index(seed, "special", len(chars))
        j = _site_digest(seed, "special_char")[1] % len(special_chars)
        chars[i] = special_chars[j]
        logger.debug("adding required special character at index %d", i)
        comp.has_special = True

    return "".join(chars)

