"""
hmacpw - Deterministic HMAC Password Generator

Derives a reproducible password for every site from one secret key.
Nothing is stored: the same (secret, site, policy) always gives the same
password, on any machine.

Pipeline:
    secret + site → HMAC-SHA256 chain → base62 → 3-segment normalization
    → (optional) site policy enforcement → password

Components:
- crypto.py: base62 encoding, HMAC digest chain, secret fingerprint
- normalize.py: segment normalizer (upper / lower / digit segments)
- policy.py: per-site policy files and requirement enforcement
- generator.py: the full derivation pipeline
- secret.py: secret file handling (0600, owner checks)
- recovery.py: Shamir Secret Sharing backup of the secret
- cli.py: command-line interface (uses built-in argparse)

Usage:
    echo example.com | pw               # Derive password for a site
    pw get example.com --copy           # Copy to clipboard instead
    pw init                             # Create a new secret
    pw recovery-create                  # Create recovery kit
"""

from hmacpw.generator import derive_password
from hmacpw.policy import SitePolicy

__version__ = "0.3.0"
__author__ = "hmacpw Team"

__all__ = ["derive_password", "SitePolicy", "__version__"]
