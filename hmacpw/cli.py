"""
hmacpw - Command-Line Interface

    echo <site> | pw                 # print password for site
    pw get <site> [--copy]           # same, site as argument / to clipboard
    pw init [--force]                # create a new secret
    pw fingerprint                   # show secret fingerprint
    pw policy <site>                 # show the effective site policy
    pw recovery-create [-k 3 -n 5]   # Shamir recovery kit for the secret
    pw recover [--force]             # restore secret from shares (stdin)

Global flags: --debug, --config-dir DIR, --secret PATH
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

import pyperclip

from hmacpw import __version__
from hmacpw.config import secret_path, site_config_path
from hmacpw.crypto import generate_secret, secret_fingerprint
from hmacpw.generator import derive_password, target_length
from hmacpw.normalize import LengthInvariantViolation
from hmacpw.policy import load_site_policy, sanitize_site_key
from hmacpw.recovery import (
    RecoveryError,
    combine_recovery_shares,
    format_recovery_kit,
    generate_recovery_shares,
)
from hmacpw.secret import SECRET_MODE, SecretError, read_secret, write_secret


logger = logging.getLogger(__name__)

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


class UsageError(Exception):
    """Bad input from the user (empty site, too few shares, ...)."""


def setup_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def _secret_file(args) -> str:
    return args.secret or secret_path(args.config_dir)


def _read_site(args) -> str:
    """Site from the command line, else the first line of stdin."""
    raw = args.site if args.site is not None else sys.stdin.readline()
    site = raw.strip()
    if not site:
        raise UsageError("site name is empty")
    return sanitize_site_key(site)


# =============================================================================
# Commands
# =============================================================================

def cmd_get(args) -> int:
    site = _read_site(args)
    secret = read_secret(_secret_file(args))
    policy = load_site_policy(site, args.config_dir)

    password = derive_password(secret, site, policy)

    if args.copy:
        pyperclip.copy(password)
        print(f"✓ Password for '{site}' copied to clipboard!", file=sys.stderr)
    else:
        print(password)
    return 0


def cmd_init(args) -> int:
    path = _secret_file(args)
    if os.path.exists(path) and not args.force:
        raise UsageError(f"secret already exists at {path} (use --force to replace it)")

    secret = generate_secret()
    write_secret(path, secret, overwrite=args.force)

    print(f"✓ Secret created: {path}")
    print(f"  Fingerprint: {secret_fingerprint(secret)}")
    print("\nIMPORTANT: Create a recovery kit now: pw recovery-create")
    return 0


def cmd_fingerprint(args) -> int:
    secret = read_secret(_secret_file(args))
    print(secret_fingerprint(secret))
    return 0


def cmd_policy(args) -> int:
    site = _read_site(args)
    policy = load_site_policy(site, args.config_dir)

    print(f"Site:    {site}")
    print(f"File:    {site_config_path(site, args.config_dir)}")
    if policy is None:
        print("Policy:  none (defaults)")
        print(f"Length:  {target_length(None)}")
        return 0

    print(f"Length:  {policy.length}")
    print(f"Upper:   {'required' if policy.require_upper else '-'}")
    print(f"Lower:   {'required' if policy.require_lower else '-'}")
    print(f"Digit:   {'required' if policy.require_digit else '-'}")
    print(f"Special: {'required' if policy.require_special else '-'} ({policy.special_chars})")
    return 0


def cmd_recovery_create(args) -> int:
    secret = read_secret(_secret_file(args))
    shares = generate_recovery_shares(secret, args.k, args.n)
    kit = format_recovery_kit(shares, secret_fingerprint(secret), args.k)

    if args.output == "-":
        print(kit)
        return 0

    fd = os.open(args.output, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, SECRET_MODE)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(kit)
    print(f"✓ Saved to: {args.output}")
    return 0


def _read_shares(stream) -> List[str]:
    """One share per line until an empty line or EOF."""
    shares = []
    for line in stream:
        words = line.split()
        if not words:
            break
        shares.append(" ".join(words))
    return shares


def cmd_recover(args) -> int:
    path = _secret_file(args)
    if os.path.exists(path) and not args.force:
        raise UsageError(f"secret already exists at {path} (use --force to replace it)")

    if sys.stdin.isatty():
        print("Enter recovery shares, one per line. Empty line when done.", file=sys.stderr)

    shares = _read_shares(sys.stdin)
    if len(shares) < 2:
        raise UsageError("need at least 2 shares (typical recovery needs 3-5 shares)")

    secret = combine_recovery_shares(shares)
    write_secret(path, secret, overwrite=args.force)

    print(f"✓ Secret restored: {path}")
    print(f"  Fingerprint: {secret_fingerprint(secret)}")
    print("Compare the fingerprint with the one on your recovery kit.")
    return 0


# =============================================================================
# Entry Point
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pw",
        description="pw - deterministic HMAC password generator",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--debug", action="store_true", help="enable debug logging")
    parser.add_argument("--config-dir", default=None,
                        help="config directory (default: $PW_CONFIG_DIR or ~/.config/pw)")
    parser.add_argument("--secret", default=None,
                        help="secret file (default: <config-dir>/secret)")
    parser.set_defaults(func=cmd_get, site=None, copy=False)

    sub = parser.add_subparsers(dest="command")

    p = sub.add_parser("get", help="derive the password for a site")
    p.add_argument("site", nargs="?", help="site name (default: read from stdin)")
    p.add_argument("--copy", action="store_true", help="copy to clipboard instead of printing")
    p.set_defaults(func=cmd_get)

    p = sub.add_parser("init", help="create a new secret")
    p.add_argument("--force", action="store_true", help="replace an existing secret")
    p.set_defaults(func=cmd_init)

    p = sub.add_parser("fingerprint", help="show the secret fingerprint")
    p.set_defaults(func=cmd_fingerprint)

    p = sub.add_parser("policy", help="show the effective policy for a site")
    p.add_argument("site", nargs="?", help="site name (default: read from stdin)")
    p.set_defaults(func=cmd_policy)

    p = sub.add_parser("recovery-create", help="write a Shamir recovery kit")
    p.add_argument("-k", type=int, default=3, help="threshold (default 3)")
    p.add_argument("-n", type=int, default=5, help="total shares (default 5)")
    p.add_argument("-o", "--output", default="recovery_kit.txt",
                   help="output file, '-' for stdout (default recovery_kit.txt)")
    p.set_defaults(func=cmd_recovery_create)

    p = sub.add_parser("recover", help="restore the secret from recovery shares")
    p.add_argument("--force", action="store_true", help="replace an existing secret")
    p.set_defaults(func=cmd_recover)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.debug)

    try:
        return args.func(args)
    except (UsageError, SecretError, RecoveryError, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    except pyperclip.PyperclipException as e:
        print(f"ERROR: clipboard unavailable ({e})", file=sys.stderr)
        return 1
    except LengthInvariantViolation as e:
        logger.error("invalid internal state: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
