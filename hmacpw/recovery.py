"""
hmacpw - Recovery Module (Shamir Secret Sharing)

Losing the secret means losing every derived password, so the secret can be
split into a k-of-n recovery kit:
- Split the secret into n mnemonic shares
- Any k shares reconstruct it
- Fewer than k shares reveal NOTHING
- Based on SLIP-0039 (polynomial interpolation)

The kit also prints the secret fingerprint, so a restored secret can be
checked before it is used.
"""

from typing import List

from shamir_mnemonic import shamir


MIN_SECRET_BYTES = 16    # SLIP-0039: at least 128 bits
MAX_SHARES = 16          # SLIP-0039 member count limit


class RecoveryError(Exception):
    """Shares could not be combined into a secret."""


def generate_recovery_shares(secret: bytes, k: int, n: int) -> List[str]:
    """
    Split the secret into n shares (need k to recover).

    Args:
        secret: Secret bytes (even length, at least 16 bytes)
        k: Threshold (minimum shares needed)
        n: Total number of shares to create

    Returns:
        List of n mnemonic shares (space-separated words)

    Raises:
        ValueError: Invalid k/n or a secret SLIP-0039 cannot carry
    """
    if k > n:
        raise ValueError(f"k ({k}) cannot be greater than n ({n})")

    if k < 2:
        raise ValueError("k must be at least 2")

    if n > MAX_SHARES:
        raise ValueError(f"n cannot exceed {MAX_SHARES} (SLIP-0039 limit)")

    if len(secret) < MIN_SECRET_BYTES or len(secret) % 2:
        raise ValueError(
            f"secret must be an even number of bytes, at least {MIN_SECRET_BYTES} "
            f"(got {len(secret)}); create one with 'pw init'"
        )

    # One group with a k-of-n member threshold
    groups = shamir.generate_mnemonics(
        group_threshold=1,
        groups=[(k, n)],
        master_secret=secret,
    )
    return groups[0]


def combine_recovery_shares(shares: List[str]) -> bytes:
    """
    Reconstruct the secret from at least k shares.

    Raises:
        RecoveryError: If shares are invalid, mixed, or insufficient
    """
    try:
        return shamir.combine_mnemonics(shares)
    except Exception as e:
        raise RecoveryError(f"Failed to combine shares: {e}") from e


def format_recovery_kit(shares: List[str], fingerprint: str, k: int) -> str:
    """
    Format recovery shares for printing.

    Args:
        shares: Output of generate_recovery_shares()
        fingerprint: crypto.secret_fingerprint() of the secret
        k: Threshold (how many shares needed)

    Returns:
        Formatted string ready for printing
    """
    output = []
    output.append("=" * 70)
    output.append("pw RECOVERY KIT")
    output.append("=" * 70)
    output.append(f"\nSecret fingerprint: {fingerprint}")
    output.append(f"Threshold: Need {k} of {len(shares)} shares to recover")
    output.append("\nIMPORTANT:")
    output.append("- Print this document and store shares in separate secure locations")
    output.append(f"- Any {k} shares restore your secret (and with it every password)")
    output.append(f"- Losing up to {len(shares) - k} shares is okay")
    output.append("- NEVER store all shares together!\n")
    output.append("=" * 70)

    for i, share in enumerate(shares, 1):
        output.append(f"\n\nSHARE {i} of {len(shares)}")
        output.append("-" * 70)
        output.append(share)
        output.append("\n" + "-" * 70)

    output.append("\n\nTo recover:")
    output.append("1. Run: pw recover")
    output.append(f"2. Enter any {k} shares, one per line, then an empty line")
    output.append(f"3. Check the printed fingerprint is {fingerprint}\n")

    return "\n".join(output)
