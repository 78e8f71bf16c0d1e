"""
hmacpw - Segment Normalizer

Turns the stretched base62 string into a typeable password:

    1. Truncate to the target length
    2. Split into 3 segments as evenly as possible (13 → 5, 4, 4)
    3. SHA-256 of the truncated string picks a class per segment:
       byte[i] % 3 → 0 = UPPER, 1 = LOWER, 2 = DIGIT
    4. Remap every character into its segment's class via its base62 index

Strings shorter than 3 characters are one segment typed by byte[0].
"""

import hashlib
from enum import Enum
from typing import List

from hmacpw.config import DEFAULT_LENGTH
from hmacpw.crypto import base62_index


SEGMENT_COUNT = 3


class SegmentType(Enum):
    UPPER = 0
    LOWER = 1
    DIGIT = 2


class LengthInvariantViolation(Exception):
    """The stretched string is shorter than the requested password length."""


def remap_char(ch: str, segment_type: SegmentType) -> str:
    """
    Map one character into the given class.

    The character's base62 index selects the output; characters outside the
    alphabet count as index 0.
    """
    idx = base62_index(ch)
    if segment_type is SegmentType.UPPER:
        return chr(ord("A") + idx % 26)
    if segment_type is SegmentType.LOWER:
        return chr(ord("a") + idx % 26)
    return chr(ord("0") + idx % 10)


def normalize_segment(segment: str, segment_type: SegmentType) -> str:
    return "".join(remap_char(ch, segment_type) for ch in segment)


def segment_lengths(length: int) -> List[int]:
    """
    Lengths of the 3 segments for a string of the given length.

    The first (length % 3) segments get one extra character:
        13 → [5, 4, 4], 10 → [4, 3, 3], 12 → [4, 4, 4]
    """
    base, rem = divmod(length, SEGMENT_COUNT)
    return [base + 1 if i < rem else base for i in range(SEGMENT_COUNT)]


def segment_types(s: str) -> List[SegmentType]:
    """Class of each segment, taken from SHA-256(s) bytes 0, 1, 2."""
    digest = hashlib.sha256(s.encode("utf-8")).digest()
    return [SegmentType(digest[i] % 3) for i in range(SEGMENT_COUNT)]


def normalize_single_segment(s: str) -> str:
    digest = hashlib.sha256(s.encode("utf-8")).digest()
    return normalize_segment(s, SegmentType(digest[0] % 3))


def normalize_segmented(s: str) -> str:
    """
    Apply the 3-segment rule to an already-truncated string.

    Output keeps every position; only character values change.
    """
    if not s:
        return s

    if len(s) < SEGMENT_COUNT:
        return normalize_single_segment(s)

    out = []
    start = 0
    for seg_len, seg_type in zip(segment_lengths(len(s)), segment_types(s)):
        out.append(normalize_segment(s[start:start + seg_len], seg_type))
        start += seg_len

    return "".join(out)


def normalize(s: str, target_length: int = DEFAULT_LENGTH) -> str:
    """
    Truncate the stretched string to target_length and normalize it.

    Args:
        s: Output of crypto.stretch()
        target_length: Password length

    Returns:
        String of exactly target_length characters (empty input stays empty)

    Raises:
        LengthInvariantViolation: If s is shorter than target_length
    """
    if not s:
        return s

    if len(s) < target_length:
        raise LengthInvariantViolation(
            f"encoded string too short: {len(s)} < {target_length}"
        )

    return normalize_segmented(s[:target_length])
