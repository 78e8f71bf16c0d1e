"""
hmacpw - Derivation Self-Tests

Run with: python test_simple.py   (or: pytest)

Covers the derivation pipeline end to end:
- Base62 encoding (arbitrary precision)
- HMAC digest chain length extension
- Segment normalization (segment boundaries, class per segment)
- Policy enforcement (positions, collisions, special characters)
- Golden vectors: these passwords must never change
"""

import hashlib

from hmacpw import crypto
from hmacpw.generator import derive_password, target_length
from hmacpw.normalize import (
    LengthInvariantViolation,
    SegmentType,
    normalize,
    normalize_segmented,
    remap_char,
    segment_lengths,
    segment_types,
)
from hmacpw.policy import SitePolicy, apply_policy, classify


SECRET = b"test-secret-key"
SITE = "example.com"
ALNUM = set(crypto.BASE62_ALPHABET)


def test_base62():
    """Test base62 encoding of byte strings."""
    print("Testing Base62 Encoding...")

    assert crypto.base62_encode(b"") == "", "Empty input should give empty string"
    assert crypto.base62_encode(b"\x00") == "a", "Zero should be the zero symbol"
    assert crypto.base62_encode(b"\x00" * 32) == "a", "Any zero value is a single 'a'"
    print("  [OK] Empty and zero inputs")

    assert crypto.base62_encode(b"\x01") == "b"
    assert crypto.base62_encode(b"\x3d") == "9", "61 is the last symbol"
    assert crypto.base62_encode(b"\x3e") == "ba", "62 rolls over to two digits"
    assert crypto.base62_encode(b"\x01\x00") == "ei", "256 = 4*62 + 8"
    assert crypto.base62_encode(b"\xff\xff") == "rdb"
    assert crypto.base62_encode(b"hello") == "h3Avpr9"
    print("  [OK] Known values")

    # Leading zero bytes don't add leading zero symbols
    assert crypto.base62_encode(b"\x00\x00\x01\x00") == "ei"

    digest = hashlib.sha256(b"big").digest()
    encoded = crypto.base62_encode(digest)
    assert set(encoded) <= ALNUM, "Only alphabet characters"
    assert encoded[0] != "a", "No zero-symbol padding"
    assert 40 <= len(encoded) <= 43, "256-bit value needs at most 43 digits"
    print("  [OK] 256-bit digests encode without padding")


def test_base62_index():
    """Test alphabet index lookup (lowercase, uppercase, digits)."""
    print("Testing Base62 Index...")

    assert crypto.base62_index("a") == 0
    assert crypto.base62_index("z") == 25
    assert crypto.base62_index("A") == 26
    assert crypto.base62_index("0") == 52
    assert crypto.base62_index("9") == 61
    assert crypto.base62_index("!") == 0, "Unknown characters count as 0"
    print("  [OK] Index lookup works")


def test_stretch():
    """Test HMAC digest chain."""
    print("Testing Digest Chain...")

    first = crypto.stretch(SECRET, SITE, 12)
    assert first == "FwOqvGXseTnuvZvv2gqKejtB772Hr81RgtEvqraBmxN"
    assert first == crypto.stretch(SECRET, SITE), "Default target is 12"
    print("  [OK] First link is base62(HMAC(secret, site))")

    long = crypto.stretch(SECRET, SITE, 50)
    assert len(long) >= 50
    assert long.startswith(first), "Later links are appended"
    assert long == first + crypto.base62_encode(crypto.hmac_sha256(SECRET, first))
    print("  [OK] Next link is HMAC(secret, encoded so far)")

    for n in (1, 43, 44, 100, 300):
        assert len(crypto.stretch(SECRET, SITE, n)) >= n, f"Too short for {n}"
    print("  [OK] Length contract holds")

    assert crypto.stretch(b"other-secret", SITE) != first, "Secret matters"
    assert crypto.stretch(SECRET, "example.org") != first, "Site matters"
    print("  [OK] Different inputs give different chains")


def test_segment_lengths():
    """Test segment boundaries."""
    print("Testing Segment Lengths...")

    assert segment_lengths(13) == [5, 4, 4]
    assert segment_lengths(10) == [4, 3, 3]
    assert segment_lengths(12) == [4, 4, 4]
    assert segment_lengths(14) == [5, 5, 4]
    assert segment_lengths(3) == [1, 1, 1]
    for n in range(3, 200):
        assert sum(segment_lengths(n)) == n
    print("  [OK] Segments split as evenly as possible, extras first")


def test_remap_char():
    """Test character class mapping."""
    print("Testing Character Remapping...")

    assert remap_char("a", SegmentType.UPPER) == "A"
    assert remap_char("A", SegmentType.UPPER) == "A", "Index 26 wraps to 'A'"
    assert remap_char("B", SegmentType.LOWER) == "b"
    assert remap_char("k", SegmentType.DIGIT) == "0", "Index 10 wraps to '0'"
    assert remap_char("9", SegmentType.DIGIT) == "1", "Index 61 → 1"
    assert remap_char("-", SegmentType.LOWER) == "a", "Unknown character → index 0"
    print("  [OK] Mapping by base62 index")


def test_normalize():
    """Test segment normalization."""
    print("Testing Segment Normalizer...")

    # SHA-256 picks UPPER, LOWER, UPPER for this string
    assert segment_types("abcdefghijklm") == [SegmentType.UPPER, SegmentType.LOWER, SegmentType.UPPER]
    assert normalize_segmented("abcdefghijklm") == "ABCDEfghiJKLM"
    print("  [OK] 13 characters → segments 5, 4, 4")

    assert normalize_segmented("ABCDEFGHIJ") == "6789efg345"
    print("  [OK] 10 characters → segments 4, 3, 3")

    assert normalize_segmented("Zz") == "15"
    assert normalize_segmented("-") == "A"
    print("  [OK] Short strings use a single segment")

    assert normalize("") == "", "Empty stays empty"
    stretched = crypto.stretch(SECRET, SITE, 20)
    for n in (1, 2, 3, 12, 20):
        assert len(normalize(stretched, n)) == n
    assert normalize(stretched, 12) == normalize(stretched[:12], 12), "Only the prefix matters"
    print("  [OK] Output length is exactly the target")

    try:
        normalize("abc", 12)
        assert False, "Short input must be rejected"
    except LengthInvariantViolation:
        print("  [OK] Too-short input raises LengthInvariantViolation")


def test_classify():
    """Test composition classification."""
    print("Testing Classification...")

    comp = classify("aB3")
    assert comp.has_lower and comp.has_upper and comp.has_digit
    assert not comp.has_special
    assert classify("é").has_special, "Non-ASCII counts as special"
    assert classify("_").has_special
    print("  [OK] Classification works")


def test_apply_policy():
    """Test requirement enforcement."""
    print("Testing Policy Enforcement...")

    assert apply_policy("abc", None) == "abc", "No policy, no change"

    policy = SitePolicy(site=SITE, require_upper=True)
    # SHA-256("example.com|upper")[0] = 216 → index 6; '7' (index 59) → 'H'
    assert apply_policy("1234567890", policy) == "123456H890"
    print("  [OK] Missing class added at hash-selected index")

    assert apply_policy("1234567890", policy, site="example.com") == "123456H890"
    assert apply_policy("A234567890", policy) == "A234567890", "Already satisfied"
    assert apply_policy("", policy) == "", "Empty string is skipped"
    print("  [OK] Satisfied or empty strings are left alone")

    custom = SitePolicy(site="bank", require_special=True, special_chars="_-")
    assert apply_policy("abcdefgh", custom) == "abcd-fgh"
    print("  [OK] Special character picked from special_chars")

    empty_chars = SitePolicy(site=SITE, require_special=True, special_chars="")
    out = apply_policy("abcdefgh", empty_chars)
    assert classify(out).has_special, "Empty special_chars falls back to default"
    assert set(out) - set("abcdefgh") <= set("!@#$%^&*")
    print("  [OK] Empty special_chars uses the default set")


def test_apply_policy_collision():
    """Later requirements may overwrite earlier ones at the same index."""
    print("Testing Enforcement Collisions...")

    # upper and lower both pick index 6 for example.com: lower wins
    policy = SitePolicy(site=SITE, require_upper=True, require_lower=True, require_special=True)
    out = apply_policy("1234567890", policy)
    assert out == "12345^h890"
    assert not classify(out).has_upper, "Upper letter was overwritten by lower"
    print("  [OK] Fixed order upper → lower → digit → special, later wins")


def test_golden_vectors():
    """These passwords are the format. They must never change."""
    print("Testing Golden Vectors...")

    assert derive_password(SECRET, SITE) == "fwoq1298etnu"
    assert derive_password(SECRET, "github.com") == "384920698798"
    print("  [OK] Default 12-character passwords")

    p20 = SitePolicy(site=SITE, max_len=20)
    assert derive_password(SECRET, SITE, p20) == "1206129SETNUVZVVCGQK"
    print("  [OK] max_len=20 changes the segmentation, not just the length")

    strict = SitePolicy(
        site=SITE, max_len=16,
        require_upper=True, require_lower=True,
        require_digit=True, require_special=True,
    )
    out = derive_password(SECRET, SITE, strict)
    assert out == "FWOQVG98453uv^vv"
    comp = classify(out)
    assert comp.has_upper and comp.has_lower and comp.has_digit and comp.has_special
    assert apply_policy(out, strict) == out, "Enforcing again changes nothing"
    print("  [OK] All four requirements satisfied")

    assert derive_password(SECRET, SITE, SitePolicy(site=SITE, max_len=2)) == "FW"
    print("  [OK] Short passwords")


def test_derive_password():
    """Test the pipeline contract."""
    print("Testing Derivation Pipeline...")

    pw1 = derive_password(SECRET, SITE)
    pw2 = derive_password(SECRET, SITE)
    assert pw1 == pw2, "Derivation should be deterministic"
    assert len(pw1) == 12
    assert set(pw1) <= ALNUM
    print("  [OK] Deterministic 12-character output")

    assert target_length(None) == 12
    assert target_length(SitePolicy(max_len=0)) == 12, "Zero means default"
    assert target_length(SitePolicy(max_len=40)) == 40

    for n in (1, 5, 13, 64, 128):
        assert len(derive_password(SECRET, SITE, SitePolicy(site=SITE, max_len=n))) == n
    print("  [OK] Policy length respected")

    # A policy with no requirements only affects length
    assert derive_password(SECRET, SITE, SitePolicy(site=SITE)) == pw1
    assert derive_password(b"different", SITE) != pw1
    print("  [OK] Policy without requirements only sets length")


def run_all_tests():
    """Run all tests."""
    print("=" * 70)
    print("hmacpw - Derivation Test Suite")
    print("=" * 70)
    print()

    tests = [
        test_base62,
        test_base62_index,
        test_stretch,
        test_segment_lengths,
        test_remap_char,
        test_normalize,
        test_classify,
        test_apply_policy,
        test_apply_policy_collision,
        test_golden_vectors,
        test_derive_password,
    ]

    failed = []

    for test in tests:
        try:
            test()
            print()
        except Exception as e:
            print(f"  [FAIL] TEST FAILED: {e}")
            failed.append((test.__name__, e))
            print()

    print("=" * 70)
    if not failed:
        print("[OK] ALL TESTS PASSED!")
    else:
        print(f"[FAIL] {len(failed)} TESTS FAILED:")
        for name, error in failed:
            print(f"  - {name}: {error}")
    print("=" * 70)

    return len(failed) == 0


if __name__ == "__main__":
    import sys
    success = run_all_tests()
    sys.exit(0 if success else 1)
