"""Short identifier generation.

Identifiers are derived from the long URL itself instead of a shared
counter: a 64-bit hash of the URL is perturbed by a quadratic probe of the
retry offset and the low digits of its base-62 form become the id.

Example:
    >>> generate_identifier("https://example.com", 0) == generate_identifier("https://example.com", 0)
    True
"""

import string

import xxhash

ALPHABET = string.digits + string.ascii_lowercase + string.ascii_uppercase
BASE = len(ALPHABET)
IDENTIFIER_LENGTH = 6

_UINT64_MASK = (1 << 64) - 1


def quadratic_probe(offset: int) -> int:
    """Return the hash displacement for the given retry offset.

    h(k, i) = h(k) + i/2 + i^2/2 (mod 2^64)
    """
    if offset < 0:
        raise ValueError(f"Offset must be a non-negative integer (given value: {offset}).")
    return (offset + offset * offset) // 2


def generate_identifier(long_url: str, offset: int = 0) -> str:
    """Generate the candidate short identifier for a long URL.

    Args:
        long_url: The URL being shortened
        offset: Collision retry number, starting at 0

    Returns:
        str: IDENTIFIER_LENGTH characters from ALPHABET

    The same (long_url, offset) pair always produces the same identifier.
    Only the IDENTIFIER_LENGTH least significant base-62 digits of the
    probed hash are kept, least significant digit first.
    """
    hash_value = xxhash.xxh64_intdigest(long_url.encode("utf-8"))
    hash_value = (hash_value + quadratic_probe(offset)) & _UINT64_MASK

    chars = []
    for _ in range(IDENTIFIER_LENGTH):
        hash_value, digit = divmod(hash_value, BASE)
        chars.append(ALPHABET[digit])
    return "".join(chars)
