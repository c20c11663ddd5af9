from __future__ import annotations

import math
import secrets
import string

TOKEN_ALPHABET = string.digits + string.ascii_lowercase
TOKEN_LENGTH = 64
MIN_TOKEN_ENTROPY_BITS = 256


def token_entropy_bits(length: int) -> float:
    return length * math.log2(len(TOKEN_ALPHABET))


def generate_token(length: int = TOKEN_LENGTH) -> str:
    """Generate an opaque base-36 bearer token from the OS CSPRNG.

    The default length gives ~330 bits of entropy. Lengths that would fall below
    `MIN_TOKEN_ENTROPY_BITS` are rejected.
    """

    if token_entropy_bits(length) < MIN_TOKEN_ENTROPY_BITS:
        raise ValueError(
            f"Token length {length} gives less than {MIN_TOKEN_ENTROPY_BITS} bits of entropy"
        )

    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))
