# keyreg/alphabet.py
"""
Symbol set for random keys.

Vowels are left out so minted keys never spell words.
"""

import string
from typing import Sequence

VOWELS = "aeiouAEIOU"

SYMBOLS: Sequence[str] = tuple(
    c for c in string.ascii_letters + string.digits if c not in VOWELS
)


def key_space(length: int) -> int:
    """Number of distinct keys of the given length."""
    return len(SYMBOLS) ** length
