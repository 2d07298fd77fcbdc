# keyreg/generator.py
"""
Random key minting with a bounded collision budget.

A candidate is `length` symbols drawn uniformly, with replacement, from
the key alphabet. Candidates already in the key set are collisions.
The budget covers the whole batch: once `max_tries` collisions have
happened the batch is abandoned.
"""

import logging
import random
from typing import List, Optional, Sequence

from .alphabet import SYMBOLS
from .errors import InvalidConfiguration, RegistrySaturated
from .keyset import KeySet

logger = logging.getLogger(__name__)

MAX_KEYS_TO_TRY = 10
MIN_KEY_LENGTH = 2


class KeyGenerator:
    """
    Mints keys that are unique against a KeySet.

    Args:
        max_tries: Total collisions tolerated per batch
        rng: random.Random-compatible source (SystemRandom by default)
        symbols: Alphabet to draw from
    """

    def __init__(
        self,
        max_tries: int = MAX_KEYS_TO_TRY,
        rng: Optional[random.Random] = None,
        symbols: Sequence[str] = SYMBOLS,
    ):
        if max_tries < 1:
            raise InvalidConfiguration(f"max_tries must be >= 1, got {max_tries}")
        self.max_tries = max_tries
        self.rng = rng or random.SystemRandom()
        self.symbols = list(symbols)

    def candidate(self, length: int) -> str:
        return "".join(self.rng.choice(self.symbols) for _ in range(length))

    def generate_keys(self, count: int, length: int, existing: KeySet) -> List[str]:
        """
        Mint `count` new keys of `length` symbols.

        Each key is added to `existing` as soon as it is minted, so a
        batch never collides with itself.

        Returns:
            The new keys in generation order

        Raises:
            InvalidConfiguration: length < 2 or count < 1
            RegistrySaturated: the collision budget ran out
        """
        if length < MIN_KEY_LENGTH:
            raise InvalidConfiguration(
                f"key length must be >= {MIN_KEY_LENGTH}, got {length}"
            )
        if count < 1:
            raise InvalidConfiguration(f"key count must be >= 1, got {count}")

        minted: List[str] = []
        collisions = 0
        while len(minted) < count:
            key = self.candidate(length)
            if key in existing:
                collisions += 1
                logger.debug(f"Collision on {key} ({collisions}/{self.max_tries})")
                if collisions >= self.max_tries:
                    raise RegistrySaturated(minted, count, self.max_tries)
                continue
            existing.add(key)
            minted.append(key)
        return minted

