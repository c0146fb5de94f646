"""
Alias generation for short links.

Aliases are a hash of (long URL + process-wide counter), base62 encoded to a
fixed width. The generator is pure apart from its counter: it never touches
the store, so uniqueness against existing links is checked by the caller.
"""

import hashlib
import itertools
import random
import re
import threading

from linkpulse.errors import InvalidAliasFormat

CUSTOM_ALIAS_PATTERN = re.compile(r"^[A-Za-z0-9_-]{4,20}$")

# Paths served by fixed routes; a link under one of these could never redirect
RESERVED_ALIASES = frozenset({"health", "docs", "redoc", "overall", "topic", "shorten", "analytics"})


class AliasCounter:
    """Strictly increasing counter, safe to share between threads"""

    def __init__(self, start: int = 0):
        self._values = itertools.count(start)
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            return next(self._values)


class AliasGenerator:
    """
    Hash-based alias generator.

    Process:
    1. Take the next counter value
    2. SHA-256 of seed + counter
    3. First 10 hex digits (40 bits) as an integer
    4. Base62 encode, left-pad with random symbols to the target length

    40 bits always fit in 7 base62 symbols (62^7 > 2^41), so the encoded
    value is never truncated. Padding only fixes the length; it is not
    counted on for uniqueness.
    """

    BASE62_CHARS = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
    DIGEST_HEX_DIGITS = 10

    def __init__(self, length: int = 7, counter: AliasCounter = None):
        if 62 ** length < 16 ** self.DIGEST_HEX_DIGITS:
            raise ValueError(f"Alias length {length} cannot hold a {self.DIGEST_HEX_DIGITS * 4}-bit digest")
        self.length = length
        self.counter = counter or AliasCounter()
        self._random = random.SystemRandom()

    def generate(self, seed: str) -> str:
        """Generate a candidate alias for `seed` (normally the long URL)"""
        material = f"{seed}{self.counter.next()}".encode("utf-8")
        digest = hashlib.sha256(material).hexdigest()
        encoded = self._base62_encode(int(digest[:self.DIGEST_HEX_DIGITS], 16))

        padding = "".join(
            self._random.choice(self.BASE62_CHARS)
            for _ in range(self.length - len(encoded))
        )
        return padding + encoded

    @staticmethod
    def is_valid_custom(candidate: str) -> bool:
        return (
            bool(candidate)
            and CUSTOM_ALIAS_PATTERN.fullmatch(candidate) is not None
            and candidate.lower() not in RESERVED_ALIASES
        )

    def validate_custom(self, candidate: str) -> bool:
        """
        Validate a caller-supplied alias.

        Raises:
            InvalidAliasFormat: unless 4-20 letters, digits, '-' or '_'
                and not a reserved route name
        """
        if not self.is_valid_custom(candidate):
            raise InvalidAliasFormat(
                "Custom alias must be 4-20 characters of letters, digits, '-' or '_' "
                "and must not be a reserved name"
            )
        return True

    def _base62_encode(self, number: int) -> str:
        if number == 0:
            return self.BASE62_CHARS[0]

        result = ""
        while number > 0:
            result = self.BASE62_CHARS[number % 62] + result
            number //= 62

        return result
