"""Account number generation and check-digit validation.

An account number is 13 ASCII digits: a random 12-digit body followed by a
Luhn-style check digit computed over that body. The generator keeps no state
and knows nothing about persisted accounts, so two calls may collide; callers
that need uniqueness check the store and draw again.
"""
from __future__ import annotations

import random
import secrets
from typing import Any, Optional

ACCOUNT_NUMBER_LENGTH = 13

_BODY_MIN = 10**11
_BODY_MAX = 10**12 - 1


def calculate_check_digit(body: str) -> int:
    """Return the check digit for a string of decimal digits.

    Digits are read right to left; every digit at an even zero-based
    position is doubled, less 9 when the result exceeds 9.
    """
    total = 0
    for index, char in enumerate(reversed(body)):
        digit = int(char)
        if index % 2 == 0:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return (10 - (total % 10)) % 10


class AccountNumberGenerator:
    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng or secrets.SystemRandom()

    def generate(self) -> str:
        body = str(self._rng.randint(_BODY_MIN, _BODY_MAX))
        return f"{body}{calculate_check_digit(body)}"

    @staticmethod
    def is_valid(number: Any) -> bool:
        """Check an externally supplied account number.

        Anything other than a string of exactly 13 ASCII digits is invalid;
        this never raises.
        """
        if not isinstance(number, str) or len(number) != ACCOUNT_NUMBER_LENGTH:
            return False
        if not (number.isascii() and number.isdigit()):
            return False
        return calculate_check_digit(number[:-1]) == int(number[-1])
