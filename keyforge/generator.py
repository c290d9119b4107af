"""
generator.py - Random password generation from configurable character classes
"""
import logging
import random
import secrets
import string
from dataclasses import dataclass

from .config import DEFAULT_LENGTH, MAX_LENGTH, MIN_LENGTH

logger = logging.getLogger(__name__)

UPPERCASE = string.ascii_uppercase
LOWERCASE = string.ascii_lowercase
DIGITS = string.digits
SYMBOLS = "!@#$%^&*()_+[]{}|;:,.<>?"


class ValidationError(ValueError):
    """Raised when generation options cannot produce a password."""


def clamp_length(length: int) -> int:
    """Clamp a requested length into the supported [MIN_LENGTH, MAX_LENGTH] range."""
    return min(MAX_LENGTH, max(MIN_LENGTH, length))


@dataclass(frozen=True)
class GenerationOptions:
    """Character classes and length used for a single generation."""

    use_uppercase: bool = True
    use_lowercase: bool = True
    use_digits: bool = True
    use_symbols: bool = True
    length: int = DEFAULT_LENGTH

    def __post_init__(self):
        if isinstance(self.length, bool) or not isinstance(self.length, int):
            raise ValidationError(f"Password length must be a whole number, got {self.length!r}")
        # frozen dataclass, so bypass __setattr__ for the clamp
        object.__setattr__(self, 'length', clamp_length(self.length))

    def alphabet(self) -> str:
        """
        Build the usable alphabet in canonical order.

        Returns:
            Concatenation of the enabled class strings (may be empty)
        """
        pools = []
        if self.use_uppercase:
            pools.append(UPPERCASE)
        if self.use_lowercase:
            pools.append(LOWERCASE)
        if self.use_digits:
            pools.append(DIGITS)
        if self.use_symbols:
            pools.append(SYMBOLS)
        return "".join(pools)


def strong_random_available() -> bool:
    """
    Check whether the operating system's cryptographic random source works.

    Checked on every call; nothing is cached.
    """
    try:
        secrets.token_bytes(1)
    except NotImplementedError:
        return False
    return True


def random_index(upper: int) -> int:
    """
    Draw a uniformly random integer in [0, upper).

    Uses the `secrets` module when the OS provides a cryptographic source.
    When it does not, falls back to the Mersenne Twister in `random`, which
    is NOT suitable for security-sensitive output. The fallback is logged
    as a warning each time it is taken.

    Args:
        upper: Exclusive upper bound, must be positive

    Returns:
        Random index into a sequence of length `upper`
    """
    if upper <= 0:
        raise ValueError("upper bound must be positive")

    if strong_random_available():
        return secrets.randbelow(upper)

    logger.warning("No cryptographic random source available, using non-cryptographic fallback")
    return random.randrange(upper)


def generate_password(options: GenerationOptions) -> str:
    """
    Generate a random password from the enabled character classes.

    Each character is an independent draw with replacement, so repeated
    characters are expected.

    Args:
        options: Enabled character classes and target length

    Returns:
        A string of exactly `options.length` characters

    Raises:
        ValidationError: If no character class is enabled
    """
    characters = options.alphabet()
    if not characters:
        raise ValidationError("Select at least one character type.")

    return "".join(characters[random_index(len(characters))] for _ in range(options.length))
