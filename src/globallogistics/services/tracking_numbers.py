"""Tracking number generation."""

import re
import secrets

PREFIX = "GL-"
LENGTH = 10

# Digits and uppercase letters, without the letter O.
ALPHABET = "1234567890ABCDEFGHIJKLMNPQRSTUVWXYZ"

TRACKING_NUMBER_PATTERN = re.compile(rf"^{PREFIX}[{ALPHABET}]{{{LENGTH}}}$")


def generate_tracking_number() -> str:
    """Return a new ``GL-`` tracking number.

    Each of the ten characters is drawn independently and uniformly from
    ``ALPHABET``. Uniqueness is enforced by the store, not here.
    """
    return PREFIX + "".join(secrets.choice(ALPHABET) for _ in range(LENGTH))


def normalise_tracking_number(tracking_number: str) -> str:
    return tracking_number.strip().upper()


def is_valid_tracking_number(tracking_number: str) -> bool:
    return TRACKING_NUMBER_PATTERN.match(tracking_number) is not None
