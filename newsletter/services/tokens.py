"""Confirmation token generation."""

import secrets
import string

TOKEN_LENGTH = 25
TOKEN_ALPHABET = string.ascii_letters + string.digits


def generate_subscription_token() -> str:
    """Return a random 25-character alphanumeric confirmation token."""
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(TOKEN_LENGTH))
