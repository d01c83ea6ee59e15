"""
Hashing helpers for invitation codes and passwords.

Backed by Django's configured password hashers, so the same algorithm policy
applies to both.
"""

from django.contrib.auth.hashers import check_password, make_password
from django.utils.crypto import get_random_string


class CryptoService:
    """Hash and verify opaque tokens."""

    RANDOM_TOKEN_LENGTH = 17

    @staticmethod
    def hash(plain_text: str) -> str:
        return make_password(plain_text)

    @staticmethod
    def verify_with_hash(plain_text: str, hashed: str) -> bool:
        if not hashed:
            return False
        return check_password(plain_text, hashed)

    @staticmethod
    def random_token() -> str:
        """Random alphanumeric string used as the seed of an invitation code."""
        return get_random_string(CryptoService.RANDOM_TOKEN_LENGTH)
