"""Password hashing and random credential helpers."""

from __future__ import annotations

import secrets
import string

import bcrypt

MIN_BCRYPT_ROUNDS = 10
TEMP_PASSWORD_LENGTH = 12

_TEMP_ALPHABET = string.ascii_letters + string.digits


def hash_password(plaintext: str, rounds: int = MIN_BCRYPT_ROUNDS) -> str:
    """Return a salted bcrypt hash of ``plaintext``."""

    salt = bcrypt.gensalt(rounds=max(rounds, MIN_BCRYPT_ROUNDS))
    return bcrypt.hashpw(plaintext.encode("utf-8"), salt).decode("ascii")


def check_password(plaintext: str, password_hash: str | None) -> bool:
    """Verify a password against a stored hash."""

    if not plaintext or not password_hash:
        return False
    try:
        return bcrypt.checkpw(plaintext.encode("utf-8"), password_hash.encode("ascii"))
    except ValueError:
        # Malformed hash, or a password longer than bcrypt accepts.
        return False


def generate_temporary_password(length: int = TEMP_PASSWORD_LENGTH) -> str:
    """Return a random alphanumeric password containing letters and digits."""

    while True:
        candidate = "".join(secrets.choice(_TEMP_ALPHABET) for _ in range(length))
        if any(c.isdigit() for c in candidate) and any(c.isalpha() for c in candidate):
            return candidate


def generate_verification_token() -> str:
    return secrets.token_urlsafe(32)
