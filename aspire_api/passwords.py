"""Bcrypt password hashing for admin accounts."""

import bcrypt

BCRYPT_ROUNDS = 12


def hash_password(password: str) -> str:
    """Return the bcrypt hash of *password* as text."""
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, encoded: str) -> bool:
    """Check *password* against a stored bcrypt hash; malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), encoded.encode("utf-8"))
    except ValueError:
        return False
