"""Payout PIN hashing using bcrypt.

Uses the ``bcrypt`` library directly (>=4.0). The PIN is only ever compared
server-side against the stored hash; the hash is never serialized to clients.
"""

import bcrypt


def hash_pin(plain: str) -> str:
    """Hash a plain-text PIN with bcrypt. Returns a utf-8 hash string."""
    hashed_bytes: bytes = bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt())
    return hashed_bytes.decode("utf-8")


def verify_pin(plain: str, hashed: str) -> bool:
    """Verify a plain-text PIN against a bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False
