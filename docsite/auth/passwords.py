"""
Password hashing with bcrypt.

Hashes are self-describing ($2b$<cost>$<salt+digest>) so nothing besides
the hash string needs to be stored.
"""

import bcrypt

from ..utils.exceptions import HashingError
from ..utils.logger import get_logger

logger = get_logger(__name__)

SALT_ROUNDS = 12
# bcrypt only reads the first 72 bytes; newer releases reject longer input
MAX_PASSWORD_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:MAX_PASSWORD_BYTES]


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Raises:
        HashingError: If the password is not a string or bcrypt fails
    """
    if not isinstance(password, str):
        raise HashingError("Failed to hash password")
    try:
        salt = bcrypt.gensalt(rounds=SALT_ROUNDS)
        return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")
    except (ValueError, TypeError) as e:
        logger.error("Error hashing password", error=str(e))
        raise HashingError("Failed to hash password") from e


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash. Never raises; malformed input is False."""
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except Exception as e:
        logger.warning("Error verifying password", error=type(e).__name__)
        return False
