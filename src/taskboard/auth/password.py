"""Password hashing utilities.

Learn: bcrypt salts every hash and stores its own work factor in the
hash string ("$2b$12$..."). The work factor for new hashes comes from
TASKBOARD_BCRYPT_ROUNDS. When that setting is raised, existing hashes
keep verifying, and login re-hashes the password at the new cost
(see needs_rehash).
"""

import bcrypt

from taskboard.config import settings

BCRYPT_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    # bcrypt ignores everything past 72 bytes; newer releases refuse it.
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """Hash a password with bcrypt at the configured cost."""
    if not password:
        raise ValueError("Password cannot be empty")
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(_encode(password), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a stored bcrypt hash. Malformed hashes fail."""
    try:
        return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
    except (ValueError, TypeError, AttributeError):
        return False


def hash_rounds(password_hash: str) -> int | None:
    """Work factor recorded in a bcrypt hash, or None if it isn't one."""
    parts = password_hash.split("$")
    # "", "2b", "12", "<salt+digest>"
    if len(parts) != 4 or not parts[2].isdigit():
        return None
    return int(parts[2])


def needs_rehash(password_hash: str) -> bool:
    """True when the hash was made at a different cost than configured."""
    return hash_rounds(password_hash) != settings.bcrypt_rounds
