"""
Credential utilities — project API keys and principal passwords.

Security notes:
  • Project API keys are opaque random strings. The widget embeds them in
    public pages, so they identify a tenant rather than authenticate it;
    they are stored as-is and matched exactly (case-sensitive).
  • Passwords are hashed with bcrypt. bcrypt only reads the first 72
    bytes, so longer inputs are truncated explicitly before hashing.
"""

import secrets

import bcrypt

_KEY_BYTES = 16  # 32 hex chars = 128 bits
_BCRYPT_MAX_BYTES = 72


def generate_api_key() -> str:
    """Return a fresh project API key."""
    return secrets.token_hex(_KEY_BYTES)


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """Hash a plaintext password for storage."""
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plaintext password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash in the DB — treat as a mismatch
        return False
