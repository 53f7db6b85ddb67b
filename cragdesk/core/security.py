"""Password hashing, the legacy digest, and refresh-token secret material."""

import base64
import binascii
import hashlib
import hmac
import secrets
from functools import lru_cache

import bcrypt

# Default bcrypt cost (log rounds); overridden by Settings.BCRYPT_ROUNDS.
BCRYPT_ROUNDS = 12

# Min/max lengths for username and password validation.
USERNAME_MIN_LEN = 1
USERNAME_MAX_LEN = 255
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128

# Refresh secrets are "<selector>.<verifier>"; only the selector is stored in clear.
REFRESH_SELECTOR_BYTES = 12
REFRESH_VERIFIER_BYTES = 32
REFRESH_SEPARATOR = "."


def normalize_username(username: str) -> str:
    return username.strip().lower()


def _pw_bytes(plain_password: str) -> bytes:
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    return plain_password.encode("utf-8")[:72]


def hash_password(plain_password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    return bcrypt.hashpw(_pw_bytes(plain_password), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(_pw_bytes(plain_password), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


@lru_cache
def dummy_password_hash(rounds: int = BCRYPT_ROUNDS) -> str:
    """A throwaway hash compared against when the username does not exist."""
    return hash_password(secrets.token_urlsafe(16), rounds=rounds)


def legacy_password_digest(salt_b64: str, plain_password: str) -> str:
    """
    Digest used by the legacy client-side scheme.

    base64( SHA-256( base64decode(salt) || utf8(password) ) )
    Raises ValueError if the stored salt is not valid base64.
    """
    try:
        salt = base64.b64decode(salt_b64, validate=True)
    except binascii.Error as exc:
        raise ValueError("legacy salt is not valid base64") from exc
    digest = hashlib.sha256(salt + plain_password.encode("utf-8")).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_legacy_password(plain_password: str, salt_b64: str, stored_hash: str) -> bool:
    """Constant-time comparison of the legacy digest against the stored value."""
    try:
        candidate = legacy_password_digest(salt_b64, plain_password)
    except ValueError:
        return False
    return hmac.compare_digest(candidate.encode("ascii"), stored_hash.encode("utf-8"))


def generate_refresh_secret() -> tuple[str, str, str]:
    """
    Create a new refresh secret.

    Returns (raw_secret, selector, verifier_hash). Only the selector and the
    hash are persisted; raw_secret goes to the client and nowhere else.
    """
    selector = secrets.token_hex(REFRESH_SELECTOR_BYTES)
    verifier = secrets.token_hex(REFRESH_VERIFIER_BYTES)
    return f"{selector}{REFRESH_SEPARATOR}{verifier}", selector, hash_refresh_verifier(verifier)


def split_refresh_secret(raw_secret: str) -> tuple[str, str] | None:
    """Split a presented secret into (selector, verifier), or None if malformed."""
    selector, sep, verifier = raw_secret.strip().partition(REFRESH_SEPARATOR)
    if not sep:
        return None
    if len(selector) != REFRESH_SELECTOR_BYTES * 2 or len(verifier) != REFRESH_VERIFIER_BYTES * 2:
        return None
    try:
        bytes.fromhex(selector)
        bytes.fromhex(verifier)
    except ValueError:
        return None
    return selector.lower(), verifier.lower()


def hash_refresh_verifier(verifier: str) -> str:
    # 256 random bits need no slow hash; SHA-256 keeps lookups cheap.
    return hashlib.sha256(verifier.encode("ascii")).hexdigest()


def verify_refresh_verifier(verifier: str, stored_hash: str) -> bool:
    return hmac.compare_digest(hash_refresh_verifier(verifier), stored_hash)
