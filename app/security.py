import base64
import hashlib
import hmac
import os

from cryptography.fernet import Fernet

HASH_SCHEME = "pbkdf2_sha256"
PASSWORD_ITERATIONS = 200_000
RECORD_KEY_ITERATIONS = 250_000


def new_salt() -> str:
    return base64.urlsafe_b64encode(os.urandom(16)).decode("utf-8")


def _pbkdf2(secret: str, salt: str, iterations: int) -> bytes:
    return hashlib.pbkdf2_hmac(
        "sha256",
        secret.encode("utf-8"),
        base64.urlsafe_b64decode(salt.encode("utf-8")),
        iterations,
        dklen=32,
    )


def hash_password(password: str, salt: str, iterations: int = PASSWORD_ITERATIONS) -> str:
    """Stored form ``pbkdf2_sha256$<iterations>$<digest>``.

    The iteration count travels with the hash, so raising it later does not lock
    out existing accounts.
    """
    digest = base64.urlsafe_b64encode(_pbkdf2(password, salt, iterations)).decode("utf-8")
    return f"{HASH_SCHEME}${iterations}${digest}"


def check_password(password: str, salt: str, stored_hash: str) -> bool:
    scheme, _, rest = stored_hash.partition("$")
    iterations, _, _ = rest.partition("$")
    if scheme != HASH_SCHEME or not iterations.isdigit():
        return False
    return hmac.compare_digest(hash_password(password, salt, int(iterations)), stored_hash)


def record_cipher(password: str, salt: str, pepper: str) -> Fernet:
    """Fernet used for the account's measurement payloads.

    Derived from the password so rows stay unreadable without signing in.
    """
    return Fernet(base64.urlsafe_b64encode(_pbkdf2(f"{password}{pepper}", salt, RECORD_KEY_ITERATIONS)))


def account_ref(email: str) -> str:
    """Short stable reference to an account for log lines."""
    return hashlib.sha256(email.encode("utf-8")).hexdigest()[:10]
