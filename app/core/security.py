import hashlib
import hmac
import secrets

from fastapi import Request

from app.core.config import settings
from app.core.exceptions import UnauthorizedError, ValidationError

PBKDF2_ITERATIONS = 100_000
SALT_BYTES = 16
KEY_BYTES = 32

SESSION_AUTH_KEY = "isAuthenticated"

def _derive(password: str, salt: bytes) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITERATIONS, dklen=KEY_BYTES)

def hash_password(password: str) -> str:
    """
    PBKDF2-HMAC-SHA256 with a random 16 byte salt.
    Returns 'hex(salt):hex(derived_key)', the format stored in settings.json.
    """
    salt = secrets.token_bytes(SALT_BYTES)
    return f"{salt.hex()}:{_derive(password, salt).hex()}"

def verify_password(stored_password: str, candidate: str) -> bool:
    """
    Checks `candidate` against a stored 'salt:hash' string.
    Anything malformed (missing colon, bad hex, empty) simply fails.
    """
    if not stored_password or candidate is None:
        return False

    salt_hex, sep, hash_hex = stored_password.partition(":")
    if not sep or not salt_hex or not hash_hex:
        return False

    try:
        salt = bytes.fromhex(salt_hex)
        expected = bytes.fromhex(hash_hex)
    except ValueError:
        return False

    return hmac.compare_digest(_derive(candidate, salt), expected)

def validate_new_password(password: str) -> None:
    if not password or len(password) < settings.MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters long")

def is_admin(request: Request) -> bool:
    return bool(request.session.get(SESSION_AUTH_KEY))

async def require_admin(request: Request) -> bool:
    """
    Dependency guarding the report endpoints.
    The flag is set on the signed session cookie by /api/auth/login.
    """
    if not is_admin(request):
        raise UnauthorizedError("Not authenticated")
    return True
