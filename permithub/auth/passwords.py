import hashlib
import hmac
import secrets
from typing import Optional

from passlib.context import CryptContext

from ..config import settings


pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

# scrypt parameters; stored values look like "<hex digest>.<hex salt>"
SCRYPT_N = 16384
SCRYPT_R = 8
SCRYPT_P = 1
SCRYPT_DKLEN = 64


def _scrypt(plain: str, salt: str) -> bytes:
    return hashlib.scrypt(
        plain.encode("utf-8"),
        salt=salt.encode("utf-8"),
        n=SCRYPT_N,
        r=SCRYPT_R,
        p=SCRYPT_P,
        dklen=SCRYPT_DKLEN,
    )


def get_password_hash(password: str, scheme: Optional[str] = None) -> str:
    scheme = scheme or settings.password_scheme
    if scheme == "pbkdf2_sha256":
        return pwd_context.hash(password)
    if scheme != "scrypt":
        raise ValueError(f"Unknown password scheme: {scheme}")
    salt = secrets.token_hex(16)
    return f"{_scrypt(password, salt).hex()}.{salt}"


def verify_password(plain: str, hashed: str) -> bool:
    if not hashed:
        return False
    # Modular crypt strings ($pbkdf2-sha256$...) belong to passlib
    if hashed.startswith("$"):
        try:
            return pwd_context.verify(plain, hashed)
        except (ValueError, TypeError):
            return False
    digest_hex, sep, salt = hashed.partition(".")
    if not sep or not salt:
        return False
    try:
        expected = bytes.fromhex(digest_hex)
    except ValueError:
        return False
    if len(expected) != SCRYPT_DKLEN:
        return False
    return hmac.compare_digest(expected, _scrypt(plain, salt))
