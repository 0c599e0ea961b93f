"""
Password hashing and institutional email helpers.
"""

from passlib.context import CryptContext

from bunkride.app.core.config import settings

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def is_institutional_email(email: str) -> bool:
    """True when the address ends with one of the configured suffixes."""
    email = email.strip().lower()
    return any(email.endswith(suffix.lower()) for suffix in settings.institutional_email_suffixes)


def derive_college(email: str) -> str:
    """
    Derive the college partition key from an email address.

    The key is the first label of the domain, lower-cased:
    ``user@example.edu`` -> ``example``.
    """
    _, _, domain = email.strip().lower().rpartition("@")
    if not domain:
        raise ValueError(f"Cannot derive college from email: {email!r}")
    return domain.split(".")[0]
