"""Admin identity: signed bearer tokens and credential checks."""

from __future__ import annotations

import hmac

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from config import ADMIN_EMAIL, ADMIN_IMPORT_KEY, ADMIN_PASSWORD, SECRET_KEY, TOKEN_MAX_AGE_SECONDS
from faith_finder.errors import Forbidden, Unauthorized

_SALT = "faith-finder-admin"


def _serializer(secret_key: str = SECRET_KEY) -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(secret_key, salt=_SALT)


def _same_secret(given: str | None, expected: str) -> bool:
    if given is not None and not isinstance(given, str):
        return False
    # compare_digest only accepts ASCII str, so compare UTF-8 bytes
    return hmac.compare_digest((given or "").encode("utf-8"), expected.encode("utf-8"))


def is_admin_email(email: str | None, admin_email: str = ADMIN_EMAIL) -> bool:
    return bool(email) and email.strip().lower() == admin_email.strip().lower()


def check_credentials(
    email: str,
    password: str,
    *,
    admin_email: str = ADMIN_EMAIL,
    admin_password: str = ADMIN_PASSWORD,
) -> str:
    """Return the normalized admin email if the credentials match.

    Raises:
        Unauthorized: If no admin password is configured or it doesn't match.
        Forbidden: If the email is not the configured admin identity.
    """
    if not admin_password or not _same_secret(password, admin_password):
        raise Unauthorized("Incorrect email or password")
    if not is_admin_email(email, admin_email):
        raise Forbidden(f"Only {admin_email} can access admin tools.")
    return email.strip().lower()


def issue_token(email: str, secret_key: str = SECRET_KEY) -> str:
    return _serializer(secret_key).dumps({"email": email})


def verify_token(
    token: str,
    *,
    secret_key: str = SECRET_KEY,
    max_age: int = TOKEN_MAX_AGE_SECONDS,
) -> str:
    """Return the email a token was issued to.

    Raises:
        Unauthorized: If the token is malformed, tampered with or expired.
    """
    try:
        data = _serializer(secret_key).loads(token, max_age=max_age)
    except SignatureExpired:
        raise Unauthorized("Session expired, please sign in again") from None
    except BadSignature:
        raise Unauthorized("Invalid token") from None
    email = data.get("email") if isinstance(data, dict) else None
    if not email:
        raise Unauthorized("Invalid token")
    return email


def bearer_token(header: str | None) -> str | None:
    if not header:
        return None
    scheme, _, value = header.partition(" ")
    if scheme.lower() != "bearer" or not value.strip():
        return None
    return value.strip()


def check_admin_key(provided: str | None, expected: str = ADMIN_IMPORT_KEY) -> None:
    """Enforce the shared job secret when one is configured.

    Raises:
        Unauthorized: If a key is configured and ``provided`` doesn't match.
    """
    if expected and not _same_secret((provided or "").strip(), expected):
        raise Unauthorized("Unauthorized")
