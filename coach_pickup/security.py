"""
Security utilities: password hashing (PBKDF2) and signed auth tokens.
Tokens travel in the auth cookie or an `Authorization: Bearer` header.
"""

import hmac
import base64
import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Request

from . import config


COOKIE_NAME = "auth_token"


def _get_secret() -> bytes:
    return config.get_secret_key().encode("utf-8")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def hash_password(password: str, iterations: int = 200_000) -> str:
    salt = secrets.token_bytes(16)
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return f"pbkdf2_sha256${iterations}${base64.b64encode(salt).decode()}${base64.b64encode(dk).decode()}"


def verify_password(password: str, stored: Optional[str]) -> bool:
    if not stored:
        return False
    try:
        algorithm, iterations_s, salt_b64, hash_b64 = stored.split("$")
        iterations = int(iterations_s)
        salt = base64.b64decode(salt_b64)
        expected = base64.b64decode(hash_b64)
    except ValueError:
        return False
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return hmac.compare_digest(dk, expected)


def sign_token(user_id: str, days_valid: Optional[int] = None) -> str:
    if days_valid is None:
        days_valid = config.get_token_days_valid()
    exp = int((_now() + timedelta(days=days_valid)).timestamp())
    payload = f"{user_id}.{exp}".encode("utf-8")
    sig = hmac.new(_get_secret(), payload, hashlib.sha256).digest()
    return f"{user_id}.{exp}.{base64.urlsafe_b64encode(sig).decode()}"


def verify_token(token: str) -> Optional[str]:
    try:
        user_id, exp_s, sig_b64 = token.split(".")
        exp = int(exp_s)
        sig = base64.urlsafe_b64decode(sig_b64.encode())
    except ValueError:
        return None
    if int(_now().timestamp()) > exp:
        return None
    payload = f"{user_id}.{exp_s}".encode("utf-8")
    expected_sig = hmac.new(_get_secret(), payload, hashlib.sha256).digest()
    if not hmac.compare_digest(sig, expected_sig):
        return None
    return user_id


def token_from_request(request: Request) -> Optional[str]:
    header = request.headers.get("authorization")
    if header and header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return request.cookies.get(COOKIE_NAME)
