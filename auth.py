"""Admin password hashing and HTTP basic-auth guard."""

import base64
import hashlib
import hmac
import logging
import os

from fastapi import Depends, HTTPException
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from site_config import get_admin_config

logger = logging.getLogger(__name__)

DEFAULT_SCRYPT_PARAMS = {"N": 16384, "r": 8, "p": 1, "keylen": 64}

basic = HTTPBasic(auto_error=False)


def _params(params: dict | None) -> dict:
    merged = dict(DEFAULT_SCRYPT_PARAMS)
    for key, value in (params or {}).items():
        if key in merged and isinstance(value, int) and not isinstance(value, bool):
            merged[key] = value
    return merged


def _scrypt(password: str, salt: bytes, params: dict) -> bytes:
    n, r, p = params["N"], params["r"], params["p"]
    return hashlib.scrypt(
        password.encode("utf-8"),
        salt=salt,
        n=n,
        r=r,
        p=p,
        dklen=params["keylen"],
        # 128 * r * N bytes plus headroom
        maxmem=256 * r * n + 1024 * 1024,
    )


def hash_password(password: str) -> dict:
    """Fields to paste into the admin block of the site config."""
    salt = os.urandom(16)
    params = dict(DEFAULT_SCRYPT_PARAMS)
    derived = _scrypt(password, salt, params)
    return {
        "passwordSalt": base64.b64encode(salt).decode("ascii"),
        "passwordHash": base64.b64encode(derived).decode("ascii"),
        "scryptParams": params,
    }


def verify_password(password: str, salt_b64: str, hash_b64: str, params: dict | None = None) -> bool:
    try:
        salt = base64.b64decode(salt_b64)
        expected = base64.b64decode(hash_b64)
        derived = _scrypt(password, salt, _params(params))
    except (ValueError, MemoryError) as e:
        logger.error(f"Password verification failed: {e}")
        return False
    return hmac.compare_digest(derived, expected)


def check_credentials(admin: dict, username: str, password: str) -> bool:
    if username != admin["username"]:
        return False
    return verify_password(password, admin["password_salt"], admin["password_hash"], admin["scrypt_params"])


def require_admin(credentials: HTTPBasicCredentials | None = Depends(basic)) -> str:
    admin = get_admin_config()
    if not admin:
        raise HTTPException(status_code=500, detail="Admin is not configured in the site config")
    if credentials is None:
        raise HTTPException(
            status_code=401,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Basic"},
        )
    if not check_credentials(admin, credentials.username, credentials.password):
        raise HTTPException(
            status_code=401,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )
    return credentials.username
