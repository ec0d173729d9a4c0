from __future__ import annotations

import hashlib
import secrets

import bcrypt

from asperda.core.config import get_settings


# bcrypt only looks at the first 72 bytes of a password.
MAX_PASSWORD_BYTES = 72


def hash_password(password: str, *, rounds: int | None = None) -> str:
    salt = bcrypt.gensalt(rounds=rounds or get_settings().password_bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash or an over-long candidate never matches.
        return False


def hash_token(raw_token: str) -> str:
    # Session tokens are high-entropy; a plain SHA-256 is enough for lookup.
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def generate_session_token() -> tuple[str, str]:
    raw_token = f"asp_{secrets.token_urlsafe(32)}"
    return raw_token, hash_token(raw_token)
