"""Column types that keep clinical free text encrypted at rest."""
import base64
import hashlib
import json
import logging
import os
from typing import Any

from cryptography.fernet import Fernet, InvalidToken
from sqlalchemy.types import TypeDecorator, Text

logger = logging.getLogger("telehealth")


def _build_cipher() -> Fernet:
    """Derive a stable Fernet key from ENCRYPTION_SECRET (or the dev fallback)."""
    secret = os.getenv("ENCRYPTION_SECRET", "dev-encryption-secret-change-me").encode("utf-8")
    key = base64.urlsafe_b64encode(hashlib.sha256(secret).digest())
    return Fernet(key)


_CIPHER = _build_cipher()


def encrypt_str(value: str) -> str:
    return _CIPHER.encrypt(value.encode("utf-8")).decode("utf-8")


def decrypt_str(token: str) -> str:
    return _CIPHER.decrypt(token.encode("utf-8")).decode("utf-8")


class EncryptedText(TypeDecorator):
    """Text column encrypted with Fernet on the way in, decrypted on the way out."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: Any, dialect) -> Any:  # type: ignore[override]
        if value is None:
            return None
        return encrypt_str(value if isinstance(value, str) else str(value))

    def process_result_value(self, value: Any, dialect) -> Any:  # type: ignore[override]
        if value is None:
            return None
        try:
            return decrypt_str(value)
        except InvalidToken:
            # Row written under a different ENCRYPTION_SECRET
            logger.warning({"function": "EncryptedText", "status": "undecryptable"})
            return None


class EncryptedJSON(TypeDecorator):
    """JSON document serialised, then encrypted like EncryptedText."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: Any, dialect) -> Any:  # type: ignore[override]
        if value is None:
            return None
        return encrypt_str(json.dumps(value, default=str))

    def process_result_value(self, value: Any, dialect) -> Any:  # type: ignore[override]
        if value is None:
            return None
        try:
            return json.loads(decrypt_str(value))
        except InvalidToken:
            logger.warning({"function": "EncryptedJSON", "status": "undecryptable"})
            return None
