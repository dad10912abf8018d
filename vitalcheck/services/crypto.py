"""
Encryption at rest for persisted health data.

A master Fernet key comes from configuration. Each user gets a key derived
from it with HKDF-SHA256, using the user id as context, so a blob written for
one user cannot be decrypted as another user's data.
"""

import base64

import structlog
from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from vitalcheck.errors import DecryptionError, EncryptionError

logger = structlog.get_logger(__name__)

_KDF_SALT = b"vitalcheck.health-data.v1"


class HealthDataCipher:
    """Encrypts and decrypts per-user health blobs."""

    def __init__(self, master_key: str | bytes) -> None:
        key = master_key.encode() if isinstance(master_key, str) else master_key
        # Validates the key format up front
        Fernet(key)
        self._master = base64.urlsafe_b64decode(key)
        self.logger = logger.bind(component="health_data_cipher")

    @staticmethod
    def generate_key() -> str:
        return Fernet.generate_key().decode()

    def _fernet_for(self, user_id: str) -> Fernet:
        hkdf = HKDF(
            algorithm=hashes.SHA256(),
            length=32,
            salt=_KDF_SALT,
            info=user_id.encode(),
        )
        return Fernet(base64.urlsafe_b64encode(hkdf.derive(self._master)))

    def encrypt(self, user_id: str, plaintext: bytes) -> bytes:
        try:
            return self._fernet_for(user_id).encrypt(plaintext)
        except (TypeError, ValueError) as e:
            self.logger.critical("health_data_encryption_failed", user_id=user_id, error=str(e))
            raise EncryptionError("Failed to encrypt health data") from e

    def decrypt(self, user_id: str, token: bytes) -> bytes:
        try:
            return self._fernet_for(user_id).decrypt(token)
        except (InvalidToken, TypeError, ValueError) as e:
            self.logger.critical("health_data_decryption_failed", user_id=user_id, error=str(e))
            raise DecryptionError("Failed to decrypt health data") from e
