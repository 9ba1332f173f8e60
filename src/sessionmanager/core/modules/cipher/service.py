"""AES-256-CBC encryption of account passwords.

Passwords are stored encrypted rather than hashed so the directory can hand
back the original value for comparison. Each call to :meth:`encrypt` draws a
fresh random IV, so equal passwords never share a ciphertext.
"""

import base64
import os

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from sessionmanager.config import Config
from sessionmanager.core.core import Service

KEY_SIZE = 32  # AES-256
IV_SIZE = 16  # AES block size


class CipherService(Service):
    """Symmetric cipher with a fixed key taken from config."""

    def __init__(self, config: Config) -> None:
        super().__init__(config)
        self._key = base64.b64decode(config.aes_key)
        if len(self._key) != KEY_SIZE:
            raise ValueError(f"aes_key must decode to {KEY_SIZE} bytes, got {len(self._key)}")

    def encrypt(self, plaintext: str) -> tuple[str, str]:
        """Encrypt *plaintext*, returning base64 ``(cipher_text, iv)``."""
        iv = os.urandom(IV_SIZE)
        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()
        encryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).encryptor()
        cipher_bytes = encryptor.update(padded) + encryptor.finalize()
        return base64.b64encode(cipher_bytes).decode("ascii"), base64.b64encode(iv).decode("ascii")

    def decrypt(self, cipher_text: str, iv: str) -> str:
        """Reverse :meth:`encrypt`.

        Raises:
            ValueError: If the key is wrong or the data is corrupted (bad padding or base64).
        """
        decryptor = Cipher(algorithms.AES(self._key), modes.CBC(base64.b64decode(iv))).decryptor()
        padded = decryptor.update(base64.b64decode(cipher_text)) + decryptor.finalize()
        unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
        return (unpadder.update(padded) + unpadder.finalize()).decode("utf-8")
