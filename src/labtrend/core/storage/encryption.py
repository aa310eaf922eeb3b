"""Fernet encryption of the persisted metric snapshot.

The snapshot is serialized to compact JSON and sealed as one Fernet token.
``ENCRYPTION_KEY`` may list several comma-separated keys: the first one
encrypts, all of them are tried on decrypt, so a key can be rotated by
prepending the new one and re-saving.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from cryptography.fernet import Fernet, InvalidToken, MultiFernet

logger = logging.getLogger(__name__)


class EncryptionError(Exception):
    """Raised when a key is unusable or a snapshot cannot be sealed/opened."""


def _parse_keys(key: str) -> list[Fernet]:
    parts = [part.strip() for part in key.split(",") if part.strip()]
    if not parts:
        raise EncryptionError("Encryption key must not be empty")
    fernets = []
    for position, part in enumerate(parts):
        try:
            fernets.append(Fernet(part.encode("ascii")))
        except (ValueError, TypeError, UnicodeEncodeError) as exc:
            raise EncryptionError(f"Invalid encryption key at position {position}: {exc}") from exc
    return fernets


class SnapshotEncryptor:
    """Seals and opens JSON snapshots.

    Usage::

        encryptor = SnapshotEncryptor(SnapshotEncryptor.generate_key())
        token = encryptor.encrypt([{"name": "TSH", "latestValue": 2.76}])
        assert encryptor.decrypt(token)[0]["name"] == "TSH"
    """

    def __init__(self, key: str) -> None:
        """Configure the encryption keys.

        Args:
            key: One Fernet key, or several separated by commas (newest first).

        Raises:
            EncryptionError: If no key is given or any key is malformed.
        """
        fernets = _parse_keys(key or "")
        self._fernet = MultiFernet(fernets)
        self.key_count = len(fernets)
        if self.key_count > 1:
            logger.info("Snapshot encryption configured with %d keys (rotation)", self.key_count)

    def encrypt(self, data: Any) -> str:
        """Serialize ``data`` to JSON and seal it. ``None`` seals to ``""``.

        Raises:
            EncryptionError: If ``data`` is not JSON-serializable.
        """
        if data is None:
            return ""
        try:
            document = json.dumps(data, separators=(",", ":"))
        except (TypeError, ValueError) as exc:
            raise EncryptionError(f"Encryption failed: {exc}") from exc
        return self._fernet.encrypt(document.encode("utf-8")).decode("ascii")

    def decrypt(self, token: str) -> Any:
        """Open a token produced by :meth:`encrypt` with any configured key.

        Raises:
            EncryptionError: If no key opens the token or it holds no JSON.
        """
        if not token:
            return None
        try:
            document = self._fernet.decrypt(token.encode("ascii"))
        except (InvalidToken, UnicodeEncodeError) as exc:
            raise EncryptionError("Decryption failed: invalid token or wrong key") from exc
        try:
            return json.loads(document)
        except (ValueError, UnicodeDecodeError) as exc:
            raise EncryptionError(f"Decryption failed: {exc}") from exc

    @staticmethod
    def generate_key() -> str:
        return Fernet.generate_key().decode("ascii")
