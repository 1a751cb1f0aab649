"""
VaultSession: The derived key of an unlocked vault.

Provides the public API used by the application layer:
- ``unlock(password, salt)`` / ``unlock_async``: derive the key, open a session
- ``lock()``: zero and drop the key (also on ``with`` exit)
- ``seal_text`` / ``open_text``: seal and serialize arbitrary strings
- ``encrypt_entry`` / ``decrypt_entry``: seal and open vault entries
- ``decrypt_entries``: bulk open with per-entry failure isolation
- ``generate_password``: new password from the configured generator defaults

Security Note:
    Never log passwords, keys, plaintext or ciphertext values. Only log
    entry ids and counts. The key is held in a bytearray so ``lock()`` can
    overwrite it; copies made by the underlying C libraries during a call
    are outside our control.
"""
import time
import logging
from typing import Optional
from collections.abc import Iterable

import orjson
from pydantic import ValidationError

from ..exceptions import (
    DecryptionError,
    MalformedEnvelopeError,
    VaultLockedError,
)
from ..generator import generate_password_from_options
from ..models import EncryptedVaultEntry, VaultEntry
from .config import VaultConfig
from .crypto import (
    KEY_LENGTH,
    SALT_SIZE,
    derive_key,
    derive_key_async,
    seal,
    unseal,
    serialize_envelope,
    deserialize_envelope,
)

logger = logging.getLogger("falconpass.vault")


class VaultSession:
    """Unlocked vault bound to one derived key.

    The key is write-once: it is set at construction and can only be
    cleared afterwards. Seal/open calls may run concurrently against the
    same session since each draws its own random nonce.
    """

    def __init__(
        self,
        key: bytes,
        salt: bytes,
        config: Optional[VaultConfig] = None,
    ):
        if len(key) != KEY_LENGTH:
            raise ValueError(f"Key must be exactly {KEY_LENGTH} bytes")
        if len(salt) != SALT_SIZE:
            raise ValueError(f"Salt must be exactly {SALT_SIZE} bytes")
        self._key: Optional[bytearray] = bytearray(key)
        self._salt = bytes(salt)
        self._config = config or VaultConfig()
        self._last_used = time.monotonic()

    def __repr__(self) -> str:
        state = "unlocked" if self.is_unlocked else "locked"
        return f"<VaultSession [{state}] kdf=v{self._config.kdf_version}>"

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def unlock(
        cls,
        password: str,
        salt: Optional[bytes] = None,
        config: Optional[VaultConfig] = None,
    ) -> "VaultSession":
        """Derive the vault key from a master password.

        Args:
            password: Master password; not retained after the call.
            salt: Stored 16-byte salt, or None to create a new vault.
            config: Client configuration.

        Raises:
            KeyDerivationError: If derivation fails.
        """
        config = config or VaultConfig()
        key, salt = derive_key(password, salt, config.kdf_parameters)
        logger.debug("Vault unlocked (kdf=v%d)", config.kdf_version)
        return cls(key, salt, config)

    @classmethod
    async def unlock_async(
        cls,
        password: str,
        salt: Optional[bytes] = None,
        config: Optional[VaultConfig] = None,
    ) -> "VaultSession":
        """Same as :meth:`unlock`, deriving the key off the event loop."""
        config = config or VaultConfig()
        key, salt = await derive_key_async(password, salt, config.kdf_parameters)
        logger.debug("Vault unlocked (kdf=v%d)", config.kdf_version)
        return cls(key, salt, config)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_unlocked(self) -> bool:
        return self._key is not None

    @property
    def salt(self) -> bytes:
        return self._salt

    @property
    def config(self) -> VaultConfig:
        return self._config

    @property
    def is_expired(self) -> bool:
        """True when the auto-lock idle timeout has elapsed."""
        timeout = self._config.auto_lock_timeout
        if not timeout:
            return False
        return time.monotonic() - self._last_used > timeout * 60

    def lock(self) -> None:
        """Overwrite the key with zeros and drop it. Safe to call twice."""
        if self._key is None:
            return
        for i in range(len(self._key)):
            self._key[i] = 0
        self._key = None
        logger.debug("Vault locked")

    def __enter__(self) -> "VaultSession":
        return self

    def __exit__(self, *exc_info) -> None:
        self.lock()

    def _require_key(self) -> bytes:
        """Return the key bytes or raise if the session is locked."""
        if self._key is not None and self.is_expired:
            logger.info("Vault auto-locked after %d minute(s) idle", self._config.auto_lock_timeout)
            self.lock()
        if self._key is None:
            raise VaultLockedError("Vault is locked. Please enter your master password.")
        self._last_used = time.monotonic()
        return bytes(self._key)

    def _associated_data(self, entry_id: str) -> Optional[bytes]:
        if self._config.bind_entry_id:
            return entry_id.encode("utf-8")
        return None

    # ------------------------------------------------------------------
    # Text envelopes
    # ------------------------------------------------------------------

    def seal_text(self, plaintext: str, associated_data: Optional[bytes] = None) -> str:
        """Seal a string and return the serialized envelope."""
        ciphertext, nonce = seal(plaintext, self._require_key(), associated_data)
        return serialize_envelope(ciphertext, nonce, self._salt)

    def open_text(self, blob: str, associated_data: Optional[bytes] = None) -> str:
        """Open a serialized envelope sealed under this session's key.

        Raises:
            MalformedEnvelopeError: If the blob cannot be parsed.
            DecryptionError: If authentication fails.
        """
        key = self._require_key()
        ciphertext, nonce, _salt = deserialize_envelope(blob)
        return unseal(ciphertext, nonce, key, associated_data)

    # ------------------------------------------------------------------
    # Vault entries
    # ------------------------------------------------------------------

    def encrypt_entry(self, entry: VaultEntry) -> EncryptedVaultEntry:
        """Seal an entry into its stored form.

        Every call produces a new envelope with a fresh nonce, so updating
        an entry means encrypting it again and replacing the stored record.
        """
        payload = orjson.dumps(entry.model_dump(mode="json", by_alias=True))
        encrypted_data = self.seal_text(
            payload.decode("utf-8"), self._associated_data(entry.id),
        )
        metadata = entry.metadata() if self._config.cleartext_metadata else None
        logger.debug("Vault entry sealed: id=%s", entry.id)
        return EncryptedVaultEntry(
            id=entry.id,
            encrypted_data=encrypted_data,
            metadata=metadata,
            created_at=entry.created_at,
            updated_at=entry.updated_at,
        )

    def decrypt_entry(self, encrypted: EncryptedVaultEntry) -> VaultEntry:
        """Open a stored entry.

        The id and timestamps of the stored record take precedence over
        the sealed copy.

        Raises:
            DecryptionError: For any failure: wrong key, tampering, or a
                payload that is not a valid entry.
            VaultLockedError: If the session is locked.
        """
        try:
            text = self.open_text(
                encrypted.encrypted_data, self._associated_data(encrypted.id),
            )
            entry = VaultEntry.model_validate(orjson.loads(text))
        except (MalformedEnvelopeError, orjson.JSONDecodeError, ValidationError):
            raise DecryptionError() from None
        return entry.model_copy(update={
            "id": encrypted.id,
            "created_at": encrypted.created_at,
            "updated_at": encrypted.updated_at,
        })

    def decrypt_entries(
        self,
        entries: Iterable[EncryptedVaultEntry],
    ) -> list[VaultEntry]:
        """Open many entries; failed ones are replaced by placeholders."""
        result: list[VaultEntry] = []
        failed = 0
        for encrypted in entries:
            try:
                result.append(self.decrypt_entry(encrypted))
            except DecryptionError:
                failed += 1
                logger.warning("Vault entry could not be decrypted: id=%s", encrypted.id)
                result.append(VaultEntry.placeholder(
                    id=encrypted.id,
                    created_at=encrypted.created_at,
                    updated_at=encrypted.updated_at,
                ))
        if failed:
            logger.info(
                "Decrypted %d of %d vault entries", len(result) - failed, len(result),
            )
        return result

    # ------------------------------------------------------------------
    # Password generation
    # ------------------------------------------------------------------

    def generate_password(self, length: Optional[int] = None) -> str:
        """Generate a password with the configured default length and classes.

        Args:
            length: Overrides ``config.password_length`` for this call.
        """
        return generate_password_from_options(
            length or self._config.password_length,
            self._config.password_options,
        )
