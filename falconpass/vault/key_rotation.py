"""
Vault Key Rotation: Re-encryption of entries when the master password changes.

Every entry is opened with the old session and sealed again with the new
one, which carries a new salt (and therefore a new key) plus a fresh nonce
per entry. Entries that cannot be opened are reported and left out: they
are never re-sealed as placeholders, so no data is silently replaced.

Security Note:
    Plaintext exists in memory only during re-encryption of each entry.
    Never log plaintext or ciphertext values.
"""
import logging
from typing import Optional
from collections.abc import Iterable

from ..exceptions import DecryptionError
from ..models import EncryptedVaultEntry
from .config import VaultConfig
from .session_vault import VaultSession

logger = logging.getLogger("falconpass.vault")


def rekey_entries(
    entries: Iterable[EncryptedVaultEntry],
    old_vault: VaultSession,
    new_vault: VaultSession,
) -> tuple[list[EncryptedVaultEntry], dict]:
    """Re-encrypt entries from one session's key to another's.

    Args:
        entries: Stored entries sealed under ``old_vault``.
        old_vault: Unlocked session for the current master password.
        new_vault: Unlocked session for the new master password.

    Returns:
        Tuple of (re-sealed entries, stats dict with keys total, rotated, errors).

    Raises:
        VaultLockedError: If either session is locked.
    """
    stats = {"total": 0, "rotated": 0, "errors": 0}
    rotated: list[EncryptedVaultEntry] = []

    for encrypted in entries:
        stats["total"] += 1
        try:
            entry = old_vault.decrypt_entry(encrypted)
        except DecryptionError:
            logger.error("Error rotating vault entry id=%s: decryption failed", encrypted.id)
            stats["errors"] += 1
            continue
        rotated.append(new_vault.encrypt_entry(entry))
        stats["rotated"] += 1

    logger.info("Key rotation complete: %s", stats)
    return rotated, stats


def rotate_master_password(
    entries: Iterable[EncryptedVaultEntry],
    old_vault: VaultSession,
    new_password: str,
    config: Optional[VaultConfig] = None,
) -> tuple[VaultSession, list[EncryptedVaultEntry], dict]:
    """Derive a key for a new master password and move all entries to it.

    A new random salt is always generated; reusing the old salt with a new
    password would work but gives no benefit.

    Returns:
        Tuple of (new unlocked session, re-sealed entries, stats).
    """
    new_vault = VaultSession.unlock(new_password, config=config or old_vault.config)
    rotated, stats = rekey_entries(entries, old_vault, new_vault)
    return new_vault, rotated, stats
