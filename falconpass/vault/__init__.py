"""Vault: Client-side encryption of password entries.

Security Note (Threat Model):
    The master password and the derived key exist only in process memory
    of the client. The server stores opaque envelopes and optional
    cleartext metadata (title, url, category, tags) and never sees
    plaintext secrets. Python cannot guarantee that no copy of the key
    survives in memory after ``VaultSession.lock()``; a memory dump of an
    unlocked client is an accepted limitation.
"""

from .config import (
    VaultConfig,
    KdfParameters,
    KDF_PARAMETERS,
    CURRENT_KDF_VERSION,
    get_kdf_parameters,
)
from .crypto import (
    Envelope,
    derive_key,
    derive_key_async,
    seal,
    unseal,
    serialize_envelope,
    deserialize_envelope,
)
from .session_vault import VaultSession
from .archive import ExportArchive, export_vault, import_vault, parse_archive
from .key_rotation import rekey_entries, rotate_master_password

__all__ = [
    "VaultConfig",
    "KdfParameters",
    "KDF_PARAMETERS",
    "CURRENT_KDF_VERSION",
    "get_kdf_parameters",
    "Envelope",
    "derive_key",
    "derive_key_async",
    "seal",
    "unseal",
    "serialize_envelope",
    "deserialize_envelope",
    "VaultSession",
    "ExportArchive",
    "export_vault",
    "import_vault",
    "parse_archive",
    "rekey_entries",
    "rotate_master_password",
]
