"""FalconPass.

Client-side cryptography for a zero-knowledge password manager.
"""
from .version import __version__
from .exceptions import (
    FalconPassError,
    KeyDerivationError,
    DecryptionError,
    MalformedEnvelopeError,
    UnsupportedFormatError,
    VaultLockedError,
)
from .models import VaultEntry, EncryptedVaultEntry, EntryMetadata
from .generator import PasswordOptions, generate_password

__all__ = (
    "__version__",
    "FalconPassError",
    "KeyDerivationError",
    "DecryptionError",
    "MalformedEnvelopeError",
    "UnsupportedFormatError",
    "VaultLockedError",
    "VaultEntry",
    "EncryptedVaultEntry",
    "EntryMetadata",
    "PasswordOptions",
    "generate_password",
)
