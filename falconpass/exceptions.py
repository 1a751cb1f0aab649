"""FalconPass exceptions.

All errors are recoverable at the call site. Decryption failures are
deliberately generic: callers should show a single "wrong password or
corrupted data" message and never echo internal details.
"""

from typing import Optional


class FalconPassError(Exception):
    """Base class for every error raised by FalconPass."""


class KeyDerivationError(FalconPassError):
    """Master password could not be turned into a key.

    Raised for malformed inputs (salt length, unknown parameter version)
    or when the Argon2id primitive itself fails (e.g. memory allocation).
    """


class DecryptionError(FalconPassError):
    """Authentication or integrity failure while opening an envelope."""

    message = "Decryption failed. Invalid key or corrupted data."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)


class MalformedEnvelopeError(FalconPassError):
    """Serialized envelope is not valid Base64, too short, or inconsistent."""


class UnsupportedFormatError(FalconPassError):
    """Export archive carries an unknown format tag or parameter version."""


class VaultLockedError(FalconPassError):
    """Operation requires an unlocked vault session."""
