"""
Vault Crypto Core: Key derivation, envelope sealing/opening, and serialization.

Implements the client-side encryption used for every vault entry:
- Key derivation: Argon2id(master_password, salt 16B) → 32-byte key
- Envelope: XChaCha20-Poly1305(key, nonce 24B) → ciphertext + 16B tag
- Wire format: base64([salt 16B][nonce 24B][ciphertext + tag])

Security Note:
    Never log passwords, keys, plaintext or ciphertext values.
    Nonces are random 192-bit; collision probability is negligible even
    for billions of envelopes under one key, so no counter is kept.
"""
import asyncio
import base64
import logging
from functools import partial
from typing import NamedTuple, Optional

from cryptography.hazmat.primitives.kdf.argon2 import Argon2id
from nacl import bindings
from nacl.exceptions import CryptoError
from nacl.utils import random as random_bytes

from ..exceptions import (
    KeyDerivationError,
    DecryptionError,
    MalformedEnvelopeError,
)
from .config import KDF_PARAMETERS, KdfParameters, get_kdf_parameters

logger = logging.getLogger("falconpass.vault")

SALT_SIZE = 16
NONCE_SIZE = bindings.crypto_aead_xchacha20poly1305_ietf_NPUBBYTES  # 24
KEY_LENGTH = bindings.crypto_aead_xchacha20poly1305_ietf_KEYBYTES  # 32
TAG_SIZE = bindings.crypto_aead_xchacha20poly1305_ietf_ABYTES  # 16
HEADER_SIZE = SALT_SIZE + NONCE_SIZE


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def generate_salt() -> bytes:
    """Return a fresh random 16-byte salt."""
    return random_bytes(SALT_SIZE)


def derive_key(
    password: str,
    salt: Optional[bytes] = None,
    params: Optional[KdfParameters] = None,
) -> tuple[bytes, bytes]:
    """Derive a 32-byte encryption key from a master password using Argon2id.

    Args:
        password: Master password. Used for this call only, never stored.
        salt: 16-byte salt. A new random salt is generated when omitted;
            the same salt must be supplied to derive the same key again.
        params: Argon2id parameter record, defaults to the current version.

    Returns:
        Tuple of (key, salt).

    Raises:
        KeyDerivationError: On malformed input, a parameter record that is
            not registered in ``KDF_PARAMETERS``, or if Argon2id itself
            fails (e.g. the 64 MiB memory cost cannot be allocated).
    """
    if not isinstance(password, str):
        raise KeyDerivationError("Master password must be a string")
    if salt is None:
        salt = generate_salt()
    elif not isinstance(salt, (bytes, bytearray)) or len(salt) != SALT_SIZE:
        raise KeyDerivationError(f"Salt must be exactly {SALT_SIZE} bytes")
    if params is None:
        params = get_kdf_parameters()
    elif KDF_PARAMETERS.get(params.version) != params:
        raise KeyDerivationError(
            f"Unknown key derivation parameters: v{params.version}"
        )
    salt = bytes(salt)
    try:
        kdf = Argon2id(
            salt=salt,
            length=params.key_length,
            iterations=params.iterations,
            lanes=params.parallelism,
            memory_cost=params.memory_kib,
        )
        key = kdf.derive(password.encode("utf-8"))
    except Exception as err:
        logger.error(
            "Argon2id derivation failed (kdf=v%d): %s",
            params.version, type(err).__name__,
        )
        raise KeyDerivationError("Key derivation failed") from err
    return key, salt


async def derive_key_async(
    password: str,
    salt: Optional[bytes] = None,
    params: Optional[KdfParameters] = None,
) -> tuple[bytes, bytes]:
    """Run :func:`derive_key` in the loop's default executor.

    Argon2id is deliberately slow; this keeps the event loop responsive.
    """
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(
        None, partial(derive_key, password, salt, params),
    )


# ---------------------------------------------------------------------------
# Authenticated envelope (XChaCha20-Poly1305)
# ---------------------------------------------------------------------------

def seal(
    plaintext: str,
    key: bytes,
    associated_data: Optional[bytes] = None,
) -> tuple[bytes, bytes]:
    """Encrypt a string with XChaCha20-Poly1305 under a fresh random nonce.

    Args:
        plaintext: Text to encrypt (encoded as UTF-8).
        key: 32-byte derived key.
        associated_data: Optional bytes authenticated but not encrypted,
            e.g. an entry id binding the envelope to its record.

    Returns:
        Tuple of (ciphertext, nonce); ciphertext carries the 16-byte tag.

    Raises:
        ValueError: If the key is not 32 bytes.
    """
    if len(key) != KEY_LENGTH:
        raise ValueError(f"Key must be exactly {KEY_LENGTH} bytes")
    nonce = random_bytes(NONCE_SIZE)
    ciphertext = bindings.crypto_aead_xchacha20poly1305_ietf_encrypt(
        plaintext.encode("utf-8"), associated_data, nonce, bytes(key),
    )
    return ciphertext, nonce


def unseal(
    ciphertext: bytes,
    nonce: bytes,
    key: bytes,
    associated_data: Optional[bytes] = None,
) -> str:
    """Decrypt and authenticate an envelope produced by :func:`seal`.

    Every failure raises the same :class:`DecryptionError`, whether the key
    is wrong or the data was corrupted.

    Returns:
        The original plaintext string.
    """
    if (
        len(nonce) != NONCE_SIZE
        or len(key) != KEY_LENGTH
        or len(ciphertext) < TAG_SIZE
    ):
        raise DecryptionError()
    try:
        plaintext = bindings.crypto_aead_xchacha20poly1305_ietf_decrypt(
            bytes(ciphertext), associated_data, bytes(nonce), bytes(key),
        )
        return plaintext.decode("utf-8")
    except (CryptoError, ValueError, TypeError):
        # UnicodeDecodeError is a ValueError
        raise DecryptionError() from None


# ---------------------------------------------------------------------------
# Wire format
# ---------------------------------------------------------------------------

def serialize_envelope(ciphertext: bytes, nonce: bytes, salt: bytes) -> str:
    """Encode an envelope for storage.

    Format: base64([salt 16B][nonce 24B][ciphertext + tag])

    Raises:
        MalformedEnvelopeError: If salt or nonce have the wrong length.
    """
    if len(salt) != SALT_SIZE:
        raise MalformedEnvelopeError(f"Salt must be exactly {SALT_SIZE} bytes")
    if len(nonce) != NONCE_SIZE:
        raise MalformedEnvelopeError(f"Nonce must be exactly {NONCE_SIZE} bytes")
    combined = bytes(salt) + bytes(nonce) + bytes(ciphertext)
    return base64.b64encode(combined).decode("ascii")


def _decode_base64(blob: str) -> bytes:
    """Decode standard Base64, also accepting libsodium's URL-safe unpadded form.

    The URL-safe branch only makes the browser client's blobs parse. That
    client sealed with XSalsa20-Poly1305 (``crypto_secretbox``), so its
    envelopes split into salt, nonce and ciphertext here but never
    authenticate under :func:`unseal`.
    """
    text = blob.strip()
    padded = text + "=" * (-len(text) % 4)
    altchars = b"-_" if ("-" in text or "_" in text) else None
    return base64.b64decode(padded, altchars=altchars, validate=True)


def deserialize_envelope(blob: str) -> tuple[bytes, bytes, bytes]:
    """Split a stored envelope back into its parts.

    Returns:
        Tuple of (ciphertext, nonce, salt).

    Raises:
        MalformedEnvelopeError: If the blob is not Base64 or decodes to
            fewer than 40 bytes.
    """
    if not isinstance(blob, str):
        raise MalformedEnvelopeError("Envelope must be a Base64 string")
    try:
        combined = _decode_base64(blob)
    except ValueError:
        raise MalformedEnvelopeError("Envelope is not valid Base64") from None
    if len(combined) < HEADER_SIZE:
        raise MalformedEnvelopeError(
            f"Envelope too short: {len(combined)} bytes (minimum {HEADER_SIZE})"
        )
    salt = combined[:SALT_SIZE]
    nonce = combined[SALT_SIZE:HEADER_SIZE]
    ciphertext = combined[HEADER_SIZE:]
    return ciphertext, nonce, salt


class Envelope(NamedTuple):
    """One sealed record: salt, nonce and ciphertext (tag included)."""

    salt: bytes
    nonce: bytes
    ciphertext: bytes

    def to_string(self) -> str:
        return serialize_envelope(self.ciphertext, self.nonce, self.salt)

    @classmethod
    def from_string(cls, blob: str) -> "Envelope":
        ciphertext, nonce, salt = deserialize_envelope(blob)
        return cls(salt=salt, nonce=nonce, ciphertext=ciphertext)
