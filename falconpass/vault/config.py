"""
Vault Configuration: Key derivation parameters and validated settings.

Argon2id parameters are a fixed contract: changing them makes every key
derived so far unrecoverable. They are therefore kept as versioned records
and are never read from the environment. Only client behaviour settings
are configurable:
    FALCONPASS_AUTO_LOCK_TIMEOUT = <minutes, 0 disables auto-lock>
    FALCONPASS_CLEARTEXT_METADATA = <true|false>
    FALCONPASS_PASSWORD_LENGTH = <integer>

Security Note:
    Never log key material. Only log parameter versions.
"""
import os
import logging

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..exceptions import KeyDerivationError
from ..generator import PasswordOptions

logger = logging.getLogger("falconpass.vault")

_TRUE_VALUES = ("1", "true", "yes", "on")


class KdfParameters(BaseModel):
    """Versioned Argon2id parameter record stored alongside a salt."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    version: int = Field(ge=1)
    iterations: int = Field(ge=1)
    memory_kib: int = Field(ge=8, alias="memoryKiB")
    parallelism: int = Field(default=1, ge=1)
    key_length: int = Field(default=32, ge=16, alias="keyLength")


KDF_PARAMETERS: dict[int, KdfParameters] = {
    1: KdfParameters(
        version=1,
        iterations=3,
        memory_kib=65536,
        parallelism=1,
        key_length=32,
    ),
}

CURRENT_KDF_VERSION = 1


def get_kdf_parameters(version: int = CURRENT_KDF_VERSION) -> KdfParameters:
    """Return the parameter record for a KDF version.

    Raises:
        KeyDerivationError: If the version is unknown.
    """
    try:
        return KDF_PARAMETERS[version]
    except KeyError:
        raise KeyDerivationError(
            f"Unknown key derivation parameter version: {version}"
        ) from None


class VaultConfig(BaseModel):
    """Validated vault client configuration."""

    auto_lock_timeout: int = Field(default=15, ge=0)
    cleartext_metadata: bool = True
    # authenticate the entry id as associated data; envelopes sealed with
    # this on cannot be opened with it off, and the reverse
    bind_entry_id: bool = False
    password_length: int = Field(default=16, ge=4, le=128)
    password_options: PasswordOptions = Field(default_factory=PasswordOptions)
    kdf_version: int = CURRENT_KDF_VERSION

    @field_validator("kdf_version")
    @classmethod
    def validate_kdf_version(cls, v: int) -> int:
        """Validate the KDF parameter version is known."""
        if v not in KDF_PARAMETERS:
            raise ValueError(f"Unsupported KDF parameter version: {v}")
        return v

    @property
    def kdf_parameters(self) -> KdfParameters:
        return KDF_PARAMETERS[self.kdf_version]

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """Create VaultConfig by loading values from environment.

        Unset variables keep their defaults.

        Returns:
            Populated VaultConfig instance.
        """
        values: dict = {}
        timeout = os.environ.get("FALCONPASS_AUTO_LOCK_TIMEOUT")
        if timeout is not None:
            values["auto_lock_timeout"] = int(timeout)
        metadata = os.environ.get("FALCONPASS_CLEARTEXT_METADATA")
        if metadata is not None:
            values["cleartext_metadata"] = metadata.strip().lower() in _TRUE_VALUES
        length = os.environ.get("FALCONPASS_PASSWORD_LENGTH")
        if length is not None:
            values["password_length"] = int(length)
        config = cls(**values)
        logger.debug(
            "Vault config loaded: auto_lock=%s cleartext_metadata=%s kdf=v%d",
            config.auto_lock_timeout, config.cleartext_metadata, config.kdf_version,
        )
        return config
