"""
Tests for vault configuration and KDF parameter records.
"""
import pytest
from pydantic import ValidationError

from falconpass.exceptions import KeyDerivationError
from falconpass.vault.config import (
    CURRENT_KDF_VERSION,
    KDF_PARAMETERS,
    KdfParameters,
    VaultConfig,
    get_kdf_parameters,
)


class TestKdfParameters:
    """Tests for the versioned Argon2id parameter records."""

    def test_version_one_contract(self):
        """Test the v1 record holds the fixed derivation contract."""
        params = get_kdf_parameters(1)
        assert params.iterations == 3
        assert params.memory_kib == 65536
        assert params.key_length == 32
        assert params.parallelism == 1

    def test_current_version(self):
        """Test the current version is registered."""
        assert CURRENT_KDF_VERSION in KDF_PARAMETERS
        assert get_kdf_parameters() is KDF_PARAMETERS[CURRENT_KDF_VERSION]

    def test_unknown_version(self):
        """Test unknown versions raise KeyDerivationError."""
        with pytest.raises(KeyDerivationError):
            get_kdf_parameters(42)

    def test_records_are_immutable(self):
        """Test parameter records cannot be modified."""
        with pytest.raises(ValidationError):
            get_kdf_parameters().iterations = 1

    def test_alias_round_trip(self):
        """Test records dump and load with camelCase aliases."""
        params = get_kdf_parameters()
        dumped = params.model_dump(by_alias=True)
        assert "memoryKiB" in dumped
        assert KdfParameters.model_validate(dumped) == params


class TestVaultConfig:
    """Tests for VaultConfig."""

    def test_defaults(self):
        """Test default configuration values."""
        config = VaultConfig()
        assert config.auto_lock_timeout == 15
        assert config.cleartext_metadata is True
        assert config.bind_entry_id is False
        assert config.password_length == 16
        assert config.kdf_parameters == get_kdf_parameters()

    def test_invalid_kdf_version(self):
        """Test an unknown KDF version is rejected."""
        with pytest.raises(ValidationError):
            VaultConfig(kdf_version=2)

    @pytest.mark.parametrize("field,value", [
        ("auto_lock_timeout", -1),
        ("password_length", 2),
        ("password_length", 500),
    ])
    def test_bounds(self, field, value):
        """Test out-of-range values are rejected."""
        with pytest.raises(ValidationError):
            VaultConfig(**{field: value})

    def test_from_env(self, monkeypatch):
        """Test configuration is read from environment variables."""
        monkeypatch.setenv("FALCONPASS_AUTO_LOCK_TIMEOUT", "0")
        monkeypatch.setenv("FALCONPASS_CLEARTEXT_METADATA", "false")
        monkeypatch.setenv("FALCONPASS_PASSWORD_LENGTH", "32")
        config = VaultConfig.from_env()
        assert config.auto_lock_timeout == 0
        assert config.cleartext_metadata is False
        assert config.password_length == 32

    def test_from_env_defaults(self, monkeypatch):
        """Test unset variables keep the defaults."""
        for name in (
            "FALCONPASS_AUTO_LOCK_TIMEOUT",
            "FALCONPASS_CLEARTEXT_METADATA",
            "FALCONPASS_PASSWORD_LENGTH",
        ):
            monkeypatch.delenv(name, raising=False)
        assert VaultConfig.from_env() == VaultConfig()
