"""Shared fixtures.

Argon2id with the production parameters takes a noticeable fraction of a
second, so derived keys are computed once per test session.
"""
import pytest

from falconpass.vault.crypto import derive_key
from falconpass.vault.session_vault import VaultSession

MASTER_PASSWORD = "correct-password"


@pytest.fixture(scope="session")
def salt():
    """A fixed 16-byte salt."""
    return bytes(range(16))


@pytest.fixture(scope="session")
def derived_key(salt):
    """Key derived from MASTER_PASSWORD and the fixed salt."""
    key, _ = derive_key(MASTER_PASSWORD, salt)
    return key


@pytest.fixture
def vault(derived_key, salt):
    """An unlocked session built from the pre-derived key."""
    session = VaultSession(derived_key, salt)
    yield session
    session.lock()
