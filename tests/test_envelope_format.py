"""
Tests for the envelope wire format: base64([salt 16B][nonce 24B][ciphertext]).
"""
import os
import base64
import pytest
from nacl import bindings

from falconpass.exceptions import DecryptionError, MalformedEnvelopeError
from falconpass.vault.crypto import (
    Envelope,
    serialize_envelope,
    deserialize_envelope,
    unseal,
    HEADER_SIZE,
)


@pytest.fixture
def parts():
    """Random (ciphertext, nonce, salt) of realistic size."""
    return os.urandom(137), os.urandom(24), os.urandom(16)


class TestSerializeEnvelope:
    """Tests for serialize_envelope."""

    def test_layout(self, parts):
        """Test bytes are laid out as salt, nonce, ciphertext."""
        ciphertext, nonce, salt = parts
        blob = serialize_envelope(ciphertext, nonce, salt)
        raw = base64.b64decode(blob)
        assert raw[:16] == salt
        assert raw[16:40] == nonce
        assert raw[40:] == ciphertext

    def test_standard_base64(self, parts):
        """Test output is padded standard Base64 text."""
        blob = serialize_envelope(*parts)
        assert isinstance(blob, str)
        assert base64.b64encode(base64.b64decode(blob, validate=True)).decode() == blob

    def test_rejects_wrong_salt_length(self, parts):
        """Test a salt of the wrong size cannot be serialized."""
        ciphertext, nonce, _ = parts
        with pytest.raises(MalformedEnvelopeError):
            serialize_envelope(ciphertext, nonce, os.urandom(15))

    def test_rejects_wrong_nonce_length(self, parts):
        """Test a nonce of the wrong size cannot be serialized."""
        ciphertext, _, salt = parts
        with pytest.raises(MalformedEnvelopeError):
            serialize_envelope(ciphertext, os.urandom(12), salt)


class TestDeserializeEnvelope:
    """Tests for deserialize_envelope."""

    @pytest.mark.parametrize("size", [0, 1, 16, 17, 255, 4096, 65536])
    def test_round_trip(self, size):
        """Test deserialize(serialize(c, n, s)) == (c, n, s)."""
        ciphertext, nonce, salt = os.urandom(size), os.urandom(24), os.urandom(16)
        blob = serialize_envelope(ciphertext, nonce, salt)
        assert deserialize_envelope(blob) == (ciphertext, nonce, salt)

    def test_exactly_header_size(self):
        """Test a 40-byte blob yields an empty ciphertext."""
        raw = os.urandom(HEADER_SIZE)
        ciphertext, nonce, salt = deserialize_envelope(base64.b64encode(raw).decode())
        assert ciphertext == b""
        assert salt + nonce == raw

    @pytest.mark.parametrize("length", [0, 1, 16, 39])
    def test_too_short(self, length):
        """Test blobs decoding to fewer than 40 bytes are rejected."""
        blob = base64.b64encode(os.urandom(length)).decode()
        with pytest.raises(MalformedEnvelopeError):
            deserialize_envelope(blob)

    @pytest.mark.parametrize("blob", [
        "not base64 at all!",
        "A" * 57,
        "é" * 60,
        "AAAA*AAA" * 10,
    ])
    def test_invalid_base64(self, blob):
        """Test text that is not Base64 is rejected."""
        with pytest.raises(MalformedEnvelopeError):
            deserialize_envelope(blob)

    @pytest.mark.parametrize("blob", [None, b"AAAA", 1234])
    def test_non_string(self, blob):
        """Test non-string input is rejected."""
        with pytest.raises(MalformedEnvelopeError):
            deserialize_envelope(blob)

    def test_urlsafe_unpadded_accepted(self, parts):
        """Test blobs from the browser client's URL-safe encoding decode too."""
        ciphertext, nonce, salt = parts
        raw = salt + nonce + ciphertext
        blob = base64.urlsafe_b64encode(raw).decode().rstrip("=")
        assert deserialize_envelope(blob) == (ciphertext, nonce, salt)

    def test_secretbox_blob_parses_but_does_not_open(self, derived_key, salt):
        """Test browser-client secretbox envelopes split but fail to unseal."""
        nonce = os.urandom(24)
        boxed = bindings.crypto_secretbox(b"legacy secret", nonce, derived_key)
        raw = salt + nonce + boxed
        blob = base64.urlsafe_b64encode(raw).decode().rstrip("=")
        ciphertext, parsed_nonce, parsed_salt = deserialize_envelope(blob)
        assert (parsed_nonce, parsed_salt) == (nonce, salt)
        with pytest.raises(DecryptionError):
            unseal(ciphertext, parsed_nonce, derived_key)


class TestEnvelope:
    """Tests for the Envelope record."""

    def test_to_and_from_string(self, parts):
        """Test Envelope string helpers match the functions."""
        ciphertext, nonce, salt = parts
        envelope = Envelope(salt=salt, nonce=nonce, ciphertext=ciphertext)
        blob = envelope.to_string()
        assert blob == serialize_envelope(ciphertext, nonce, salt)
        assert Envelope.from_string(blob) == envelope
