"""Unit tests for the AES-256-GCM codec."""

import base64
import os

import pytest

from docstore_core.infrastructure.encryption import OVERHEAD, AesGcmCodec
from docstore_core.runtime.errors import ErrorCode, IntegrityError


class TestAesGcmCodecConstruction:
    """Tests for key handling."""

    def test_rejects_short_key(self):
        with pytest.raises(ValueError):
            AesGcmCodec(b"\x00" * 16)

    def test_rejects_long_key(self):
        with pytest.raises(ValueError):
            AesGcmCodec(b"\x00" * 33)

    def test_from_base64_accepts_32_byte_key(self, key):
        codec = AesGcmCodec.from_base64(base64.b64encode(key).decode())

        assert codec.decrypt(codec.encrypt(b"abc")) == b"abc"

    def test_from_base64_rejects_invalid_base64(self):
        with pytest.raises(ValueError):
            AesGcmCodec.from_base64("not base64 !!")

    def test_from_base64_rejects_empty_key(self):
        with pytest.raises(ValueError):
            AesGcmCodec.from_base64("")


class TestAesGcmCodecRoundTrip:
    """Tests for encrypt/decrypt."""

    @pytest.mark.parametrize("plaintext", [b"", b"hello", os.urandom(4096)])
    def test_round_trip(self, codec, plaintext):
        """Decrypting an encrypted payload yields the original bytes."""
        assert codec.decrypt(codec.encrypt(plaintext)) == plaintext

    def test_blob_length_is_plaintext_plus_overhead(self, codec):
        blob = codec.encrypt(b"hello")

        assert len(blob) == len(b"hello") + OVERHEAD == 33

    def test_nonce_is_fresh_per_call(self, codec):
        """Encrypting the same plaintext twice must use different nonces."""
        first = codec.encrypt(b"same payload")
        second = codec.encrypt(b"same payload")

        assert first[:12] != second[:12]
        assert first != second

    def test_other_key_cannot_decrypt(self, codec):
        blob = codec.encrypt(b"secret")
        other = AesGcmCodec(os.urandom(32))

        with pytest.raises(IntegrityError):
            other.decrypt(blob)


class TestAesGcmCodecTamperDetection:
    """Tests for integrity failures."""

    @pytest.mark.parametrize("position", [0, 11, 12, 16, -16, -1])
    def test_flipped_byte_fails_authentication(self, codec, position):
        blob = bytearray(codec.encrypt(b"hello world"))
        blob[position] ^= 0x01

        with pytest.raises(IntegrityError) as exc_info:
            codec.decrypt(bytes(blob))

        assert exc_info.value.code == ErrorCode.INTEGRITY_CHECK_FAILED

    @pytest.mark.parametrize("length", [0, 1, 12, 27])
    def test_short_blob_is_rejected(self, codec, length):
        with pytest.raises(IntegrityError):
            codec.decrypt(b"\x00" * length)

    def test_minimum_length_blob_is_parsed(self, codec):
        """A 28-byte blob is long enough to parse; it fails only on the tag."""
        blob = codec.encrypt(b"")

        assert len(blob) == OVERHEAD
        assert codec.decrypt(blob) == b""


# --- Fixtures ---


@pytest.fixture
def key():
    return os.urandom(32)


@pytest.fixture
def codec(key):
    return AesGcmCodec(key)
