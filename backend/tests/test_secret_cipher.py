"""
Tests for AES-256-GCM secret storage.
"""

import dataclasses

import pytest

from app.services.secret_cipher import (
    AUTH_TAG_LENGTH,
    IV_LENGTH,
    EncryptedSecret,
    SecretCipher,
    generate_encryption_key,
)
from app.utils.exceptions import ConfigurationError, TamperError


def _flip_bit(hex_value: str, byte_index: int, bit: int) -> str:
    raw = bytearray(bytes.fromhex(hex_value))
    raw[byte_index % len(raw)] ^= 1 << bit
    return raw.hex()


@pytest.mark.parametrize("plaintext", ["gsk_live_abc123", "", "clé-secrète-日本語-🔑"])
def test_round_trip(cipher, plaintext):
    assert cipher.decrypt(cipher.encrypt(plaintext)) == plaintext


def test_encrypted_fields_are_hex_with_expected_lengths(cipher):
    secret = cipher.encrypt("sk-test")

    assert len(secret.iv) == IV_LENGTH * 2
    assert len(secret.auth_tag) == AUTH_TAG_LENGTH * 2
    assert len(secret.ciphertext) == len("sk-test") * 2
    for value in (secret.iv, secret.auth_tag, secret.ciphertext):
        bytes.fromhex(value)


def test_iv_is_unique_per_encryption(cipher):
    ivs = {cipher.encrypt("same plaintext").iv for _ in range(500)}
    assert len(ivs) == 500


def test_same_plaintext_gives_different_ciphertext(cipher):
    assert cipher.encrypt("repeat").ciphertext != cipher.encrypt("repeat").ciphertext


@pytest.mark.parametrize("field", ["ciphertext", "iv", "auth_tag"])
@pytest.mark.parametrize("byte_index", [0, 6, -1])
@pytest.mark.parametrize("bit", [0, 3, 7])
def test_single_bit_tamper_is_detected(cipher, field, byte_index, bit):
    secret = cipher.encrypt("sensitive-key")
    tampered = dataclasses.replace(secret, **{field: _flip_bit(getattr(secret, field), byte_index, bit)})
    assert getattr(tampered, field) != getattr(secret, field)

    with pytest.raises(TamperError):
        cipher.decrypt(tampered)


def test_wrong_key_is_detected(cipher):
    secret = cipher.encrypt("sensitive-key")
    other = SecretCipher(generate_encryption_key())

    with pytest.raises(TamperError):
        other.decrypt(secret)


@pytest.mark.parametrize(
    "secret",
    [
        EncryptedSecret(ciphertext="zz", iv="00" * IV_LENGTH, auth_tag="00" * AUTH_TAG_LENGTH),
        EncryptedSecret(ciphertext="00", iv="00" * 12, auth_tag="00" * AUTH_TAG_LENGTH),
        EncryptedSecret(ciphertext="00", iv="00" * IV_LENGTH, auth_tag="00" * 8),
    ],
)
def test_malformed_payload_raises_tamper_error(cipher, secret):
    with pytest.raises(TamperError):
        cipher.decrypt(secret)


@pytest.mark.parametrize("key", [None, "", "abcd", "0" * 63, "0" * 65, "g" * 64])
def test_invalid_key_raises_configuration_error(key):
    with pytest.raises(ConfigurationError):
        SecretCipher(key)


def test_generated_key_is_usable():
    key = generate_encryption_key()
    assert len(key) == 64
    cipher = SecretCipher(key)
    assert cipher.decrypt(cipher.encrypt("x")) == "x"
