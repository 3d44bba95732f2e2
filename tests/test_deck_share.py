import base64

import pytest
from cryptography.exceptions import InvalidTag

from zk_memory.client.deck import create_committed_deck
from zk_memory.client.deck_share import (
    decrypt_deck,
    derive_key_from_password,
    encrypt_deck,
    generate_share_key,
)


def test_share_with_random_key():
    committed = create_committed_deck(8)
    key = generate_share_key()
    blob = encrypt_deck(committed, key)
    assert committed.salt not in blob

    restored = decrypt_deck(blob, key)
    assert restored == committed


def test_share_with_password_key():
    committed = create_committed_deck(4)
    key, kdf_salt = derive_key_from_password("correct horse")
    blob = encrypt_deck(committed, key)

    same_key, _ = derive_key_from_password("correct horse", kdf_salt)
    assert decrypt_deck(blob, same_key) == committed

    wrong_key, _ = derive_key_from_password("battery staple", kdf_salt)
    with pytest.raises(InvalidTag):
        decrypt_deck(blob, wrong_key)


def test_tampered_blob_is_rejected():
    committed = create_committed_deck(4)
    key = generate_share_key()
    blob = bytearray(base64.b64decode(encrypt_deck(committed, key)))
    blob[-1] ^= 0x01
    with pytest.raises(InvalidTag):
        decrypt_deck(base64.b64encode(bytes(blob)).decode(), key)
