"""Encrypted hand-off of the committed deck from the dealer to the opponent.

The blob is ``base64(nonce || AES-GCM(json(deck, salt, commitment)))``.
Keys are either random 256-bit keys (base64) or derived from a password with
PBKDF2-HMAC-SHA256.
"""

import base64
import json
import os
from typing import Optional, Tuple

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from zk_memory.client.deck import CommittedDeck, restore_committed_deck

KEY_SIZE = 32
NONCE_SIZE = 12  # AES-GCM nonce
KDF_SALT_SIZE = 16
KDF_ITERATIONS = 100_000


def generate_share_key() -> str:
    return base64.b64encode(AESGCM.generate_key(bit_length=256)).decode()


def derive_key_from_password(password: str, salt: Optional[str] = None) -> Tuple[str, str]:
    """Return (key, salt) as base64; a fresh salt is generated when none is given."""
    salt_bytes = base64.b64decode(salt) if salt else os.urandom(KDF_SALT_SIZE)
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_SIZE,
        salt=salt_bytes,
        iterations=KDF_ITERATIONS,
    )
    key = kdf.derive(password.encode("utf-8"))
    return base64.b64encode(key).decode(), base64.b64encode(salt_bytes).decode()


def encrypt_deck(committed: CommittedDeck, key_b64: str) -> str:
    aesgcm = AESGCM(base64.b64decode(key_b64))
    nonce = os.urandom(NONCE_SIZE)
    plaintext = json.dumps(
        {
            "deck": committed.deck,
            "salt": committed.salt,
            "commitment": committed.commitment_hex,
        }
    ).encode("utf-8")
    return base64.b64encode(nonce + aesgcm.encrypt(nonce, plaintext, None)).decode()


def decrypt_deck(blob_b64: str, key_b64: str) -> CommittedDeck:
    """Decrypt a shared deck and verify it still opens the commitment.

    Raises:
        cryptography.exceptions.InvalidTag: wrong key or tampered blob
        ValueError: the decrypted deck does not match its commitment
    """
    combined = base64.b64decode(blob_b64)
    nonce, ciphertext = combined[:NONCE_SIZE], combined[NONCE_SIZE:]
    plaintext = AESGCM(base64.b64decode(key_b64)).decrypt(nonce, ciphertext, None)
    data = json.loads(plaintext)
    return restore_committed_deck(
        deck=data["deck"],
        salt=data["salt"],
        commitment=bytes.fromhex(data["commitment"]),
    )
