"""Deck commitment shared by the dealer, the proof circuit and the authority.

Definition
----------
C = SHA-256( deck[0] || deck[1] || ... || deck[N-1] || utf8(salt) )

- Each card value is encoded as a single byte.
- ``salt`` is the dealer's private random string; it is never sent to the authority.

The card-reveal circuit recomputes exactly this digest, so the function is
pinned under ``COMMITMENT_SCHEME``. Any change here needs a new scheme tag and
a matching circuit/verification key.
"""

from collections import Counter
from hashlib import sha256
from typing import Sequence

COMMITMENT_SCHEME = "sha256-deck-salt-v1"
COMMITMENT_SIZE = 32


def validate_deck(deck: Sequence[int]) -> None:
    """Raise ValueError unless ``deck`` is a perfect pairing of byte-sized values."""
    if len(deck) == 0 or len(deck) % 2 != 0:
        raise ValueError(f"deck length must be a positive even number, got {len(deck)}")
    for value in deck:
        if not isinstance(value, int) or not 0 <= value <= 255:
            raise ValueError(f"card values must be integers in [0, 255], got {value!r}")
    counts = Counter(deck)
    unpaired = sorted(value for value, count in counts.items() if count != 2)
    if unpaired:
        raise ValueError(f"every card value must appear exactly twice: {unpaired}")


def commit(deck: Sequence[int], salt: str) -> bytes:
    """Return the 32-byte commitment to ``deck`` under ``salt``."""
    validate_deck(deck)
    if not salt:
        raise ValueError("salt must be non-empty")
    hasher = sha256()
    hasher.update(bytes(deck))
    hasher.update(salt.encode("utf-8"))
    return hasher.digest()


def commit_hex(deck: Sequence[int], salt: str) -> str:
    return commit(deck, salt).hex()
