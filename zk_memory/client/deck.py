import secrets
from typing import List

from pydantic import BaseModel

from zk_memory.domain.commitment import commit, validate_deck

_random = secrets.SystemRandom()


class CommittedDeck(BaseModel):
    """The dealer's private deck, its salt and the public commitment."""

    deck: List[int]
    salt: str
    commitment: bytes

    @property
    def commitment_hex(self) -> str:
        return self.commitment.hex()


def shuffle_deck(deck_size: int) -> List[int]:
    """Return a uniformly shuffled deck of ``deck_size // 2`` pairs (values 0..N/2-1).

    Fisher-Yates over the OS random source.
    """
    if deck_size < 2 or deck_size % 2 != 0:
        raise ValueError(f"deck_size must be a positive even number, got {deck_size}")
    deck = [value for value in range(deck_size // 2) for _ in range(2)]
    for i in range(len(deck) - 1, 0, -1):
        j = _random.randint(0, i)
        deck[i], deck[j] = deck[j], deck[i]
    return deck


def new_salt() -> str:
    return secrets.token_hex(16)


def create_committed_deck(deck_size: int) -> CommittedDeck:
    deck = shuffle_deck(deck_size)
    salt = new_salt()
    return CommittedDeck(deck=deck, salt=salt, commitment=commit(deck, salt))


def restore_committed_deck(deck: List[int], salt: str, commitment: bytes) -> CommittedDeck:
    """Rebuild a deck received from the dealer and check it against its commitment."""
    validate_deck(deck)
    if commit(deck, salt) != commitment:
        raise ValueError("deck and salt do not match the commitment")
    return CommittedDeck(deck=deck, salt=salt, commitment=commitment)
