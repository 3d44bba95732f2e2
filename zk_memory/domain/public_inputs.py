"""Encoding of the card-reveal proof's public inputs.

A proof carries exactly three 32-byte public inputs, in this order::

    [position, deck_commitment, revealed_value]

``position`` and ``revealed_value`` are unsigned integers below 2**32 written
big-endian into the last four bytes of a zeroed 32-byte word. The commitment
is the raw 32-byte digest.
"""

from typing import List, Sequence

PUBLIC_INPUT_SIZE = 32
PUBLIC_INPUT_COUNT = 3

POSITION_INDEX = 0
COMMITMENT_INDEX = 1
VALUE_INDEX = 2

_U32_LIMIT = 1 << 32


def encode_u32(value: int) -> bytes:
    if not 0 <= value < _U32_LIMIT:
        raise ValueError(f"value does not fit in u32: {value}")
    return value.to_bytes(PUBLIC_INPUT_SIZE, "big")


def decode_u32(word: bytes) -> int:
    if len(word) != PUBLIC_INPUT_SIZE:
        raise ValueError(f"public input must be {PUBLIC_INPUT_SIZE} bytes, got {len(word)}")
    value = int.from_bytes(word, "big")
    if value >= _U32_LIMIT:
        raise ValueError("public input does not encode a u32")
    return value


def build_public_inputs(position: int, commitment: bytes, revealed_value: int) -> List[bytes]:
    if len(commitment) != PUBLIC_INPUT_SIZE:
        raise ValueError("commitment must be 32 bytes")
    return [encode_u32(position), bytes(commitment), encode_u32(revealed_value)]


def binds_claim(
    public_inputs: Sequence[bytes], position: int, commitment: bytes, revealed_value: int
) -> bool:
    """True when the public inputs encode exactly this claim against this commitment."""
    if len(public_inputs) != PUBLIC_INPUT_COUNT:
        return False
    if any(len(word) != PUBLIC_INPUT_SIZE for word in public_inputs):
        return False
    try:
        claimed_position = decode_u32(public_inputs[POSITION_INDEX])
        claimed_value = decode_u32(public_inputs[VALUE_INDEX])
    except ValueError:
        return False
    return (
        claimed_position == position
        and claimed_value == revealed_value
        and bytes(public_inputs[COMMITMENT_INDEX]) == bytes(commitment)
    )
