"""Groth16 proof verification over BN254 (alt_bn128).

Verification key
----------------
snarkjs ``verification_key.json`` layout (decimal or 0x-hex strings)::

    {
      "vk_alpha_1": [x, y, "1"],
      "vk_beta_2":  [[x_c0, x_c1], [y_c0, y_c1], ["1", "0"]],
      "vk_gamma_2": ...,
      "vk_delta_2": ...,
      "IC": [[x, y, "1"], ...]       # len(IC) == number of public inputs + 1
    }

Proof encoding
--------------
256 bytes of 32-byte big-endian words, in EVM precompile order::

    A.x | A.y | B.x.c1 | B.x.c0 | B.y.c1 | B.y.c0 | C.x | C.y

Public inputs are 32-byte big-endian words reduced modulo the group order,
which is how the card-reveal circuit ingests the 256-bit deck commitment.

Check: e(-A, B) * e(alpha, beta) * e(vk_x, gamma) * e(C, delta) == 1
with vk_x = IC[0] + sum(x_i * IC[i + 1]).
"""

import json
import logging
import pathlib
from typing import Any, Mapping, Sequence, Tuple, Union

from py_ecc.optimized_bn128 import (
    FQ,
    FQ2,
    FQ12,
    add,
    b,
    b2,
    curve_order,
    field_modulus,
    final_exponentiate,
    is_inf,
    is_on_curve,
    multiply,
    neg,
    pairing,
)

from zk_memory.domain.public_inputs import COMMITMENT_INDEX, PUBLIC_INPUT_SIZE
from zk_memory.verifiers.base import ProofVerifier, Verdict

WORD_SIZE = 32
PROOF_SIZE = 8 * WORD_SIZE


def _to_int(value: Union[int, str]) -> int:
    if isinstance(value, int):
        return value
    text = str(value).strip().lower()
    if text.startswith("0x"):
        return int(text, 16)
    return int(text)


def g1_point(x: int, y: int) -> tuple:
    """Affine coordinates -> projective G1 point; raises ValueError if invalid."""
    if not (0 <= x < field_modulus and 0 <= y < field_modulus):
        raise ValueError("G1 coordinate out of field range")
    if x == 0 and y == 0:
        raise ValueError("G1 point at infinity is not allowed here")
    point = (FQ(x), FQ(y), FQ.one())
    if not is_on_curve(point, b):
        raise ValueError("G1 point is not on the curve")
    return point


def g2_point(x_c0: int, x_c1: int, y_c0: int, y_c1: int) -> tuple:
    """Affine coordinates -> projective G2 point in the prime-order subgroup."""
    for coordinate in (x_c0, x_c1, y_c0, y_c1):
        if not 0 <= coordinate < field_modulus:
            raise ValueError("G2 coordinate out of field range")
    if x_c0 == x_c1 == y_c0 == y_c1 == 0:
        raise ValueError("G2 point at infinity is not allowed here")
    point = (FQ2([x_c0, x_c1]), FQ2([y_c0, y_c1]), FQ2.one())
    if not is_on_curve(point, b2):
        raise ValueError("G2 point is not on the twist curve")
    if not is_inf(multiply(point, curve_order)):
        raise ValueError("G2 point is not in the prime-order subgroup")
    return point


def decode_proof(proof: bytes) -> Tuple[tuple, tuple, tuple]:
    if len(proof) != PROOF_SIZE:
        raise ValueError(f"proof must be {PROOF_SIZE} bytes, got {len(proof)}")
    words = [
        int.from_bytes(proof[i:i + WORD_SIZE], "big") for i in range(0, PROOF_SIZE, WORD_SIZE)
    ]
    a = g1_point(words[0], words[1])
    b_point = g2_point(x_c0=words[3], x_c1=words[2], y_c0=words[5], y_c1=words[4])
    c = g1_point(words[6], words[7])
    return a, b_point, c


def decode_scalar(word: bytes) -> int:
    if len(word) != PUBLIC_INPUT_SIZE:
        raise ValueError(f"public input must be {PUBLIC_INPUT_SIZE} bytes, got {len(word)}")
    return int.from_bytes(word, "big") % curve_order


class Groth16Verifier(ProofVerifier):
    name = "groth16"
    is_sound = True

    def __init__(self, vk_json: Mapping[str, Any]):
        try:
            self.alpha1 = self._g1_from_json(vk_json["vk_alpha_1"])
            self.beta2 = self._g2_from_json(vk_json["vk_beta_2"])
            self.gamma2 = self._g2_from_json(vk_json["vk_gamma_2"])
            self.delta2 = self._g2_from_json(vk_json["vk_delta_2"])
            self.ic = [self._g1_from_json(point) for point in vk_json["IC"]]
        except KeyError as e:
            raise ValueError(f"verification key is missing {e}") from e
        if len(self.ic) < 2:
            raise ValueError("verification key must declare at least one public input")
        # e(alpha, beta) is the same for every proof.
        self._alpha_beta = pairing(self.beta2, self.alpha1, final_exponentiate=False)

    @classmethod
    def from_file(cls, path: Union[str, pathlib.Path]) -> "Groth16Verifier":
        with open(path, "r") as f:
            vk_json = json.load(f)
        logging.info(f"Loaded Groth16 verification key from {path}")
        return cls(vk_json)

    @property
    def public_input_count(self) -> int:
        return len(self.ic) - 1

    @staticmethod
    def _g1_from_json(point: Sequence[Any]) -> tuple:
        return g1_point(_to_int(point[0]), _to_int(point[1]))

    @staticmethod
    def _g2_from_json(point: Sequence[Sequence[Any]]) -> tuple:
        return g2_point(
            x_c0=_to_int(point[0][0]),
            x_c1=_to_int(point[0][1]),
            y_c0=_to_int(point[1][0]),
            y_c1=_to_int(point[1][1]),
        )

    def verify(
        self, proof: bytes, public_inputs: Sequence[bytes], commitment: bytes
    ) -> Verdict:
        if len(public_inputs) != self.public_input_count:
            return Verdict.reject
        if len(public_inputs) <= COMMITMENT_INDEX:
            return Verdict.reject
        if bytes(public_inputs[COMMITMENT_INDEX]) != bytes(commitment):
            return Verdict.reject
        try:
            a, b_point, c = decode_proof(bytes(proof))
            scalars = [decode_scalar(bytes(word)) for word in public_inputs]
        except ValueError as e:
            logging.debug(f"Malformed proof: {e}")
            return Verdict.reject

        vk_x = self.ic[0]
        for scalar, ic_point in zip(scalars, self.ic[1:]):
            vk_x = add(vk_x, multiply(ic_point, scalar))

        product = pairing(b_point, neg(a), final_exponentiate=False) * self._alpha_beta
        if not is_inf(vk_x):
            product = product * pairing(self.gamma2, vk_x, final_exponentiate=False)
        product = product * pairing(self.delta2, c, final_exponentiate=False)

        if final_exponentiate(product) == FQ12.one():
            return Verdict.accept
        return Verdict.reject
