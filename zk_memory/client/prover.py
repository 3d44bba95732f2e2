"""Proof generation backends.

The circuit behind a backend proves: "the value at ``position`` of the deck
committed as ``commitment`` is ``revealed_value``", with the deck and salt as
private inputs.
"""

import logging
from typing import List, Sequence

import requests
from pydantic import BaseModel

from zk_memory.domain.commitment import commit
from zk_memory.domain.public_inputs import COMMITMENT_INDEX, build_public_inputs


class ProofGenerationError(Exception):
    """The proof backend could not produce a proof."""


class CommitmentMismatchError(ProofGenerationError):
    """The backend proved against a different commitment than the one published."""


class ProofBundle(BaseModel):
    proof: bytes
    public_inputs: List[bytes]


class ProofBackend:
    def generate_proof(
        self, deck: Sequence[int], salt: str, position: int, revealed_value: int
    ) -> ProofBundle:
        raise NotImplementedError


class MockProofBackend(ProofBackend):
    """Zero-filled proof with correct public inputs; only the accept-all verifier takes it."""

    PROOF_SIZE = 256

    def generate_proof(self, deck, salt, position, revealed_value):
        return ProofBundle(
            proof=bytes(self.PROOF_SIZE),
            public_inputs=build_public_inputs(position, commit(deck, salt), revealed_value),
        )


class HttpProofBackend(ProofBackend):
    """Calls a proof service's ``POST /generate-proof``.

    Response body: ``{"proof": hex, "public_inputs": [hex, ...], "commitment": hex}``.
    """

    def __init__(self, base_url: str, timeout: float = 120.0, http: requests.Session | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = http or requests.Session()

    def generate_proof(self, deck, salt, position, revealed_value):
        expected_commitment = commit(deck, salt)
        payload = {
            "deck": list(deck),
            "salt": salt,
            "position": position,
            "revealed_value": revealed_value,
        }
        try:
            response = self.http.post(
                f"{self.base_url}/generate-proof", json=payload, timeout=self.timeout
            )
        except requests.RequestException as e:
            raise ProofGenerationError(f"proof service unreachable: {e}") from e
        if response.status_code != 200:
            raise ProofGenerationError(
                f"proof service returned {response.status_code}: {response.text}"
            )

        body = response.json()
        try:
            proof = bytes.fromhex(body["proof"])
            public_inputs = [bytes.fromhex(word) for word in body["public_inputs"]]
            commitment = bytes.fromhex(body["commitment"])
        except (KeyError, TypeError, ValueError) as e:
            raise ProofGenerationError(f"malformed proof service response: {e}") from e

        # A different hash inside the circuit would make every proof useless.
        if commitment != expected_commitment or (
            len(public_inputs) > COMMITMENT_INDEX
            and public_inputs[COMMITMENT_INDEX] != expected_commitment
        ):
            raise CommitmentMismatchError(
                "proof service commitment does not match the published deck commitment"
            )
        logging.info(f"Generated proof for position {position} ({len(proof)} bytes)")
        return ProofBundle(proof=proof, public_inputs=public_inputs)
