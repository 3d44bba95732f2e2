"""Card-reveal proof verifiers.

The verifier is chosen once, at startup, from configuration. The accept-all
stub is a separate, explicitly named implementation so a fair deployment can
never reach it by accident.
"""

import logging
from typing import Optional

from zk_memory.verifiers.accept_all import AcceptAllVerifier
from zk_memory.verifiers.base import ProofVerifier, Verdict
from zk_memory.verifiers.groth16_bn254 import Groth16Verifier


def build_verifier(name: str, verification_key_path: Optional[str] = None) -> ProofVerifier:
    if name == "accept_all":
        logging.warning(
            "PROOF_VERIFIER=accept_all: every card reveal is accepted, games are NOT fair"
        )
        return AcceptAllVerifier()
    if name == "groth16":
        if not verification_key_path:
            raise ValueError("PROOF_VERIFIER=groth16 requires VERIFICATION_KEY_PATH")
        return Groth16Verifier.from_file(verification_key_path)
    raise ValueError(f"Unknown proof verifier: {name}")


__all__ = [
    "AcceptAllVerifier",
    "Groth16Verifier",
    "ProofVerifier",
    "Verdict",
    "build_verifier",
]
