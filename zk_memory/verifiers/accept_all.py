from typing import Sequence

from zk_memory.verifiers.base import ProofVerifier, Verdict


class AcceptAllVerifier(ProofVerifier):
    """Development stub that accepts every proof.

    Games played against this verifier are NOT fair: the dealer can reveal any
    value. Only selectable through ``PROOF_VERIFIER=accept_all``.
    """

    name = "accept_all"
    is_sound = False

    def verify(
        self, proof: bytes, public_inputs: Sequence[bytes], commitment: bytes
    ) -> Verdict:
        return Verdict.accept
