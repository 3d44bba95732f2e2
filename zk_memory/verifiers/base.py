from abc import ABC, abstractmethod
from enum import Enum
from typing import Sequence


class Verdict(str, Enum):
    accept = "accept"
    reject = "reject"

    def __bool__(self) -> bool:
        return self is Verdict.accept


class ProofVerifier(ABC):
    """Accepts or rejects a card-reveal proof.

    Implementations never raise for a wrong or malformed proof: every failure
    is a ``Verdict.reject`` so the game rules have a single failure path.
    """

    name: str = "abstract"
    is_sound: bool = True

    @abstractmethod
    def verify(
        self, proof: bytes, public_inputs: Sequence[bytes], commitment: bytes
    ) -> Verdict:
        """Check ``proof`` against ``public_inputs`` and the session's stored ``commitment``."""
