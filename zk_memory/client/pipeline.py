"""Player-side flip pipeline.

One flip goes through: local checks against the last known state, proof
generation, submission (with bounded retry on transient failures), and
confirmation polling. A retry is only sent after a fresh read shows the
previous attempt did not land; ``flip_count`` is the sequence number used
for that check.
"""

import logging
import time
from typing import Callable, Optional

from pydantic import BaseModel

from zk_memory.client.deck import CommittedDeck
from zk_memory.client.prover import ProofBackend
from zk_memory.client.transport import AuthorityRejection, TransientTransportError, Transport
from zk_memory.models.dc_models import GameStateModel
from zk_memory.models.schema_models import CardState


class FlipRejectedError(Exception):
    """The flip cannot succeed as submitted. Not retryable."""

    def __init__(self, error: str, message: str, local: bool = False):
        self.error = error
        self.message = message
        self.local = local
        super().__init__(f"{error}: {message}")


class StaleStateError(Exception):
    """Local state was out of date; it has been refreshed. Try again."""


class SubmissionFailedError(Exception):
    """Submission outcome is unknown or transient retries were exhausted."""


class FlipOutcome(BaseModel):
    confirmed: bool
    position: int
    revealed_value: int
    matched: Optional[bool] = None
    my_turn: bool = False
    game_complete: bool = False
    attempts: int = 1
    snapshot: Optional[GameStateModel] = None


class PlayerSession:
    """Drives one player's side of a game against the authority."""

    def __init__(
        self,
        transport: Transport,
        player: str,
        session_id: int,
        committed_deck: CommittedDeck,
        prover: ProofBackend,
        max_attempts: int = 3,
        backoff_base: float = 1.0,
        confirm_polls: int = 3,
        poll_interval: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.transport = transport
        self.player = player
        self.session_id = session_id
        self.committed_deck = committed_deck
        self.prover = prover
        self.max_attempts = max_attempts
        self.backoff_base = backoff_base
        self.confirm_polls = confirm_polls
        self.poll_interval = poll_interval
        self.sleep = sleep
        self.snapshot: Optional[GameStateModel] = None

    def refresh(self) -> GameStateModel:
        self.snapshot = self.transport.get_game(self.session_id)
        return self.snapshot

    def is_my_turn(self) -> bool:
        return self.snapshot is not None and self.snapshot.is_active and self.snapshot.current_turn == self.player

    def flip(self, position: int) -> FlipOutcome:
        snapshot = self.snapshot or self.refresh()
        if snapshot.is_active and snapshot.current_turn != self.player:
            snapshot = self.refresh()
        self._check_locally(snapshot, position)

        revealed_value = self.committed_deck.deck[position]
        bundle = self.prover.generate_proof(
            self.committed_deck.deck, self.committed_deck.salt, position, revealed_value
        )
        before = snapshot

        attempts = 0
        while True:
            attempts += 1
            try:
                self.transport.submit_flip(
                    self.session_id,
                    self.player,
                    position,
                    revealed_value,
                    bundle.proof,
                    bundle.public_inputs,
                )
                break
            except AuthorityRejection as e:
                if e.error == "NotYourTurn":
                    self._refresh_quietly()
                    raise StaleStateError("turn changed before the flip landed, try again") from e
                raise FlipRejectedError(e.error, e.message) from e
            except TransientTransportError as e:
                current = self._refresh_quietly()
                if current is None:
                    raise SubmissionFailedError(
                        "submission failed and the game state could not be read; refresh before retrying"
                    ) from e
                if current.flip_count > before.flip_count:
                    logging.info(f"Flip at {position} landed despite a transport error")
                    return self._outcome(before, current, position, revealed_value, attempts)
                if attempts >= self.max_attempts:
                    raise SubmissionFailedError(
                        f"flip at {position} not accepted after {attempts} attempts"
                    ) from e
                delay = self.backoff_base * 2 ** (attempts - 1)
                logging.warning(f"Transient failure submitting flip at {position}, retrying in {delay}s")
                self.sleep(delay)

        for poll in range(self.confirm_polls):
            current = self._refresh_quietly()
            if current is not None and current.flip_count > before.flip_count:
                return self._outcome(before, current, position, revealed_value, attempts)
            if poll < self.confirm_polls - 1:
                self.sleep(self.poll_interval)

        logging.warning(f"Flip at {position} submitted but not confirmed")
        return FlipOutcome(
            confirmed=False,
            position=position,
            revealed_value=revealed_value,
            attempts=attempts,
            snapshot=self.snapshot,
        )

    def _check_locally(self, snapshot: GameStateModel, position: int) -> None:
        if not snapshot.is_active:
            raise FlipRejectedError("GameNotActive", "This game is already complete.", local=True)
        if snapshot.current_turn != self.player:
            raise FlipRejectedError("NotYourTurn", "Not your turn.", local=True)
        if not 0 <= position < len(snapshot.cards):
            raise FlipRejectedError("InvalidPosition", "Position out of range.", local=True)
        if snapshot.cards[position] == CardState.matched:
            raise FlipRejectedError("CardAlreadyMatched", "Card already matched.", local=True)
        if snapshot.deck_commitment != self.committed_deck.commitment_hex:
            raise FlipRejectedError(
                "CommitmentMismatch", "Local deck does not match the game's commitment.", local=True
            )

    def _refresh_quietly(self) -> Optional[GameStateModel]:
        try:
            return self.refresh()
        except TransientTransportError as e:
            logging.warning(f"Could not read game {self.session_id}: {e}")
            return None

    def _outcome(self, before, current, position, revealed_value, attempts) -> FlipOutcome:
        matched = None
        if before.pending_flip is not None:
            matched = current.pairs_found > before.pairs_found
        return FlipOutcome(
            confirmed=True,
            position=position,
            revealed_value=revealed_value,
            matched=matched,
            my_turn=current.is_active and current.current_turn == self.player,
            game_complete=not current.is_active,
            attempts=attempts,
            snapshot=current,
        )


def open_game(
    transport: Transport,
    session_id: int,
    player1: str,
    player2: str,
    player1_stake: int,
    player2_stake: int,
    committed_deck: CommittedDeck,
) -> GameStateModel:
    """Dealer side: register a game with an already-committed deck.

    Player 2 must have called ``transport.consent`` for the same session and stake first.
    """
    return transport.start_game(
        session_id,
        player1,
        player2,
        player1_stake,
        player2_stake,
        committed_deck.commitment,
    )
