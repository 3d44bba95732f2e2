"""Pairs-matching rules for a committed deck.

The authority never learns the deck. It stores only card states
(FaceDown / Matched), the first flip of the current turn, scores and whose
turn it is. Every flip must carry a proof that the revealed value is the one
committed at the claimed position.

Rule of thumb:
- OK: validation, turn order, scoring, termination.
- Not OK: touching DB sessions, Redis, FastAPI, datetime.now(), etc.
"""

from datetime import datetime
from typing import Optional, Sequence

from pydantic import BaseModel

from zk_memory.domain.commitment import COMMITMENT_SIZE
from zk_memory.domain.public_inputs import binds_claim
from zk_memory.errors import (
    CardAlreadyMatched,
    GameNotActive,
    InvalidCommitment,
    InvalidPosition,
    InvalidProof,
    NotPlayer,
    NotYourTurn,
    SelfPlay,
)
from zk_memory.models.schema_models import (
    CardState,
    GamePhase,
    GameSessionSchema,
    PendingFlipSchema,
)
from zk_memory.verifiers.base import ProofVerifier, Verdict


class FlipResult(BaseModel):
    game: GameSessionSchema
    # None for the first flip of a turn, otherwise whether the pair matched.
    matched: Optional[bool] = None
    completed: bool = False


def new_game_session(
    session_id: int,
    player1: str,
    player2: str,
    player1_stake: int,
    player2_stake: int,
    deck_commitment: bytes,
    deck_size: int,
    created_at: datetime,
    expires_at: datetime,
) -> GameSessionSchema:
    """Create a fresh session: all cards face down, player1 to move.

    Raises:
        SelfPlay: both identities are the same.
        InvalidCommitment: the commitment is not a 32-byte digest.
    """
    if player1 == player2:
        raise SelfPlay()
    if len(deck_commitment) != COMMITMENT_SIZE:
        raise InvalidCommitment()
    if deck_size < 2 or deck_size % 2 != 0:
        raise ValueError(f"deck_size must be a positive even number, got {deck_size}")

    return GameSessionSchema(
        session_id=session_id,
        player1=player1,
        player2=player2,
        player1_stake=player1_stake,
        player2_stake=player2_stake,
        deck_commitment=bytes(deck_commitment),
        cards=[CardState.face_down] * deck_size,
        score1=0,
        score2=0,
        current_turn=player1,
        pending_flip=None,
        pairs_found=0,
        flip_count=0,
        is_active=True,
        created_at=created_at,
        updated_at=created_at,
        expires_at=expires_at,
    )


def other_player(game: GameSessionSchema, player: str) -> str:
    return game.player2 if player == game.player1 else game.player1


def game_phase(game: GameSessionSchema) -> GamePhase:
    if not game.is_active:
        return GamePhase.complete
    if game.pending_flip is not None:
        return GamePhase.awaiting_second_flip
    if game.flip_count == 0:
        return GamePhase.created
    return GamePhase.awaiting_first_flip


def winner(game: GameSessionSchema) -> Optional[str]:
    """Return "player1", "player2" or "tie" once the game is complete, else None.

    Equal scores are a tie; there is no further tie-break.
    """
    if game.is_active:
        return None
    if game.score1 > game.score2:
        return "player1"
    if game.score2 > game.score1:
        return "player2"
    return "tie"


def invariants_hold(game: GameSessionSchema) -> bool:
    matched = sum(1 for card in game.cards if card == CardState.matched)
    return (
        game.score1 + game.score2 == game.pairs_found
        and matched == 2 * game.pairs_found
        and game.pairs_found <= len(game.cards) // 2
        and game.is_active == (game.pairs_found < len(game.cards) // 2)
        and game.current_turn in (game.player1, game.player2)
    )


def check_flip_preconditions(game: GameSessionSchema, caller: str, position: int) -> None:
    """Raise the first applicable rejection for a flip attempt, in rule order."""
    if not game.is_active:
        raise GameNotActive()
    if caller != game.current_turn:
        raise NotYourTurn()
    if caller not in (game.player1, game.player2):
        raise NotPlayer()
    if position < 0 or position >= len(game.cards):
        raise InvalidPosition()
    if game.cards[position] == CardState.matched:
        raise CardAlreadyMatched()


def flip_card(
    game: GameSessionSchema,
    caller: str,
    position: int,
    revealed_value: int,
    proof: bytes,
    public_inputs: Sequence[bytes],
    verifier: ProofVerifier,
) -> FlipResult:
    """Apply one verified card flip and return the new session version.

    ``game`` itself is never modified; on any rejection the caller keeps the
    previous version unchanged.

    Args:
        game (GameSessionSchema): current authoritative session
        caller (str): identity of the player flipping
        position (int): card position in [0, N)
        revealed_value (int): value the caller claims is at ``position``
        proof (bytes): card-reveal proof
        public_inputs (Sequence[bytes]): [position, commitment, revealed_value] words
        verifier (ProofVerifier): verifier selected at startup

    Returns:
        FlipResult: new session, whether the turn's pair matched, whether the game ended
    """
    check_flip_preconditions(game, caller, position)

    # Proof inputs must describe exactly this claim against this session's commitment.
    if not binds_claim(public_inputs, position, game.deck_commitment, revealed_value):
        raise InvalidProof()
    if verifier.verify(proof, public_inputs, game.deck_commitment) is not Verdict.accept:
        raise InvalidProof()

    updated = game.model_copy(deep=True)
    updated.flip_count += 1
    matched: Optional[bool] = None

    if updated.pending_flip is None:
        # First card of the turn: remember it, turn does not advance.
        updated.pending_flip = PendingFlipSchema(position=position, value=revealed_value)
    else:
        first = updated.pending_flip
        matched = first.value == revealed_value and first.position != position
        if matched:
            updated.cards[first.position] = CardState.matched
            updated.cards[position] = CardState.matched
            updated.pairs_found += 1
            if updated.current_turn == updated.player1:
                updated.score1 += 1
            else:
                updated.score2 += 1
            # A match grants another move.
        else:
            updated.current_turn = other_player(updated, updated.current_turn)
        updated.pending_flip = None

    completed = updated.pairs_found == len(updated.cards) // 2
    if completed:
        updated.is_active = False

    return FlipResult(game=updated, matched=matched, completed=completed)
