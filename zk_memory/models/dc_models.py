from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from zk_memory.models.schema_models import CardState, GamePhase


class ConsentModel(BaseModel):
    stake: int = Field(ge=0)


class StartGameModel(BaseModel):
    player1: str
    player2: str
    player1_stake: int = Field(ge=0)
    player2_stake: int = Field(ge=0)
    deck_commitment: str  # hex, 32 bytes


class FlipModel(BaseModel):
    player: str
    position: int = Field(ge=0)
    revealed_value: int = Field(ge=0, le=255)  # one byte per card
    proof: str  # hex
    public_inputs: List[str]  # hex, 32 bytes each


class PendingFlipModel(BaseModel):
    position: int
    value: int


class GameStateModel(BaseModel):
    """Read-only projection of a game session sent to clients."""

    session_id: int
    player1: str
    player2: str
    player1_stake: int
    player2_stake: int
    deck_commitment: str
    cards: List[CardState]
    score1: int
    score2: int
    current_turn: str
    pending_flip: Optional[PendingFlipModel] = None
    pairs_found: int
    flip_count: int
    is_active: bool
    phase: GamePhase
    winner: Optional[str] = None  # "player1" | "player2" | "tie"
    expires_at: Optional[datetime] = None


class HealthModel(BaseModel):
    status: str
    commitment_scheme: str
    verifier: str
    verifier_is_sound: bool
    deck_size: int
