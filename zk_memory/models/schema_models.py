from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel


class CardState(str, Enum):
    face_down = "FaceDown"
    matched = "Matched"


class GamePhase(str, Enum):
    created = "Created"
    awaiting_first_flip = "AwaitingFirstFlip"
    awaiting_second_flip = "AwaitingSecondFlip"
    complete = "Complete"


class PendingFlipSchema(BaseModel):
    """First flip of the current turn; cleared by the second flip."""

    position: int
    value: int


class GameSessionSchema(BaseModel):
    """Authoritative game aggregate. Only the game rules produce new versions of it."""

    session_id: int
    player1: str
    player2: str
    player1_stake: int
    player2_stake: int
    deck_commitment: bytes
    cards: List[CardState]
    score1: int = 0
    score2: int = 0
    current_turn: str
    pending_flip: Optional[PendingFlipSchema] = None
    pairs_found: int = 0
    flip_count: int = 0
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @property
    def deck_size(self) -> int:
        return len(self.cards)


class FlipLogSchema(BaseModel):
    flip_id: UUID
    session_id: int
    player: str
    position: int
    revealed_value: int
    matched: Optional[bool]
    created_at: datetime

    class Config:
        from_attributes = True
