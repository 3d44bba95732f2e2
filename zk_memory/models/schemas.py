from datetime import datetime

from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.schema import Column, Index
from sqlalchemy.types import JSON, BigInteger, Boolean, DateTime, Integer, String, Uuid
from uuid6 import uuid7


class Base(DeclarativeBase):
    pass


class GameSession(Base):
    __tablename__ = "game_sessions"
    session_id = Column(BigInteger, primary_key=True, autoincrement=False)
    player1 = Column(String, nullable=False)
    player2 = Column(String, nullable=False)
    player1_stake = Column(BigInteger, nullable=False)
    player2_stake = Column(BigInteger, nullable=False)
    deck_commitment = Column(String(64), nullable=False)  # hex
    cards = Column(JSON, nullable=False)
    score1 = Column(Integer, default=0)
    score2 = Column(Integer, default=0)
    current_turn = Column(String, nullable=False)
    flip_one = Column(Integer, nullable=True)
    flip_one_value = Column(Integer, nullable=True)
    pairs_found = Column(Integer, default=0)
    flip_count = Column(Integer, default=0)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now)
    expires_at = Column(DateTime, nullable=False, index=True)


class FlipLog(Base):
    __tablename__ = "flip_log"
    flip_id = Column(Uuid, primary_key=True, default=uuid7)
    session_id = Column(BigInteger, nullable=False, index=True)
    player = Column(String, nullable=False)
    position = Column(Integer, nullable=False)
    revealed_value = Column(Integer, nullable=False)
    matched = Column(Boolean, nullable=True)  # None for the first flip of a turn
    created_at = Column(DateTime, default=datetime.now)


class UserTable(Base):
    __tablename__ = "users"
    username = Column(String, primary_key=True, index=True)
    hash_password = Column(String)
    salt = Column(String)


class GameConsent(Base):
    __tablename__ = "game_consents"
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    session_id = Column(BigInteger, nullable=False)
    username = Column(String, nullable=False)
    stake = Column(BigInteger, nullable=False)
    created_at = Column(DateTime, default=datetime.now)

    __table_args__ = (Index("ix_game_consents_session_user", "session_id", "username"),)
