from datetime import datetime
import logging

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from zk_memory.create_db_engine import engine
from zk_memory.models.schemas import Base, FlipLog, GameConsent, GameSession


class CreateData:
    @staticmethod
    async def create_table() -> None:
        """Create tables if not exists"""
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @staticmethod
    def add_game_session(row: GameSession, session: AsyncSession) -> None:
        """Stage a new game_sessions row. The caller owns the transaction.

        Args:
            row (GameSession): New game session
        """
        session.add(row)

    @staticmethod
    def add_flip_log(
        session_id: int,
        player: str,
        position: int,
        revealed_value: int,
        matched: bool | None,
        session: AsyncSession,
    ) -> None:
        """Stage one accepted flip in the flip log. The caller owns the transaction."""
        session.add(
            FlipLog(
                session_id=session_id,
                player=player,
                position=position,
                revealed_value=revealed_value,
                matched=matched,
                created_at=datetime.now(),
            )
        )

    @staticmethod
    def add_consent(session_id: int, username: str, stake: int, session: AsyncSession) -> None:
        session.add(
            GameConsent(
                session_id=session_id,
                username=username,
                stake=stake,
                created_at=datetime.now(),
            )
        )


class ReadData:
    @staticmethod
    async def read_game_session(session_id: int, session: AsyncSession) -> GameSession | None:
        """Read the game_sessions row

        Args:
            session_id (int): To identify the game

        Returns:
            GameSession | None: The stored row, None if absent
        """
        try:
            stmt = select(GameSession).where(GameSession.session_id == session_id)
            result = await session.execute(stmt)
            return result.scalars().first()
        except SQLAlchemyError as e:
            logging.error(f"Failed to read game session {session_id}: {e}")
            raise

    @staticmethod
    async def read_flip_log(session_id: int, session: AsyncSession) -> list[FlipLog]:
        try:
            stmt = (
                select(FlipLog)
                .where(FlipLog.session_id == session_id)
                .order_by(FlipLog.created_at)
            )
            result = await session.execute(stmt)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logging.error(f"Failed to read flip log of {session_id}: {e}")
            raise

    @staticmethod
    async def has_consent(session_id: int, username: str, stake: int, session: AsyncSession) -> bool:
        """Check whether the user agreed to join the game with this stake"""
        try:
            stmt = select(GameConsent.id).where(
                GameConsent.session_id == session_id,
                GameConsent.username == username,
                GameConsent.stake == stake,
            )
            result = await session.execute(stmt)
            return result.first() is not None
        except SQLAlchemyError as e:
            logging.error(f"Failed to read consent for {session_id}: {e}")
            raise


class DeleteData:
    @staticmethod
    async def delete_session_state(session_id: int, session: AsyncSession) -> None:
        """Delete a game session and its flip log, keeping consents. The caller owns the transaction."""
        await session.execute(delete(FlipLog).where(FlipLog.session_id == session_id))
        await session.execute(delete(GameSession).where(GameSession.session_id == session_id))

    @staticmethod
    async def delete_game_session(session_id: int, session: AsyncSession) -> None:
        """Delete a game session with its flip log and consents. The caller owns the transaction."""
        await DeleteData.delete_session_state(session_id, session)
        await session.execute(delete(GameConsent).where(GameConsent.session_id == session_id))

    @staticmethod
    async def delete_consents(session_id: int, username: str, session: AsyncSession) -> None:
        """Consume every consent of ``username`` for the session once a game starts"""
        await session.execute(
            delete(GameConsent).where(
                GameConsent.session_id == session_id,
                GameConsent.username == username,
            )
        )

    @staticmethod
    async def delete_expired_game_sessions(now: datetime, session: AsyncSession) -> list[int]:
        """Delete every game session whose retention window has passed

        Returns:
            list[int]: The purged session ids
        """
        stmt = select(GameSession.session_id).where(GameSession.expires_at <= now)
        result = await session.execute(stmt)
        expired = list(result.scalars().all())
        for session_id in expired:
            await DeleteData.delete_game_session(session_id, session)
        return expired

    @staticmethod
    async def delete_stale_consents(cutoff: datetime, session: AsyncSession) -> None:
        """Delete consents recorded before ``cutoff`` (games that never started)"""
        await session.execute(delete(GameConsent).where(GameConsent.created_at <= cutoff))
