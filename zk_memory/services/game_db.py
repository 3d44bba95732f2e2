"""DB service layer for game use cases.

- Routers should not touch DB sessions directly; they call this module.
- This layer owns session/transaction boundaries and the per-session lock.
- Rules live in ``zk_memory.domain.memory_rules``; nothing here decides game outcomes.
"""

from datetime import datetime, timedelta
import logging
from typing import List

from zk_memory import config
from zk_memory.converter import DataConverter
from zk_memory.crud import CreateData, DeleteData, ReadData
from zk_memory.db import Session
from zk_memory.domain import memory_rules
from zk_memory.domain.memory_rules import FlipResult
from zk_memory.errors import (
    GameError,
    GameNotFound,
    MissingConsent,
    NotPlayer,
    SelfPlay,
    SessionAlreadyExists,
)
from zk_memory.models.dc_models import FlipModel, StartGameModel
from zk_memory.models.schema_models import FlipLogSchema, GameSessionSchema
from zk_memory.services.game_hub import GameHub
from zk_memory.session_lock_manager import SessionLockManager
from zk_memory.verifiers.base import ProofVerifier

lock_manager = SessionLockManager()
data_converter = DataConverter()


def retention_window() -> timedelta:
    return timedelta(days=config.game_ttl_days)


async def record_consent(session_id: int, username: str, stake: int) -> None:
    """Record that ``username`` agrees to play session ``session_id`` for ``stake``."""
    async with Session() as session:
        async with session.begin():
            CreateData.add_consent(session_id, username, stake, session)
    logging.info(f"Consent recorded session={session_id} player={username} stake={stake}")


async def start_game(
    session_id: int,
    caller: str,
    request: StartGameModel,
    deck_size: int,
    hub: GameHub,
) -> GameSessionSchema:
    """Create a session once both players have consented.

    Args:
        session_id (int): ID chosen by the dealer
        caller (str): authenticated identity; must be player1 (the dealer)
        request (StartGameModel): players, stakes and the deck commitment
        deck_size (int): N for this deployment
        hub (GameHub): lifecycle notification sink

    Returns:
        GameSessionSchema: The freshly created session
    """
    if caller != request.player1:
        raise NotPlayer("Only player1 can start the game.")
    if request.player1 == request.player2:
        raise SelfPlay()
    commitment = data_converter.decode_commitment(request.deck_commitment)

    async with lock_manager.hold(session_id):
        async with Session() as session:
            async with session.begin():
                now = datetime.now()
                existing = await ReadData.read_game_session(session_id, session)
                if existing is not None:
                    if existing.expires_at > now:
                        raise SessionAlreadyExists()
                    # Consents were consumed when the old game started; any left are for this one.
                    await DeleteData.delete_session_state(session_id, session)

                consented = await ReadData.has_consent(
                    session_id, request.player2, request.player2_stake, session
                )
                if not consented:
                    raise MissingConsent()
                await DeleteData.delete_consents(session_id, request.player2, session)

                game = memory_rules.new_game_session(
                    session_id=session_id,
                    player1=request.player1,
                    player2=request.player2,
                    player1_stake=request.player1_stake,
                    player2_stake=request.player2_stake,
                    deck_commitment=commitment,
                    deck_size=deck_size,
                    created_at=now,
                    expires_at=now + retention_window(),
                )
                CreateData.add_game_session(data_converter.convert_schema_to_row(game), session)

    logging.info(f"Game {session_id} started: {game.player1} vs {game.player2}, N={deck_size}")
    await hub.start_game(
        session_id, game.player1, game.player2, game.player1_stake, game.player2_stake
    )
    await hub.game_updated(session_id)
    return game


async def flip_card(
    session_id: int,
    caller: str,
    request: FlipModel,
    verifier: ProofVerifier,
    hub: GameHub,
) -> FlipResult:
    """Verify and apply one flip atomically; any rejection leaves the session unchanged."""
    if caller != request.player:
        raise NotPlayer()

    async with lock_manager.hold(session_id):
        async with Session() as session:
            async with session.begin():
                now = datetime.now()
                row = await ReadData.read_game_session(session_id, session)
                if row is None or row.expires_at <= now:
                    raise GameNotFound()
                game = data_converter.convert_row_to_schema(row)

                try:
                    memory_rules.check_flip_preconditions(game, request.player, request.position)
                    proof, public_inputs = data_converter.decode_proof_payload(
                        request.proof, request.public_inputs
                    )
                    result = memory_rules.flip_card(
                        game,
                        caller=request.player,
                        position=request.position,
                        revealed_value=request.revealed_value,
                        proof=proof,
                        public_inputs=public_inputs,
                        verifier=verifier,
                    )
                except GameError as e:
                    logging.info(
                        f"Rejected flip session={session_id} player={request.player} "
                        f"position={request.position}: {e.error}"
                    )
                    raise

                # Every accepted flip extends the retention window.
                result.game.updated_at = now
                result.game.expires_at = now + retention_window()
                data_converter.copy_schema_to_row(result.game, row)
                CreateData.add_flip_log(
                    session_id,
                    request.player,
                    request.position,
                    request.revealed_value,
                    result.matched,
                    session,
                )

    logging.info(
        f"Flip session={session_id} player={request.player} position={request.position} "
        f"matched={result.matched} pairs_found={result.game.pairs_found}"
    )
    await hub.game_updated(session_id)
    if result.completed:
        player1_won = result.game.score1 > result.game.score2
        logging.info(f"Game {session_id} complete: {result.game.score1}-{result.game.score2}")
        await hub.end_game(session_id, player1_won)
        await lock_manager.cleanup(session_id)
    return result


async def read_game(session_id: int) -> GameSessionSchema:
    async with Session() as session:
        row = await ReadData.read_game_session(session_id, session)
        if row is None or row.expires_at <= datetime.now():
            raise GameNotFound()
        return data_converter.convert_row_to_schema(row)


async def read_flip_log(session_id: int) -> List[FlipLogSchema]:
    async with Session() as session:
        row = await ReadData.read_game_session(session_id, session)
        if row is None or row.expires_at <= datetime.now():
            raise GameNotFound()
        flips = await ReadData.read_flip_log(session_id, session)
        return [FlipLogSchema.model_validate(flip) for flip in flips]


async def purge_expired_games() -> List[int]:
    """Delete sessions past their retention window and consents for games that never started."""
    now = datetime.now()
    async with Session() as session:
        async with session.begin():
            purged = await DeleteData.delete_expired_game_sessions(now, session)
            await DeleteData.delete_stale_consents(now - retention_window(), session)
    for session_id in purged:
        await lock_manager.cleanup(session_id)
    if purged:
        logging.info(f"Purged {len(purged)} expired games")
    return purged
