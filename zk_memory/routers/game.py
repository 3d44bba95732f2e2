from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException, Path, status
from fastapi.responses import StreamingResponse
from redis.asyncio import Redis

from zk_memory import config
from zk_memory.authentication.basic_authentication import BasicAuthentication
from zk_memory.converter import DataConverter
from zk_memory.dependencies import get_deck_size, get_game_hub, get_redis, get_verifier
from zk_memory.domain.commitment import COMMITMENT_SCHEME
from zk_memory.models.basic_authentication_models import UserModel
from zk_memory.models.dc_models import (
    ConsentModel,
    FlipModel,
    GameStateModel,
    HealthModel,
    StartGameModel,
)
from zk_memory.models.schema_models import FlipLogSchema
from zk_memory.redis_subscriber import RedisSubscriber
from zk_memory.services import game_db
from zk_memory.services.game_hub import GameHub
from zk_memory.verifiers import ProofVerifier

game_router = APIRouter()
basic_auth = BasicAuthentication()
data_converter = DataConverter()

SessionId = Annotated[int, Path(ge=0, lt=2**32, description="u32 session identifier chosen by the dealer")]


class GameServer:
    @staticmethod
    @game_router.get("/health", response_model=HealthModel)
    async def health(verifier: ProofVerifier = Depends(get_verifier)) -> HealthModel:
        return HealthModel(
            status="ok",
            commitment_scheme=COMMITMENT_SCHEME,
            verifier=verifier.name,
            verifier_is_sound=verifier.is_sound,
            deck_size=config.deck_size,
        )

    @staticmethod
    @game_router.post("/games/{session_id}/consent", status_code=status.HTTP_201_CREATED)
    async def consent(
        consent: ConsentModel,
        session_id: SessionId,
        user_data: UserModel = Depends(basic_auth.check_user_data),
    ) -> dict:
        """Record the authenticated player's consent to join a game with a stake

        Args:
            consent (ConsentModel): stake the player commits
            session_id (int): game to join
            user_data (UserModel): The user data for authentication
        """
        await game_db.record_consent(session_id, user_data.username, consent.stake)
        return {"session_id": session_id, "player": user_data.username, "stake": consent.stake}

    @staticmethod
    @game_router.post(
        "/games/{session_id}/start",
        response_model=GameStateModel,
        status_code=status.HTTP_201_CREATED,
    )
    async def start_game(
        start: StartGameModel,
        session_id: SessionId,
        user_data: UserModel = Depends(basic_auth.check_user_data),
        deck_size: int = Depends(get_deck_size),
        hub: GameHub = Depends(get_game_hub),
    ) -> GameStateModel:
        """Create the game with the dealer's deck commitment

        The caller must be player1; player2 must have consented to the same
        session and stake beforehand.
        """
        game = await game_db.start_game(session_id, user_data.username, start, deck_size, hub)
        return data_converter.convert_schema_to_state_model(game)

    @staticmethod
    @game_router.post("/games/{session_id}/flip", response_model=GameStateModel)
    async def flip_card(
        flip: FlipModel,
        session_id: SessionId,
        user_data: UserModel = Depends(basic_auth.check_user_data),
        verifier: ProofVerifier = Depends(get_verifier),
        hub: GameHub = Depends(get_game_hub),
    ) -> GameStateModel:
        """Flip one card with a proof that the revealed value is the committed one

        Args:
            flip (FlipModel): position, revealed value, proof and public inputs
            session_id (int): game to play
            user_data (UserModel): must be the player named in ``flip``
        """
        result = await game_db.flip_card(session_id, user_data.username, flip, verifier, hub)
        return data_converter.convert_schema_to_state_model(result.game)

    @staticmethod
    @game_router.get("/games/{session_id}", response_model=GameStateModel)
    async def get_game(session_id: SessionId) -> GameStateModel:
        game = await game_db.read_game(session_id)
        return data_converter.convert_schema_to_state_model(game)

    @staticmethod
    @game_router.get("/games/{session_id}/flips", response_model=List[FlipLogSchema])
    async def get_flips(session_id: SessionId) -> List[FlipLogSchema]:
        return await game_db.read_flip_log(session_id)

    @staticmethod
    @game_router.get("/stream/{session_id}")
    async def stream_game(
        session_id: SessionId,
        user_data: UserModel = Depends(basic_auth.check_user_data),
        redis: Redis = Depends(get_redis),
    ):
        if config.game_hub != "redis":
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Streaming requires GAME_HUB=redis.",
            )
        await game_db.read_game(session_id)
        redis_subscriber = RedisSubscriber(session_id)
        return StreamingResponse(
            redis_subscriber.event_generator(redis),
            media_type="text/event-stream; charset=utf-8",
            headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
        )
