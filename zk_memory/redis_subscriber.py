import json
import logging
from typing import AsyncGenerator

from redis.asyncio import Redis

from zk_memory.converter import DataConverter
from zk_memory.errors import GameNotFound
from zk_memory.models.dc_models import GameStateModel
from zk_memory.services import game_db
from zk_memory.services.game_hub import game_channel

data_converter = DataConverter()


class RedisSubscriber:
    """Redis subscriber class to handle SSE events for one game."""

    def __init__(self, session_id: int):
        self.session_id: int = session_id

    async def read_state(self) -> GameStateModel:
        game = await game_db.read_game(self.session_id)
        return data_converter.convert_schema_to_state_model(game)

    def to_sse(self, event: str, state: GameStateModel) -> str:
        payload = json.dumps(state.model_dump(mode="json"))
        logging.debug(f"Payload: {payload}")
        return f"event: {event}\ndata: {payload}\n\n"

    async def event_generator(self, redis: Redis) -> AsyncGenerator[str, None]:
        """Event generator to handle SSE events.

        Sends the current state first, then the latest state on every update
        ping published for this game, until the game is complete.

        Args:
            redis (Redis): Redis connection object.
        """
        channel = game_channel(self.session_id)
        pubsub = redis.pubsub()
        await pubsub.subscribe(channel)
        try:
            state = await self.read_state()
            yield self.to_sse("latest_state_update", state)
            while state.is_active:
                msg = await pubsub.get_message(ignore_subscribe_messages=True, timeout=None)
                if msg and msg["type"] == "message":
                    try:
                        state = await self.read_state()
                    except GameNotFound:
                        logging.info(f"Game {self.session_id} expired while streaming")
                        break
                    yield self.to_sse("latest_state_update", state)
        finally:
            logging.info("Unsubscribing from channel")
            await pubsub.unsubscribe(channel)
            await pubsub.close()
