"""Notifications to the external game-lifecycle hub.

The hub keeps stakes/points bookkeeping outside this service. It is a pure
sink: nothing it returns is consumed, and a failing hub never rolls back
game state that has already been committed.
"""

import json
import logging

from redis.asyncio import Redis
from redis.exceptions import RedisError

START_CHANNEL = "game_hub:start"
END_CHANNEL = "game_hub:end"


def game_channel(session_id: int) -> str:
    return f"game:{session_id}"


class GameHub:
    async def start_game(
        self,
        session_id: int,
        player1: str,
        player2: str,
        player1_stake: int,
        player2_stake: int,
    ) -> None:
        raise NotImplementedError

    async def end_game(self, session_id: int, player1_won: bool) -> None:
        raise NotImplementedError

    async def game_updated(self, session_id: int) -> None:
        """Called after every committed state change of a session."""
        raise NotImplementedError


class LoggingGameHub(GameHub):
    async def start_game(self, session_id, player1, player2, player1_stake, player2_stake):
        logging.info(
            f"game hub start_game session={session_id} player1={player1} player2={player2} "
            f"stakes={player1_stake}/{player2_stake}"
        )

    async def end_game(self, session_id, player1_won):
        logging.info(f"game hub end_game session={session_id} player1_won={player1_won}")

    async def game_updated(self, session_id):
        logging.debug(f"game {session_id} updated")


class RedisGameHub(GameHub):
    """Publishes lifecycle events and per-game update pings on Redis channels."""

    def __init__(self, redis: Redis):
        self.redis = redis

    async def _publish(self, channel: str, message: str) -> None:
        try:
            await self.redis.publish(channel, message)
        except RedisError as e:
            logging.error(f"Failed to publish to {channel}: {e}")

    async def start_game(self, session_id, player1, player2, player1_stake, player2_stake):
        payload = {
            "session_id": session_id,
            "player1": player1,
            "player2": player2,
            "player1_stake": player1_stake,
            "player2_stake": player2_stake,
        }
        await self._publish(START_CHANNEL, json.dumps(payload))

    async def end_game(self, session_id, player1_won):
        payload = {"session_id": session_id, "player1_won": player1_won}
        await self._publish(END_CHANNEL, json.dumps(payload))

    async def game_updated(self, session_id):
        await self._publish(game_channel(session_id), str(session_id))
