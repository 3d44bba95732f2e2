"""Process-wide collaborators, built once and injected with ``Depends``."""

from functools import lru_cache

from redis.asyncio import Redis

from zk_memory import config
from zk_memory.services.game_hub import GameHub, LoggingGameHub, RedisGameHub
from zk_memory.verifiers import ProofVerifier, build_verifier


@lru_cache(maxsize=1)
def get_verifier() -> ProofVerifier:
    return build_verifier(config.proof_verifier, config.verification_key_path)


@lru_cache(maxsize=1)
def get_redis() -> Redis:
    return Redis(
        host=config.redis_host,
        port=config.redis_port,
        decode_responses=True,
        health_check_interval=30,
    )


@lru_cache(maxsize=1)
def get_game_hub() -> GameHub:
    if config.game_hub == "redis":
        return RedisGameHub(get_redis())
    return LoggingGameHub()


def get_deck_size() -> int:
    return config.deck_size
