import os
import pathlib
from dotenv import load_dotenv

load_dotenv()

_default_sqlite_path = pathlib.Path(__file__).parent / "zk_memory.sqlite3"

database_url = os.getenv("DATABASE_URL", f"sqlite+aiosqlite:///{_default_sqlite_path}")
pepper_data = os.getenv("PEPPER_DATA", "")

# Deck length N is fixed per deployment; every session uses the same N.
deck_size = int(os.getenv("DECK_SIZE", "4"))

# Selected once at startup. "accept_all" disables fairness and is for development only.
proof_verifier = os.getenv("PROOF_VERIFIER", "groth16").strip().lower()
verification_key_path = os.getenv("VERIFICATION_KEY_PATH")

game_ttl_days = int(os.getenv("GAME_TTL_DAYS", "30"))
purge_interval_hours = int(os.getenv("PURGE_INTERVAL_HOURS", "24"))

game_hub = os.getenv("GAME_HUB", "log").strip().lower()
redis_host = os.getenv("REDIS_HOST", "localhost")
redis_port = int(os.getenv("REDIS_PORT", "6379"))

log_level = os.getenv("LOG_LEVEL", "INFO").upper()

if deck_size < 2 or deck_size % 2 != 0:
    raise ValueError(f"DECK_SIZE must be an even number >= 2, got {deck_size}")
if deck_size // 2 > 256:
    raise ValueError("DECK_SIZE too large: card values must fit in one byte")
if proof_verifier not in ("groth16", "accept_all"):
    raise ValueError(f"PROOF_VERIFIER must be 'groth16' or 'accept_all', got {proof_verifier!r}")
if game_hub not in ("log", "redis"):
    raise ValueError(f"GAME_HUB must be 'log' or 'redis', got {game_hub!r}")
if game_ttl_days <= 0:
    raise ValueError("GAME_TTL_DAYS must be positive")

if __name__ == "__main__":
    print(database_url, deck_size, proof_verifier, verification_key_path, game_hub)
