from contextlib import asynccontextmanager
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
import uvicorn

from zk_memory import config
from zk_memory.crud import CreateData
from zk_memory.dependencies import get_verifier
from zk_memory.errors import GameError
from zk_memory.routers import game
from zk_memory.services import game_db

logging.basicConfig(level=config.log_level)
logging.getLogger("aiosqlite").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables, load the proof verifier and schedule the purge of expired games.
    This function is called to start the server.
    """
    await CreateData.create_table()
    verifier = get_verifier()
    logging.info(f"Proof verifier: {verifier.name}, deck size: {config.deck_size}")

    scheduler = AsyncIOScheduler()
    # If a game is past its retention window, delete it
    scheduler.add_job(
        game_db.purge_expired_games,
        "interval",
        hours=config.purge_interval_hours,
    )
    scheduler.start()
    try:
        yield
    finally:
        scheduler.shutdown()
        logging.info("Stop Server")


app = FastAPI(lifespan=lifespan)
app.include_router(game.game_router)


@app.exception_handler(GameError)
async def game_error_handler(request: Request, exc: GameError):
    return await http_exception_handler(request, exc.to_http_exception())


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8080)
