from apscheduler.schedulers.asyncio import AsyncIOScheduler
import logging
from fastapi import FastAPI
from contextlib import asynccontextmanager

from briscola_server.load_settings import log_level, sweep_interval
from briscola_server.routers import room
from briscola_server.routers.room import lifecycle_manager

logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app):
    """Start the sweep of finished rooms.
    This function is called to start the server.
    """
    scheduler = AsyncIOScheduler()
    # If the game has been over for a while, delete the room
    scheduler.add_job(
        lifecycle_manager.sweep_finished_rooms,
        "interval",
        seconds=sweep_interval,
        id="sweep_finished_rooms",
    )
    scheduler.start()
    try:
        yield
    finally:
        scheduler.shutdown(wait=False)
        await lifecycle_manager.close_all()
        logging.info("Stop Server")


app = FastAPI(lifespan=lifespan)
app.include_router(room.room_router)
