import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request

from dal.signage_store import SignageStore
from routes.display_route import router as display_router
from routes.poll_route import router as poll_router
from services.display.display_engine import DisplayEngine
from services.display.ticker import Ticker
from utils.database_init import AsyncDatabaseInitializer
from utils.display_config import DisplayConfig

load_dotenv()  # Load environment variables from .env file if present

LOGGER = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan manager to initialize:
      - the SQLite database (at DATABASE_DIR/app.db)
      - the signage store and the display engine
      - the tickers that refresh slides, guest feeds and the UI clock
    and attach them to `app.state`.
    """
    config = DisplayConfig.from_env()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    db_initializer = AsyncDatabaseInitializer(reset_on_start=config.reset_database_on_start)
    await db_initializer.ensure_database()
    app.state.db_initializer = db_initializer

    store = SignageStore(db_initializer)
    engine = DisplayEngine(store, config)
    app.state.store = store
    app.state.display_engine = engine

    # Serve something from the first request on.
    await engine.refresh_slides()
    await engine.refresh_guest_feeds()

    tickers = [
        Ticker("slides", config.slide_refresh_seconds, engine.refresh_slides),
        Ticker("guest-feeds", config.guest_feed_seconds, engine.refresh_guest_feeds),
        Ticker("ui", config.tick_seconds, engine.tick),
    ]
    for ticker in tickers:
        ticker.start()
    app.state.tickers = tickers
    LOGGER.info("Display engine started with database at %s", db_initializer.db_path)

    try:
        yield
    finally:
        for ticker in tickers:
            await ticker.stop()


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application instance.
    """
    app = FastAPI(lifespan=lifespan)

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check reporting database presence and store reachability.
        """
        has_db = hasattr(request.app.state, "db_initializer")
        engine = getattr(request.app.state, "display_engine", None)
        return {
            "ok": True,
            "db_initialized": has_db,
            "is_offline": engine.is_offline if engine is not None else None,
        }

    # Register application routers
    app.include_router(display_router)
    app.include_router(poll_router)

    return app


app = create_app()
