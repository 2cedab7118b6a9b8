from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .api import router
from .config import Config
from .github_client import GitHubClient
from .ingestor import Ingestor
from .logging_setup import setup_logging
from .query import QueryEngine
from .scheduler import IngestionScheduler
from .store import CsvReleaseStore


def create_app(
    config: Config,
    query_engine: Optional[QueryEngine] = None,
    scheduler: Optional[IngestionScheduler] = None,
) -> FastAPI:
    setup_logging(config.log_level, config.log_file)

    store = CsvReleaseStore(config.releases_file)
    if query_engine is None:
        query_engine = QueryEngine(store, locale=config.locale)
    if scheduler is None:
        ingestor = Ingestor(GitHubClient(config.github_token), store, config.repositories)
        scheduler = IngestionScheduler(ingestor, config.update_interval_minutes)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await scheduler.start()
        try:
            yield
        finally:
            # Ensure the periodic ingestion task stops with the server
            await scheduler.stop()

    app = FastAPI(title="Release Dashboard API", version=__version__, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[config.cors_origin],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    app.state.config = config
    app.state.query_engine = query_engine
    app.state.scheduler = scheduler

    app.include_router(router)

    return app
