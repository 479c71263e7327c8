import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from core import config, db, logs
from tasks import provider
from tasks import repository as task_repository
from tasks.router import TaskTransport

logger = logging.getLogger(__name__)


def create_app(
    *,
    database: db.Database | None = None,
    transport: TaskTransport | None = None,
    static_dir: str | None = None,
) -> FastAPI:
    """
    Build the API app.

    With no `transport`, the task stack is wired against `database` (a new
    pool from DATABASE_URL by default), which the lifespan hook connects and
    migrates on startup.
    """
    logs.setup_logging(level=config.log_level())

    owns_database = transport is None
    database = database or db.Database()
    transport = transport or provider.wire(database)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        if not owns_database:
            yield
            return

        # A failed connect or migration aborts startup.
        try:
            await database.connect()
            await task_repository.migrate(database)
        except Exception:
            logger.critical("database startup failed", exc_info=True)
            await database.close()
            raise
        logger.info("tasks table ready")
        try:
            yield
        finally:
            await database.close()

    app = FastAPI(lifespan=lifespan)

    app.include_router(transport.router, tags=["tasks"])

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    # Non-API paths fall through to the static site, when there is one.
    static_dir = static_dir or config.static_dir()
    if os.path.isdir(static_dir):
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")

    return app


app = create_app()
