# Uvicorn application factory <https://www.uvicorn.org/#application-factories>
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from catalog.api.http.author import router as author_router
from catalog.api.ws.events import router as events_router
from catalog.logging import logger
from catalog.middlewares.logging_context import LoggingContextMiddleware
from catalog.storage.db import engine, wait_and_init_db


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application startup and shutdown.

    Waits for the database and creates missing tables before serving,
    and disposes of the connection pool on shutdown.
    """
    logger.info("Application startup initiated")
    await wait_and_init_db()
    logger.info("Initialized database and tables")

    yield

    logger.info("Application shutdown initiated")
    await engine.dispose()
    logger.info("Application shutdown complete")


def application() -> FastAPI:
    """
    Initializes and configures the FastAPI application.

    Includes the author HTTP endpoints and the websocket event stream, and
    adds LoggingContextMiddleware so every log line carries its request.
    """
    app = FastAPI(
        title="Catalog author identities",
        description="Author alias resolution and identity merging",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.include_router(author_router)
    app.include_router(events_router)

    app.add_middleware(LoggingContextMiddleware)

    return app


app = application()  # Need for fastapi cli
