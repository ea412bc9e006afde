import inspect
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from openai import AsyncOpenAI

from dal.content_dal import ContentDAL
from routes.auth_route import router as auth_router
from routes.content_route import router as content_router
from routes.message_route import router as message_router
from routes.realtime_ws import router as realtime_router
from services.ingestion_pipeline import IngestionPipeline
from services.interfaces import Summarizer
from services.openai.document_summarizer import DocumentSummarizer
from services.realtime.broadcast import BroadcastEngine
from services.realtime.connection_registry import ConnectionRegistry
from services.session_store import SessionRegistry
from utils.app_config import AppConfig
from utils.database_init import AsyncDatabaseInitializer

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"

from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file if present

LOGGER = logging.getLogger("skillswap")


async def _close_client(client) -> None:
    """Close the OpenAI client if it exposes a close/aclose method."""
    aclose = getattr(client, "aclose", None) or getattr(client, "close", None)
    if aclose is None:
        return
    try:
        if inspect.iscoroutinefunction(aclose):
            await aclose()
        else:
            result = aclose()
            if inspect.isawaitable(result):
                await result
    except Exception as exc:
        # Log and continue shutdown
        LOGGER.warning("Error while closing OpenAI client: %s", exc)


def create_app(config: Optional[AppConfig] = None, summarizer: Optional[Summarizer] = None) -> FastAPI:
    """
    Create and configure the FastAPI application instance.

    Args:
        config: Settings to use instead of reading the environment at startup.
        summarizer: Document summarizer to use instead of the OpenAI-backed one.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Build the per-process state and attach it to `app.state`:
          - the SQLite database initializer
          - the session and connection registries and the broadcast engine
          - the document summarizer and the ingestion pipeline
        """
        settings = config or AppConfig.from_env()
        logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
        app.state.config = settings

        db_initializer = AsyncDatabaseInitializer(settings.database_dir, reset=settings.reset_database)
        await db_initializer.ensure_database()
        app.state.db_initializer = db_initializer

        sessions = SessionRegistry(dev_auto_login=settings.dev_auto_login)
        connections = ConnectionRegistry()
        app.state.session_registry = sessions
        app.state.connection_registry = connections
        app.state.broadcast_engine = BroadcastEngine(connections, sessions)
        if settings.dev_auto_login:
            LOGGER.warning("DEV_AUTO_LOGIN is enabled; tokenless requests act as the first user")

        openai_client = None
        doc_summarizer = summarizer
        if doc_summarizer is None:
            if not os.getenv("OPENAI_API_KEY"):
                raise RuntimeError("OPENAI_API_KEY environment variable is not set")
            try:
                openai_client = AsyncOpenAI()
            except Exception as exc:
                raise RuntimeError("Failed to initialize OpenAI Async client") from exc
            doc_summarizer = DocumentSummarizer(openai_client, model=settings.openai_model)
        app.state.openai_client = openai_client

        pipeline = IngestionPipeline(
            ContentDAL(db_initializer),
            doc_summarizer,
            upload_dir=settings.upload_dir,
            max_upload_bytes=settings.max_upload_bytes,
        )
        app.state.ingestion_pipeline = pipeline
        LOGGER.info("Startup complete (database=%s, uploads=%s)", db_initializer.db_path, settings.upload_dir)

        try:
            yield
        finally:
            await pipeline.shutdown()
            if openai_client is not None:
                await _close_client(openai_client)

    app = FastAPI(title="SkillSwap API", lifespan=lifespan)

    @app.get("/health")
    async def health(request: Request):
        """
        Report readiness plus live connection and pending ingestion counts.
        """
        state = request.app.state
        connections = getattr(state, "connection_registry", None)
        pipeline = getattr(state, "ingestion_pipeline", None)
        return {
            "ok": True,
            "db_initialized": hasattr(state, "db_initializer"),
            "openai_available": getattr(state, "openai_client", None) is not None,
            "connections": len(connections) if connections is not None else 0,
            "pending_ingestions": len(pipeline.pending()) if pipeline is not None else 0,
        }

    # Register application routers
    app.include_router(auth_router)
    app.include_router(message_router)
    app.include_router(content_router)
    app.include_router(realtime_router)

    return app


app = create_app()
