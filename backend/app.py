import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.application import WorkflowService
from backend.core.config import Settings
from backend.infrastructure import (
    GeminiMetadataClient,
    InMemoryPreviewStore,
    InMemorySessionRepository,
    MetadataClient,
)
from backend.routes import pages, sessions

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, client: MetadataClient | None = None) -> FastAPI:
    """Build the application.

    Settings come from the environment unless given; a missing API key
    raises ``ConfigurationError`` here rather than on the first request.
    """
    settings = settings or Settings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if client is None:
        client = GeminiMetadataClient(
            settings.api_key,
            model=settings.model,
            temperature=settings.temperature,
            api_base=settings.api_base,
            timeout=settings.timeout,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        client.close()

    app = FastAPI(title="Microstock Tagger API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.workflow = WorkflowService(
        InMemorySessionRepository(),
        InMemoryPreviewStore(),
        client,
        session_ttl=settings.session_ttl,
        max_sessions=settings.max_sessions,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(pages.router)
    app.include_router(sessions.router, prefix="/api")

    logger.info("microstock tagger ready (model=%s, temperature=%s)", settings.model, settings.temperature)
    return app
