"""FastAPI application for TopicMap.

Serves one map session over HTTP: the annotated view for the renderer
plus the callbacks it issues (expand, toggle, delete, focus, edit, drag).
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from topicmap.api.errors import register_error_handlers
from topicmap.api.routes import router
from topicmap.config import settings
from topicmap.knowledge import LLMKnowledgeSource, close_llm_client
from topicmap.layout import LayoutConfig
from topicmap.session import MapSession
from topicmap.storage import create_store

logger = logging.getLogger(__name__)


def create_session() -> MapSession:
    """Build and load a session from global settings."""
    session = MapSession(
        store=create_store(settings),
        knowledge=LLMKnowledgeSource(),
        layout_config=LayoutConfig.from_settings(settings),
    )
    session.load()
    return session


def create_app(session: MapSession | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Manage application lifespan - startup and shutdown."""
        logger.info("Starting TopicMap API...")
        owns_session = session is None
        if owns_session:
            logger.info(f"Store backend: {settings.store_backend}, LLM: {settings.llm_model}")
            app.state.session = create_session()
        else:
            app.state.session = session

        yield

        logger.info("Shutting down TopicMap API...")
        app.state.session.close()
        if owns_session:
            await close_llm_client()

    app = FastAPI(
        title="TopicMap",
        description="Exploratory knowledge map with collapsible topic trees",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(router)

    # Injected sessions are available without running the lifespan
    if session is not None:
        app.state.session = session

    return app


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    uvicorn.run(
        "topicmap.api.main:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug,
    )
