"""FastAPI application for the knowledge graph learner."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from kglearner.api.routes import router
from kglearner.config import settings
from kglearner.generation.llm_client import close_llm_client
from kglearner.session import LearnerSession

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifespan - startup and shutdown."""
    logger.info("Starting knowledge graph learner API...")
    logger.info(f"LLM endpoint: {settings.llm_base_url} ({settings.llm_model})")

    if getattr(app.state, "session", None) is None:
        app.state.session = LearnerSession()

    yield

    logger.info("Shutting down knowledge graph learner API...")
    app.state.session.engine.stop()
    await close_llm_client()


def create_app(session: LearnerSession | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Knowledge Graph Learner",
        description="LLM-generated learning maps with a live force-directed layout",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.session = session

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)

    return app


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    uvicorn.run(
        "kglearner.api.main:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug,
    )
