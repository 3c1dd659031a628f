"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from assistant.context import ContextAssembler
from assistant.invoker import ModelInvoker
from assistant.pipeline import GenerationPipeline
from assistant.recorder import InteractionRecorder
from cli.config import load_config_model
from cli.config_models import AppConfig
from llm import LLMProvider, create_llm_provider
from marketplace.store import MarketplaceStore
from observability import log_run_summary, metrics
from web.auth import verify_secret
from web.errors import register_exception_handlers
from web.routes import agent, sync

logger = structlog.get_logger()


def build_pipeline(
    config: AppConfig, store: MarketplaceStore, provider: LLMProvider
) -> GenerationPipeline:
    """Wire invoker, assembler and recorder from config."""
    invoker = ModelInvoker(
        provider,
        timeout=config.llm.timeout_seconds,
        max_tokens=config.llm.max_tokens,
        retry=config.retry,
    )
    assembler = ContextAssembler(
        store,
        max_listings=config.generation.recent_listings,
        max_transactions=config.generation.recent_transactions,
    )
    return GenerationPipeline(
        invoker,
        assembler,
        recorder=InteractionRecorder(store),
        config=config.generation,
    )


def create_app(
    config: Optional[AppConfig] = None, provider: Optional[LLMProvider] = None
) -> FastAPI:
    """Build the app. config/provider default to config.yaml + env and auto-detection."""
    cfg = config or load_config_model()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if not cfg.server.shared_secret:
            logger.critical("AGENT_ORCHESTRATOR_SECRET not set")
            raise RuntimeError("AGENT_ORCHESTRATOR_SECRET required")

        store = MarketplaceStore(cfg.storage.db_path)
        llm = provider or create_llm_provider(
            provider=cfg.llm.provider, api_key=cfg.llm.api_key, model=cfg.llm.model
        )

        app.state.config = cfg
        app.state.store = store
        app.state.pipeline = build_pipeline(cfg, store, llm)
        logger.info(
            "web.startup",
            db_path=str(cfg.storage.db_path),
            provider=llm.provider_name,
            model=llm.model,
        )
        yield
        log_run_summary()
        logger.info("web.shutdown")

    app = FastAPI(
        title="Grain Orchestrator",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.server.frontend_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(sync.router)
    app.include_router(agent.router)

    @app.get("/health")
    async def health():
        return {"ok": True}

    @app.get("/metrics", dependencies=[Depends(verify_secret)])
    async def metrics_summary():
        return metrics.summary()

    return app


app = create_app()
