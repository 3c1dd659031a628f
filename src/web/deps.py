"""Dependency injection for FastAPI routes.

Components are built once in the app lifespan and stored on app.state.
"""

from fastapi import Request

from assistant.pipeline import GenerationPipeline
from marketplace.store import MarketplaceStore


def get_store(request: Request) -> MarketplaceStore:
    return request.app.state.store


def get_pipeline(request: Request) -> GenerationPipeline:
    return request.app.state.pipeline
