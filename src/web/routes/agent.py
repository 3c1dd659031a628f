"""Assistant routes: user chat and listing suggestions."""

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from assistant.pipeline import GenerationPipeline
from shared_types import Actor, Task
from web.auth import verify_secret
from web.deps import get_pipeline
from web.errors import ValidationError
from web.models import (
    ListingSuggestRequest,
    ListingSuggestResponse,
    UserChatRequest,
    UserChatResponse,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/agent", tags=["agent"], dependencies=[Depends(verify_secret)])


@router.post("/user-chat", response_model=UserChatResponse, response_model_exclude_none=True)
async def user_chat(body: UserChatRequest, pipeline: GenerationPipeline = Depends(get_pipeline)):
    if not body.userId or not body.message:
        raise ValidationError("Missing userId or message")

    try:
        outcome = await pipeline.run(
            Task.CHAT,
            {"message": body.message},
            actor=Actor.USER,
            user_id=body.userId,
            locale=body.language,
        )
    except Exception as e:
        logger.error("agent.chat_failed", user_id=body.userId, error=str(e))
        return JSONResponse(status_code=500, content={"error": "Assistant failed"})

    return UserChatResponse(**outcome.result.to_dict(), interactionId=outcome.interaction_id)


@router.post(
    "/listing-suggest", response_model=ListingSuggestResponse, response_model_exclude_none=True
)
async def listing_suggest(
    body: ListingSuggestRequest, pipeline: GenerationPipeline = Depends(get_pipeline)
):
    if not body.category or not body.commodity:
        raise ValidationError("Missing category or commodity")

    language = body.language or "pl"
    facts = {
        "category": body.category,
        "commodity": body.commodity,
        "region": body.region,
        "currency": body.currency or "PLN",
        "quantity": body.quantity,
        "unit": body.unit or "t",
        "language": language,
        "specs": body.specs if body.specs is not None else {},
        "notes": body.notes or "",
    }

    try:
        outcome = await pipeline.run(
            Task.LISTING_SUGGEST,
            facts,
            actor=Actor.SELLER,
            user_id=body.userId,
            locale=language,
        )
    except Exception as e:
        logger.error("agent.listing_suggest_failed", commodity=body.commodity, error=str(e))
        return JSONResponse(status_code=500, content={"error": "Listing suggestion failed"})

    return ListingSuggestResponse(**outcome.result.to_dict(), interactionId=outcome.interaction_id)
