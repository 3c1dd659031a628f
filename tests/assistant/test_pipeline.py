"""End-to-end tests for GenerationPipeline with a scripted provider."""

import pytest

from assistant.context import ContextAssembler
from assistant.errors import GenerationFailure
from assistant.invoker import ModelInvoker
from assistant.pipeline import GenerationPipeline
from assistant.recorder import InteractionRecorder
from cli.config_models import GenerationConfig, RetryConfig
from fakes import FakeProvider, listing_json
from shared_types import Actor, Confidence, GenerationMode, Task

NO_WAIT = RetryConfig(max_attempts=2, min_wait=0, llm_max_wait=0)
LISTING_FACTS = {
    "category": "grain",
    "commodity": "wheat",
    "region": "Mazowieckie",
    "currency": "PLN",
    "quantity": 24,
    "unit": "t",
    "language": "pl",
    "specs": {"protein": "12.5%"},
    "notes": "",
}


def _pipeline(store, provider, record=True, config=None):
    return GenerationPipeline(
        ModelInvoker(provider, retry=NO_WAIT),
        ContextAssembler(store),
        recorder=InteractionRecorder(store) if record else None,
        config=config,
    )


@pytest.mark.asyncio
async def test_listing_create(store):
    provider = FakeProvider([listing_json()])
    outcome = await _pipeline(store, provider).run(
        Task.LISTING_SUGGEST, LISTING_FACTS, actor=Actor.SELLER, locale="pl"
    )

    assert outcome.mode is GenerationMode.CREATE
    assert outcome.result.confidence is Confidence.HIGH
    assert provider.calls[0]["temperature"] == 0.45
    assert "SELLER DRAFT" not in provider.calls[0]["messages"][0]["content"]


@pytest.mark.asyncio
async def test_listing_rewrite_when_notes_long(store):
    provider = FakeProvider([listing_json()])
    facts = {**LISTING_FACTS, "notes": "sprzedam pszenice ladna sucha, odbior wlasny"}
    outcome = await _pipeline(store, provider).run(
        Task.LISTING_SUGGEST, facts, actor=Actor.SELLER
    )

    assert outcome.mode is GenerationMode.REWRITE
    assert "sprzedam pszenice" in provider.calls[0]["messages"][0]["content"]


@pytest.mark.asyncio
async def test_rewrite_threshold_from_config(store):
    provider = FakeProvider([listing_json()])
    facts = {**LISTING_FACTS, "notes": "dry wheat"}
    pipeline = _pipeline(store, provider, config=GenerationConfig(rewrite_min_chars=5))
    outcome = await pipeline.run(Task.LISTING_SUGGEST, facts, actor=Actor.SELLER)
    assert outcome.mode is GenerationMode.REWRITE


@pytest.mark.asyncio
async def test_invalid_json_is_hardened_not_raised(store):
    provider = FakeProvider(["sorry, I cannot help"])
    outcome = await _pipeline(store, provider).run(
        Task.LISTING_SUGGEST, {**LISTING_FACTS, "currency": "EUR", "unit": "kg"}, actor=Actor.SELLER
    )
    data = outcome.result.to_dict()
    assert data["confidence"] == "low"
    assert data["priceSuggestion"] == {"value": 0, "currency": "EUR", "unit": "kg"}


@pytest.mark.asyncio
async def test_records_interaction_with_mode(store):
    provider = FakeProvider([listing_json()])
    outcome = await _pipeline(store, provider).run(
        Task.LISTING_SUGGEST, LISTING_FACTS, actor=Actor.SELLER, user_id="seller-1", locale="pl"
    )

    rows = store.get_interactions(user_id="seller-1")
    assert [r["id"] for r in rows] == [outcome.interaction_id]
    assert rows[0]["input"]["mode"] == "create"
    assert rows[0]["input"]["locale"] == "pl"
    assert rows[0]["output"] == outcome.result.to_dict()


@pytest.mark.asyncio
async def test_no_recorder_means_no_interaction_id(store):
    outcome = await _pipeline(store, FakeProvider([listing_json()]), record=False).run(
        Task.LISTING_SUGGEST, LISTING_FACTS, actor=Actor.CLI
    )
    assert outcome.interaction_id is None
    assert store.get_interactions() == []


@pytest.mark.asyncio
async def test_chat_uses_account_stats(seeded_store):
    provider = FakeProvider(["You have 3 active listings."])
    outcome = await _pipeline(seeded_store, provider).run(
        Task.CHAT, {"message": "How many listings do I have?"}, actor=Actor.USER, user_id="seller-1"
    )

    prompt = provider.calls[0]["messages"][0]["content"]
    assert "Listings: 3" in prompt
    assert "Transactions: 1" in prompt
    assert provider.calls[0]["temperature"] == 0.4
    assert outcome.mode is GenerationMode.CREATE
    assert outcome.result.response == "You have 3 active listings."


@pytest.mark.asyncio
async def test_generation_failure_propagates_and_records_nothing(store):
    provider = FakeProvider([RuntimeError("network down")])
    with pytest.raises(GenerationFailure):
        await _pipeline(store, provider).run(
            Task.CHAT, {"message": "hello"}, actor=Actor.USER, user_id="u1"
        )
    assert store.get_interactions() == []
