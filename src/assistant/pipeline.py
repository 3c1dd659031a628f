"""One compile → invoke → harden → record flow shared by every task."""

import asyncio
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Mapping, Optional, Union

import structlog

from cli.config_models import GenerationConfig
from observability import metrics
from shared_types import Actor, Confidence, GenerationMode, Task

from .context import ContextAssembler, FactSet
from .hardening import ChatResult, SuggestionResult, harden_chat, harden_listing
from .invoker import ModelInvoker
from .modes import select_mode
from .prompts import TEMPERATURES, compile_prompt
from .recorder import InteractionRecorder

logger = structlog.get_logger()

Result = Union[SuggestionResult, ChatResult]


@dataclass(frozen=True)
class TaskSpec:
    """Per-task knobs: where the free text lives and how replies are hardened."""

    task: Task
    temperature: float
    free_text_key: str
    selects_mode: bool
    harden: Callable[[Any, FactSet], Result]


def build_task_specs(config: GenerationConfig) -> dict[Task, TaskSpec]:
    return {
        Task.CHAT: TaskSpec(
            task=Task.CHAT,
            temperature=TEMPERATURES[Task.CHAT],
            free_text_key="message",
            selects_mode=False,
            harden=harden_chat,
        ),
        Task.LISTING_SUGGEST: TaskSpec(
            task=Task.LISTING_SUGGEST,
            temperature=TEMPERATURES[Task.LISTING_SUGGEST],
            free_text_key="notes",
            selects_mode=True,
            harden=partial(harden_listing, min_description_chars=config.min_description_chars),
        ),
    }


@dataclass
class GenerationOutcome:
    result: Result
    mode: GenerationMode
    interaction_id: Optional[str] = None


class GenerationPipeline:
    """Runs a task end to end. Only GenerationFailure and store errors escape."""

    def __init__(
        self,
        invoker: ModelInvoker,
        assembler: ContextAssembler,
        recorder: Optional[InteractionRecorder] = None,
        config: Optional[GenerationConfig] = None,
    ):
        self.invoker = invoker
        self.assembler = assembler
        self.recorder = recorder
        self.config = config or GenerationConfig()
        self.specs = build_task_specs(self.config)

    async def run(
        self,
        task: Task,
        request_facts: Mapping[str, Any],
        *,
        actor: Actor,
        user_id: Optional[str] = None,
        locale: Optional[str] = None,
    ) -> GenerationOutcome:
        spec = self.specs[task]
        ids = {"userId": user_id} if user_id else {}
        facts = await asyncio.to_thread(self.assembler.assemble, task, ids, request_facts)

        mode = GenerationMode.CREATE
        if spec.selects_mode:
            mode = select_mode(facts.get(spec.free_text_key), self.config.rewrite_min_chars)

        prompt = compile_prompt(task, mode, facts, locale)
        raw = await self.invoker.invoke(prompt, spec.temperature)
        result = spec.harden(raw, facts)

        metrics.counter(f"generation.{task.value}")
        if result.confidence is Confidence.LOW:
            metrics.counter("generation.downgraded")
        logger.info(
            "pipeline.generated",
            task=task.value,
            mode=mode.value,
            confidence=result.confidence.value,
            missing=len(result.missing_fields),
        )

        interaction_id = None
        if self.recorder is not None:
            interaction_id = await asyncio.to_thread(
                self.recorder.record,
                task,
                actor,
                user_id,
                {**facts, "mode": mode.value, "locale": locale},
                result.to_dict(),
            )

        return GenerationOutcome(result=result, mode=mode, interaction_id=interaction_id)
