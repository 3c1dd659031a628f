"""Generative-response pipeline: prompt compilation, invocation and hardening."""

from .context import ContextAssembler
from .errors import GenerationFailure, MalformedModelOutput
from .hardening import ChatResult, SuggestionResult, harden_chat, harden_listing
from .invoker import ModelInvoker
from .modes import select_mode
from .pipeline import GenerationOutcome, GenerationPipeline
from .prompts import PromptPair, compile_prompt
from .recorder import InteractionRecorder

__all__ = [
    "ChatResult",
    "ContextAssembler",
    "GenerationFailure",
    "GenerationOutcome",
    "GenerationPipeline",
    "InteractionRecorder",
    "MalformedModelOutput",
    "ModelInvoker",
    "PromptPair",
    "SuggestionResult",
    "compile_prompt",
    "harden_chat",
    "harden_listing",
    "select_mode",
]
