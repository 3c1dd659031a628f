"""Errors raised by the generation pipeline."""


class GenerationFailure(Exception):
    """The model provider was unreachable, errored, or timed out.

    The message is safe to log; callers must not forward it to clients.
    """


class MalformedModelOutput(ValueError):
    """Raw model output is not the structured shape a task expects.

    Raised while parsing and absorbed by the hardeners, never by callers.
    """
