"""Choose between composing from facts and rewriting user-supplied text."""

from shared_types import GenerationMode

# Trimmed free text at or above this length is treated as a draft to rewrite
REWRITE_MIN_CHARS = 20


def select_mode(free_text: str | None, threshold: int = REWRITE_MIN_CHARS) -> GenerationMode:
    """Return REWRITE when the trimmed text reaches the threshold, else CREATE."""
    text = (free_text or "").strip()
    if len(text) >= threshold:
        return GenerationMode.REWRITE
    return GenerationMode.CREATE
