"""Coerce untrusted model output into the client-safe result schemas.

The hardeners are total: whatever the provider returns, they produce a fully
populated, type-correct result. Each check yields ``Defect`` entries; the
defects alone decide the confidence downgrade and the ``missingFields``
messages, so the rules live in one place per schema.
"""

import json
import math
import re
from dataclasses import dataclass, field
from typing import Any, Mapping

import structlog

from shared_types import Confidence

from .errors import MalformedModelOutput

logger = structlog.get_logger()

INVALID_JSON = "AI returned invalid JSON - try again"
PRICE_INCOMPLETE = "Price suggestion incomplete"
DESCRIPTION_MISSING = "Description missing"
DESCRIPTION_TOO_SHORT = "Description too short"
RESPONSE_MISSING = "Response missing"

MIN_DESCRIPTION_CHARS = 140

DEFAULT_CURRENCY = "PLN"
DEFAULT_UNIT = "t"

VALID_CONFIDENCE = {c.value for c in Confidence}

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\s*```$")


@dataclass(frozen=True)
class Defect:
    """One failed check: the field it concerns and the client-facing message."""

    field: str
    message: str


@dataclass(frozen=True)
class PriceSuggestion:
    value: float
    currency: str
    unit: str

    def to_dict(self) -> dict:
        return {"value": self.value, "currency": self.currency, "unit": self.unit}


@dataclass
class SuggestionResult:
    """Validated listing-suggest output."""

    description: str
    price_suggestion: PriceSuggestion
    confidence: Confidence
    missing_fields: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "description": self.description,
            "priceSuggestion": self.price_suggestion.to_dict(),
            "confidence": self.confidence.value,
            "missingFields": list(self.missing_fields),
        }


@dataclass
class ChatResult:
    """Validated assistant chat reply."""

    response: str
    confidence: Confidence
    missing_fields: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "response": self.response,
            "confidence": self.confidence.value,
            "cards": [],
            "suggestions": list(self.suggestions),
            "missingFields": list(self.missing_fields),
        }


def append_missing(missing_fields: list[str], message: str) -> list[str]:
    """Append message unless already present. Mutates and returns the list."""
    if message not in missing_fields:
        missing_fields.append(message)
    return missing_fields


def apply_defects(
    confidence: Confidence, missing_fields: list[str], defects: list[Defect]
) -> Confidence:
    """Record defect messages in order; any defect forces LOW."""
    for defect in defects:
        append_missing(missing_fields, defect.message)
    return Confidence.LOW if defects else confidence


def parse_model_json(raw: Any) -> dict:
    """Parse raw model text into a JSON object.

    Strips a surrounding markdown fence first, since models add one despite
    being told not to. Raises MalformedModelOutput on anything else.
    """
    if not isinstance(raw, str):
        raise MalformedModelOutput(f"expected text, got {type(raw).__name__}")
    text = _FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", raw.strip()))

    try:
        parsed = json.loads(text)
    except (json.JSONDecodeError, RecursionError) as e:
        raise MalformedModelOutput(str(e)) from e
    if not isinstance(parsed, dict):
        raise MalformedModelOutput(f"expected a JSON object, got {type(parsed).__name__}")
    return parsed


def _coerce_missing_fields(value: Any) -> list[str]:
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return list(value)
    return []


def _coerce_confidence(value: Any) -> Confidence:
    if isinstance(value, str) and value in VALID_CONFIDENCE:
        return Confidence(value)
    return Confidence.LOW


def _is_finite_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def _coerce_price(value: Any) -> PriceSuggestion | None:
    if not isinstance(value, dict):
        return None
    amount = value.get("value")
    currency = value.get("currency")
    unit = value.get("unit")
    if not _is_finite_number(amount) or not isinstance(currency, str) or not isinstance(unit, str):
        return None
    return PriceSuggestion(value=amount, currency=currency, unit=unit)


def fallback_price(fallback: Mapping[str, Any]) -> PriceSuggestion:
    """Zero price in the caller's requested currency and unit."""
    return PriceSuggestion(
        value=0,
        currency=str(fallback.get("currency") or DEFAULT_CURRENCY),
        unit=str(fallback.get("unit") or DEFAULT_UNIT),
    )


def check_listing(
    parsed: dict, fallback: Mapping[str, Any], min_description_chars: int = MIN_DESCRIPTION_CHARS
) -> tuple[str, PriceSuggestion, list[Defect]]:
    """Schema pass over a parsed listing reply.

    Returns the repaired description and price plus the defects found, in
    detection order.
    """
    defects: list[Defect] = []

    price = _coerce_price(parsed.get("priceSuggestion"))
    if price is None:
        price = fallback_price(fallback)
        defects.append(Defect("priceSuggestion", PRICE_INCOMPLETE))

    description = parsed.get("description")
    if not isinstance(description, str):
        description = ""
        defects.append(Defect("description", DESCRIPTION_MISSING))

    if len(description.strip()) < min_description_chars:
        defects.append(Defect("description", DESCRIPTION_TOO_SHORT))

    return description, price, defects


def harden_listing(
    raw: Any,
    fallback: Mapping[str, Any],
    min_description_chars: int = MIN_DESCRIPTION_CHARS,
) -> SuggestionResult:
    """Turn raw listing-suggest output into a schema-valid SuggestionResult.

    Args:
        raw: Text returned by the provider
        fallback: Request facts; "currency" and "unit" seed the fallback price
        min_description_chars: Trimmed descriptions shorter than this are flagged

    Returns:
        SuggestionResult (never raises)
    """
    try:
        parsed = parse_model_json(raw)
    except MalformedModelOutput as e:
        logger.warning("hardening.invalid_json", error=str(e), raw=str(raw)[:200])
        return SuggestionResult(
            description="",
            price_suggestion=fallback_price(fallback),
            confidence=Confidence.LOW,
            missing_fields=[INVALID_JSON],
        )

    missing_fields = _coerce_missing_fields(parsed.get("missingFields"))
    confidence = _coerce_confidence(parsed.get("confidence"))
    description, price, defects = check_listing(parsed, fallback, min_description_chars)
    confidence = apply_defects(confidence, missing_fields, defects)

    if defects:
        logger.info(
            "hardening.downgraded",
            defects=[f"{d.field}: {d.message}" for d in defects],
        )

    return SuggestionResult(
        description=description,
        price_suggestion=price,
        confidence=confidence,
        missing_fields=missing_fields,
    )


def chat_suggestions(facts: Mapping[str, Any]) -> list[str]:
    """Follow-up prompts offered next to a chat reply, derived from account stats."""
    suggestions = []
    if not facts.get("listing_count"):
        suggestions.append("Create your first listing")
    else:
        suggestions.append("Improve my latest listing description")
    suggestions.append("Suggest a price for my commodity")
    if not facts.get("transaction_count"):
        suggestions.append("How do I close my first sale?")
    else:
        suggestions.append("Summarize my recent transactions")
    return suggestions


def harden_chat(raw: Any, facts: Mapping[str, Any]) -> ChatResult:
    """Turn a free-text chat reply into a ChatResult (never raises)."""
    reply = raw.strip() if isinstance(raw, str) else ""
    defects = [] if reply else [Defect("response", RESPONSE_MISSING)]
    missing_fields: list[str] = []
    confidence = apply_defects(Confidence.HIGH, missing_fields, defects)
    return ChatResult(
        response=reply,
        confidence=confidence,
        missing_fields=missing_fields,
        suggestions=chat_suggestions(facts),
    )
