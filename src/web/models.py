"""Pydantic request/response schemas for the web API.

Required fields are Optional here and checked in the routes, so a missing
field gets the route's own 400 message rather than a generic body error.
Listing quantity and specs are free-form and reach the prompt as sent.
"""

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict

# --- Sync ---


class SyncUserRequest(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    eventId: Optional[str] = None
    user: Optional[dict[str, Any]] = None


# --- Agent ---


class UserChatRequest(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    userId: Optional[str] = None
    message: Optional[str] = None
    language: Optional[str] = None


class UserChatResponse(BaseModel):
    response: str
    confidence: str
    cards: list[Any] = []
    suggestions: list[str] = []
    missingFields: list[str] = []
    interactionId: Optional[str] = None


class ListingSuggestRequest(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    category: Optional[str] = None
    commodity: Optional[str] = None
    region: Optional[str] = None
    currency: Optional[str] = "PLN"
    quantity: Any = None
    unit: Optional[str] = "t"
    language: Optional[str] = "pl"
    specs: Any = None
    notes: Optional[str] = ""
    userId: Optional[str] = None


class PriceSuggestionOut(BaseModel):
    value: Union[int, float]
    currency: str
    unit: str


class ListingSuggestResponse(BaseModel):
    success: bool = True
    interactionId: Optional[str] = None
    description: str
    priceSuggestion: PriceSuggestionOut
    confidence: str
    missingFields: list[str]
