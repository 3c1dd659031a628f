"""Shared enums and types for the grain orchestrator."""

from enum import StrEnum


class Task(StrEnum):
    CHAT = "user_chat"
    LISTING_SUGGEST = "listing_suggest"


class GenerationMode(StrEnum):
    CREATE = "create"
    REWRITE = "rewrite"


class Confidence(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Actor(StrEnum):
    USER = "user"
    SELLER = "seller"
    CLI = "cli"
