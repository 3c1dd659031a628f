"""Assemble the fact set for a generation task from marketplace snapshots."""

from types import MappingProxyType
from typing import Any, Mapping

import structlog

from marketplace.store import MarketplaceStore
from shared_types import Task

logger = structlog.get_logger()

FactSet = Mapping[str, Any]


def freeze(facts: Mapping[str, Any]) -> FactSet:
    """Read-only view over a copy of facts."""
    return MappingProxyType(dict(facts))


class ContextAssembler:
    """Read-only lookups folded into a FactSet. Missing rows mean fewer facts."""

    def __init__(
        self,
        store: MarketplaceStore,
        max_listings: int = 5,
        max_transactions: int = 5,
    ):
        self.store = store
        self.max_listings = max_listings
        self.max_transactions = max_transactions

    def seller_stats(self, user_id: str) -> dict[str, Any]:
        """Counts plus the most recently updated listings/transactions."""
        return {
            "has_profile": self.store.get_user_profile(user_id) is not None,
            "listing_count": self.store.count_listings(user_id),
            "transaction_count": self.store.count_transactions(user_id),
            "recent_listings": self.store.recent_listings(user_id, self.max_listings),
            "recent_transactions": self.store.recent_transactions(user_id, self.max_transactions),
        }

    def assemble(
        self, task: Task, ids: Mapping[str, Any], request_facts: Mapping[str, Any] | None = None
    ) -> FactSet:
        """Build the fact set for task.

        Args:
            task: Generation task
            ids: Lookup keys; "userId" selects the account to describe
            request_facts: Facts supplied with the request, passed through as-is
        """
        facts: dict[str, Any] = dict(request_facts or {})
        user_id = ids.get("userId")

        match task:
            case Task.CHAT:
                facts.update(self.seller_stats(user_id) if user_id else _empty_stats())
            case Task.LISTING_SUGGEST:
                if user_id:
                    stats = self.seller_stats(user_id)
                    facts["seller"] = {
                        "listing_count": stats["listing_count"],
                        "transaction_count": stats["transaction_count"],
                        "recent_listings": stats["recent_listings"],
                    }

        logger.debug("context.assembled", task=task.value, keys=sorted(facts))
        return freeze(facts)


def _empty_stats() -> dict[str, Any]:
    return {
        "has_profile": False,
        "listing_count": 0,
        "transaction_count": 0,
        "recent_listings": [],
        "recent_transactions": [],
    }
