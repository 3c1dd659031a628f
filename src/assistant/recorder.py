"""Best-effort audit log of completed generations."""

import sqlite3
from typing import Any, Mapping, Optional

import structlog

from marketplace.store import MarketplaceStore
from shared_types import Actor, Task

logger = structlog.get_logger()


class InteractionRecorder:
    """Appends interaction records; a failed write never fails the generation."""

    def __init__(self, store: MarketplaceStore):
        self.store = store

    def record(
        self,
        task: Task,
        actor: Actor,
        user_id: Optional[str],
        input_data: Mapping[str, Any],
        output_data: Mapping[str, Any],
    ) -> Optional[str]:
        """Insert one record. Returns its id, or None if the write failed."""
        try:
            interaction_id = self.store.insert_interaction(
                task=task.value,
                actor=actor.value,
                user_id=user_id,
                input_data=dict(input_data),
                output_data=dict(output_data),
            )
        except (sqlite3.Error, OSError, TypeError, ValueError) as e:
            logger.warning("recorder.write_failed", task=task.value, error=str(e))
            return None
        logger.debug("recorder.recorded", task=task.value, interaction_id=interaction_id)
        return interaction_id
