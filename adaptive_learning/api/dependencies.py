"""
API Dependencies

Holds one orchestrator per user on top of a shared key-value store and
exposes it to route handlers through FastAPI dependencies.
"""

import random
import datetime
from typing import Callable, Dict, Optional

from fastapi import Depends, Request

from adaptive_learning.common.logger import app_logger
from adaptive_learning.config import AppConfig
from adaptive_learning.personalization.orchestrator import PersonalizationOrchestrator
from adaptive_learning.storage.base import KeyValueStore

# Module logger
logger = app_logger.getChild("api.dependencies")


class OrchestratorRegistry:
    """Lazily builds and caches one orchestrator per user."""

    def __init__(self, store: KeyValueStore, config: AppConfig,
                 clock: Optional[Callable[[], datetime.datetime]] = None):
        """
        Initialize the registry.

        Args:
            store: Key-value backend shared by every user
            config: Application configuration
            clock: Callable returning the current time
        """
        self.store = store
        self.config = config
        self.clock = clock
        self._orchestrators: Dict[str, PersonalizationOrchestrator] = {}

    def get(self, user_id: str) -> PersonalizationOrchestrator:
        """Return the user's orchestrator, creating it on first use."""
        orchestrator = self._orchestrators.get(user_id)
        if orchestrator is None:
            orchestrator = PersonalizationOrchestrator.create(
                self.store,
                user_id=user_id,
                config=self.config,
                clock=self.clock,
                rng=random.Random(self.config.generation.random_seed),
            )
            self._orchestrators[user_id] = orchestrator
            logger.info(f"Created orchestrator for user {user_id}")
        return orchestrator

    def __len__(self) -> int:
        return len(self._orchestrators)

    async def close(self) -> None:
        """Drop cached orchestrators and close the store."""
        self._orchestrators.clear()
        await self.store.close()


def get_registry(request: Request) -> OrchestratorRegistry:
    return request.app.state.registry


def get_orchestrator(user_id: str,
                     registry: OrchestratorRegistry = Depends(get_registry)) -> PersonalizationOrchestrator:
    return registry.get(user_id)
