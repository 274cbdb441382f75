"""
Engine Registry

Explicit arena of per-user engines. Each user gets an independent
SleepEngine with its own random source; nothing is shared between users
except the configuration used for new engines.
"""

import logging
import threading
from typing import Callable, Dict, List, Optional

import numpy as np

from sleepcore.config import EngineConfig
from sleepcore.exceptions import RecordNotFoundError, ValidationError
from sleepcore.models.snapshot import EngineSnapshot
from sleepcore.services.sleep_engine import SleepEngine
from sleepcore.utils.sampling import make_rng

logger = logging.getLogger(__name__)

RngFactory = Callable[[str], np.random.Generator]


def _unseeded_rng(user_id: str) -> np.random.Generator:
    return make_rng()


class EngineRegistry:
    """Owns every user's engine for the lifetime of the process"""

    def __init__(self, config: Optional[EngineConfig] = None, rng_factory: Optional[RngFactory] = None):
        self.config = config or EngineConfig()
        self.rng_factory = rng_factory or _unseeded_rng
        self._engines: Dict[str, SleepEngine] = {}
        self._lock = threading.Lock()

    def create(self, user_id: str) -> SleepEngine:
        """
        Register a new engine

        Raises:
            ValidationError: If the user already has an engine
        """
        with self._lock:
            if user_id in self._engines:
                raise ValidationError(
                    message=f"Engine already exists for user {user_id}",
                    field="user_id",
                    value=user_id,
                    operation="create_engine"
                )
            engine = SleepEngine(user_id, config=self.config, rng=self.rng_factory(user_id))
            self._engines[user_id] = engine

        logger.info(f"Created engine for user {user_id}")
        return engine

    def get(self, user_id: str) -> SleepEngine:
        """
        Raises:
            RecordNotFoundError: If the user has no engine
        """
        engine = self._engines.get(user_id)
        if engine is None:
            raise RecordNotFoundError(
                message=f"No engine registered for user {user_id}",
                record_type="SleepEngine",
                record_id=user_id,
                user_id=user_id
            )
        return engine

    def get_or_create(self, user_id: str) -> SleepEngine:
        with self._lock:
            engine = self._engines.get(user_id)
            if engine is None:
                engine = SleepEngine(user_id, config=self.config, rng=self.rng_factory(user_id))
                self._engines[user_id] = engine
                logger.info(f"Created engine for user {user_id}")
        return engine

    def remove(self, user_id: str) -> EngineSnapshot:
        """
        Drop a user's engine, returning its final state for persistence

        The snapshot carries every decision not yet handed back, including
        those already evicted from the in-memory log.
        """
        engine = self.get(user_id)
        with self._lock:
            del self._engines[user_id]
        snapshot = engine.snapshot(drain_export=True)
        logger.info(f"Removed engine for user {user_id} ({len(snapshot.decisions)} decisions handed back)")
        return snapshot

    def restore(self, snapshot: EngineSnapshot) -> SleepEngine:
        """Register an engine rebuilt from a snapshot, replacing any existing one"""
        engine = SleepEngine.restore(snapshot, rng=self.rng_factory(snapshot.user_id))
        with self._lock:
            self._engines[snapshot.user_id] = engine
        return engine

    def snapshot_all(self) -> List[EngineSnapshot]:
        return [self._engines[user_id].snapshot() for user_id in self.user_ids()]

    def user_ids(self) -> List[str]:
        return sorted(self._engines)

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._engines

    def __len__(self) -> int:
        return len(self._engines)
