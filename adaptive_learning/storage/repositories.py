"""
Storage Repositories

Repository classes that persist sessions, age detections, the implemented
recommendation ledger and aggregate progress on top of a KeyValueStore.

Every repository catches substrate failures at its boundary: errors are
logged and reads fall back to "no data" while writes become no-ops, so a
broken store never takes analytics or generation down with it.
"""

import datetime
from typing import Any, Callable, Dict, List, Optional

from adaptive_learning.common.logger import app_logger
from adaptive_learning.common.exceptions import StorageError
from adaptive_learning.common.serialization import datetime_to_iso, parse_datetime
from adaptive_learning.storage.base import KeyValueStore
from adaptive_learning.storage.keys import StorageKeys, DEFAULT_USER_ID
from adaptive_learning.performance.models import SessionRecord, UserProgress
from adaptive_learning.classification.models import AgeDetectionResult

logger = app_logger.getChild("storage.repositories")

Clock = Callable[[], datetime.datetime]

# Errors raised while decoding a stored record into a domain object
DECODE_ERRORS = (KeyError, TypeError, ValueError, AttributeError)

AGE_DETECTION_VERSION = "1.0"


class StoreRepository:
    """Shared plumbing for repositories bound to one user."""

    def __init__(self, store: KeyValueStore, user_id: str = DEFAULT_USER_ID,
                 clock: Optional[Clock] = None):
        """
        Initialize the repository.

        Args:
            store: Key-value backend
            user_id: Owner of the records
            clock: Callable returning the current time
        """
        self.store = store
        self.user_id = user_id
        self.clock = clock or datetime.datetime.now

    async def _read(self, key: str) -> Optional[Any]:
        try:
            return await self.store.get(key)
        except StorageError as e:
            logger.error(f"Error reading {key}: {e}")
            return None

    async def _write(self, key: str, value: Any) -> bool:
        try:
            await self.store.set(key, value)
            return True
        except StorageError as e:
            logger.error(f"Error writing {key}: {e}")
            return False


class SessionStore(StoreRepository):
    """
    Persists the finalized sessions of one user as a single JSON array.

    Only the newest ``max_sessions`` records are kept.
    """

    def __init__(self, store: KeyValueStore, user_id: str = DEFAULT_USER_ID,
                 clock: Optional[Clock] = None, max_sessions: int = 100,
                 retention_days: int = 180):
        super().__init__(store, user_id, clock)
        self.max_sessions = max_sessions
        self.retention_days = retention_days

    @property
    def key(self) -> str:
        return StorageKeys.sessions(self.user_id)

    async def load_all(self) -> List[SessionRecord]:
        """
        Load every stored session, oldest first.

        Returns:
            Session records, or an empty list if nothing can be read
        """
        data = await self._read(self.key)
        if not data:
            return []

        try:
            return [SessionRecord.from_dict(item) for item in data]
        except DECODE_ERRORS as e:
            logger.error(f"Error decoding sessions for {self.user_id}: {e}")
            return []

    async def save_session(self, session: SessionRecord) -> bool:
        """
        Append a finalized session, trimming to the newest records.

        Args:
            session: Finalized session

        Returns:
            Whether the write succeeded
        """
        sessions = await self.load_all()
        sessions.append(session)
        sessions = sessions[-self.max_sessions:]

        saved = await self._write(self.key, [s.to_dict() for s in sessions])
        if saved:
            logger.info(f"Saved session {session.session_id} for {self.user_id} "
                        f"({len(sessions)} retained)")
        return saved

    async def recent_sessions(self, days: int) -> List[SessionRecord]:
        """
        Load the sessions started within the last ``days`` days.

        Args:
            days: Window size in days

        Returns:
            Sessions in the window, oldest first
        """
        cutoff = self.clock() - datetime.timedelta(days=days)
        return [s for s in await self.load_all() if s.start_time >= cutoff]

    async def cleanup_old_data(self) -> int:
        """
        Drop sessions older than the retention window.

        Returns:
            Number of sessions removed
        """
        sessions = await self.load_all()
        cutoff = self.clock() - datetime.timedelta(days=self.retention_days)
        kept = [s for s in sessions if s.start_time >= cutoff]

        removed = len(sessions) - len(kept)
        if removed and await self._write(self.key, [s.to_dict() for s in kept]):
            logger.info(f"Removed {removed} sessions older than {self.retention_days} days "
                        f"for {self.user_id}")
            return removed
        return 0


class AgeDetectionRepository(StoreRepository):
    """Stores the latest age detection verbatim, stamped with time and version."""

    @property
    def key(self) -> str:
        return StorageKeys.age_detection(self.user_id)

    async def save(self, result: AgeDetectionResult) -> bool:
        """
        Replace the stored detection with ``result``.

        Args:
            result: Detection to persist

        Returns:
            Whether the write succeeded
        """
        payload = result.to_dict()
        payload["timestamp"] = datetime_to_iso(self.clock())
        payload["version"] = AGE_DETECTION_VERSION

        saved = await self._write(self.key, payload)
        if saved:
            logger.info(f"Saved age detection for {self.user_id}: "
                        f"{result.predicted_age_group.value}")
        return saved

    async def load(self) -> Optional[AgeDetectionResult]:
        """
        Load the previously stored detection.

        Returns:
            Stored detection, or None
        """
        data = await self._read(self.key)
        if not data:
            return None

        try:
            return AgeDetectionResult.from_dict(data)
        except DECODE_ERRORS as e:
            logger.error(f"Error decoding age detection for {self.user_id}: {e}")
            return None

    async def load_timestamp(self) -> Optional[datetime.datetime]:
        """Return when the stored detection was made, if any."""
        data = await self._read(self.key)
        if not data:
            return None
        try:
            return parse_datetime(data.get("timestamp"))
        except (ValueError, AttributeError) as e:
            logger.warning(f"Invalid age detection timestamp for {self.user_id}: {e}")
            return None


class RecommendationLedger(StoreRepository):
    """Ids of recommendations the user already acted on or dismissed."""

    @property
    def key(self) -> str:
        return StorageKeys.implemented_recommendations(self.user_id)

    async def implemented_ids(self) -> List[str]:
        data = await self._read(self.key)
        if not isinstance(data, list):
            return []
        return [str(item) for item in data]

    async def mark_implemented(self, recommendation_id: str) -> bool:
        """
        Record a recommendation as implemented.

        Args:
            recommendation_id: Recommendation id

        Returns:
            Whether the ledger now contains the id
        """
        ids = await self.implemented_ids()
        if recommendation_id in ids:
            return True
        ids.append(recommendation_id)
        return await self._write(self.key, ids)


class ProgressRepository(StoreRepository):
    """Aggregate progress for one user."""

    @property
    def key(self) -> str:
        return StorageKeys.progress(self.user_id)

    async def get(self) -> Optional[UserProgress]:
        """
        Load stored progress.

        Returns:
            Progress, or None if nothing has been stored yet
        """
        data = await self._read(self.key)
        if not data:
            return None
        try:
            return UserProgress.from_dict(data)
        except DECODE_ERRORS as e:
            logger.error(f"Error decoding progress for {self.user_id}: {e}")
            return None

    def _initial_progress(self) -> UserProgress:
        now = self.clock()
        return UserProgress(user_id=self.user_id, created_at=now, updated_at=now)

    async def update(self, updates: Dict[str, Any]) -> UserProgress:
        """
        Merge field updates into the stored progress.

        Args:
            updates: Field values to overwrite

        Returns:
            The merged progress (returned even when the write fails)
        """
        current = await self.get() or self._initial_progress()
        merged = current.to_dict()
        merged.update(updates)
        merged["updated_at"] = datetime_to_iso(self.clock())

        progress = UserProgress.from_dict(merged)
        await self._write(self.key, progress.to_dict())
        return progress

    async def record_session(self, session: SessionRecord, best_streak: int = 0) -> UserProgress:
        """
        Fold a finalized session into stored progress.

        Args:
            session: Finalized session
            best_streak: Longest streak reached during the session

        Returns:
            Updated progress
        """
        progress = await self.get() or self._initial_progress()
        progress.apply_session(session, best_streak)
        progress.updated_at = self.clock()
        await self._write(self.key, progress.to_dict())
        logger.debug(f"Progress for {self.user_id}: {progress.sessions_completed} sessions, "
                     f"accuracy {progress.accuracy_rate:.2f}")
        return progress
