import datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from adaptive_learning.classification.age_detection import AgeGroupClassifier
from adaptive_learning.common.exceptions import StorageError
from adaptive_learning.config import StorageConfig
from adaptive_learning.storage import MemoryStore, create_store
from adaptive_learning.storage.keys import StorageKeys
from adaptive_learning.storage.redis import RedisStore
from adaptive_learning.storage.repositories import (
    AgeDetectionRepository, ProgressRepository, RecommendationLedger, SessionStore
)
from adaptive_learning.tests.conftest import NOW, make_session


def failing_store():
    """A store whose every operation fails at the substrate."""
    store = MagicMock()
    store.get = AsyncMock(side_effect=StorageError("down", key="k"))
    store.set = AsyncMock(side_effect=StorageError("down", key="k"))
    return store


class TestStorageKeys:

    def test_user_scoped_keys(self):
        assert StorageKeys.sessions("u1") == "performance_sessions_u1"
        assert StorageKeys.progress("u1") == "progress_u1"

    def test_default_user_keys_are_unscoped(self):
        assert StorageKeys.age_detection("default_user") == "ageDetectionResult"
        assert StorageKeys.implemented_recommendations("default_user") == "implementedRecommendations"
        assert StorageKeys.age_detection("u1") == "ageDetectionResult_u1"


class TestMemoryStore:

    @pytest.mark.asyncio
    async def test_basic_operations(self, store):
        assert await store.get("missing") is None
        await store.set("k", {"a": [1, 2]})
        assert await store.has("k")
        assert await store.get("k") == {"a": [1, 2]}
        assert store.keys() == ["k"]
        assert await store.delete("k")
        assert not await store.delete("k")
        assert not await store.has("k")

    @pytest.mark.asyncio
    async def test_corrupt_value_raises(self, store):
        store.put_raw("k", "{not json")
        with pytest.raises(StorageError) as exc_info:
            await store.get("k")
        assert exc_info.value.key == "k"

    @pytest.mark.asyncio
    async def test_unserializable_value_raises(self, store):
        with pytest.raises(StorageError):
            await store.set("k", {"when": datetime.datetime.now()})


class TestRedisStore:

    @pytest.fixture
    def client(self):
        return MagicMock()

    @pytest.fixture
    def redis_store(self, client):
        return RedisStore(redis_client=client, key_prefix="test:")

    @pytest.mark.asyncio
    async def test_get_decodes_json(self, redis_store, client):
        client.get.return_value = b'{"a": 1}'
        assert await redis_store.get("k") == {"a": 1}
        client.get.assert_called_once_with("test:k")

    @pytest.mark.asyncio
    async def test_get_missing(self, redis_store, client):
        client.get.return_value = None
        assert await redis_store.get("k") is None

    @pytest.mark.asyncio
    async def test_set_encodes_json(self, redis_store, client):
        await redis_store.set("k", [1, 2])
        client.set.assert_called_once_with("test:k", b"[1, 2]")

    @pytest.mark.asyncio
    async def test_delete_and_has(self, redis_store, client):
        client.delete.return_value = 1
        client.exists.return_value = 0
        assert await redis_store.delete("k")
        assert not await redis_store.has("k")

    @pytest.mark.asyncio
    async def test_redis_errors_become_storage_errors(self, redis_store, client):
        client.get.side_effect = RedisConnectionError("refused")
        with pytest.raises(StorageError) as exc_info:
            await redis_store.get("k")
        assert isinstance(exc_info.value.original_exception, RedisConnectionError)

    @pytest.mark.asyncio
    async def test_corrupt_payload(self, redis_store, client):
        client.get.return_value = b"\xff\xfe"
        with pytest.raises(StorageError):
            await redis_store.get("k")

    def test_failed_ping_does_not_raise(self, client):
        client.ping.side_effect = RedisConnectionError("refused")
        assert RedisStore(redis_client=client).name == "redis"


class TestCreateStore:

    def test_memory_backend(self):
        assert isinstance(create_store(StorageConfig()), MemoryStore)

    def test_redis_backend(self):
        with patch("adaptive_learning.storage.redis.redis.Redis") as redis_cls:
            store = create_store(StorageConfig(backend="redis", redis_host="cache", key_prefix="x:"))
        assert isinstance(store, RedisStore)
        redis_cls.assert_called_once_with(host="cache", port=6379, db=0, password=None,
                                          decode_responses=False)


class TestSessionStore:

    @pytest.fixture
    def sessions(self, store, clock):
        return SessionStore(store, user_id="u1", clock=clock, max_sessions=5, retention_days=10)

    @pytest.mark.asyncio
    async def test_save_and_load(self, sessions):
        record = make_session(0)
        assert await sessions.save_session(record)
        assert await sessions.load_all() == [record]

    @pytest.mark.asyncio
    async def test_keeps_newest_records(self, sessions):
        for i in range(8):
            await sessions.save_session(make_session(i))
        loaded = await sessions.load_all()
        assert [s.session_id for s in loaded] == [f"session_{i}" for i in range(3, 8)]

    @pytest.mark.asyncio
    async def test_recent_sessions_window(self, sessions):
        await sessions.save_session(make_session(0, start=NOW - datetime.timedelta(days=40)))
        await sessions.save_session(make_session(1, start=NOW - datetime.timedelta(days=3)))
        recent = await sessions.recent_sessions(30)
        assert [s.session_id for s in recent] == ["session_1"]

    @pytest.mark.asyncio
    async def test_utc_timestamps_compare_with_local_clock(self, sessions, store):
        record = make_session(0).to_dict()
        record["start_time"] = "2024-03-10T10:00:00.000Z"
        record["end_time"] = "2024-03-10T10:20:00.000Z"
        await store.set(sessions.key, [record])

        recent = await sessions.recent_sessions(30)
        assert [s.session_id for s in recent] == ["session_0"]
        assert recent[0].start_time.tzinfo is None
        assert recent[0].duration_minutes == pytest.approx(20.0)
        assert await sessions.cleanup_old_data() == 0

    @pytest.mark.asyncio
    async def test_cleanup_old_data(self, sessions):
        await sessions.save_session(make_session(0, start=NOW - datetime.timedelta(days=40)))
        await sessions.save_session(make_session(1, start=NOW - datetime.timedelta(days=3)))
        assert await sessions.cleanup_old_data() == 1
        assert await sessions.cleanup_old_data() == 0
        assert len(await sessions.load_all()) == 1

    @pytest.mark.asyncio
    async def test_corrupt_blob_reads_as_empty(self, sessions, store):
        store.put_raw(sessions.key, "[{broken")
        assert await sessions.load_all() == []

    @pytest.mark.asyncio
    async def test_undecodable_records_read_as_empty(self, sessions, store):
        await store.set(sessions.key, [{"session_id": "x"}])
        assert await sessions.load_all() == []

    @pytest.mark.asyncio
    async def test_substrate_failure_is_contained(self, clock):
        sessions = SessionStore(failing_store(), clock=clock)
        assert await sessions.load_all() == []
        assert await sessions.recent_sessions(30) == []
        assert not await sessions.save_session(make_session(0))


class TestAgeDetectionRepository:

    @pytest.mark.asyncio
    async def test_save_and_load(self, store, clock):
        repository = AgeDetectionRepository(store, user_id="u1", clock=clock)
        assert await repository.load() is None
        assert await repository.load_timestamp() is None

        result = AgeGroupClassifier().classify([make_session(i) for i in range(3)])
        assert await repository.save(result)

        assert await repository.load() == result
        assert await repository.load_timestamp() == NOW
        assert await store.has("ageDetectionResult_u1")

    @pytest.mark.asyncio
    async def test_invalid_record(self, store, clock):
        repository = AgeDetectionRepository(store, clock=clock)
        await store.set(repository.key, {"predicted_age_group": "toddlers", "confidence": 1})
        assert await repository.load() is None

    @pytest.mark.asyncio
    async def test_substrate_failure(self, clock):
        repository = AgeDetectionRepository(failing_store(), clock=clock)
        assert await repository.load() is None
        result = AgeGroupClassifier().classify([])
        assert not await repository.save(result)


class TestRecommendationLedger:

    @pytest.mark.asyncio
    async def test_mark_implemented_is_idempotent(self, store):
        ledger = RecommendationLedger(store)
        assert await ledger.implemented_ids() == []
        assert await ledger.mark_implemented("reduce_burnout")
        assert await ledger.mark_implemented("reduce_burnout")
        assert await ledger.implemented_ids() == ["reduce_burnout"]
        assert await store.get("implementedRecommendations") == ["reduce_burnout"]

    @pytest.mark.asyncio
    async def test_non_list_value_is_ignored(self, store):
        ledger = RecommendationLedger(store, user_id="u2")
        await store.set(ledger.key, {"unexpected": True})
        assert await ledger.implemented_ids() == []

    @pytest.mark.asyncio
    async def test_write_failure(self):
        assert not await RecommendationLedger(failing_store()).mark_implemented("x")


class TestProgressRepository:

    @pytest.mark.asyncio
    async def test_record_sessions(self, store, clock):
        repository = ProgressRepository(store, user_id="u1", clock=clock)
        assert await repository.get() is None

        await repository.record_session(make_session(0, solved=8, total=10), best_streak=4)
        clock.advance(hours=1)
        progress = await repository.record_session(make_session(1, solved=2, total=10), best_streak=2)

        assert progress.sessions_completed == 2
        assert progress.problems_solved == 10
        assert progress.problems_attempted == 20
        assert progress.accuracy_rate == 0.5
        assert progress.best_streak == 4
        assert progress.created_at == NOW
        assert progress.updated_at == clock.now
        assert await repository.get() == progress

    @pytest.mark.asyncio
    async def test_update_merges_fields(self, store, clock):
        repository = ProgressRepository(store, user_id="u1", clock=clock)
        progress = await repository.update({"best_streak": 9})
        assert progress.best_streak == 9
        assert progress.sessions_completed == 0
        assert (await repository.get()).best_streak == 9

    @pytest.mark.asyncio
    async def test_update_survives_write_failure(self, clock):
        repository = ProgressRepository(failing_store(), user_id="u1", clock=clock)
        progress = await repository.update({"best_streak": 3})
        assert progress.best_streak == 3
