import datetime
import json
import logging
import math

import pytest

from adaptive_learning.common.enums import Difficulty, Priority
from adaptive_learning.common.logger import JsonFormatter, log_execution_time, with_context
from adaptive_learning.common.serialization import mean, parse_datetime, serialize, to_json
from adaptive_learning.performance.models import TimeOfDay, UserProgress


class TestSerialization:

    def test_serialize_nested(self):
        result = serialize({
            "when": datetime.datetime(2024, 1, 2, 3, 4, 5),
            "tier": Difficulty.HARD,
            "tags": {"b", "a"},
            "pair": (1, 2.5),
            "fastest": math.inf,
            "progress": UserProgress(user_id="u1"),
        })
        assert result["when"] == "2024-01-02T03:04:05"
        assert result["tier"] == "hard"
        assert result["tags"] == ["a", "b"]
        assert result["pair"] == [1, 2.5]
        assert result["fastest"] is None
        assert result["progress"]["user_id"] == "u1"

    def test_exclude_none(self):
        assert serialize({"a": None, "b": 1}, exclude_none=True) == {"b": 1}

    def test_to_json(self):
        assert json.loads(to_json({"time": TimeOfDay.EVENING})) == {"time": "evening"}

    def test_parse_datetime(self):
        assert parse_datetime(None) is None
        assert parse_datetime("") is None
        assert parse_datetime("2024-03-15T10:00:00") == datetime.datetime(2024, 3, 15, 10, 0)
        utc = datetime.datetime(2024, 3, 15, 10, 0, tzinfo=datetime.timezone.utc)
        parsed = parse_datetime("2024-03-15T10:00:00.000Z")
        assert parsed.tzinfo is None
        assert parsed == utc.astimezone().replace(tzinfo=None)
        assert parse_datetime(utc) == parsed
        now = datetime.datetime.now()
        assert parse_datetime(now) is now
        assert isinstance(parse_datetime(1710496800000), datetime.datetime)

    def test_parse_datetime_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_datetime("yesterday")
        with pytest.raises(ValueError):
            parse_datetime([2024, 3, 15])

    def test_mean(self):
        assert mean([]) == 0.0
        assert mean([], default=0.5) == 0.5
        assert mean([1, 2, 3]) == 2.0


class TestEnums:

    def test_difficulty_order(self):
        assert [d.rank for d in Difficulty.ordered()] == [0, 1, 2, 3]
        assert Difficulty.EASY.step_down() == Difficulty.EASY
        assert Difficulty.EXPERT.step_down() == Difficulty.HARD
        assert Difficulty.EXPERT.cap(Difficulty.MEDIUM) == Difficulty.MEDIUM
        assert Difficulty.EASY.cap(Difficulty.MEDIUM) == Difficulty.EASY

    def test_priority_weight(self):
        assert Priority.HIGH.weight > Priority.MEDIUM.weight > Priority.LOW.weight


class TestLogging:

    def test_json_formatter_merges_context(self):
        record = logging.LogRecord("adaptive_learning.test", logging.INFO, __file__, 10,
                                   "generated %s", ("p1",), None)
        record.data = {"user_id": "u1"}

        payload = json.loads(JsonFormatter().format(record))

        assert payload["message"] == "generated p1"
        assert payload["level"] == "INFO"
        assert payload["user_id"] == "u1"

    def test_context_adapter(self, caplog):
        adapter = with_context("adaptive_learning.test", user_id="u1").with_context(session_id="s1")
        with caplog.at_level(logging.INFO, logger="adaptive_learning.test"):
            adapter.info("hello")
        assert caplog.records[-1].data == {"user_id": "u1", "session_id": "s1"}

    def test_log_execution_time_sync(self):
        @log_execution_time()
        def add(a, b):
            return a + b

        assert add(2, 3) == 5

    @pytest.mark.asyncio
    async def test_log_execution_time_reraises(self):
        @log_execution_time()
        async def fail():
            raise RuntimeError("nope")

        with pytest.raises(RuntimeError):
            await fail()
