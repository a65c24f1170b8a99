"""
Tests for the event log, exception hierarchy and structured logging.
"""

import json
import logging

import pytest

from vestake.core.events import LOCK_CREATED, LOCK_WITHDRAWN, EventLog
from vestake.core.logging_config import CustomJsonFormatter, get_logger, setup_logging
from vestake.core.staking_exceptions import (
    AlreadyWithdrawnError,
    AuthorizationError,
    InsufficientVaultBalanceError,
    InvalidScheduleError,
    NotLockOwnerError,
    ResourceError,
    StakingError,
    StateError,
    ValidationError,
    get_error_context,
    is_recoverable_error,
)
from vestake.core.staking_metrics import create_isolated_metrics


class TestEventLog:

    def test_emit_assigns_sequential_indexes(self):
        log = EventLog()
        first = log.emit(LOCK_CREATED, "0xstaking", account="0xalice", timestamp=10, lock_id=1)
        second = log.emit(LOCK_WITHDRAWN, "0xstaking", account="0xbob", timestamp=11, lock_id=2)

        assert (first.index, second.index) == (0, 1)
        assert len(log) == 2
        assert log[1] is second
        assert log.last() is second
        assert first.data == {"lock_id": 1}

    def test_filter_by_type_and_account(self):
        log = EventLog()
        log.emit(LOCK_CREATED, "0xstaking", account="0xalice")
        log.emit(LOCK_CREATED, "0xstaking", account="0xbob")
        log.emit(LOCK_WITHDRAWN, "0xstaking", account="0xalice")

        assert len(log.filter(LOCK_CREATED)) == 2
        assert len(log.filter(account="0xALICE")) == 2
        assert len(log.filter(LOCK_WITHDRAWN, "0xbob")) == 0

    def test_since(self):
        log = EventLog()
        for i in range(5):
            log.emit(LOCK_CREATED, "0xstaking", lock_id=i)

        assert [e.data["lock_id"] for e in log.since(3)] == [3, 4]

    def test_events_are_immutable(self):
        log = EventLog()
        event = log.emit(LOCK_CREATED, "0xstaking")

        with pytest.raises(AttributeError):
            event.account = "0xmallory"

    def test_empty_log(self):
        assert EventLog().last() is None
        assert list(EventLog()) == []


class TestExceptionHierarchy:

    @pytest.mark.parametrize(
        "exc_type,base",
        [
            (InvalidScheduleError, ValidationError),
            (NotLockOwnerError, AuthorizationError),
            (AlreadyWithdrawnError, StateError),
            (InsufficientVaultBalanceError, ResourceError),
        ],
    )
    def test_categories(self, exc_type, base):
        assert issubclass(exc_type, base)
        assert issubclass(exc_type, StakingError)

    def test_error_context(self):
        exc = AlreadyWithdrawnError("Lock 3 was already withdrawn", details={"lock_id": 3})

        context = get_error_context(exc)

        assert context["error_type"] == "AlreadyWithdrawnError"
        assert context["details"] == {"lock_id": 3}
        assert context["recoverable"] is False

    def test_recoverable_flag(self):
        assert is_recoverable_error(StakingError("busy", recoverable=True))
        assert not is_recoverable_error(ValueError("plain"))


class TestStructuredLogging:

    def test_json_formatter_adds_context(self):
        formatter = CustomJsonFormatter(environment="test", service_name="vestake")
        record = logging.LogRecord("vestake.staking", logging.INFO, __file__, 10, "Lock created", None, None)
        record.event = "staking.lock_created"

        payload = json.loads(formatter.format(record))

        assert payload["message"] == "Lock created"
        assert payload["environment"] == "test"
        assert payload["service"] == "vestake"
        assert payload["event"] == "staking.lock_created"
        assert payload["level"] == "info"
        assert "timestamp" in payload

    def test_setup_logging_writes_to_file(self, tmp_path):
        log_file = tmp_path / "logs" / "staking.json"
        logger = setup_logging(name="vestake.test_file", log_file=str(log_file), enable_console=False)

        logger.info("hello", extra={"event": "test.hello"})
        for handler in logger.handlers:
            handler.flush()

        line = log_file.read_text().strip().splitlines()[-1]
        assert json.loads(line)["event"] == "test.hello"

    def test_get_logger_reuses_configuration(self):
        first = get_logger("vestake.test_reuse")
        second = get_logger("vestake.test_reuse")

        assert first is second
        assert len(second.handlers) == 1


class TestStakingMetrics:

    def test_isolated_registries_do_not_collide(self):
        first = create_isolated_metrics()
        second = create_isolated_metrics()

        first.record_reward_claimed("0xstaking", 0, 500)

        labels = {"instance": "0xstaking", "stream": "0"}
        assert first.registry.get_sample_value("vestake_rewards_claimed_total", labels) == 500.0
        assert second.registry.get_sample_value("vestake_rewards_claimed_total", labels) is None
