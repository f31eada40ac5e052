"""
Tests for the logging module.
"""

from webhook_router.logging import (
    DispatchTimer,
    add_context_info,
    logging_context,
    get_event_id,
    get_event_type,
)


class TestLoggingContext:
    """Test logging context management."""

    def test_logging_context_sets_values(self):
        """Test that logging context sets values correctly."""
        with logging_context(event_id="evt_123", event_type="invoice.paid"):
            assert get_event_id() == "evt_123"
            assert get_event_type() == "invoice.paid"

    def test_logging_context_restores_values(self):
        """Test that context is restored after exiting."""
        with logging_context(event_id="outer"):
            assert get_event_id() == "outer"

            with logging_context(event_id="inner"):
                assert get_event_id() == "inner"

            assert get_event_id() == "outer"

        assert get_event_id() is None

    def test_logging_context_partial_values(self):
        """Test that partial context values work."""
        with logging_context(event_type="charge.refunded"):
            assert get_event_type() == "charge.refunded"
            assert get_event_id() is None

    def test_context_processor_adds_values(self):
        with logging_context(event_id="evt_9", event_type="invoice.paid"):
            event_dict = add_context_info(None, "info", {"event": "dispatcher.started"})

        assert event_dict["event_id"] == "evt_9"
        assert event_dict["event_type"] == "invoice.paid"

    def test_context_processor_outside_context(self):
        event_dict = add_context_info(None, "info", {"event": "dispatcher.started"})

        assert "event_id" not in event_dict
        assert "event_type" not in event_dict


class TestDispatchTimer:
    """Test dispatch timing functionality."""

    def test_timer_records_stages(self):
        timer = DispatchTimer()

        with timer.stage("resolve"):
            pass

        with timer.stage("handlers"):
            pass

        assert timer.stages["resolve"] >= 0
        assert timer.stages["handlers"] >= 0

    def test_timer_records_failed_stage(self):
        timer = DispatchTimer()

        try:
            with timer.stage("handlers"):
                raise RuntimeError("handler blew up")
        except RuntimeError:
            pass

        assert "handlers" in timer.stages

    def test_timer_manual_record(self):
        timer = DispatchTimer()
        timer.record("callback", 150.5)

        assert timer.stages["callback"] == 150.5

    def test_timer_summary(self):
        timer = DispatchTimer()
        timer.record("resolve", 1.0)
        timer.record("handlers", 50.0)

        summary = timer.summary()

        assert summary["total_ms"] >= 0
        assert summary["stages"] == {"resolve": 1.0, "handlers": 50.0}
