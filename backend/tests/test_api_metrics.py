"""
API Metrics Tracker Tests
=========================

Run: python -m pytest tests/test_api_metrics.py -v --tb=short
"""

import asyncio

import pytest

import infrastructure.api_metrics as metrics_module
from infrastructure.api_metrics import APICallTimer, APIMetricsTracker


@pytest.fixture
def tracker():
    return APIMetricsTracker()


class TestTracker:

    def test_counts_by_status(self, tracker):
        tracker.record_call("moralis", "/balance", "success", 0.1)
        tracker.record_call("moralis", "/balance", "error", 0.2, error_message="HTTP 500")
        tracker.record_call("moralis", "/erc20", "timeout", 10.0)
        tracker.record_call("moralis", "/erc20", "rate_limited", 0.05)

        stats = tracker.get_service_stats("moralis")
        assert stats["total_calls"] == 4
        assert stats["success_count"] == 1
        assert stats["error_count"] == 1
        assert stats["timeout_count"] == 1
        assert stats["rate_limit_count"] == 1
        assert stats["success_rate"] == 25.0
        assert stats["last_error"] == "Rate limited"

    def test_all_stats_include_known_services(self, tracker):
        tracker.record_call("dexscreener", "/token-pairs", "success", 0.1)
        tracker.record_call("dexscreener", "/token-pairs", "timeout", 10.0)

        stats = tracker.get_all_stats()
        assert list(stats["services"]) == ["coingecko", "dexscreener", "geckoterminal", "moralis"]
        assert stats["total_api_calls"] == 2
        assert stats["total_errors"] == 1
        assert stats["overall_success_rate"] == 50.0

    def test_recent_errors_newest_first(self, tracker):
        tracker.record_call("coingecko", "/simple/price", "error", 0.1, error_message="first")
        tracker.record_call("coingecko", "/simple/price", "success", 0.1)
        tracker.record_call("coingecko", "/simple/price", "error", 0.1, error_message="second")

        errors = tracker.get_recent_errors()
        assert [e["error_message"] for e in errors] == ["second", "first"]

    def test_rate_limit_window(self, tracker):
        for _ in range(3):
            tracker.record_call("geckoterminal", "/pools", "success", 0.1)

        window = tracker.check_rate_limit("geckoterminal")
        assert window["current_count"] == 3
        assert window["remaining"] == 27
        assert not window["is_limited"]

    def test_no_data_service(self, tracker):
        assert tracker.get_service_stats("nobody") == {"service": "nobody", "status": "no_data"}

    def test_reset(self, tracker):
        tracker.record_call("moralis", "/balance", "success", 0.1)
        tracker.reset()
        assert tracker.get_all_stats()["total_api_calls"] == 0


class TestCallTimer:

    def test_success(self, tracker):
        with APICallTimer("dexscreener", "/token-pairs", tracker=tracker) as timer:
            timer.status_code = 200

        stats = tracker.get_service_stats("dexscreener")
        assert stats["success_count"] == 1

    def test_exception_marks_error(self, tracker):
        with pytest.raises(ValueError):
            with APICallTimer("dexscreener", "/token-pairs", tracker=tracker):
                raise ValueError("bad json")

        assert tracker.get_recent_errors()[0]["error_message"] == "bad json"

    def test_cancellation_marks_timeout(self, tracker):
        with pytest.raises(asyncio.CancelledError):
            with APICallTimer("moralis", "/balance", tracker=tracker):
                raise asyncio.CancelledError()

        assert tracker.get_service_stats("moralis")["timeout_count"] == 1


class TestBoundedMemory:

    def test_rate_window_is_pruned_on_every_record(self, tracker, monkeypatch):
        clock = [100.0]
        monkeypatch.setattr(metrics_module.time, "monotonic", lambda: clock[0])

        for _ in range(500):
            tracker.record_call("moralis", "/balance", "success", 0.01)
        assert len(tracker._rate_windows["moralis"]) == 500

        # Moralis window is one second
        clock[0] += 5
        tracker.record_call("moralis", "/balance", "success", 0.01)

        assert len(tracker._rate_windows["moralis"]) == 1
        assert tracker.get_service_stats("moralis")["total_calls"] == 501

    def test_recent_calls_are_capped(self, tracker):
        for i in range(1005):
            tracker.record_call("coingecko", "/simple/price", "error", 0.01, error_message=f"e{i}")

        errors = tracker.get_recent_errors(limit=5000)
        assert len(errors) == 1000
        assert errors[0]["error_message"] == "e1004"
        assert errors[-1]["error_message"] == "e5"
