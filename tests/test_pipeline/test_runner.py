"""Tests for running many users with bounded concurrency."""

import asyncio
import threading
import time
from unittest.mock import MagicMock

from inbox_calendar.pipeline import RunReport, run_users


def _factory(behaviour):
    def make(user):
        orchestrator = MagicMock()
        orchestrator.run.side_effect = lambda stop=None: behaviour(user)
        return orchestrator
    return make


def test_reports_in_user_order():
    def behaviour(user):
        time.sleep(0.05 if user == "a@example.com" else 0)
        return RunReport(user=user)

    reports = asyncio.run(run_users(["a@example.com", "b@example.com"], _factory(behaviour)))

    assert [r.user for r in reports] == ["a@example.com", "b@example.com"]
    assert all(r.ok for r in reports)


def test_failing_user_does_not_affect_others():
    def behaviour(user):
        if user == "bad@example.com":
            raise RuntimeError("token revoked")
        return RunReport(user=user)

    reports = asyncio.run(run_users(
        ["good@example.com", "bad@example.com", "other@example.com"], _factory(behaviour),
    ))

    assert [r.ok for r in reports] == [True, False, True]
    assert reports[1].user == "bad@example.com"
    assert "token revoked" in reports[1].error


def test_factory_errors_fail_that_user():
    def factory(user):
        raise ValueError("no credentials")

    [report] = asyncio.run(run_users(["a@example.com"], factory))

    assert not report.ok
    assert "no credentials" in report.error


def test_slow_user_times_out():
    def behaviour(user):
        if user == "slow@example.com":
            time.sleep(0.5)
        return RunReport(user=user)

    reports = asyncio.run(run_users(
        ["slow@example.com", "fast@example.com"], _factory(behaviour), timeout=0.1,
    ))

    assert not reports[0].ok
    assert "timed out" in reports[0].error
    assert reports[1].ok


def test_concurrency_is_bounded():
    lock = threading.Lock()
    active = 0
    peak = 0

    def behaviour(user):
        nonlocal active, peak
        with lock:
            active += 1
            peak = max(peak, active)
        time.sleep(0.05)
        with lock:
            active -= 1
        return RunReport(user=user)

    users = [f"user{i}@example.com" for i in range(6)]
    reports = asyncio.run(run_users(users, _factory(behaviour), max_concurrent=2))

    assert len(reports) == 6
    assert peak <= 2


def test_no_users():
    assert asyncio.run(run_users([], _factory(lambda user: RunReport(user=user)))) == []


def test_timed_out_run_keeps_its_slot():
    lock = threading.Lock()
    active = 0
    peak = 0

    def behaviour(user):
        nonlocal active, peak
        with lock:
            active += 1
            peak = max(peak, active)
        time.sleep(0.2)
        with lock:
            active -= 1
        return RunReport(user=user)

    users = ["a@example.com", "b@example.com", "c@example.com"]
    reports = asyncio.run(run_users(users, _factory(behaviour), max_concurrent=1, timeout=0.05))

    assert peak == 1
    assert all(not r.ok and "timed out" in r.error for r in reports)


def test_timed_out_run_is_asked_to_stop():
    seen = []

    def factory(user):
        orchestrator = MagicMock()

        def run(stop=None):
            seen.append(stop.wait(timeout=2))
            return RunReport(user=user)

        orchestrator.run.side_effect = run
        return orchestrator

    [report] = asyncio.run(run_users(["a@example.com"], factory, timeout=0.05))

    assert not report.ok
    assert seen == [True]
