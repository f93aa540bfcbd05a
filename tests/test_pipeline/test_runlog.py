"""Tests for the rolling run log."""

import json
from datetime import datetime, timezone

from inbox_calendar.pipeline import ConversationOutcome, OutcomeStatus, RunLog, RunReport
from inbox_calendar.pipeline.runlog import summarize

TIMESTAMP = datetime(2025, 3, 14, 14, 0, tzinfo=timezone.utc)


def _report(user, *statuses):
    return RunReport(
        user=user,
        outcomes=[ConversationOutcome(f"t{i}", "Subject", s) for i, s in enumerate(statuses)],
    )


def test_summarize():
    reports = [
        _report("a@example.com", OutcomeStatus.CREATED, OutcomeStatus.SKIPPED_NOT_RELEVANT),
        _report("b@example.com", OutcomeStatus.ALREADY_EXISTS),
    ]
    assert summarize(reports) == "Processed 3 emails, created 1 new events, 1 already existed"


def test_summarize_nothing_created():
    assert summarize([_report("a@example.com")]) == "Processed 0 emails"


def test_record_run(tmp_path):
    log = RunLog(tmp_path / "logs" / "runs.json")
    entry = log.record_run([_report("a@example.com", OutcomeStatus.CREATED)], timestamp=TIMESTAMP)

    assert entry["status"] == "success"
    assert entry["timestamp"] == "2025-03-14T14:00:00+00:00"
    assert entry["processed"] == 1
    assert entry["results"][0]["status"] == "created"
    assert json.loads((tmp_path / "logs" / "runs.json").read_text()) == [entry]


def test_record_run_with_failed_user(tmp_path):
    log = RunLog(tmp_path / "runs.json")
    entry = log.record_run([
        _report("a@example.com", OutcomeStatus.CREATED),
        RunReport.failed("b@example.com", "token revoked"),
    ])
    assert entry["status"] == "error"
    assert entry["message"].endswith("1 user(s) failed")


def test_record_run_without_users(tmp_path):
    entry = RunLog(tmp_path / "runs.json").record_run([])
    assert entry["message"] == "No authenticated users to process"
    assert entry["status"] == "success"


def test_keeps_last_entries(tmp_path):
    log = RunLog(tmp_path / "runs.json", max_entries=3)
    for i in range(5):
        log.append({"n": i})
    assert [e["n"] for e in log.entries()] == [2, 3, 4]


def test_unreadable_log_starts_fresh(tmp_path):
    path = tmp_path / "runs.json"
    path.write_text("{not json")
    log = RunLog(path)
    assert log.entries() == []
    log.append({"n": 1})
    assert log.entries() == [{"n": 1}]


def test_report_to_dict():
    data = _report("a@example.com", OutcomeStatus.ERROR).to_dict()
    assert data["user"] == "a@example.com"
    assert data["processed"] == 1
    assert data["results"][0]["status"] == "error"
