"""Rolling JSON log of recent runs, for status pages."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from inbox_calendar.pipeline.models import OutcomeStatus, RunReport

logger = logging.getLogger(__name__)

MAX_ENTRIES = 50


def summarize(reports: list[RunReport]) -> str:
    processed = sum(r.processed for r in reports)
    created = sum(r.count(OutcomeStatus.CREATED) for r in reports)
    existing = sum(r.count(OutcomeStatus.ALREADY_EXISTS) for r in reports)

    parts = [f"Processed {processed} emails"]
    if created:
        parts.append(f"created {created} new events")
    if existing:
        parts.append(f"{existing} already existed")
    return ", ".join(parts)


class RunLog:
    """Keeps the last ``max_entries`` run summaries in a JSON file.

    Args:
        path: Log file location; parent directories are created on write.
    """

    def __init__(self, path: Path | str, max_entries: int = MAX_ENTRIES):
        self.path = Path(path)
        self.max_entries = max_entries

    def entries(self) -> list[dict]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text())
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Ignoring unreadable run log {self.path}: {e}")
            return []
        return data if isinstance(data, list) else []

    def append(self, entry: dict) -> None:
        entries = [*self.entries(), entry][-self.max_entries:]
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(entries, indent=2))

    def record_run(self, reports: list[RunReport], timestamp: datetime | None = None) -> dict:
        """Append a summary of one run over all users and return it."""
        failed = [r for r in reports if not r.ok]
        if not reports:
            message = "No authenticated users to process"
        else:
            message = summarize(reports)
        if failed:
            message += f"; {len(failed)} user(s) failed"

        entry = {
            "timestamp": (timestamp or datetime.now(timezone.utc)).isoformat(),
            "status": "error" if failed else "success",
            "message": message,
            "processed": sum(r.processed for r in reports),
            "results": [o.to_dict() for r in reports for o in r.outcomes],
        }
        self.append(entry)
        logger.info(f"Run recorded: {message}")
        return entry
