"""Append-only JSONL audit log: which path (AI or fallback) each operation took, and why."""
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from complaint_ai.outcome import Failed


def log_event(
    audit_path: Path | None,
    run_id: str,
    event_type: str,
    payload: dict[str, Any] | None = None,
    model_name: str | None = None,
) -> None:
    """Append one JSON object (one line) to the audit file. No-op without a path."""
    if audit_path is None:
        return
    record = {
        "timestamp": datetime.now(tz=timezone.utc).isoformat(),
        "run_id": run_id,
        "event_type": event_type,
        "model_name": model_name,
        "payload": payload or {},
    }
    with open(audit_path, "a", encoding="utf-8") as f:
        f.write(json.dumps(record, ensure_ascii=False) + "\n")


def log_outcome(
    audit_path: Path | None,
    run_id: str,
    operation: str,
    failure: Failed | None,
    payload: dict[str, Any] | None = None,
    model_name: str | None = None,
) -> None:
    """Record "<operation>_ai" on success, "<operation>_fallback" with the failure reason otherwise."""
    payload = dict(payload or {})
    if failure is None:
        log_event(audit_path, run_id, f"{operation}_ai", payload, model_name=model_name)
        return
    payload.update({"reason": failure.reason.value, "detail": failure.detail[:500]})
    log_event(audit_path, run_id, f"{operation}_fallback", payload, model_name=model_name)


def read_events(audit_path: Path) -> list[dict[str, Any]]:
    """All records in an audit file, oldest first."""
    if not audit_path.exists():
        return []
    with open(audit_path, encoding="utf-8") as f:
        return [json.loads(line) for line in f if line.strip()]
