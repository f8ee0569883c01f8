"""CLI smoke tests: offline and unconfigured paths only."""
import json

import pytest

from complaint_ai.audit import read_events
from complaint_ai.rag import APOLOGY
from complaint_ai.run import main


def _run_dir(out):
    (run_dir,) = [p for p in out.iterdir() if p.is_dir()]
    return run_dir


def test_analyze_offline_writes_record(tmp_path, capsys) -> None:
    out = tmp_path / "outputs"
    main(["--out", str(out), "analyze", "--text", "He threatened to fire me", "--category", "verbal", "--offline"])
    run_dir = _run_dir(out)
    record = json.loads((run_dir / "analysis.json").read_text(encoding="utf-8"))
    assert record["severity_score"] == 7
    assert record["risk_level"] == "high"
    assert [e["event_type"] for e in read_events(run_dir / "audit.jsonl")] == ["input_received", "analysis_local"]
    assert "Severity: 7/10 (high)" in capsys.readouterr().out


def test_compare_without_credential_writes_neutral(tmp_path) -> None:
    complaint = tmp_path / "c.txt"
    response = tmp_path / "r.txt"
    complaint.write_text("He touched my arm.", encoding="utf-8")
    response.write_text("I did not.", encoding="utf-8")
    out = tmp_path / "outputs"
    main(["--out", str(out), "compare", "--complaint", str(complaint), "--response", str(response)])
    record = json.loads((_run_dir(out) / "comparison.json").read_text(encoding="utf-8"))
    assert record["credibility_leaning"] == "inconclusive"


def test_ask_without_providers_prints_apology(tmp_path, capsys) -> None:
    out = tmp_path / "outputs"
    main(["--out", str(out), "ask", "What is the ICC?"])
    assert APOLOGY in capsys.readouterr().out
    assert (_run_dir(out) / "answer.md").read_text(encoding="utf-8") == APOLOGY


def test_ingest_without_database_exits(tmp_path) -> None:
    policy = tmp_path / "policy.txt"
    policy.write_text("Report to the ICC.", encoding="utf-8")
    with pytest.raises(SystemExit):
        main(["ingest", "--input", str(policy)])
