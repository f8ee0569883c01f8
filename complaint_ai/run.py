"""
CLI over the engine.

  analyze      complaint text -> severity analysis (AI, or keyword fallback)
  credibility  complainant statement + accused response (+ evidence) -> credibility assessment
  compare      complainant statement + accused response -> statement comparison
  ask          question -> policy assistant answer
  ingest       policy document -> chunks embedded into the vector store
  patterns     cases JSON -> org pattern analysis
  report       org stats JSON -> annual POSH report

Every run writes its result and audit.jsonl to outputs/<run_id>/.
"""
import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path

from complaint_ai import config
from complaint_ai.analysis import analyze
from complaint_ai.audit import log_event
from complaint_ai.investigation import assess_credibility, compare_statements
from complaint_ai.knowledge import PgVectorStore, ingest_document
from complaint_ai.rag import answer, stream_answer
from complaint_ai.reporting import detect_patterns, generate_annual_report
from complaint_ai.schemas import CATEGORIES, CaseSummary, OrgStats
from complaint_ai.severity import classify
from complaint_ai.utils import ensure_output_dir, generate_run_id, read_text, write_record


def _start(out_base: str, command: str, payload: dict) -> tuple[str, Path, Path]:
    run_id = generate_run_id()
    out_dir = ensure_output_dir(out_base, run_id)
    audit_path = out_dir / "audit.jsonl"
    log_event(audit_path, run_id, "input_received", dict(payload, command=command))
    return run_id, out_dir, audit_path


def run_analyze(args: argparse.Namespace) -> None:
    text = args.text if args.text is not None else read_text(args.input)
    run_id, out_dir, audit_path = _start(args.out, "analyze", {"length": len(text), "offline": args.offline})

    if args.offline:
        result = classify(text, args.category)
        log_event(audit_path, run_id, "analysis_local", {"severity_score": result.severity_score})
    else:
        result = analyze(text, args.category, audit_path=audit_path, run_id=run_id)
    write_record(out_dir, "analysis", result)

    if args.offline:
        print("(Offline mode: keyword analysis only)")
    print(f"Run ID: {run_id}")
    print(f"Severity: {result.severity_score}/10 ({result.risk_level})")
    print(f"Recommended action: {result.recommended_action}")
    print(f"Output folder: {out_dir}")


def run_credibility(args: argparse.Namespace) -> None:
    complaint = read_text(args.complaint)
    response = read_text(args.response) if args.response else ""
    run_id, out_dir, audit_path = _start(args.out, "credibility", {"evidence": len(args.evidence)})

    result = assess_credibility(complaint, response, args.evidence, audit_path=audit_path, run_id=run_id)
    write_record(out_dir, "credibility", result)
    print(f"Run ID: {run_id}")
    print(f"Overall credibility: {result.overall_score:g}/10 (advisory)")
    print(f"Output folder: {out_dir}")


def run_compare(args: argparse.Namespace) -> None:
    complaint = read_text(args.complaint)
    response = read_text(args.response)
    run_id, out_dir, audit_path = _start(args.out, "compare", {})

    result = compare_statements(complaint, response, audit_path=audit_path, run_id=run_id)
    write_record(out_dir, "comparison", result)
    print(f"Run ID: {run_id}")
    print(f"Contradictions: {len(result.contradictions)} | Leaning: {result.credibility_leaning}")
    print(f"Output folder: {out_dir}")


def run_ask(args: argparse.Namespace) -> None:
    run_id, out_dir, audit_path = _start(args.out, "ask", {"org_id": args.org})
    if args.stream:
        parts = []
        for token in stream_answer(args.question, args.org, audit_path=audit_path, run_id=run_id):
            parts.append(token)
            print(token, end="", flush=True)
        print()
        text = "".join(parts)
    else:
        text = answer(args.question, args.org, audit_path=audit_path, run_id=run_id)
        print(text)
    (out_dir / "answer.md").write_text(text, encoding="utf-8")


def run_ingest(args: argparse.Namespace) -> None:
    store = PgVectorStore.from_env()
    if store is None:
        print("ERROR: SUPABASE_DB_URL not set; nowhere to store embeddings.")
        sys.exit(1)
    if not config.gemini_api_key():
        print("ERROR: GEMINI_API_KEY not set; cannot embed the document.")
        sys.exit(1)
    stored = ingest_document(read_text(args.input), args.org, store, max_chars=args.max_chars)
    print(f"Stored {stored} chunk(s) for org {args.org or '(all organizations)'}")


def run_patterns(args: argparse.Namespace) -> None:
    cases = [CaseSummary.model_validate(c) for c in json.loads(read_text(args.cases))]
    run_id, out_dir, _ = _start(args.out, "patterns", {"cases": len(cases)})
    result = detect_patterns(cases)
    write_record(out_dir, "patterns", result)
    print(f"Run ID: {run_id}")
    print(result.summary)
    print(f"Output folder: {out_dir}")


def run_report(args: argparse.Namespace) -> None:
    stats = OrgStats.model_validate(json.loads(read_text(args.stats)))
    run_id, out_dir, _ = _start(args.out, "report", {"year": args.year})
    text = generate_annual_report(stats, args.org_name, args.year)
    (out_dir / "annual_report.md").write_text(text, encoding="utf-8")
    print(f"Run ID: {run_id}")
    print(f"Output folder: {out_dir}")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Workplace complaint analysis: severity, investigation aids, policy assistant")
    p.add_argument("--out", default="outputs", help="Output folder")
    p.add_argument("--verbose", action="store_true", help="Log provider errors and fallbacks")
    sub = p.add_subparsers(dest="command", required=True)

    a = sub.add_parser("analyze", help="Severity analysis of one complaint")
    src = a.add_mutually_exclusive_group(required=True)
    src.add_argument("--input", help="Path to complaint .txt")
    src.add_argument("--text", help="Complaint text")
    a.add_argument("--category", default="verbal", help=f"One of: {', '.join(CATEGORIES)}")
    a.add_argument("--offline", action="store_true", help="Skip the AI; keyword analysis only")
    a.set_defaults(func=run_analyze)

    c = sub.add_parser("credibility", help="Credibility assessment (advisory)")
    c.add_argument("--complaint", required=True, help="Path to complainant statement")
    c.add_argument("--response", help="Path to accused response")
    c.add_argument("--evidence", action="append", default=[], help="Evidence item (repeatable)")
    c.set_defaults(func=run_credibility)

    m = sub.add_parser("compare", help="Compare both statements")
    m.add_argument("--complaint", required=True, help="Path to complainant statement")
    m.add_argument("--response", required=True, help="Path to accused response")
    m.set_defaults(func=run_compare)

    q = sub.add_parser("ask", help="Ask the policy assistant")
    q.add_argument("question")
    q.add_argument("--org", default=None, help="Organization id for retrieval scope")
    q.add_argument("--stream", action="store_true", help="Print tokens as they arrive")
    q.set_defaults(func=run_ask)

    i = sub.add_parser("ingest", help="Embed a policy document into the vector store")
    i.add_argument("--input", required=True, help="Path to policy .txt")
    i.add_argument("--org", default=None, help="Organization id (omit for statute text shared by all)")
    i.add_argument("--max-chars", type=int, default=500, help="Chunk size")
    i.set_defaults(func=run_ingest)

    t = sub.add_parser("patterns", help="Org-level pattern detection")
    t.add_argument("--cases", required=True, help="JSON list of {type, description, severity, date}")
    t.set_defaults(func=run_patterns)

    r = sub.add_parser("report", help="Annual POSH compliance report")
    r.add_argument("--stats", required=True, help="JSON OrgStats")
    r.add_argument("--org-name", default="Organization")
    r.add_argument("--year", type=int, default=date.today().year)
    r.set_defaults(func=run_report)
    return p


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args.func(args)


if __name__ == "__main__":
    main()
