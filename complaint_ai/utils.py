"""Helpers: run_id generation and file I/O."""
import uuid
from pathlib import Path

from pydantic import BaseModel


def generate_run_id() -> str:
    """Return a unique run ID (UUID)."""
    return str(uuid.uuid4())


def read_text(path: str | Path) -> str:
    """Read a statement / complaint / policy file. Raises FileNotFoundError if missing."""
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"File not found: {path}")
    return p.read_text(encoding="utf-8")


def ensure_output_dir(base_out: str | Path, run_id: str) -> Path:
    """Create outputs/<run_id>/ and return the path."""
    out_dir = Path(base_out) / run_id
    out_dir.mkdir(parents=True, exist_ok=True)
    return out_dir


def write_record(out_dir: Path, name: str, record: BaseModel) -> Path:
    """Write a record as <name>.json in the run folder."""
    path = out_dir / f"{name}.json"
    path.write_text(record.model_dump_json(indent=2), encoding="utf-8")
    return path
