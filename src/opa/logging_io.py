import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import numpy as np

from .comparison import ConditionComparison
from .fit import OpaFit


def _json_default(value: Any) -> Any:
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, Path):
        return str(value)
    raise TypeError(f"{type(value).__name__} is not JSON serializable")


def append_jsonl(event_type: str, payload: dict, path: str | Path) -> None:
    """Append one timestamped run event; numpy values in ``payload`` are unwrapped."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    record = {
        "timestamp": datetime.now(UTC).isoformat(),
        "event_type": event_type,
        "payload": payload,
    }
    with target.open("a", encoding="utf-8") as f:
        f.write(json.dumps(record, ensure_ascii=False, default=_json_default) + "\n")


def write_json(payload: dict, path: str | Path) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    text = json.dumps(payload, ensure_ascii=False, indent=2, default=_json_default)
    target.write_text(text, encoding="utf-8")
    return target


def save_fit(fit: OpaFit, path: str | Path) -> Path:
    payload = {"schema_version": 1, **fit.to_dict()}
    return write_json(payload, path)


def load_fit_summary(path: str | Path) -> dict[str, Any]:
    """Read a fit saved by ``save_fit``; missing optional keys get defaults."""
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    payload.setdefault("metadata", {})
    payload.setdefault("cancelled", False)
    for group in payload.get("groups", []):
        group.setdefault("excluded_rows", [])
    return payload


def save_condition_comparison(result: ConditionComparison, directory: str | Path) -> list[Path]:
    root = Path(directory)
    root.mkdir(parents=True, exist_ok=True)
    pcc_path = root / "condition_pccs.csv"
    cval_path = root / "condition_cvals.csv"
    result.pccs.to_csv(pcc_path)
    result.cvals.to_csv(cval_path)
    return [pcc_path, cval_path]
