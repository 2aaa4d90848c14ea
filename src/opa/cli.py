import argparse
import json
import logging
import signal
import threading
from contextlib import contextmanager
from pathlib import Path

import pandas as pd

from .comparison import compare_conditions
from .config import OpaConfig
from .errors import InvalidData, InvalidHypothesis, OpaError
from .fit import OpaFit, fit_opa
from .hypothesis import Hypothesis
from .logging_io import append_jsonl, load_fit_summary, save_condition_comparison, save_fit
from .report import format_condition_comparison, summary
from .report import write_report as write_fit_report

LOGGER = logging.getLogger(__name__)


def parse_hypothesis(text: str) -> Hypothesis:
    parts = [part.strip() for part in text.split(",") if part.strip()]
    try:
        values = [float(part) for part in parts]
    except ValueError as exc:
        raise InvalidHypothesis(f"could not parse hypothesis {text!r}") from exc
    return Hypothesis(tuple(values))


def load_data(
    path: str | Path, group_column: str | None = None
) -> tuple[pd.DataFrame, list | None]:
    frame = pd.read_csv(path)
    if group_column is None:
        return frame, None
    if group_column not in frame.columns:
        raise InvalidData(f"group column {group_column!r} not found in {path}")
    group = frame[group_column].tolist()
    return frame.drop(columns=[group_column]), group


def _build_config(args: argparse.Namespace) -> OpaConfig:
    values = OpaConfig.from_json(args.config).to_dict() if args.config else {}
    if args.nreps is not None:
        values["nreps"] = args.nreps
    if args.seed is not None:
        values["seed"] = args.seed
    return OpaConfig.from_dict(values)


@contextmanager
def _cancel_on_sigint():
    event = threading.Event()

    def _handler(signum, frame):  # noqa: ANN001
        del signum, frame
        LOGGER.warning("interrupt received; stopping after the current repetition")
        event.set()

    previous = signal.signal(signal.SIGINT, _handler)
    try:
        yield event.is_set
    finally:
        signal.signal(signal.SIGINT, previous)


def _fit_from_args(args: argparse.Namespace, events_path: Path) -> OpaFit:
    cfg = _build_config(args)
    hypothesis = parse_hypothesis(args.hypothesis)
    data, group = load_data(args.data, args.group_column)
    append_jsonl(
        "fit_started",
        {
            "data": str(args.data),
            "hypothesis": list(hypothesis.values),
            "group_column": args.group_column,
            "config": cfg.to_dict(),
        },
        events_path,
    )
    with _cancel_on_sigint() as cancel:
        fit = fit_opa(data, hypothesis, group=group, config=cfg, cancel=cancel)
    fit.metadata["data"] = str(args.data)
    append_jsonl(
        "fit_completed",
        {
            "group_pcc": fit.group_pcc,
            "group_cvals": fit.group_cvals,
            "nreps": fit.nreps,
            "cancelled": fit.cancelled,
        },
        events_path,
    )
    return fit


def run_fit(args: argparse.Namespace) -> int:
    output_dir = Path(args.output)
    output_dir.mkdir(parents=True, exist_ok=True)
    events_path = output_dir / "events.jsonl"
    fit = _fit_from_args(args, events_path)
    save_fit(fit, output_dir / "fit.json")
    report_path = write_fit_report(fit, output_dir / "report.md")
    print(summary(fit))
    print(f"Report written to {report_path}")
    return 0


def run_conditions(args: argparse.Namespace) -> int:
    output_dir = Path(args.output)
    output_dir.mkdir(parents=True, exist_ok=True)
    events_path = output_dir / "events.jsonl"
    fit = _fit_from_args(args, events_path)
    result = compare_conditions(fit, nreps=fit.config.nreps)
    paths = save_condition_comparison(result, output_dir)
    append_jsonl(
        "conditions_compared",
        {"nreps": result.nreps, "files": [str(path) for path in paths]},
        events_path,
    )
    print(format_condition_comparison(result))
    return 0


def write_report(artifacts_dir: str | Path) -> Path:
    """Regenerate ``report.md`` from a saved ``fit.json``."""
    root = Path(artifacts_dir)
    fit_path = root / "fit.json"
    try:
        payload = load_fit_summary(fit_path)
    except (json.JSONDecodeError, OSError):
        payload = {}

    config = payload.get("config", {})
    hypothesis = payload.get("hypothesis", {}).get("values", [])
    lines = ["# Ordinal Pattern Analysis Report", "", "## Run Summary", ""]
    if not payload:
        lines.append(f"- No readable fit found at {fit_path}")
    else:
        lines.append(f"- Hypothesis: {' '.join(f'{value:g}' for value in hypothesis)}")
        lines.append(f"- Pairing type: {config.get('pairing_type', 'n/a')}")
        lines.append(f"- C-value method: {config.get('cval_method', 'n/a')}")
        lines.append(f"- Group PCC: {payload.get('group_pcc', 0.0):.2f}")
        lines.append(
            f"- Correct pairs: {payload.get('correct_pairs', 0)} of {payload.get('total_pairs', 0)}"
        )
        if payload.get("cancelled"):
            lines.append("- Cancelled before all repetitions completed")

    groups = payload.get("groups", [])
    if groups:
        lines.extend(["", "## Group Results", ""])
        for group in groups:
            cval = group.get("cvals", {}).get("group_cval")
            cval_text = "n/a" if cval is None else f"{cval:.2f}"
            lines.append(f"- {group['label']}: PCC {group['group_pcc']:.2f}, cval {cval_text}")
            if group["excluded_rows"]:
                excluded = ", ".join(str(idx + 1) for idx in group["excluded_rows"])
                lines.append(f"  - excluded rows: {excluded}")

    report_path = root / "report.md"
    report_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return report_path


def _add_fit_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--data", type=str, required=True)
    parser.add_argument("--hypothesis", type=str, required=True)
    parser.add_argument("--group-column", type=str, default=None)
    parser.add_argument("--config", type=str, default=None)
    parser.add_argument("--output", type=str, default="artifacts")
    parser.add_argument("--nreps", type=int, default=None)
    parser.add_argument("--seed", type=int, default=None)


def main() -> int:
    parser = argparse.ArgumentParser(description="Ordinal pattern analysis CLI")
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    sub = parser.add_subparsers(dest="command", required=True)

    fit = sub.add_parser("fit")
    _add_fit_arguments(fit)

    conditions = sub.add_parser("conditions")
    _add_fit_arguments(conditions)

    report = sub.add_parser("report")
    report.add_argument("--artifacts", type=str, required=True)

    args = parser.parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "fit":
            return run_fit(args)
        if args.command == "conditions":
            return run_conditions(args)
    except OpaError as exc:
        LOGGER.error("%s", exc)
        return 2
    if args.command == "report":
        report_path = write_report(args.artifacts)
        print(f"Report written to {report_path}")
        return 0
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
