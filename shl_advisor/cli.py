# shl_advisor/cli.py
"""
Command-line tools for the SHL assessment advisor.

- ``normalize``: run a saved raw model answer through the response
  normalizer and print the resulting JSON payload
- ``evaluate``: score recommendations against the benchmark set, either
  from a predictions file (``Query``, ``Assessment_name`` rows in rank
  order) or live against an ask endpoint
- ``serve``: run the FastAPI service under uvicorn

Mean recall / MAP@K are only printed when every case has a result;
otherwise the incomplete cases are listed and the exit code is 1.
"""

from __future__ import annotations
import argparse
import json
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd
import uvicorn
from loguru import logger

from shl_advisor.client import AskClient
from shl_advisor.config import (
    API_HOST,
    API_PORT,
    ASK_ENDPOINT_URL,
    BENCHMARK_CASES,
    BENCHMARK_LABELS,
    LOG_DIR,
    LOG_LEVEL,
    BenchmarkCase,
)
from shl_advisor.evaluation import BenchmarkRun, run_benchmark
from shl_advisor.normalize import clean_query_text
from shl_advisor.response_parser import normalize_response


def configure_logging(level: str = LOG_LEVEL, log_file: Optional[Path] = None) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(log_file, level="DEBUG", rotation="10 MB")


def _read_table(path: Path) -> pd.DataFrame:
    ext = path.suffix.lower()
    return pd.read_excel(path) if ext in {".xlsx", ".xls"} else pd.read_csv(path)


def _cell_text(value: object) -> str:
    """Cell as stripped text; empty cells (NaN/None) become ``""``."""
    if pd.isna(value):
        return ""
    return str(value).strip()


def _require_columns(df: pd.DataFrame, path: Path, *names: str) -> Dict[str, str]:
    cols = {c.strip().lower(): c for c in df.columns}
    missing = [n for n in names if n.lower() not in cols]
    if missing:
        raise ValueError(f"Expected columns {list(names)} in {path}. Found: {list(df.columns)}")
    return cols


def load_benchmark_cases(path: Path) -> Tuple[BenchmarkCase, ...]:
    """
    Read benchmark cases from CSV/XLSX: one row per expected assessment,
    columns ``Query`` and ``Assessment_name`` plus an optional ``Id``.
    Row order is kept for both cases and expected names.
    """
    df = _read_table(path)
    cols = _require_columns(df, path, "query", "assessment_name")
    id_col = cols.get("id")

    grouped: Dict[str, List[str]] = {}
    ids: Dict[str, str] = {}
    for _, row in df.iterrows():
        query = clean_query_text(_cell_text(row[cols["query"]]))
        name = _cell_text(row[cols["assessment_name"]])
        if not query:
            continue
        names = grouped.setdefault(query, [])
        if name and name not in names:
            names.append(name)
        if query not in ids:
            raw_id = _cell_text(row[id_col]) if id_col else ""
            ids[query] = raw_id or f"case-{len(ids) + 1}"

    return tuple(
        BenchmarkCase(id=ids[q], query=q, expected_assessments=tuple(names))
        for q, names in grouped.items()
    )


def load_predictions(path: Path) -> Dict[str, List[str]]:
    """Map cleaned query -> predicted assessment names in file (rank) order."""
    df = _read_table(path)
    cols = _require_columns(df, path, "query", "assessment_name")
    preds: Dict[str, List[str]] = {}
    for _, row in df.iterrows():
        query = clean_query_text(_cell_text(row[cols["query"]]))
        if not query:
            continue
        name = _cell_text(row[cols["assessment_name"]])
        names = preds.setdefault(query, [])
        if name:
            names.append(name)
    return preds


def evaluate_predictions(cases: Sequence[BenchmarkCase], preds: Dict[str, List[str]]) -> BenchmarkRun:
    run = BenchmarkRun(cases)
    for case in cases:
        names = preds.get(clean_query_text(case.query))
        if names is None:
            run.record_failure(case.id, "no predictions for query")
        else:
            run.record(case.id, names)
    return run


def write_results_csv(run: BenchmarkRun, out_path: Path) -> None:
    rows = []
    for case in run.cases:
        result = run.results.get(case.id)
        rows.append({
            "Id": case.id,
            "Query": case.query,
            "Recall": result.recall if result else None,
            "AveragePrecision": result.average_precision if result else None,
            "Matched": len(result.matches) if result else None,
            "Expected": len(case.expected_assessments),
            "Missing": "; ".join(result.missing) if result else "",
            "Extra": "; ".join(result.extra) if result else "",
            "Error": run.failures.get(case.id, ""),
        })
    df = pd.DataFrame(rows)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(out_path, index=False)


def print_report(run: BenchmarkRun) -> int:
    for case in run.cases:
        label = BENCHMARK_LABELS.get(case.id, case.id)
        result = run.results.get(case.id)
        if result is None:
            print(f"[FAIL] {label}: {run.failures.get(case.id, 'not run')}")
            continue
        print(
            f"{label}: Recall@K {result.recall:.2f}  AP@K {result.average_precision:.2f}  "
            f"Matched {len(result.matches)}/{len(result.expected_assessments)}"
        )

    metrics = run.aggregate()
    if metrics is None:
        print(f"Mean metrics unavailable: no result for {', '.join(run.pending)}")
        return 1
    print(f"Mean Recall@K: {metrics.mean_recall:.2f}")
    print(f"MAP@K: {metrics.map_at_k:.2f}")
    return 0


def _cmd_normalize(args: argparse.Namespace) -> int:
    raw = Path(args.inp).read_text(encoding="utf-8")
    sources = None
    if args.sources:
        sources = json.loads(Path(args.sources).read_text(encoding="utf-8"))
        if not isinstance(sources, list):
            raise ValueError(f"Expected a JSON list of documents in {args.sources}")
    result = normalize_response(raw, sources)
    print(json.dumps(result.to_payload(), indent=2, ensure_ascii=False))
    return 0


def _cmd_evaluate(args: argparse.Namespace) -> int:
    cases = load_benchmark_cases(Path(args.cases)) if args.cases else BENCHMARK_CASES
    print(f"Loaded {len(cases)} benchmark cases")

    if args.predictions:
        run = evaluate_predictions(cases, load_predictions(Path(args.predictions)))
    else:
        with AskClient(args.endpoint) as client:
            run = run_benchmark(cases, client.recommend_names, max_workers=args.workers)

    if args.out:
        write_results_csv(run, Path(args.out))
        print(f"Wrote per-case results to {args.out}")
    return print_report(run)


def _cmd_serve(args: argparse.Namespace) -> int:
    logger.info("Serving shl_advisor.api:app on {}:{}", args.host, args.port)
    uvicorn.run("shl_advisor.api:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="shl-advisor")
    ap.add_argument("--log-level", default=LOG_LEVEL)
    ap.add_argument("--log-file", action="store_true", help="also log to logs/advisor.log")
    sub = ap.add_subparsers(dest="command", required=True)

    p_norm = sub.add_parser("normalize", help="normalize a saved raw model answer")
    p_norm.add_argument("--in", dest="inp", required=True, help="text file with the raw answer")
    p_norm.add_argument("--sources", default=None, help="JSON list of retrieved documents")
    p_norm.set_defaults(func=_cmd_normalize)

    p_eval = sub.add_parser("evaluate", help="score recommendations against benchmark cases")
    p_eval.add_argument("--cases", default=None, help="CSV/XLSX benchmark cases (default: built-in set)")
    src = p_eval.add_mutually_exclusive_group()
    src.add_argument("--predictions", default=None, help="CSV/XLSX with Query, Assessment_name rows")
    src.add_argument("--endpoint", default=ASK_ENDPOINT_URL, help="ask endpoint for a live run")
    p_eval.add_argument("--workers", type=int, default=1, help="parallel queries for a live run")
    p_eval.add_argument("--out", default=None, help="optional per-case results CSV")
    p_eval.set_defaults(func=_cmd_evaluate)

    p_serve = sub.add_parser("serve", help="run the FastAPI service with uvicorn")
    p_serve.add_argument("--host", default=API_HOST)
    p_serve.add_argument("--port", type=int, default=API_PORT)
    p_serve.add_argument("--reload", action="store_true", help="enable auto-reload")
    p_serve.set_defaults(func=_cmd_serve)
    return ap


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level, LOG_DIR / "advisor.log" if args.log_file else None)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
