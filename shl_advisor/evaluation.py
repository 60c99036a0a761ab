from __future__ import annotations

"""
Benchmark evaluation for assessment recommendations.

Each benchmark case lists the assessment names a good answer should
contain.  :func:`evaluate_case` compares them with the ranked names the
system actually returned and computes Recall@K, Precision@K at every
rank and a simplified Average Precision.  :class:`BenchmarkRun`
collects per-case results for a whole benchmark set and only reports
mean recall / MAP@K once every case has a result.

Matching is substring based: expected ``e`` matches actual ``a`` when
``e in a`` (case-sensitive), so ``"Java 8 (New) Test"`` counts for
``"Java 8 (New)"`` but not the other way round.

Average Precision here is the mean of the first ``min(K, |matches|)``
Precision@K readings, not the rank-weighted textbook formula.  The
benchmark thresholds were tuned against this definition.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from loguru import logger

from .config import AggregateMetrics, BenchmarkCase, EvaluationResult


def _matches(expected: str, actual: str) -> bool:
    return expected in actual


def precision_at_k(expected: Sequence[str], actual: Sequence[str]) -> Tuple[float, ...]:
    """Precision at every rank ``1..len(actual)``."""
    out: List[float] = []
    for i in range(1, len(actual) + 1):
        top = actual[:i]
        hits = sum(1 for e in expected if any(_matches(e, a) for a in top))
        out.append(hits / i)
    return tuple(out)


def average_precision(precisions: Sequence[float], match_count: int) -> float:
    n = min(len(precisions), match_count)
    if n <= 0:
        return 0.0
    return sum(precisions[:n]) / n


def evaluate_case(case: BenchmarkCase, actual_names: Iterable[str]) -> EvaluationResult:
    """Score one ranked list of assessment names against ``case``."""
    expected = tuple(case.expected_assessments)
    actual = tuple(str(a) for a in actual_names)

    matches = tuple(e for e in expected if any(_matches(e, a) for a in actual))
    missing = tuple(e for e in expected if e not in matches)
    extra = tuple(a for a in actual if not any(_matches(e, a) for e in expected))

    recall = len(matches) / len(expected) if expected else 0.0
    precisions = precision_at_k(expected, actual)
    ap = average_precision(precisions, len(matches))

    return EvaluationResult(
        query=case.query,
        expected_assessments=expected,
        actual_assessments=actual,
        matches=matches,
        missing=missing,
        extra=extra,
        recall=recall,
        precision_at_k=precisions,
        average_precision=ap,
    )


def aggregate(results: Sequence[Optional[EvaluationResult]]) -> Optional[AggregateMetrics]:
    """
    Mean recall and MAP@K over a completed set of results.

    Returns ``None`` (not zero) for an empty set or when any entry is
    still missing.
    """
    if not results or any(r is None for r in results):
        return None
    n = len(results)
    return AggregateMetrics(
        mean_recall=sum(r.recall for r in results) / n,
        map_at_k=sum(r.average_precision for r in results) / n,
        case_count=n,
    )


class BenchmarkRun:
    """Per-case results and failures for one pass over a benchmark set."""

    def __init__(self, cases: Sequence[BenchmarkCase]):
        ids = [c.id for c in cases]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Duplicate benchmark case ids: {ids}")
        self.cases: Tuple[BenchmarkCase, ...] = tuple(cases)
        self._by_id: Dict[str, BenchmarkCase] = {c.id: c for c in self.cases}
        self.results: Dict[str, EvaluationResult] = {}
        self.failures: Dict[str, str] = {}

    def case(self, case_id: str) -> BenchmarkCase:
        try:
            return self._by_id[case_id]
        except KeyError:
            raise KeyError(f"Unknown benchmark case: {case_id}") from None

    def record(self, case_id: str, actual_names: Iterable[str]) -> EvaluationResult:
        result = evaluate_case(self.case(case_id), actual_names)
        self.results[case_id] = result
        self.failures.pop(case_id, None)
        return result

    def record_failure(self, case_id: str, reason: str) -> None:
        self.case(case_id)
        self.results.pop(case_id, None)
        self.failures[case_id] = reason

    @property
    def pending(self) -> List[str]:
        """Case ids without a result (failed or never run)."""
        return [c.id for c in self.cases if c.id not in self.results]

    @property
    def is_complete(self) -> bool:
        return not self.pending

    def aggregate(self) -> Optional[AggregateMetrics]:
        if not self.is_complete:
            return None
        return aggregate([self.results[c.id] for c in self.cases])


def run_benchmark(
    cases: Sequence[BenchmarkCase],
    recommend: Callable[[str], Sequence[str]],
    max_workers: int = 1,
) -> BenchmarkRun:
    """
    Evaluate every case with ``recommend(query) -> ranked names``.

    Cases are independent: with ``max_workers > 1`` they run on a thread
    pool.  An exception for one case is logged and recorded as that
    case's failure; other cases are unaffected.
    """
    run = BenchmarkRun(cases)

    def _one(case: BenchmarkCase) -> Tuple[str, Optional[List[str]], Optional[str]]:
        try:
            return case.id, list(recommend(case.query)), None
        except Exception as e:
            logger.warning("Benchmark case {} failed: {}", case.id, e)
            return case.id, None, str(e) or type(e).__name__

    if max_workers > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            outcomes = list(pool.map(_one, run.cases))
    else:
        outcomes = [_one(c) for c in run.cases]

    for case_id, names, error in outcomes:
        if names is None:
            run.record_failure(case_id, error or "unknown error")
        else:
            result = run.record(case_id, names)
            logger.info(
                "Case {}: recall={:.2f} ap={:.2f} ({} matched of {})",
                case_id, result.recall, result.average_precision,
                len(result.matches), len(result.expected_assessments),
            )
    return run
