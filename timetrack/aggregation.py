"""
Aggregation Engine
==================

Billable-hours summaries derived from a case/time-log snapshot.

Every function is a pure function of its inputs. Callers filter the time
logs first (see timetrack.filters) and pass the same snapshot to the
exporter so on-screen totals and exported totals agree.
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Sequence

from .duration import elapsed_hours, format_hours
from .schemas import AggregatedCase, Case, CaseOverview, CaseStatus, TimeLog


def hours_by_case(time_logs: Iterable[TimeLog]) -> Dict[str, float]:
    """Sum of elapsed hours per case id."""
    totals: Dict[str, float] = defaultdict(float)
    for log in time_logs:
        totals[log.case_id] += elapsed_hours(log.start_time, log.end_time)
    return dict(totals)


def case_hours(case_id: str, time_logs: Iterable[TimeLog]) -> float:
    return sum(
        (elapsed_hours(log.start_time, log.end_time) for log in time_logs if log.case_id == case_id),
        0.0,
    )


def aggregate_cases(cases: Iterable[Case], time_logs: Iterable[TimeLog]) -> List[AggregatedCase]:
    """
    Attach total_hours to every case.

    Cases without matching logs get 0.0 and stay in the result; only the
    export drops them (see billable_cases).
    """
    totals = hours_by_case(time_logs)
    return [
        AggregatedCase(**case.model_dump(), total_hours=totals.get(case.id, 0.0))
        for case in cases
    ]


def status_counts(cases: Iterable[Case]) -> Dict[CaseStatus, int]:
    counts = {status: 0 for status in CaseStatus}
    for case in cases:
        counts[case.status] += 1
    return counts


def total_hours(cases: Iterable[AggregatedCase]) -> float:
    return sum((c.total_hours for c in cases), 0.0)


def billable_cases(cases: Iterable[AggregatedCase]) -> List[AggregatedCase]:
    """Cases with logged time, i.e. the rows included in an export"""
    return [c for c in cases if c.total_hours > 0]


def summarize(cases: Sequence[Case], time_logs: Sequence[TimeLog]) -> CaseOverview:
    """Overview counts for the given snapshot."""
    aggregated = aggregate_cases(cases, time_logs)
    counts = status_counts(aggregated)
    hours = total_hours(aggregated)

    return CaseOverview(
        total_cases=len(aggregated),
        active_cases=counts[CaseStatus.ACTIVE],
        closed_cases=counts[CaseStatus.CLOSED],
        pending_cases=counts[CaseStatus.PENDING],
        billable_cases=len(billable_cases(aggregated)),
        total_hours=hours,
        total_hours_display=format_hours(hours),
    )
