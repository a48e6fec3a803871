"""
Report Exporter
===============

CSV exports of billable time:

- build_export: complete export (summary, cases summary, time logs detail)
- build_case_export: time logs of a single case

Rows are written with the csv module, so fields containing commas, quotes
or line breaks are quoted and read back unchanged by any CSV reader.
"""

import csv
import io
import re
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Dict, Iterable, List, Optional, Sequence

from .aggregation import aggregate_cases, billable_cases, total_hours
from .duration import format_hours, measure
from .filters import PeriodFilter, filter_time_logs, to_local
from .schemas import AggregatedCase, Case, TimeLog

REPORT_TITLE = "Legal Time Tracking - Complete Export"
ALL_ATTORNEYS = "All Attorneys"
UNKNOWN_CASE = "Unknown Case"

CASE_HEADERS = ["Case ID", "Title", "Client", "Status", "Total Hours", "Created Date", "Description"]
TIME_LOG_HEADERS = [
    "Case Title", "Date", "Start Time", "End Time", "Duration", "Activity Type", "Description", "Notes",
]
CASE_TIME_LOG_HEADERS = TIME_LOG_HEADERS[1:]

CSV_MEDIA_TYPE = "text/csv;charset=utf-8"


@dataclass(frozen=True)
class ExportArtifact:
    """Finished export, ready to be downloaded or written to disk"""
    filename: str
    content: str
    media_type: str = CSV_MEDIA_TYPE

    def to_bytes(self) -> bytes:
        return self.content.encode("utf-8")


def slugify(value: str) -> str:
    """
    Lowercase, whitespace runs to hyphens ('Jane  Doe' -> 'jane-doe').

    Path separators and double quotes also become hyphens so the result is
    a single file name and fits a quoted Content-Disposition parameter.
    """
    slug = re.sub(r"\s+", "-", value.strip().lower())
    return re.sub(r'[/\\"]', "-", slug)


def export_filename(period: PeriodFilter, attorney_name: Optional[str] = None) -> str:
    attorney_part = f"{slugify(attorney_name)}-" if attorney_name else ""
    return f"legal-time-tracking-{attorney_part}{period.token()}-export.csv"


def case_export_filename(case_title: str) -> str:
    return f"{slugify(case_title)}-time-logs.csv"


def render_csv(rows: Iterable[Sequence[object]]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    for row in rows:
        writer.writerow(["" if value is None else value for value in row])
    return buf.getvalue()


def _time_log_fields(log: TimeLog, tz: tzinfo) -> List[str]:
    """Date, start, end, duration, activity, description, notes"""
    start = to_local(log.start_time, tz)
    end = to_local(log.end_time, tz)
    return [
        start.strftime("%Y-%m-%d"),
        start.strftime("%H:%M"),
        end.strftime("%H:%M"),
        measure(log.start_time, log.end_time).display,
        log.activity_type.value,
        log.description or "",
        log.notes or "",
    ]


def _case_row(case: AggregatedCase, tz: tzinfo) -> List[str]:
    return [
        case.id,
        case.title,
        case.client_name,
        case.status.value,
        format_hours(case.total_hours),
        to_local(case.created_at, tz).strftime("%Y-%m-%d"),
        case.description or "",
    ]


def build_report(
    cases: Sequence[AggregatedCase],
    time_logs: Sequence[TimeLog],
    period_label: str,
    attorney_name: Optional[str] = None,
    generated_at: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> str:
    """
    Render the complete export document.

    Args:
        cases: Aggregated cases for the period; zero-hour cases are skipped
        time_logs: Time logs for the same period (detail section)
        period_label: e.g. "All Time" or "January 2024"
        attorney_name: Selected attorney, None for all attorneys
        generated_at: Timestamp for the header (default: now)
        tz: Timezone for dates and clock times (default: UTC)

    Returns:
        CSV text with "\\n" line breaks
    """
    tz = tz or timezone.utc
    generated_at = to_local(generated_at or datetime.now(timezone.utc), tz)

    included = billable_cases(cases)
    titles: Dict[str, str] = {c.id: c.title for c in cases}

    rows: List[Sequence[object]] = [
        [REPORT_TITLE],
        [f"Period: {period_label}"],
        [f"Attorney: {attorney_name or ALL_ATTORNEYS}"],
        ["Generated on:", generated_at.strftime("%Y-%m-%d %H:%M:%S")],
        [],
        ["SUMMARY"],
        ["Total Cases:", len(included)],
        ["Total Hours:", format_hours(total_hours(included))],
        [],
        ["CASES SUMMARY"],
        CASE_HEADERS,
    ]
    rows.extend(_case_row(case, tz) for case in included)
    rows.extend([
        [],
        ["TIME LOGS DETAIL"],
        TIME_LOG_HEADERS,
    ])
    rows.extend(
        [titles.get(log.case_id, UNKNOWN_CASE)] + _time_log_fields(log, tz)
        for log in time_logs
    )
    return render_csv(rows)


def build_export(
    cases: Sequence[Case],
    time_logs: Sequence[TimeLog],
    period: Optional[PeriodFilter] = None,
    attorney_name: Optional[str] = None,
    generated_at: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> ExportArtifact:
    """Filter, aggregate and render the complete export for a snapshot."""
    period = period or PeriodFilter()
    period_logs = filter_time_logs(time_logs, period, tz)
    aggregated = aggregate_cases(cases, period_logs)

    content = build_report(
        aggregated,
        period_logs,
        period_label=period.label(),
        attorney_name=attorney_name,
        generated_at=generated_at,
        tz=tz,
    )
    return ExportArtifact(filename=export_filename(period, attorney_name), content=content)


def build_case_export(
    case: Case,
    time_logs: Sequence[TimeLog],
    tz: Optional[tzinfo] = None,
) -> ExportArtifact:
    """Time logs of one case; logs of other cases are ignored."""
    tz = tz or timezone.utc
    rows: List[Sequence[object]] = [
        [f"Time Logs for {case.title}"],
        [],
        CASE_TIME_LOG_HEADERS,
    ]
    rows.extend(_time_log_fields(log, tz) for log in time_logs if log.case_id == case.id)
    return ExportArtifact(filename=case_export_filename(case.title), content=render_csv(rows))
