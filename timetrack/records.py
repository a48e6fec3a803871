"""
Record operations.

Typed CRUD over the record store plus the snapshot fetches used by the
dashboard, overview and export views. Validation errors are raised before
any store call; store failures propagate as StoreError and leave the
caller's previous snapshot untouched.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import List, Optional, Tuple

from .aggregation import case_hours
from .errors import InvalidTimeRangeError
from .filters import to_local
from .schemas import (
    Attorney, AttorneyCreateRequest, AttorneyUpdateRequest,
    Case, CaseCreateRequest, CaseUpdateRequest,
    Profile, ProfileUpdateRequest,
    TimeLog, TimeLogCreateRequest,
)
from .store.base import (
    RecordStore, TABLE_ATTORNEYS, TABLE_CASES, TABLE_PROFILES, TABLE_TIME_LOGS,
)

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AttorneyContext:
    """Attorney selected for the current view; None means all attorneys"""
    attorney: Optional[Attorney] = None

    @property
    def attorney_id(self) -> Optional[str]:
        return self.attorney.id if self.attorney else None

    @property
    def attorney_name(self) -> Optional[str]:
        return self.attorney.name if self.attorney else None


@dataclass(frozen=True)
class Snapshot:
    """Cases and time logs as of one fetch"""
    cases: Tuple[Case, ...] = ()
    time_logs: Tuple[TimeLog, ...] = ()


@dataclass(frozen=True)
class CaseDetail:
    case: Case
    time_logs: Tuple[TimeLog, ...]

    @property
    def total_hours(self) -> float:
        return case_hours(self.case.id, self.time_logs)


# =============================================================================
# Attorneys
# =============================================================================

async def list_attorneys(store: RecordStore) -> List[Attorney]:
    rows = await store.select(TABLE_ATTORNEYS, order_by="name")
    return [Attorney.model_validate(r) for r in rows]


async def get_attorney(store: RecordStore, attorney_id: str) -> Attorney:
    return Attorney.model_validate(await store.get(TABLE_ATTORNEYS, attorney_id))


async def create_attorney(store: RecordStore, request: AttorneyCreateRequest) -> Attorney:
    now = _now()
    values = request.model_dump()
    values.update(is_active=True, created_at=now, updated_at=now)
    attorney = Attorney.model_validate(await store.insert(TABLE_ATTORNEYS, values))
    logger.info(f"Attorney created: {attorney.id}")
    return attorney


async def update_attorney(store: RecordStore, attorney_id: str, request: AttorneyUpdateRequest) -> Attorney:
    values = request.model_dump(exclude_unset=True)
    values["updated_at"] = _now()
    return Attorney.model_validate(await store.update(TABLE_ATTORNEYS, attorney_id, values))


async def delete_attorney(store: RecordStore, attorney_id: str) -> None:
    await store.delete(TABLE_ATTORNEYS, attorney_id)
    logger.info(f"Attorney deleted: {attorney_id}")


async def resolve_attorney_context(store: RecordStore, attorney_id: Optional[str]) -> AttorneyContext:
    """Look up the selected attorney; empty id selects all attorneys."""
    if not attorney_id:
        return AttorneyContext()
    return AttorneyContext(attorney=await get_attorney(store, attorney_id))


# =============================================================================
# Profiles
# =============================================================================

async def get_profile(store: RecordStore, profile_id: str) -> Profile:
    return Profile.model_validate(await store.get(TABLE_PROFILES, profile_id))


async def update_profile(store: RecordStore, profile_id: str, request: ProfileUpdateRequest) -> Profile:
    values = request.model_dump(exclude_unset=True)
    values["updated_at"] = _now()
    return Profile.model_validate(await store.update(TABLE_PROFILES, profile_id, values))


# =============================================================================
# Cases
# =============================================================================

async def list_cases(store: RecordStore, attorney_id: Optional[str] = None) -> List[Case]:
    """Cases, newest first, optionally for one attorney"""
    filters = {"attorney_id": attorney_id} if attorney_id else None
    rows = await store.select(TABLE_CASES, filters=filters, order_by="created_at", ascending=False)
    return [Case.model_validate(r) for r in rows]


async def get_case(store: RecordStore, case_id: str) -> Case:
    return Case.model_validate(await store.get(TABLE_CASES, case_id))


async def create_case(
    store: RecordStore,
    request: CaseCreateRequest,
    context: Optional[AttorneyContext] = None,
) -> Case:
    """New case; without an explicit attorney it goes to the selected one."""
    now = _now()
    values = request.model_dump()
    if not values.get("attorney_id") and context is not None:
        values["attorney_id"] = context.attorney_id
    values.update(created_at=now, updated_at=now)

    case = Case.model_validate(await store.insert(TABLE_CASES, values))
    logger.info(f"Case created: {case.id}")
    return case


async def update_case(store: RecordStore, case_id: str, request: CaseUpdateRequest) -> Case:
    values = request.model_dump(exclude_unset=True)
    values["updated_at"] = _now()
    case = Case.model_validate(await store.update(TABLE_CASES, case_id, values))
    logger.info(f"Case updated: {case.id}")
    return case


async def delete_case(store: RecordStore, case_id: str) -> None:
    # Time logs are removed by the store's cascade
    await store.delete(TABLE_CASES, case_id)
    logger.info(f"Case deleted: {case_id}")


# =============================================================================
# Time logs
# =============================================================================

def validate_time_range(start: datetime, end: datetime) -> None:
    if end <= start:
        raise InvalidTimeRangeError("End time must be after start time")


async def list_time_logs(store: RecordStore, case_id: str) -> List[TimeLog]:
    """Time logs of one case, most recent start first"""
    rows = await store.select(
        TABLE_TIME_LOGS, filters={"case_id": case_id}, order_by="start_time", ascending=False
    )
    return [TimeLog.model_validate(r) for r in rows]


async def create_time_log(
    store: RecordStore,
    case_id: str,
    request: TimeLogCreateRequest,
    tz: Optional[tzinfo] = None,
) -> TimeLog:
    """
    Add a time log to a case.

    Raises:
        InvalidTimeRangeError: end is not after start (nothing is stored)
        RecordNotFoundError: the case does not exist
    """
    start = to_local(request.start_time, tz)
    end = to_local(request.end_time, tz)
    validate_time_range(start, end)

    await get_case(store, case_id)

    now = _now()
    values = {
        "case_id": case_id,
        "start_time": start,
        "end_time": end,
        "activity_type": request.activity_type,
        "description": request.description,
        "notes": request.notes,
        "created_at": now,
        "updated_at": now,
    }
    log = TimeLog.model_validate(await store.insert(TABLE_TIME_LOGS, values))
    logger.info(f"Time log created: {log.id} on case {case_id}")
    return log


async def delete_time_log(store: RecordStore, time_log_id: str) -> None:
    await store.delete(TABLE_TIME_LOGS, time_log_id)
    logger.info(f"Time log deleted: {time_log_id}")


# =============================================================================
# Snapshots
# =============================================================================

async def fetch_snapshot(store: RecordStore, context: Optional[AttorneyContext] = None) -> Snapshot:
    """
    Fetch cases and time logs together.

    With an attorney selected, cases are filtered in the store query and
    time logs are restricted to that attorney's cases. Either fetch failing
    fails the whole snapshot.
    """
    attorney_id = context.attorney_id if context else None
    case_rows, log_rows = await asyncio.gather(
        store.select(
            TABLE_CASES,
            filters={"attorney_id": attorney_id} if attorney_id else None,
            order_by="created_at",
            ascending=False,
        ),
        store.select(TABLE_TIME_LOGS),
    )

    cases = [Case.model_validate(r) for r in case_rows]
    logs = [TimeLog.model_validate(r) for r in log_rows]
    if attorney_id:
        case_ids = {c.id for c in cases}
        logs = [log for log in logs if log.case_id in case_ids]

    return Snapshot(cases=tuple(cases), time_logs=tuple(logs))


async def get_case_detail(store: RecordStore, case_id: str) -> CaseDetail:
    """Case plus its time logs; a missing case raises RecordNotFoundError."""
    case, logs = await asyncio.gather(get_case(store, case_id), list_time_logs(store, case_id))
    return CaseDetail(case=case, time_logs=tuple(logs))
