"""
Record Operation Tests
======================

Typed CRUD and snapshot fetches over the SQL store, plus a failing store
to check that validation happens before any store call.
"""

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from timetrack import records
from timetrack.errors import InvalidTimeRangeError, RecordNotFoundError, StoreError
from timetrack.records import AttorneyContext
from timetrack.schemas import (
    ActivityType, AttorneyCreateRequest, AttorneyUpdateRequest, CaseCreateRequest,
    CaseStatus, CaseUpdateRequest, TimeLogCreateRequest,
)
from timetrack.store import RecordStore, SqlRecordStore
from timetrack.tests.factories import utc


class FailingStore(RecordStore):
    """Store whose every call fails, counting the attempts"""

    name = "failing"

    def __init__(self):
        self.calls = 0

    async def _fail(self, *args, **kwargs):
        self.calls += 1
        raise StoreError("store offline")

    select = get = insert = update = delete = _fail


@pytest.fixture
def store(sqlalchemy_db):
    return SqlRecordStore()


async def _case(store, title="Smith v. Jones", context=None, **kwargs):
    request = CaseCreateRequest(title=title, client_name=f"{title} client", **kwargs)
    return await records.create_case(store, request, context)


async def _log(store, case_id, start, end, **kwargs):
    request = TimeLogCreateRequest(start_time=start, end_time=end, **kwargs)
    return await records.create_time_log(store, case_id, request)


class TestAttorneys:

    @pytest.mark.asyncio
    async def test_create_list_update_delete(self, store):
        zoe = await records.create_attorney(store, AttorneyCreateRequest(name="Zoe Park"))
        ann = await records.create_attorney(store, AttorneyCreateRequest(name="Ann Lee", email="ann@firm.test"))

        assert zoe.is_active is True
        assert [a.name for a in await records.list_attorneys(store)] == ["Ann Lee", "Zoe Park"]

        updated = await records.update_attorney(store, ann.id, AttorneyUpdateRequest(is_active=False))
        assert updated.is_active is False
        assert updated.email == "ann@firm.test"

        await records.delete_attorney(store, zoe.id)
        assert [a.id for a in await records.list_attorneys(store)] == [ann.id]

    @pytest.mark.asyncio
    async def test_resolve_context(self, store):
        jane = await records.create_attorney(store, AttorneyCreateRequest(name="Jane Doe"))

        assert (await records.resolve_attorney_context(store, None)).attorney is None
        assert (await records.resolve_attorney_context(store, "")).attorney_name is None

        context = await records.resolve_attorney_context(store, jane.id)
        assert context.attorney_id == jane.id
        assert context.attorney_name == "Jane Doe"

    @pytest.mark.asyncio
    async def test_resolve_unknown_attorney(self, store):
        with pytest.raises(RecordNotFoundError):
            await records.resolve_attorney_context(store, "ghost")


class TestCases:

    @pytest.mark.asyncio
    async def test_create_defaults(self, store):
        case = await _case(store)
        assert case.status == CaseStatus.ACTIVE
        assert case.attorney_id is None
        assert case.created_at is not None

    @pytest.mark.asyncio
    async def test_create_uses_selected_attorney(self, store):
        jane = await records.create_attorney(store, AttorneyCreateRequest(name="Jane Doe"))
        case = await _case(store, context=AttorneyContext(attorney=jane))
        assert case.attorney_id == jane.id

    @pytest.mark.asyncio
    async def test_list_newest_first(self, store):
        first = await _case(store, "First")
        second = await _case(store, "Second")
        await store.update("cases", first.id, {"created_at": utc(2024, 1, 1, 9, 0)})
        await store.update("cases", second.id, {"created_at": utc(2024, 2, 1, 9, 0)})

        assert [c.title for c in await records.list_cases(store)] == ["Second", "First"]

    @pytest.mark.asyncio
    async def test_update_and_delete(self, store):
        case = await _case(store)
        updated = await records.update_case(store, case.id, CaseUpdateRequest(status=CaseStatus.CLOSED))
        assert updated.status == CaseStatus.CLOSED
        assert updated.title == case.title

        await _log(store, case.id, utc(2024, 1, 15, 9, 0), utc(2024, 1, 15, 10, 0))
        await records.delete_case(store, case.id)

        with pytest.raises(RecordNotFoundError):
            await records.get_case(store, case.id)
        assert await records.list_time_logs(store, case.id) == []


class TestTimeLogs:

    @pytest.mark.asyncio
    async def test_create_and_list_newest_start_first(self, store):
        case = await _case(store)
        await _log(store, case.id, utc(2024, 1, 15, 9, 0), utc(2024, 1, 15, 10, 30),
                   activity_type=ActivityType.DRAFTING, description="Brief")
        await _log(store, case.id, utc(2024, 1, 16, 13, 0), utc(2024, 1, 16, 13, 45))

        logs = await records.list_time_logs(store, case.id)
        assert [log.start_time for log in logs] == [utc(2024, 1, 16, 13, 0), utc(2024, 1, 15, 9, 0)]
        assert logs[1].activity_type == ActivityType.DRAFTING
        assert logs[0].activity_type == ActivityType.OTHER

    @pytest.mark.asyncio
    @pytest.mark.parametrize("minutes", [0, -30])
    async def test_end_not_after_start_rejected_before_store_call(self, minutes):
        store = FailingStore()
        start = utc(2024, 1, 15, 9, 30)
        end = utc(2024, 1, 15, 9, 30 + minutes)
        with pytest.raises(InvalidTimeRangeError, match="End time must be after start time"):
            await _log(store, "case-1", start, end)
        assert store.calls == 0

    @pytest.mark.asyncio
    async def test_unknown_case(self, store):
        with pytest.raises(RecordNotFoundError):
            await _log(store, "ghost", utc(2024, 1, 15, 9, 0), utc(2024, 1, 15, 10, 0))

    @pytest.mark.asyncio
    async def test_naive_times_are_in_report_timezone(self, store):
        case = await _case(store)
        request = TimeLogCreateRequest(start_time=datetime(2024, 1, 15, 9, 0), end_time=datetime(2024, 1, 15, 10, 0))
        log = await records.create_time_log(store, case.id, request, ZoneInfo("America/New_York"))
        assert log.start_time == utc(2024, 1, 15, 14, 0)

    @pytest.mark.asyncio
    async def test_delete(self, store):
        case = await _case(store)
        log = await _log(store, case.id, utc(2024, 1, 15, 9, 0), utc(2024, 1, 15, 10, 0))
        await records.delete_time_log(store, log.id)
        assert await records.list_time_logs(store, case.id) == []


class TestSnapshots:

    @pytest.mark.asyncio
    async def test_snapshot_restricted_to_attorney(self, store):
        jane = await records.create_attorney(store, AttorneyCreateRequest(name="Jane Doe"))
        jane_case = await _case(store, "Jane's", attorney_id=jane.id)
        other_case = await _case(store, "Other")
        await _log(store, jane_case.id, utc(2024, 1, 15, 9, 0), utc(2024, 1, 15, 10, 0))
        await _log(store, other_case.id, utc(2024, 1, 15, 11, 0), utc(2024, 1, 15, 12, 0))

        everything = await records.fetch_snapshot(store)
        assert len(everything.cases) == 2
        assert len(everything.time_logs) == 2

        snapshot = await records.fetch_snapshot(store, AttorneyContext(attorney=jane))
        assert [c.id for c in snapshot.cases] == [jane_case.id]
        assert [log.case_id for log in snapshot.time_logs] == [jane_case.id]
        assert isinstance(snapshot.cases, tuple)

    @pytest.mark.asyncio
    async def test_snapshot_failure_propagates(self):
        with pytest.raises(StoreError, match="store offline"):
            await records.fetch_snapshot(FailingStore())

    @pytest.mark.asyncio
    async def test_case_detail(self, store):
        case = await _case(store)
        await _log(store, case.id, utc(2024, 1, 15, 9, 0), utc(2024, 1, 15, 10, 30))
        await _log(store, case.id, utc(2024, 1, 15, 13, 0), utc(2024, 1, 15, 13, 45))

        detail = await records.get_case_detail(store, case.id)
        assert detail.case.id == case.id
        assert len(detail.time_logs) == 2
        assert detail.total_hours == pytest.approx(2.25)

    @pytest.mark.asyncio
    async def test_case_detail_not_found(self, store):
        with pytest.raises(RecordNotFoundError):
            await records.get_case_detail(store, "ghost")
