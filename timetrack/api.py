"""
Legal Time Tracking API
=======================

FastAPI endpoints for cases, time logs, attorneys, overview and CSV export.

Endpoints:
- GET    /health                     - Health check
- GET    /attorneys                  - List attorneys (by name)
- POST   /attorneys                  - Create attorney
- PATCH  /attorneys/{attorney_id}    - Update attorney
- DELETE /attorneys/{attorney_id}    - Delete attorney
- GET    /profiles/{profile_id}      - Get profile
- PATCH  /profiles/{profile_id}      - Update profile
- GET    /cases                      - Cases with total hours (status/q/created_on filters)
- POST   /cases                      - Create case
- GET    /cases/{case_id}            - Case with time logs and total hours
- PATCH  /cases/{case_id}            - Update case
- DELETE /cases/{case_id}            - Delete case (and its time logs)
- GET    /cases/{case_id}/time-logs  - Time logs, newest first
- POST   /cases/{case_id}/time-logs  - Add time log
- DELETE /time-logs/{time_log_id}    - Delete time log
- GET    /overview                   - Status counts and hours for a period
- GET    /export                     - Complete CSV export for a period
- GET    /cases/{case_id}/export     - CSV export of one case

The selected attorney is passed per request as ?attorney_id= or the
X-Attorney-Id header.

Run with:
    uvicorn timetrack.api:app --host 0.0.0.0 --port 8000
"""

import logging
from typing import List, Optional
from urllib.parse import quote

from fastapi import FastAPI, Depends, Header, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import records
from .aggregation import aggregate_cases, status_counts, summarize
from .config import get_settings
from .duration import format_hours
from .errors import ValidationError, StoreError, RecordNotFoundError
from .exporter import ExportArtifact, build_case_export, build_export
from .filters import CaseFilter, PeriodFilter, filter_cases, filter_time_logs
from .records import AttorneyContext
from .schemas import (
    AggregatedCase,
    Attorney,
    AttorneyCreateRequest,
    AttorneyUpdateRequest,
    Case,
    CaseCreateRequest,
    CaseDetailResponse,
    CaseUpdateRequest,
    HealthResponse,
    OverviewResponse,
    PeriodMode,
    Profile,
    ProfileUpdateRequest,
    TimeLog,
    TimeLogCreateRequest,
)
from .store import RecordStore, create_store

settings = get_settings()

# Configure logging
logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)


# =============================================================================
# FastAPI App
# =============================================================================

app = FastAPI(
    title="Legal Time Tracking Service",
    description="Cases, billable time logs and CSV exports for law firms",
    version=settings.service_version,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["*"],
)
logger.info(f"CORS allow origins: {settings.allowed_origins}")


# =============================================================================
# Dependencies
# =============================================================================

_store: Optional[RecordStore] = None


def get_record_store() -> RecordStore:
    """Process-wide record store, created on first use"""
    global _store
    if _store is None:
        _store = create_store(get_settings())
    return _store


async def get_attorney_context(
    attorney_id: Optional[str] = Query(None, description="Selected attorney"),
    x_attorney_id: Optional[str] = Header(None),
    store: RecordStore = Depends(get_record_store),
) -> AttorneyContext:
    """Resolve the attorney selected for this request (404 if unknown)"""
    return await records.resolve_attorney_context(store, attorney_id or x_attorney_id)


def get_period_filter(
    mode: PeriodMode = Query(PeriodMode.ALL),
    start_date: Optional[str] = Query(None, description="YYYY-MM-DD, range mode"),
    end_date: Optional[str] = Query(None, description="YYYY-MM-DD, range mode"),
    year: Optional[str] = Query(None, description="Year, month mode"),
    month_index: Optional[str] = Query(None, description="0-11, month mode"),
) -> PeriodFilter:
    return PeriodFilter(
        mode=mode,
        start_date=start_date,
        end_date=end_date,
        year=year,
        month_index=month_index,
    )


def _attachment(artifact: ExportArtifact) -> Response:
    ascii_name = artifact.filename.encode("ascii", "ignore").decode("ascii") or "export.csv"
    disposition = f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(artifact.filename)}"
    return Response(
        content=artifact.to_bytes(),
        media_type=artifact.media_type,
        headers={"Content-Disposition": disposition},
    )


# =============================================================================
# Health
# =============================================================================

@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint"""
    current = get_settings()
    return HealthResponse(
        version=current.service_version,
        store_backend=current.store_backend.value,
        warnings=current.validate_store_config(),
    )


# =============================================================================
# Attorneys & Profiles
# =============================================================================

@app.get("/attorneys", response_model=List[Attorney], tags=["Attorneys"])
async def list_attorneys(store: RecordStore = Depends(get_record_store)):
    return await records.list_attorneys(store)


@app.post("/attorneys", response_model=Attorney, status_code=201, tags=["Attorneys"])
async def create_attorney(request: AttorneyCreateRequest, store: RecordStore = Depends(get_record_store)):
    return await records.create_attorney(store, request)


@app.patch("/attorneys/{attorney_id}", response_model=Attorney, tags=["Attorneys"])
async def update_attorney(
    attorney_id: str,
    request: AttorneyUpdateRequest,
    store: RecordStore = Depends(get_record_store),
):
    return await records.update_attorney(store, attorney_id, request)


@app.delete("/attorneys/{attorney_id}", tags=["Attorneys"])
async def delete_attorney(attorney_id: str, store: RecordStore = Depends(get_record_store)):
    """Delete attorney; their cases stay, unassigned"""
    await records.delete_attorney(store, attorney_id)
    return {"message": "Attorney deleted successfully"}


@app.get("/profiles/{profile_id}", response_model=Profile, tags=["Profiles"])
async def get_profile(profile_id: str, store: RecordStore = Depends(get_record_store)):
    return await records.get_profile(store, profile_id)


@app.patch("/profiles/{profile_id}", response_model=Profile, tags=["Profiles"])
async def update_profile(
    profile_id: str,
    request: ProfileUpdateRequest,
    store: RecordStore = Depends(get_record_store),
):
    return await records.update_profile(store, profile_id, request)


# =============================================================================
# Cases
# =============================================================================

@app.get("/cases", response_model=List[AggregatedCase], tags=["Cases"])
async def list_cases(
    status: Optional[str] = Query(None, description="Active, Closed, Pending or All"),
    q: Optional[str] = Query(None, description="Search title, client and description"),
    created_on: Optional[str] = Query(None, description="YYYY-MM-DD"),
    context: AttorneyContext = Depends(get_attorney_context),
    store: RecordStore = Depends(get_record_store),
):
    """
    Cases with total hours for the selected attorney.

    Zero-hour cases are listed too; filters are applied after aggregation.
    """
    case_filter = CaseFilter(status=status, search=q, created_on=created_on)
    snapshot = await records.fetch_snapshot(store, context)
    aggregated = aggregate_cases(snapshot.cases, snapshot.time_logs)
    return filter_cases(aggregated, case_filter, get_settings().tzinfo)


@app.post("/cases", response_model=Case, status_code=201, tags=["Cases"])
async def create_case(
    request: CaseCreateRequest,
    context: AttorneyContext = Depends(get_attorney_context),
    store: RecordStore = Depends(get_record_store),
):
    return await records.create_case(store, request, context)


@app.get("/cases/{case_id}", response_model=CaseDetailResponse, tags=["Cases"])
async def get_case(case_id: str, store: RecordStore = Depends(get_record_store)):
    detail = await records.get_case_detail(store, case_id)
    return CaseDetailResponse(
        case=detail.case,
        time_logs=list(detail.time_logs),
        total_hours=detail.total_hours,
        total_hours_display=format_hours(detail.total_hours),
    )


@app.patch("/cases/{case_id}", response_model=Case, tags=["Cases"])
async def update_case(
    case_id: str,
    request: CaseUpdateRequest,
    store: RecordStore = Depends(get_record_store),
):
    return await records.update_case(store, case_id, request)


@app.delete("/cases/{case_id}", tags=["Cases"])
async def delete_case(case_id: str, store: RecordStore = Depends(get_record_store)):
    await records.delete_case(store, case_id)
    return {"message": "Case deleted successfully"}


@app.get("/cases/{case_id}/export", tags=["Export"])
async def export_case(case_id: str, store: RecordStore = Depends(get_record_store)):
    """Download the time logs of one case as CSV"""
    detail = await records.get_case_detail(store, case_id)
    return _attachment(build_case_export(detail.case, detail.time_logs, get_settings().tzinfo))


# =============================================================================
# Time logs
# =============================================================================

@app.get("/cases/{case_id}/time-logs", response_model=List[TimeLog], tags=["Time Logs"])
async def list_time_logs(case_id: str, store: RecordStore = Depends(get_record_store)):
    return await records.list_time_logs(store, case_id)


@app.post("/cases/{case_id}/time-logs", response_model=TimeLog, status_code=201, tags=["Time Logs"])
async def create_time_log(
    case_id: str,
    request: TimeLogCreateRequest,
    store: RecordStore = Depends(get_record_store),
):
    return await records.create_time_log(store, case_id, request, get_settings().tzinfo)


@app.delete("/time-logs/{time_log_id}", tags=["Time Logs"])
async def delete_time_log(time_log_id: str, store: RecordStore = Depends(get_record_store)):
    await records.delete_time_log(store, time_log_id)
    return {"message": "Time log deleted successfully"}


# =============================================================================
# Overview & Export
# =============================================================================

@app.get("/overview", response_model=OverviewResponse, tags=["Export"])
async def overview(
    period: PeriodFilter = Depends(get_period_filter),
    context: AttorneyContext = Depends(get_attorney_context),
    store: RecordStore = Depends(get_record_store),
):
    """Case counts and total hours for the selected attorney and period"""
    tz = get_settings().tzinfo
    snapshot = await records.fetch_snapshot(store, context)
    period_logs = filter_time_logs(snapshot.time_logs, period, tz)

    return OverviewResponse(
        attorney=context.attorney,
        period_label=period.label(),
        period_token=period.token(),
        overview=summarize(snapshot.cases, period_logs),
        status_counts={s.value: n for s, n in status_counts(snapshot.cases).items()},
    )


@app.get("/export", tags=["Export"])
async def export(
    period: PeriodFilter = Depends(get_period_filter),
    context: AttorneyContext = Depends(get_attorney_context),
    store: RecordStore = Depends(get_record_store),
):
    """Download the complete export (summary, cases, time logs) as CSV"""
    snapshot = await records.fetch_snapshot(store, context)
    artifact = build_export(
        snapshot.cases,
        snapshot.time_logs,
        period=period,
        attorney_name=context.attorney_name,
        tz=get_settings().tzinfo,
    )
    logger.info(f"Export generated: {artifact.filename}")
    return _attachment(artifact)


# =============================================================================
# Error handling
# =============================================================================

@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(RecordNotFoundError)
async def not_found_handler(request: Request, exc: RecordNotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.error(f"Store error on {request.url.path}: {exc}")
    return JSONResponse(status_code=502, content={"detail": str(exc)})


# =============================================================================
# Startup/Shutdown
# =============================================================================

@app.on_event("startup")
async def startup_event():
    """Initialize on startup"""
    current = get_settings()
    logger.info(f"Starting Legal Time Tracking Service v{current.service_version}")
    logger.info(f"Store backend: {current.store_backend.value}, report timezone: {current.report_timezone}")

    for warning in current.validate_store_config():
        logger.warning(warning)


@app.on_event("shutdown")
async def shutdown_event():
    global _store
    if _store is not None:
        await _store.close()
        _store = None
