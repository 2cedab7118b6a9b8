import logging
from typing import Optional

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from .errors import InvalidQueryError
from .query import QueryEngine, parse_query_params

logger = logging.getLogger(__name__)

router = APIRouter()

GENERIC_ERROR = "Failed to load release data."


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/api/data")
def release_data(
    request: Request,
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    repository: Optional[str] = Query(None),
):
    # Runs in FastAPI's threadpool.
    engine: QueryEngine = request.app.state.query_engine
    try:
        params = parse_query_params(start_date, end_date, repository)
    except InvalidQueryError as e:
        return JSONResponse(status_code=400, content={"error": str(e)})

    try:
        return engine.query(params)
    except Exception:
        logger.exception("Failed to build release aggregates")
        return JSONResponse(status_code=500, content={"error": GENERIC_ERROR})


@router.get("/api/ingestion/status")
def ingestion_status(request: Request):
    scheduler = request.app.state.scheduler
    report = scheduler.last_report
    last_run = None
    if report is not None:
        last_run = {
            "totalRecords": report.total_records,
            "written": report.written,
            "writeError": report.write_error,
            "failedRepositories": report.failed_repositories,
        }
    return {
        "running": scheduler.running,
        "busy": scheduler.busy,
        "skippedTicks": scheduler.skipped_ticks,
        "lastRun": last_run,
    }
