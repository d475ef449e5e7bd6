"""Reports router - configure pairs, test sources, generate reports."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from reportsync.config import settings
from reportsync.database import get_db
from reportsync.models.report_run import ReportRun
from reportsync.reporting.columns import letter_from_index
from reportsync.reporting.config import LAST_HEADER_ROW_INDEX, NAME_COL
from reportsync.reporting.records import cell_text
from reportsync.schemas.common import ApiResponse
from reportsync.schemas.report import GenerateRequest, ReportConfigUpdate, RunLogResponse
from reportsync.services import report_service
from reportsync.services.config_service import get_report_config, save_report_config
from reportsync.sheets.backend import SpreadsheetBackend
from reportsync.sheets.workbook import WorkbookBackend

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["reports"])

SAMPLE_ROWS = 5


def get_backend() -> SpreadsheetBackend:
    return WorkbookBackend(settings.SHEETS_DIR)


# --- Configuration ---

@router.get("/config")
async def get_config(
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[dict]:
    config = await get_report_config(db)
    return ApiResponse.ok({
        "url_pairs": [pair.model_dump() for pair in config.url_pairs],
        "summary_report_url": config.summary_report_url or "",
        "configured": config.configured,
        "configured_at": config.configured_at.isoformat() if config.configured_at else None,
    })


@router.post("/config")
async def update_config(
    body: ReportConfigUpdate,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[dict]:
    config = await save_report_config(db, body)
    return ApiResponse.ok(
        {
            "url_pairs_count": len(config.url_pairs),
            "has_summary_report": config.summary_report_url is not None,
        },
        message="Report configuration saved successfully",
    )


# --- Data sources ---

@router.post("/test-data-connection")
async def test_data_connection(
    db: AsyncSession = Depends(get_db),
    backend: SpreadsheetBackend = Depends(get_backend),
) -> ApiResponse[dict]:
    """Read every configured data source and return a small sample of each."""
    config = await get_report_config(db)
    if not config.configured:
        return ApiResponse.fail("No data URLs configured")

    results = []
    total_rows = 0
    for index, pair in enumerate(config.url_pairs):
        logger.info("Testing data connection for pair %d/%d", index + 1, len(config.url_pairs))
        try:
            rows = await backend.read_rows(pair.data_url)
        except Exception as e:
            logger.warning("Data connection for pair %d failed: %s", index + 1, e)
            results.append({
                "pair_index": index,
                "data_url": pair.data_url,
                "report_url": pair.report_url,
                "success": False,
                "error": str(e),
            })
            continue

        width = len(rows[0]) if rows else 0
        results.append({
            "pair_index": index,
            "data_url": pair.data_url,
            "report_url": pair.report_url,
            "success": True,
            "total_rows": len(rows),
            "columns": [letter_from_index(i) for i in range(width)],
            "sample_data": [[cell_text(v) for v in row] for row in rows[:SAMPLE_ROWS]],
        })
        total_rows += len(rows)

    successful = [r for r in results if r["success"]]
    data = {
        "total_pairs": len(results),
        "successful_pairs": len(successful),
        "failed_pairs": len(results) - len(successful),
        "total_rows": total_rows,
        "results": results,
    }
    if not successful:
        return ApiResponse.fail("Failed to connect to any data sources", data=data)
    return ApiResponse.ok(data)


@router.get("/stores")
async def list_stores(
    db: AsyncSession = Depends(get_db),
    backend: SpreadsheetBackend = Depends(get_backend),
) -> ApiResponse[dict]:
    """Distinct entity names found in the first pair's data source."""
    config = await get_report_config(db)
    if not config.configured:
        return ApiResponse.fail("No data URLs configured")

    try:
        rows = await backend.read_rows(config.url_pairs[0].data_url)
    except Exception as e:
        logger.exception("Error getting stores")
        return ApiResponse.fail(f"Could not read data source: {e}")

    names = {
        cell_text(row[NAME_COL])
        for row in rows[LAST_HEADER_ROW_INDEX + 1:]
        if len(row) > NAME_COL and cell_text(row[NAME_COL])
    }
    stores = sorted(names)
    return ApiResponse.ok({"stores": stores, "total_stores": len(stores)})


# --- Generation ---

@router.post("/generate")
async def generate_report(
    body: GenerateRequest | None = None,
    db: AsyncSession = Depends(get_db),
    backend: SpreadsheetBackend = Depends(get_backend),
) -> ApiResponse[dict]:
    try:
        run = await report_service.run_report(db, backend, body.date if body else None)
    except (report_service.ReportAlreadyRunningError, report_service.ReportNotConfiguredError) as e:
        return ApiResponse.fail(str(e))
    except Exception as e:
        logger.exception("Error generating report")
        return ApiResponse.fail(f"Report generation failed: {e}")

    return ApiResponse.ok(run.to_dict(), message=run.message)


# --- History ---

@router.get("/runs")
async def get_run_history(
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[list[RunLogResponse]]:
    result = await db.execute(
        select(ReportRun)
        .order_by(ReportRun.created_at.desc(), ReportRun.id.desc())
        .limit(settings.RUN_HISTORY_LIMIT)
    )
    return ApiResponse.ok([
        RunLogResponse.model_validate(run) for run in result.scalars().all()
    ])
