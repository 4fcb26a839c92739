"""Organization-scoped report records and the template catalog.

Read-only: drafts are written by the wizard's autosave and deleted from
the document-management screen, not here.
"""

from fastapi import APIRouter, Depends, Query

from reportstudio.auth.deps import get_current_org
from reportstudio.deps import get_store
from reportstudio.middleware.exceptions import ResourceNotFoundError, StoreUnavailableError
from reportstudio.schemas.report import (
    FINANCIAL_YEARS,
    TEMPLATES,
    DraftRecord,
    ReportSummary,
    ReportTemplate,
)
from reportstudio.services.store import REPORTS_TABLE, DataStore

router = APIRouter()


@router.get("/", response_model=list[ReportSummary])
async def list_reports(
    limit: int = Query(50, ge=1, le=500),
    org_id: str = Depends(get_current_org),
    store: DataStore = Depends(get_store),
):
    """The organization's reports, newest first."""
    result = await store.query(
        REPORTS_TABLE,
        {"org_id": org_id},
        order_by="created_at",
        descending=True,
        limit=limit,
    )
    if not result.ok:
        raise StoreUnavailableError()
    return [ReportSummary.model_validate(row) for row in result.data]


@router.get("/templates", response_model=list[ReportTemplate])
async def list_templates():
    return list(TEMPLATES)


@router.get("/financial-years", response_model=list[str])
async def list_financial_years():
    """Financial years offered on the Setup step, newest first."""
    return list(FINANCIAL_YEARS)


@router.get("/{report_id}", response_model=DraftRecord)
async def get_report(
    report_id: str,
    org_id: str = Depends(get_current_org),
    store: DataStore = Depends(get_store),
):
    result = await store.query(REPORTS_TABLE, {"id": report_id, "org_id": org_id}, limit=1)
    if not result.ok:
        raise StoreUnavailableError()
    if not result.data:
        raise ResourceNotFoundError("Report", report_id)
    return DraftRecord.model_validate(result.data[0])
