"""
Public report endpoints: submit, search, view and self-service resolve.
Every route requires a signed-in campus account.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from lostfound.authentication.schemas import Actor
from lostfound.authentication.security import get_current_user
from lostfound.reports import query, schemas
from lostfound.reports.service import ReportService, get_report_service

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.post("/", response_model=schemas.Report, status_code=status.HTTP_201_CREATED)
def submit_report(
    draft: schemas.ReportDraft,
    user: Actor = Depends(get_current_user),
    service: ReportService = Depends(get_report_service),
):
    """Submit a lost or found report. It stays hidden until an admin approves it."""
    return service.submit_report(draft, user)


@router.get("/search", response_model=List[schemas.Report])
def search_reports(
    category: Optional[schemas.ReportCategory] = Query(None),
    q: Optional[str] = Query(None, alias="query", description="Case-insensitive text to look for"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    user: Actor = Depends(get_current_user),
    service: ReportService = Depends(get_report_service),
):
    """Approved and resolved reports, newest first."""
    results = service.search(schemas.SearchFilters(category=category, free_text=q), user)
    return query.paginate(results, skip, limit)


@router.get("/{report_id}", response_model=schemas.Report)
def get_report(
    report_id: str,
    user: Actor = Depends(get_current_user),
    service: ReportService = Depends(get_report_service),
):
    return service.get_report(report_id, user)


@router.post("/{report_id}/resolve", response_model=schemas.Report)
def resolve_report(
    report_id: str,
    user: Actor = Depends(get_current_user),
    service: ReportService = Depends(get_report_service),
):
    """Mark a report resolved (its creator or an admin)."""
    return service.resolve(report_id, user)
