"""
Moderation endpoints. All routes are admin only.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from lostfound.authentication.schemas import Actor
from lostfound.authentication.security import require_admin
from lostfound.reports import query, schemas
from lostfound.reports.service import ReportService, get_report_service

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/reports/pending", response_model=List[schemas.Report])
def pending_reports(
    admin: Actor = Depends(require_admin),
    service: ReportService = Depends(get_report_service),
):
    """Reports waiting for review, newest first."""
    return service.pending_queue(admin)


@router.get("/reports", response_model=List[schemas.Report])
def list_reports(
    status: schemas.ReportStatus = Query(schemas.ReportStatus.approved),
    skip: int = Query(0, ge=0),
    limit: Optional[int] = Query(None, ge=1, le=500),
    admin: Actor = Depends(require_admin),
    service: ReportService = Depends(get_report_service),
):
    return query.paginate(service.list_by_status(status, admin), skip, limit)


@router.post("/reports/expire", response_model=schemas.ExpiryResult)
def expire_reports(
    admin: Actor = Depends(require_admin),
    service: ReportService = Depends(get_report_service),
):
    """Close approved reports past the configured age."""
    return service.expire_reports(admin)


@router.post("/reports/{report_id}/approve", response_model=schemas.Report)
def approve_report(
    report_id: str,
    admin: Actor = Depends(require_admin),
    service: ReportService = Depends(get_report_service),
):
    return service.approve(report_id, admin)


@router.post("/reports/{report_id}/deny", response_model=schemas.Report)
def deny_report(
    report_id: str,
    admin: Actor = Depends(require_admin),
    service: ReportService = Depends(get_report_service),
):
    return service.deny(report_id, admin)


@router.post("/reports/{report_id}/resolve", response_model=schemas.Report)
def resolve_report(
    report_id: str,
    admin: Actor = Depends(require_admin),
    service: ReportService = Depends(get_report_service),
):
    return service.resolve(report_id, admin)


@router.patch("/reports/{report_id}", response_model=schemas.Report)
def update_report(
    report_id: str,
    update: schemas.TransitionRequest,
    admin: Actor = Depends(require_admin),
    service: ReportService = Depends(get_report_service),
):
    """Move a report to any status the state machine allows."""
    return service.transition(report_id, update.status, admin)


@router.delete("/reports/{report_id}")
def delete_report(
    report_id: str,
    admin: Actor = Depends(require_admin),
    service: ReportService = Depends(get_report_service),
):
    """Permanently delete a report. Not reversible."""
    service.delete_report(report_id, admin)
    return {"message": f"Report {report_id} deleted."}


@router.get("/stats", response_model=schemas.ReportStats)
def report_stats(
    admin: Actor = Depends(require_admin),
    service: ReportService = Depends(get_report_service),
):
    """Counts of visible reports by category and by building."""
    return service.stats(admin)
