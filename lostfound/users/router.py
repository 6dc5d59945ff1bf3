from fastapi import APIRouter, Depends
from typing import List
from lostfound.authentication.schemas import Actor, MeResponse
from lostfound.authentication.security import get_current_user
from lostfound.reports import schemas as report_schemas
from lostfound.reports.service import ReportService, get_report_service

router = APIRouter(prefix="/me", tags=["Me"])


# Who Am I
@router.get("", response_model=MeResponse)
def whoami(current_user: Actor = Depends(get_current_user)):
    return MeResponse(
        email=current_user.email,
        displayName=current_user.display_name,
        isAdmin=current_user.is_admin,
    )


# My reports, every status
@router.get("/reports", response_model=List[report_schemas.Report])
def my_reports(
    current_user: Actor = Depends(get_current_user),
    service: ReportService = Depends(get_report_service),
):
    """Reports submitted by the signed-in user, newest first."""
    return service.my_reports(current_user)
