"""
Turns a submitter's draft into a new pending Report, or raises ValidationError
naming the first offending field.
"""

import math
import re
import uuid
from datetime import datetime
from typing import Optional
from urllib.parse import urlparse

from lostfound.authentication.schemas import Actor
from lostfound.errors import ValidationError
from lostfound.reports import schemas
from lostfound.reports.identity import parse_uuid


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _bounded(field: str, value: Optional[str], limit: int) -> Optional[str]:
    if value is not None and len(value) > limit:
        raise ValidationError(field, f"{field} must be at most {limit} characters.")
    return value


def normalize_phone(raw: Optional[str]) -> Optional[str]:
    """Digits only. Absent stays absent; anything supplied must have exactly 10 digits."""
    raw = _blank_to_none(raw)
    if raw is None:
        return None
    digits = re.sub(r"\D", "", raw)
    if len(digits) != schemas.PHONE_DIGITS:
        raise ValidationError(
            "createdByPhone", f"Phone number must contain exactly {schemas.PHONE_DIGITS} digits."
        )
    return digits


def check_coordinates(coords: Optional[schemas.Coordinates]) -> Optional[schemas.Coordinates]:
    if coords is None:
        return None
    lat, lng = coords.latitude, coords.longitude
    if not (math.isfinite(lat) and math.isfinite(lng)) or not (-90 <= lat <= 90 and -180 <= lng <= 180):
        raise ValidationError("locationCoordinates", "Coordinates must be a finite latitude/longitude pair.")
    return coords


def check_image_url(raw: Optional[str]) -> Optional[str]:
    url = _blank_to_none(raw)
    if url is None:
        return None
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError("imageUrl", "imageUrl must be an http(s) URL.")
    return url


def build_report(draft: schemas.ReportDraft, submitter: Actor, now: datetime) -> schemas.Report:
    """Validate and normalize a draft into a pending report stamped with the server clock."""
    try:
        report_type = schemas.ReportType((draft.type or "").strip().lower())
    except ValueError:
        raise ValidationError("type", "type must be 'lost' or 'found'.")

    try:
        category = schemas.ReportCategory((draft.category or "").strip())
    except ValueError:
        allowed = ", ".join(c.value for c in schemas.ReportCategory)
        raise ValidationError("category", f"category must be one of: {allowed}.")

    title = _blank_to_none(draft.title)
    if title is None:
        raise ValidationError("title", "title is required.")
    _bounded("title", title, schemas.TITLE_MAX_LENGTH)

    description = _bounded("description", _blank_to_none(draft.description), schemas.DESCRIPTION_MAX_LENGTH)
    building = _bounded("locationBuilding", _blank_to_none(draft.location_building), schemas.BUILDING_MAX_LENGTH)

    if draft.id is not None:
        report_id = parse_uuid(draft.id)
        if report_id is None:
            raise ValidationError("id", "id must be a UUID.")
    else:
        report_id = str(uuid.uuid4())

    return schemas.Report(
        id=report_id,
        type=report_type,
        category=category,
        title=title,
        description=description,
        location_building=building or "",
        location_coordinates=check_coordinates(draft.location_coordinates),
        image_url=check_image_url(draft.image_url),
        created_by_name=submitter.display_name or "",
        created_by_email=submitter.email,
        created_by_phone=normalize_phone(draft.created_by_phone),
        created_at=now,
        status=schemas.ReportStatus.pending,
    )
