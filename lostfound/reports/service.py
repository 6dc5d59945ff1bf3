"""
The operations route handlers call: submit, transition, delete, search and the
per-audience listings. Stateless per call; everything is read from the
repository inside the operation that writes.
"""

import logging
from collections import Counter
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Callable, List, Optional

from lostfound.authentication.schemas import Actor
from lostfound.config import get_settings
from lostfound.errors import Forbidden, InvalidTransition, NotFound, PreconditionFailed, ValidationError
from lostfound.reports import query, state_machine
from lostfound.reports.repository import JsonFileReportRepository, ReportRepository
from lostfound.reports.schemas import (
    PUBLIC_STATUSES,
    ExpiryResult,
    Report,
    ReportDraft,
    ReportStats,
    ReportStatus,
    SearchFilters,
)
from lostfound.reports.validation import build_report

logger = logging.getLogger(__name__)

UNSPECIFIED = "Unspecified"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReportService:
    def __init__(
        self,
        repository: ReportRepository,
        clock: Callable[[], datetime] = utcnow,
        expiry_days: int = 90,
    ):
        self.repository = repository
        self.clock = clock
        self.expiry_days = expiry_days

    # ────────────────────────────────
    # Submission
    # ────────────────────────────────
    def submit_report(self, draft: ReportDraft, actor: Actor) -> Report:
        report = build_report(draft, actor, self.clock())
        if draft.id is not None:
            try:
                self.repository.get(report.id)
            except NotFound:
                pass
            else:
                raise ValidationError("id", "A report with this id already exists.")

        created = self.repository.create(report)
        logger.info("Report %s submitted by %s (%s/%s)", created.id, actor.email, created.type.value, created.category.value)
        return created

    # ────────────────────────────────
    # Reads
    # ────────────────────────────────
    def _visible_to(self, report: Report, actor: Actor) -> bool:
        return (
            actor.is_admin
            or report.status in PUBLIC_STATUSES
            or state_machine.is_creator(report, actor)
        )

    def get_report(self, report_id: str, actor: Actor) -> Report:
        report = self.repository.get(report_id)
        if not self._visible_to(report, actor):
            # Hidden reports look the same as missing ones.
            raise NotFound(f"Report {report_id} not found.")
        return report

    def search(self, filters: SearchFilters, actor: Actor) -> List[Report]:
        policy = query.VisibilityPolicy.public()
        return query.search(self.repository.list(policy.allows), filters, policy)

    def my_reports(self, actor: Actor) -> List[Report]:
        policy = query.VisibilityPolicy.owned_by(actor.email)
        return query.search(self.repository.list(policy.allows), None, policy)

    def pending_queue(self, actor: Actor) -> List[Report]:
        return self.list_by_status(ReportStatus.pending, actor)

    def list_by_status(self, status: ReportStatus, actor: Actor) -> List[Report]:
        self._require_admin(actor)
        policy = query.VisibilityPolicy.with_status(status)
        return query.search(self.repository.list(policy.allows), None, policy)

    def stats(self, actor: Actor) -> ReportStats:
        self._require_admin(actor)
        visible = self.repository.list(lambda r: r.status in PUBLIC_STATUSES)
        by_category = Counter(r.category.value for r in visible)
        by_location = Counter((r.location_building or UNSPECIFIED) for r in visible)
        return ReportStats(by_category=dict(by_category), by_location=dict(by_location))

    # ────────────────────────────────
    # Writes
    # ────────────────────────────────
    def transition(self, report_id: str, target: ReportStatus, actor: Actor) -> Report:
        # Fresh read inside this operation; the write below is conditional on it.
        report = self.repository.get(report_id)

        try:
            patch = state_machine.plan_transition(report, target, actor, self.clock())
        except Forbidden:
            logger.info("Denied %s -> %s on report %s for %s", report.status.value, target.value, report_id, actor.email)
            raise

        try:
            updated = self.repository.update(report_id, patch, expected_status=report.status)
        except PreconditionFailed as e:
            raise InvalidTransition(e.current, target.value, f"Report changed to '{e.current}' while processing.")

        logger.info("Report %s: %s -> %s by %s", report_id, report.status.value, target.value, actor.email)
        return updated

    def approve(self, report_id: str, actor: Actor) -> Report:
        return self.transition(report_id, ReportStatus.approved, actor)

    def deny(self, report_id: str, actor: Actor) -> Report:
        return self.transition(report_id, ReportStatus.denied, actor)

    def resolve(self, report_id: str, actor: Actor) -> Report:
        return self.transition(report_id, ReportStatus.resolved, actor)

    def delete_report(self, report_id: str, actor: Actor) -> None:
        self._require_admin(actor)
        self.repository.delete(report_id)
        logger.warning("Report %s permanently deleted by %s", report_id, actor.email)

    def expire_reports(self, actor: Actor, now: Optional[datetime] = None) -> ExpiryResult:
        """Close approved reports older than the configured age."""
        self._require_admin(actor)
        now = now or self.clock()
        cutoff = now - timedelta(days=self.expiry_days)

        closed = []
        for report in self.repository.list(lambda r: r.status in state_machine.EXPIRABLE and r.created_at < cutoff):
            patch = state_machine.plan_expiry(report, now)
            try:
                self.repository.update(report.id, patch, expected_status=report.status)
            except (PreconditionFailed, NotFound):
                # Resolved or deleted since listing; nothing to expire.
                continue
            closed.append(report.id)

        logger.info("Expiry sweep closed %d report(s) older than %s", len(closed), cutoff.isoformat())
        return ExpiryResult(closed=closed)

    # ────────────────────────────────
    # Helpers
    # ────────────────────────────────
    def _require_admin(self, actor: Actor) -> None:
        if not actor.is_admin:
            logger.info("Admin-only operation refused for %s", actor.email)
            raise Forbidden("Admin access required.")


@lru_cache()
def _json_repository(path: str) -> JsonFileReportRepository:
    return JsonFileReportRepository(path)


def get_report_service() -> ReportService:
    settings = get_settings()
    return ReportService(_json_repository(settings.reports_file), expiry_days=settings.report_expiry_days)
