"""
Report moderation states and the legal moves between them.

    pending  -> approved | denied   (admin)
    pending  -> resolved            (admin or the report's creator)
    approved -> resolved            (admin or the report's creator)

denied, resolved and closed accept no further status changes. closed is only
reached through the expiry sweep (`plan_expiry`), never through `plan_transition`.
Hard deletion is not a transition and lives in the service.
"""

from datetime import datetime
from typing import Dict, FrozenSet

from lostfound.authentication.schemas import Actor
from lostfound.errors import Forbidden, InvalidTransition
from lostfound.reports.schemas import Report, ReportStatus

TRANSITIONS: Dict[ReportStatus, FrozenSet[ReportStatus]] = {
    ReportStatus.pending: frozenset({ReportStatus.approved, ReportStatus.denied, ReportStatus.resolved}),
    ReportStatus.approved: frozenset({ReportStatus.resolved}),
    ReportStatus.denied: frozenset(),
    ReportStatus.resolved: frozenset(),
    ReportStatus.closed: frozenset(),
}

REVIEW_DECISIONS = frozenset({ReportStatus.approved, ReportStatus.denied})
EXPIRABLE = frozenset({ReportStatus.approved})


def is_creator(report: Report, actor: Actor) -> bool:
    return report.created_by_email.lower() == actor.email.lower()


def can_move(current: ReportStatus, target: ReportStatus) -> bool:
    return target in TRANSITIONS.get(current, frozenset())


def check_transition(report: Report, target: ReportStatus) -> None:
    current = report.status
    if current == target:
        raise InvalidTransition(current.value, target.value, f"Report is already '{current.value}'.")
    if not can_move(current, target):
        raise InvalidTransition(current.value, target.value)


def authorize(report: Report, target: ReportStatus, actor: Actor) -> None:
    if actor.is_admin:
        return
    if target == ReportStatus.resolved and is_creator(report, actor):
        return
    raise Forbidden(f"Not authorized to mark this report '{target.value}'.")


def plan_transition(report: Report, target: ReportStatus, actor: Actor, now: datetime) -> dict:
    """
    Check legality, then authorization, and return the field patch to write.

    Legality is checked first so that an illegal move is reported as such
    for every actor, admins included.
    """
    check_transition(report, target)
    authorize(report, target, actor)

    patch = {"status": target, "updated_at": now}
    if target in REVIEW_DECISIONS:
        patch["reviewed_at"] = now
        patch["reviewed_by"] = actor.email
    return patch


def plan_expiry(report: Report, now: datetime) -> dict:
    if report.status not in EXPIRABLE:
        raise InvalidTransition(report.status.value, ReportStatus.closed.value)
    return {"status": ReportStatus.closed, "updated_at": now}
