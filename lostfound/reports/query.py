"""
Search and listing semantics: visibility first, then category AND free text,
newest first with ties broken by id.
"""

from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

from lostfound.reports.schemas import PUBLIC_STATUSES, Report, ReportStatus, SearchFilters


@dataclass(frozen=True)
class VisibilityPolicy:
    """Which reports a query may consider before any other filter applies."""

    kind: str
    email: Optional[str] = None
    status: Optional[ReportStatus] = None

    @classmethod
    def public(cls) -> "VisibilityPolicy":
        return cls("public")

    @classmethod
    def owned_by(cls, email: str) -> "VisibilityPolicy":
        return cls("mine", email=email.lower())

    @classmethod
    def pending_queue(cls) -> "VisibilityPolicy":
        return cls("status", status=ReportStatus.pending)

    @classmethod
    def with_status(cls, status: ReportStatus) -> "VisibilityPolicy":
        return cls("status", status=status)

    def allows(self, report: Report) -> bool:
        if self.kind == "public":
            return report.status in PUBLIC_STATUSES
        if self.kind == "mine":
            return report.created_by_email.lower() == self.email
        if self.kind == "status":
            return report.status == self.status
        raise ValueError(f"Unknown visibility policy: {self.kind}")


def _searchable_text(report: Report) -> List[str]:
    return [
        (report.title or "").lower(),
        (report.description or "").lower(),
        (report.location_building or "").lower(),
        (report.created_by_name or "").lower(),
    ]


def build_predicate(filters: SearchFilters, policy: VisibilityPolicy) -> Callable[[Report], bool]:
    needle = (filters.free_text or "").strip().lower()
    category = filters.category

    def predicate(report: Report) -> bool:
        if not policy.allows(report):
            return False
        if category is not None and report.category != category:
            return False
        if needle and not any(needle in field for field in _searchable_text(report)):
            return False
        return True

    return predicate


def sort_reports(reports: Iterable[Report]) -> List[Report]:
    # Two stable passes: id ascending, then createdAt descending.
    ordered = sorted(reports, key=lambda r: r.id)
    ordered.sort(key=lambda r: r.created_at, reverse=True)
    return ordered


def search(
    reports: Iterable[Report],
    filters: Optional[SearchFilters] = None,
    policy: Optional[VisibilityPolicy] = None,
) -> List[Report]:
    predicate = build_predicate(filters or SearchFilters(), policy or VisibilityPolicy.public())
    return sort_reports(r for r in reports if predicate(r))


def paginate(reports: List[Report], skip: int = 0, limit: Optional[int] = None) -> List[Report]:
    if limit is None:
        return reports[skip:]
    return reports[skip: skip + limit]
