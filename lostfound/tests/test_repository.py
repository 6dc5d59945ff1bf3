"""
Tests for report persistence:
- camelCase document layout and strict decoding of stored documents
- legacy documents (no embedded id, old status literal, loose field shapes)
- monotonic createdAt, conditional updates and immutable fields
- the JSON file adapter
"""

from datetime import datetime, timezone

import pytest

from lostfound.errors import DecodeError, NotFound, PreconditionFailed, RepositoryError
from lostfound.reports.identity import derive_id
from lostfound.reports.repository import (
    InMemoryReportRepository,
    JsonFileReportRepository,
    decode_report,
)
from lostfound.reports.schemas import Coordinates, Report, ReportCategory, ReportStatus, ReportType

CREATED = datetime(2025, 9, 15, 8, 0, tzinfo=timezone.utc)
REPORT_ID = "3f1c2b7e-9d4a-4e2f-8b6c-1a2b3c4d5e6f"


def make_report(report_id=REPORT_ID, **overrides):
    fields = dict(
        id=report_id,
        type=ReportType.found,
        category=ReportCategory.wallet_id_keys,
        title="Student ID card",
        location_building="Annex Central",
        location_coordinates=Coordinates(latitude=42.3365, longitude=-71.0950),
        created_by_name="Riley",
        created_by_email="riley@wit.edu",
        created_by_phone="6175551200",
        created_at=CREATED,
    )
    fields.update(overrides)
    return Report(**fields)


def legacy_doc(**overrides):
    doc = {
        "type": "lost",
        "category": "Bags",
        "title": "Grey tote",
        "description": "",
        "imageUrl": "",
        "locationBuilding": "Dobbs Hall",
        "locationCoordinates": {"lat": 42.33, "lng": -71.09},
        "createdByName": "Jo",
        "createdByEmail": "Jo@wit.edu",
        "createdByPhone": "",
        "createdAt": 1731000000000,
        "status": "rejected",
        "reviewedAt": 1731003600000,
        "reviewedBy": "admin@wit.edu",
    }
    doc.update(overrides)
    return doc


# ────────────────────────────────
# Decoding
# ────────────────────────────────
def test_legacy_document_decodes_with_derived_id():
    report = decode_report("LegacyDocKey001", legacy_doc())

    assert report.id == derive_id("LegacyDocKey001")
    assert report.status == ReportStatus.denied
    assert report.description is None
    assert report.image_url is None
    assert report.created_by_phone is None
    assert report.created_by_email == "jo@wit.edu"
    assert report.location_coordinates == Coordinates(latitude=42.33, longitude=-71.09)
    assert report.created_at == datetime.fromtimestamp(1731000000, tz=timezone.utc)


@pytest.mark.parametrize("overrides,field", [
    ({"category": "Pets"}, "category"),
    ({"status": "archived"}, "status"),
    ({"title": ""}, "title"),
    ({"createdByEmail": None}, "createdByEmail"),
    ({"createdAt": "yesterday"}, "createdAt"),
    ({"createdAt": None}, "createdAt"),
    ({"locationCoordinates": {"lat": "north", "lng": 1}}, "locationCoordinates"),
    ({"locationBuilding": 12}, "locationBuilding"),
    ({"reviewedBy": None}, "reviewedAt"),
])
def test_malformed_documents_raise_decode_error(overrides, field):
    with pytest.raises(DecodeError) as exc:
        decode_report("doc", legacy_doc(**overrides))
    assert exc.value.field == field


def test_non_object_document_is_rejected():
    with pytest.raises(DecodeError):
        decode_report("doc", ["not", "a", "report"])


# ────────────────────────────────
# In-memory adapter
# ────────────────────────────────
def test_create_stores_camel_case_document():
    repo = InMemoryReportRepository()
    repo.create(make_report())

    (doc,) = repo._docs.values()
    assert doc["id"] == REPORT_ID
    assert doc["createdByEmail"] == "riley@wit.edu"
    assert doc["locationCoordinates"] == {"latitude": 42.3365, "longitude": -71.095}
    assert doc["status"] == "pending"
    assert doc["reviewedAt"] is None


def test_get_by_derived_id_is_stable_across_reads():
    repo = InMemoryReportRepository({"LegacyDocKey001": legacy_doc()})
    listed = repo.list()

    assert len(listed) == 1
    assert repo.get(listed[0].id) == listed[0]
    assert repo.get(derive_id("LegacyDocKey001")).title == "Grey tote"


def test_list_skips_undecodable_documents():
    repo = InMemoryReportRepository({"good": legacy_doc(), "bad": legacy_doc(category="Pets")})
    assert [r.title for r in repo.list()] == ["Grey tote"]

    with pytest.raises(DecodeError):
        repo.get(derive_id("bad"))


def test_list_applies_predicate_and_sort():
    repo = InMemoryReportRepository()
    repo.create(make_report("00000000-0000-4000-8000-000000000001", title="A"))
    repo.create(make_report("00000000-0000-4000-8000-000000000002", title="B"))

    only_b = repo.list(lambda r: r.title == "B")
    assert [r.title for r in only_b] == ["B"]

    reversed_titles = repo.list(sort=lambda rs: sorted(rs, key=lambda r: r.title, reverse=True))
    assert [r.title for r in reversed_titles] == ["B", "A"]


def test_created_at_is_strictly_increasing():
    repo = InMemoryReportRepository()
    first = repo.create(make_report("00000000-0000-4000-8000-000000000001"))
    second = repo.create(make_report("00000000-0000-4000-8000-000000000002"))

    assert first.created_at == CREATED
    assert second.created_at > first.created_at


def test_duplicate_id_is_rejected():
    repo = InMemoryReportRepository()
    repo.create(make_report())
    with pytest.raises(RepositoryError):
        repo.create(make_report())


def test_conditional_update_checks_current_status():
    repo = InMemoryReportRepository()
    repo.create(make_report())
    now = datetime(2025, 9, 16, tzinfo=timezone.utc)

    updated = repo.update(
        REPORT_ID,
        {"status": ReportStatus.approved, "reviewed_at": now, "reviewed_by": "admin@wit.edu", "updated_at": now},
        expected_status=ReportStatus.pending,
    )
    assert updated.status == ReportStatus.approved
    assert repo.get(REPORT_ID).reviewed_by == "admin@wit.edu"

    with pytest.raises(PreconditionFailed) as exc:
        repo.update(REPORT_ID, {"status": ReportStatus.denied}, expected_status=ReportStatus.pending)
    assert exc.value.current == "approved"


def test_update_writes_only_patched_fields():
    doc = legacy_doc(status="pending", reviewedAt=None, reviewedBy=None,
                     createdByEmail="Alex.Kim@WIT.edu", clientVersion="ios-1.2")
    repo = InMemoryReportRepository({"LegacyDocKey001": doc})
    report_id = derive_id("LegacyDocKey001")
    now = datetime(2025, 9, 16, tzinfo=timezone.utc)

    repo.update(
        report_id,
        {"status": ReportStatus.approved, "reviewed_at": now, "reviewed_by": "admin@wit.edu", "updated_at": now},
        expected_status=ReportStatus.pending,
    )

    stored = repo._docs["LegacyDocKey001"]
    assert stored["createdByEmail"] == "Alex.Kim@WIT.edu"
    assert stored["clientVersion"] == "ios-1.2"
    assert stored["createdAt"] == 1731000000000
    assert stored["description"] == ""
    assert stored["status"] == "approved"
    assert stored["reviewedBy"] == "admin@wit.edu"
    assert stored["id"] == report_id
    assert repo.get(report_id).status == ReportStatus.approved


def test_lookup_accepts_upper_case_id():
    repo = InMemoryReportRepository()
    repo.create(make_report())
    assert repo.get(REPORT_ID.upper()).id == REPORT_ID


def test_update_refuses_immutable_fields():
    repo = InMemoryReportRepository()
    repo.create(make_report())
    with pytest.raises(ValueError):
        repo.update(REPORT_ID, {"type": ReportType.lost})
    with pytest.raises(ValueError):
        repo.update(REPORT_ID, {"created_by_email": "thief@wit.edu"})


def test_update_refuses_half_review_pair():
    repo = InMemoryReportRepository()
    repo.create(make_report(status=ReportStatus.approved))
    with pytest.raises(RepositoryError):
        repo.update(REPORT_ID, {"reviewed_by": "admin@wit.edu"})


def test_delete_removes_document():
    repo = InMemoryReportRepository()
    repo.create(make_report())
    repo.delete(REPORT_ID)

    with pytest.raises(NotFound):
        repo.get(REPORT_ID)
    with pytest.raises(NotFound):
        repo.delete(REPORT_ID)


# ────────────────────────────────
# JSON file adapter
# ────────────────────────────────
def test_json_store_persists_between_instances(tmp_path):
    path = tmp_path / "reports" / "reports.json"
    JsonFileReportRepository(str(path)).create(make_report())

    reopened = JsonFileReportRepository(str(path))
    report = reopened.get(REPORT_ID)
    assert report == make_report()


def test_json_store_missing_or_empty_file_is_empty(tmp_path):
    path = tmp_path / "reports.json"
    assert JsonFileReportRepository(str(path)).list() == []
    path.write_text("")
    assert JsonFileReportRepository(str(path)).list() == []


def test_json_store_corruption_is_a_repository_error(tmp_path):
    path = tmp_path / "reports.json"
    path.write_text("{not json")
    with pytest.raises(RepositoryError):
        JsonFileReportRepository(str(path)).list()

    path.write_text("[]")
    with pytest.raises(RepositoryError):
        JsonFileReportRepository(str(path)).list()
