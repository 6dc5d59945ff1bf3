"""
Report persistence: the repository contract the engine consumes, the strict
decode step for stored documents, and two document-store adapters
(in-memory and a JSON file).

Documents are kept under a store-native key, the way a document database
keys them; the logical id is reconciled from the embedded `id` field or from
that key on every read.
"""

import json
import logging
import os
import secrets
import shutil
import string
import tempfile
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from lostfound.errors import DecodeError, NotFound, PreconditionFailed, RepositoryError
from lostfound.reports.identity import parse_uuid, reconcile_id
from lostfound.reports.schemas import Coordinates, Report, ReportCategory, ReportStatus, ReportType

logger = logging.getLogger(__name__)

MUTABLE_FIELDS = frozenset({"status", "updated_at", "reviewed_at", "reviewed_by"})
LEGACY_STATUSES = {"rejected": ReportStatus.denied}

_KEY_ALPHABET = string.ascii_letters + string.digits

Predicate = Callable[[Report], bool]
Sorter = Callable[[List[Report]], List[Report]]


def new_native_key() -> str:
    return "".join(secrets.choice(_KEY_ALPHABET) for _ in range(20))


# ────────────────────────────────
# Decoding
# ────────────────────────────────
def _optional_str(doc: dict, key: str) -> Optional[str]:
    value = doc.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise DecodeError(key)
    return value.strip() or None


def _required_str(doc: dict, key: str) -> str:
    value = _optional_str(doc, key)
    if value is None:
        raise DecodeError(key)
    return value


def _timestamp(doc: dict, key: str, required: bool = False) -> Optional[datetime]:
    value = doc.get(key)
    if value is None or value == "":
        if required:
            raise DecodeError(key)
        return None
    if isinstance(value, bool):
        raise DecodeError(key)
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        # epoch milliseconds
        parsed = datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise DecodeError(key)
    else:
        raise DecodeError(key)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _coordinates(doc: dict) -> Optional[Coordinates]:
    value = doc.get("locationCoordinates")
    if value is None:
        return None
    if not isinstance(value, dict):
        raise DecodeError("locationCoordinates")
    lat = value.get("latitude", value.get("lat"))
    lng = value.get("longitude", value.get("lng"))
    for part in (lat, lng):
        if isinstance(part, bool) or not isinstance(part, (int, float)):
            raise DecodeError("locationCoordinates")
    return Coordinates(latitude=float(lat), longitude=float(lng))


def _enum(doc: dict, key: str, enum_cls, aliases: Optional[dict] = None):
    raw = doc.get(key)
    if not isinstance(raw, str):
        raise DecodeError(key)
    if aliases and raw in aliases:
        return aliases[raw]
    try:
        return enum_cls(raw)
    except ValueError:
        raise DecodeError(key)


def decode_report(native_key: str, doc: Any) -> Report:
    """Strictly decode a stored document. Never casts blindly; raises DecodeError."""
    if not isinstance(doc, dict):
        raise DecodeError("document", f"Stored document {native_key!r} is not an object.")

    building = doc.get("locationBuilding")
    if building is not None and not isinstance(building, str):
        raise DecodeError("locationBuilding")
    name = doc.get("createdByName")
    if name is not None and not isinstance(name, str):
        raise DecodeError("createdByName")

    fields = dict(
        id=reconcile_id(native_key, doc.get("id")),
        type=_enum(doc, "type", ReportType),
        category=_enum(doc, "category", ReportCategory),
        title=_required_str(doc, "title"),
        description=_optional_str(doc, "description"),
        location_building=(building or "").strip(),
        location_coordinates=_coordinates(doc),
        image_url=_optional_str(doc, "imageUrl"),
        created_by_name=name or "",
        created_by_email=_required_str(doc, "createdByEmail").lower(),
        created_by_phone=_optional_str(doc, "createdByPhone"),
        created_at=_timestamp(doc, "createdAt", required=True),
        updated_at=_timestamp(doc, "updatedAt"),
        status=_enum(doc, "status", ReportStatus, LEGACY_STATUSES),
        reviewed_at=_timestamp(doc, "reviewedAt"),
        reviewed_by=_optional_str(doc, "reviewedBy"),
    )
    try:
        return Report(**fields)
    except PydanticValidationError as e:
        raise DecodeError("reviewedAt", f"Stored report {native_key!r} is inconsistent: {e.errors()[0]['msg']}")


def encode_report(report: Report) -> dict:
    return report.model_dump(by_alias=True, mode="json")


# ────────────────────────────────
# Contract
# ────────────────────────────────
class ReportRepository(ABC):
    """Persistence collaborator. Each method is atomic for the single record it touches."""

    @abstractmethod
    def create(self, report: Report) -> Report:
        ...

    @abstractmethod
    def get(self, report_id: str) -> Report:
        """Raise NotFound when no stored document reconciles to `report_id`."""

    @abstractmethod
    def list(self, predicate: Optional[Predicate] = None, sort: Optional[Sorter] = None) -> List[Report]:
        ...

    @abstractmethod
    def update(self, report_id: str, patch: dict, expected_status: Optional[ReportStatus] = None) -> Report:
        """Apply `patch` atomically; raise PreconditionFailed if the stored status is not `expected_status`."""

    @abstractmethod
    def delete(self, report_id: str) -> None:
        ...


class DocumentReportRepository(ReportRepository):
    """
    Shared logic for stores that hold {native_key: document}.

    Subclasses provide `_load` and `_save`; every read-modify-write runs under
    one lock so a conditional update cannot interleave with another write.
    """

    def __init__(self):
        self._lock = threading.RLock()

    @abstractmethod
    def _load(self) -> Dict[str, dict]:
        ...

    @abstractmethod
    def _save(self, docs: Dict[str, dict]) -> None:
        ...

    def _find_key(self, docs: Dict[str, dict], report_id: str) -> str:
        wanted = parse_uuid(report_id) or report_id
        for key, doc in docs.items():
            embedded = doc.get("id") if isinstance(doc, dict) else None
            if reconcile_id(key, embedded) == wanted:
                return key
        raise NotFound(f"Report {report_id} not found.")

    def _latest_created_at(self, docs: Dict[str, dict]) -> Optional[datetime]:
        latest = None
        for key, doc in docs.items():
            try:
                created = _timestamp(doc, "createdAt", required=True)
            except (DecodeError, AttributeError):
                continue
            if latest is None or created > latest:
                latest = created
        return latest

    def create(self, report: Report) -> Report:
        with self._lock:
            docs = self._load()
            if any(reconcile_id(k, d.get("id") if isinstance(d, dict) else None) == report.id for k, d in docs.items()):
                raise RepositoryError(f"A report with id {report.id} already exists.")

            # createdAt must strictly increase in insertion order.
            latest = self._latest_created_at(docs)
            if latest is not None and report.created_at <= latest:
                report = report.model_copy(update={"created_at": latest + timedelta(microseconds=1)})

            native_key = new_native_key()
            while native_key in docs:
                native_key = new_native_key()
            docs[native_key] = encode_report(report)
            self._save(docs)
            return report

    def get(self, report_id: str) -> Report:
        with self._lock:
            docs = self._load()
            key = self._find_key(docs, report_id)
            return decode_report(key, docs[key])

    def list(self, predicate: Optional[Predicate] = None, sort: Optional[Sorter] = None) -> List[Report]:
        with self._lock:
            docs = self._load()
        reports = []
        for key, doc in docs.items():
            try:
                report = decode_report(key, doc)
            except DecodeError as e:
                logger.warning("Skipping undecodable report %s: %s", key, e.message)
                continue
            if predicate is None or predicate(report):
                reports.append(report)
        return sort(reports) if sort else reports

    def update(self, report_id: str, patch: dict, expected_status: Optional[ReportStatus] = None) -> Report:
        illegal = set(patch) - MUTABLE_FIELDS
        if illegal:
            raise ValueError(f"Fields are immutable after creation: {sorted(illegal)}")

        with self._lock:
            docs = self._load()
            key = self._find_key(docs, report_id)
            current = decode_report(key, docs[key])
            if expected_status is not None and current.status != expected_status:
                raise PreconditionFailed(current.status.value)

            merged = current.model_dump()
            merged.update(patch)
            try:
                updated = Report(**merged)
            except PydanticValidationError as e:
                raise RepositoryError(f"Update would leave report {report_id} inconsistent: {e.errors()[0]['msg']}")

            # Only the patched keys are written; the rest of the stored document
            # stays exactly as its writer left it.
            encoded = encode_report(updated)
            raw = dict(docs[key])
            for name in patch:
                alias = Report.model_fields[name].alias or name
                raw[alias] = encoded[alias]
            if parse_uuid(raw.get("id")) is None:
                raw["id"] = updated.id
            docs[key] = raw
            self._save(docs)
            return updated

    def delete(self, report_id: str) -> None:
        with self._lock:
            docs = self._load()
            key = self._find_key(docs, report_id)
            del docs[key]
            self._save(docs)


class InMemoryReportRepository(DocumentReportRepository):
    def __init__(self, docs: Optional[Dict[str, dict]] = None):
        super().__init__()
        self._docs: Dict[str, dict] = dict(docs or {})

    def _load(self) -> Dict[str, dict]:
        return {k: dict(v) if isinstance(v, dict) else v for k, v in self._docs.items()}

    def _save(self, docs: Dict[str, dict]) -> None:
        self._docs = docs


class JsonFileReportRepository(DocumentReportRepository):
    """Stores every report in one JSON object on disk, written atomically."""

    def __init__(self, path: str):
        super().__init__()
        self.path = path

    def _load(self) -> Dict[str, dict]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                content = f.read().strip()
        except OSError as e:
            raise RepositoryError(f"Could not read report store: {e}")
        if not content:
            return {}
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise RepositoryError(f"Report store is corrupted: {e}")
        if not isinstance(data, dict):
            raise RepositoryError("Report store must hold a JSON object keyed by document id.")
        return data

    def _save(self, docs: Dict[str, dict]) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        try:
            os.makedirs(directory, exist_ok=True)
            tmp_fd, tmp_path = tempfile.mkstemp(dir=directory)
            os.close(tmp_fd)
            try:
                with open(tmp_path, "w", encoding="utf-8") as f:
                    json.dump(docs, f, indent=2)
                shutil.move(tmp_path, self.path)
            finally:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
        except OSError as e:
            raise RepositoryError(f"Could not write report store: {e}")
