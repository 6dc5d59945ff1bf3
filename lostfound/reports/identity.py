"""
Logical ID reconciliation for stored reports.

Documents written by older clients may lack an embedded `id`, leaving only the
store's own document key. Every read path runs through `reconcile_id` so the
same document always surfaces under the same UUID.
"""

import hashlib
import logging
import re
import uuid
from typing import Any, Optional

logger = logging.getLogger(__name__)

_UUID_RE = re.compile(r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$")


def parse_uuid(value: Any) -> Optional[str]:
    """Return the canonical lower-case form of a hyphenated UUID string, else None."""
    if not isinstance(value, str):
        return None
    value = value.strip()
    if not _UUID_RE.match(value):
        return None
    return str(uuid.UUID(value))


def derive_id(native_key: str) -> str:
    """First 16 bytes of SHA-256(native_key), formatted as a UUID (no version bits set)."""
    digest = hashlib.sha256(native_key.encode("utf-8")).digest()
    return str(uuid.UUID(bytes=digest[:16]))


def reconcile_id(native_key: str, embedded_id: Any = None) -> str:
    embedded = parse_uuid(embedded_id)
    if embedded:
        return embedded

    native = parse_uuid(native_key)
    if native:
        return native

    try:
        return derive_id(native_key)
    except (AttributeError, TypeError, UnicodeEncodeError):
        fallback = str(uuid.uuid4())
        logger.error(
            "data-integrity: could not hash native key %r; assigned non-deterministic id %s",
            native_key,
            fallback,
        )
        return fallback
