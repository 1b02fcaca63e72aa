# app/blobs/codec.py
"""JSON encoding of record collections and the timestamps inside them."""
import json
import logging
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def encode_collection(records: list[dict]) -> bytes:
    return json.dumps(records, separators=(",", ":")).encode("utf-8")


def decode_collection(raw: bytes | str | None) -> list[dict]:
    """
    Decode a stored collection. Absent, malformed or non-array values come
    back as an empty list; elements that are not objects are dropped.
    """
    if raw is None:
        return []
    try:
        data = json.loads(raw)
    except ValueError:
        logger.warning("Discarding malformed collection blob (%d bytes)", len(raw))
        return []
    if not isinstance(data, list):
        logger.warning("Discarding collection blob holding %s", type(data).__name__)
        return []
    return [item for item in data if isinstance(item, dict)]


def utc_now_iso() -> str:
    now = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    return now.replace("+00:00", "Z")


def parse_timestamp(value) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def created_at_key(record: dict) -> datetime:
    return parse_timestamp(record.get("created_at")) or _OLDEST
