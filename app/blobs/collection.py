# app/blobs/collection.py
import logging
from typing import Callable, TypeVar

from app.blobs.codec import decode_collection, encode_collection
from app.blobs.store import BlobStore
from app.core.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")

PARENT_KEY_PREFIX = "ticket-"


def parent_key(ticket_id: int | str) -> str:
    return f"{PARENT_KEY_PREFIX}{ticket_id}"


def parent_id_from_key(key: str) -> int | str | None:
    if not key.startswith(PARENT_KEY_PREFIX):
        return None
    owner = key[len(PARENT_KEY_PREFIX):]
    if not owner:
        return None
    return int(owner) if owner.isdigit() else owner


class CollectionStore:
    """
    Ordered record lists kept as one JSON blob per key.

    mutate() reads the whole collection, changes it in memory and writes the
    whole collection back. It is NOT atomic: two mutations of the same key
    that overlap both start from the same snapshot and the later write
    replaces the earlier one (lost update).
    """

    def __init__(self, blobs: BlobStore):
        self.blobs = blobs

    @property
    def namespace(self) -> str:
        return self.blobs.namespace

    def read(self, key: str) -> list[dict]:
        return decode_collection(self.blobs.get(key))

    def read_or_empty(self, key: str) -> list[dict]:
        try:
            return self.read(key)
        except StoreUnavailableError:
            logger.warning("Serving empty collection for %s/%s after read failure", self.namespace, key)
            return []

    def write(self, key: str, records: list[dict]) -> None:
        self.blobs.set(key, encode_collection(records))

    def mutate(self, key: str, transform: Callable[[list[dict]], T]) -> T:
        """Apply transform to the stored list in place and persist it.

        If transform raises, nothing is written.
        """
        records = self.read(key)
        result = transform(records)
        self.write(key, records)
        return result

    def keys(self, prefix: str = "") -> list[str]:
        return self.blobs.list(prefix)

    def drop(self, key: str) -> None:
        self.blobs.delete(key)
