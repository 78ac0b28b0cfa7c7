"""Persisted order → accounting document mapping table.

The table is the idempotency record for order syncing: an entry means the
order already produced an ERP document. Entries are written once and never
updated or removed.

On-disk format (one JSON document, rewritten atomically on every commit):

    {
      "orders": {
        "1001": {"company_code": 1, "document_reference": "4521", "voucher_type": "FV"}
      }
    }
"""

import asyncio
import json
import os
import threading
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional

from pydantic import ValidationError

from core.concurrency import KeyedLock
from core.errors import PersistenceError
from core.models.mapping import OrderMapping
from core.observability.logging import get_logger


logger = get_logger(__name__)

MappingBuilder = Callable[[str], Awaitable[OrderMapping]]

# Field names written by the first (Node) version of the middleware.
_LEGACY_KEYS = {
    "empresa": "company_code",
    "comprobante": "voucher_type",
    "documento": "document_reference",
}


def _parse_record(order_id: str, record: Any) -> OrderMapping:
    if not isinstance(record, dict):
        raise PersistenceError(
            f"Invalid mapping record for order {order_id}: expected an object, got {type(record).__name__}",
            context={"order_id": order_id},
        )
    if "company_code" not in record and "empresa" in record:
        record = {_LEGACY_KEYS.get(k, k): v for k, v in record.items()}
    reference = record.get("document_reference")
    if reference is not None:
        record = dict(record, document_reference=str(reference))
    try:
        return OrderMapping.model_validate(record)
    except ValidationError as e:
        raise PersistenceError(
            f"Invalid mapping record for order {order_id}: {e}",
            context={"order_id": order_id},
        ) from e


def serialize_orders(orders: Dict[str, OrderMapping]) -> bytes:
    """Canonical byte representation of the table."""
    document = {
        "orders": {
            order_id: mapping.model_dump(mode="json")
            for order_id, mapping in orders.items()
        }
    }
    return (json.dumps(document, indent=2, sort_keys=True, ensure_ascii=False) + "\n").encode("utf-8")


class OrderMappingStore:
    """Order mapping table backed by a JSON file.

    Usage:
        store = OrderMappingStore(Path("map.json"))
        store.load()
        mapping = await store.create_if_absent(order_id, create_document)
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._orders: Dict[str, OrderMapping] = {}
        self._locks = KeyedLock()
        self._write_lock = threading.Lock()
        self._dirty = False
        self._loaded = False

    def __len__(self) -> int:
        return len(self._orders)

    def __contains__(self, order_id: object) -> bool:
        return order_id in self._orders

    @property
    def dirty(self) -> bool:
        """True when memory holds entries the file does not."""
        return self._dirty

    @property
    def loaded(self) -> bool:
        return self._loaded

    def order_ids(self) -> List[str]:
        return list(self._orders)

    def load(self) -> None:
        """Read the table from disk.

        A missing file is an empty table. An unreadable or malformed file
        raises PersistenceError rather than silently starting empty, which
        would re-create documents for every order already recorded.
        """
        if not self.path.exists():
            self._orders = {}
            self._loaded = True
            logger.info(f"No mapping file at {self.path}, starting empty")
            return

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Failed to read mapping file {self.path}: {e}") from e

        raw_orders = data.get("orders") if isinstance(data, dict) else None
        if not isinstance(raw_orders, dict):
            raise PersistenceError(f"Mapping file {self.path} has no 'orders' table")

        self._orders = {
            str(order_id): _parse_record(str(order_id), record)
            for order_id, record in raw_orders.items()
        }
        self._dirty = False
        self._loaded = True
        logger.info(f"Loaded {len(self._orders)} order mappings from {self.path}")

    def get(self, order_id: str) -> Optional[OrderMapping]:
        return self._orders.get(order_id)

    async def settled(self, order_id: str) -> Optional[OrderMapping]:
        """Like get(), but waits for an in-flight create_if_absent on the same order."""
        async with self._locks.hold(order_id):
            return self._orders.get(order_id)

    async def create_if_absent(self, order_id: str, builder: MappingBuilder) -> OrderMapping:
        """Return the mapping for order_id, creating it at most once.

        The check, the builder call and the flush run as one critical section
        per order id, so duplicate deliveries racing each other produce a
        single builder call. If the builder raises, nothing is stored.

        Raises:
            PersistenceError: The builder succeeded but the table could not
                be written. The entry stays in memory and the store is dirty.
        """
        async with self._locks.hold(order_id):
            existing = self._orders.get(order_id)
            if existing is not None:
                return existing

            mapping = await builder(order_id)
            self._orders[order_id] = mapping
            self._dirty = True

            try:
                await asyncio.to_thread(self.flush)
            except PersistenceError:
                logger.critical(
                    "ERP document created but mapping not persisted; "
                    "reconcile manually before restarting",
                    extra_fields={
                        "order_id": order_id,
                        "company_code": mapping.company_code,
                        "voucher_type": mapping.voucher_type,
                        "document_reference": mapping.document_reference,
                        "map_path": str(self.path),
                    },
                )
                raise

            return mapping

    def flush(self) -> None:
        """Atomically rewrite the table file.

        Writes a sibling temp file, fsyncs it and renames it over the target.
        Safe to call from a worker thread; each write snapshots the whole
        table, so the last write to finish always holds every entry.

        Raises:
            PersistenceError: The file could not be written
        """
        tmp_path = self.path.with_name(self.path.name + ".tmp")

        with self._write_lock:
            snapshot = dict(self._orders)
            payload = serialize_orders(snapshot)
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with open(tmp_path, "wb") as f:
                    f.write(payload)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_path, self.path)
            except OSError as e:
                tmp_path.unlink(missing_ok=True)
                raise PersistenceError(f"Failed to write mapping file {self.path}: {e}") from e

            # Entries are never removed, so a size match means nothing was added mid-write.
            self._dirty = len(self._orders) != len(snapshot)
