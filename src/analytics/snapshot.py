"""
Data Snapshot

An immutable, consistent read of the eight relations, held as polars
DataFrames with a fixed schema. A snapshot is the sole input of a report
batch: reports never read from the store directly.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Tuple

import polars as pl
import structlog

logger = structlog.get_logger(__name__)


# =============================================================================
# SCHEMAS
# =============================================================================

SCHEMAS: Dict[str, Dict[str, pl.DataType]] = {
    "customers": {
        "customer_id": pl.Int64,
        "customer_name": pl.Utf8,
        "email": pl.Utf8,
        "phone": pl.Utf8,
        "city": pl.Utf8,
        "registration_date": pl.Date,
    },
    "products": {
        "product_id": pl.Int64,
        "product_name": pl.Utf8,
        "category": pl.Utf8,
        "brand": pl.Utf8,
        "cost_price": pl.Float64,
        "selling_price": pl.Float64,
    },
    "warehouses": {
        "warehouse_id": pl.Int64,
        "warehouse_name": pl.Utf8,
        "city": pl.Utf8,
        "capacity": pl.Int64,
    },
    "inventory": {
        "inventory_id": pl.Int64,
        "product_id": pl.Int64,
        "warehouse_id": pl.Int64,
        "quantity": pl.Int64,
        "last_updated": pl.Date,
    },
    "orders": {
        "order_id": pl.Int64,
        "customer_id": pl.Int64,
        "order_date": pl.Date,
        "order_status": pl.Utf8,
        "payment_mode": pl.Utf8,
    },
    "order_items": {
        "order_item_id": pl.Int64,
        "order_id": pl.Int64,
        "product_id": pl.Int64,
        "quantity": pl.Int64,
        "unit_price": pl.Float64,
    },
    "shipments": {
        "shipment_id": pl.Int64,
        "order_id": pl.Int64,
        "warehouse_id": pl.Int64,
        "dispatch_date": pl.Date,
        "delivery_date": pl.Date,
        "delivery_status": pl.Utf8,
    },
    # Vendors are never joined by any report
    "vendors": {
        "vendor_id": pl.Int64,
        "vendor_name": pl.Utf8,
    },
}

RELATIONS: Tuple[str, ...] = tuple(SCHEMAS)

PRIMARY_KEYS: Dict[str, str] = {
    "customers": "customer_id",
    "products": "product_id",
    "warehouses": "warehouse_id",
    "inventory": "inventory_id",
    "orders": "order_id",
    "order_items": "order_item_id",
    "shipments": "shipment_id",
    "vendors": "vendor_id",
}

# (relation, column, referenced relation, referenced column)
FOREIGN_KEYS: Tuple[Tuple[str, str, str, str], ...] = (
    ("inventory", "product_id", "products", "product_id"),
    ("inventory", "warehouse_id", "warehouses", "warehouse_id"),
    ("orders", "customer_id", "customers", "customer_id"),
    ("order_items", "order_id", "orders", "order_id"),
    ("order_items", "product_id", "products", "product_id"),
    ("shipments", "order_id", "orders", "order_id"),
    ("shipments", "warehouse_id", "warehouses", "warehouse_id"),
)


def empty_frame(relation: str) -> pl.DataFrame:
    """Empty DataFrame with the relation's schema"""
    return pl.DataFrame(schema=SCHEMAS[relation])


def conform(relation: str, df: pl.DataFrame) -> pl.DataFrame:
    """
    Project and cast a frame onto the relation's schema.

    Extra columns are dropped; a missing column raises ColumnNotFoundError.
    """
    schema = SCHEMAS[relation]
    return df.select([pl.col(name).cast(dtype) for name, dtype in schema.items()])


class SnapshotSource(Protocol):
    """Data-access collaborator: returns all current rows of one relation"""

    def fetch(self, relation: str) -> pl.DataFrame:
        ...


@dataclass(frozen=True, eq=False)
class Snapshot:
    """
    Immutable set of the eight relations read at one point in time.

    Polars frames are never modified in place, so a snapshot can be shared by
    concurrently running reports without locking.
    """

    customers: pl.DataFrame
    products: pl.DataFrame
    warehouses: pl.DataFrame
    inventory: pl.DataFrame
    orders: pl.DataFrame
    order_items: pl.DataFrame
    shipments: pl.DataFrame
    vendors: pl.DataFrame
    taken_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def relation(self, name: str) -> pl.DataFrame:
        """Get a relation by name"""
        if name not in SCHEMAS:
            raise KeyError(f"Unknown relation: {name}")
        return getattr(self, name)

    def row_counts(self) -> Dict[str, int]:
        """Row count per relation"""
        return {name: self.relation(name).height for name in RELATIONS}

    @classmethod
    def from_frames(cls, taken_at: Optional[datetime] = None, **frames: pl.DataFrame) -> "Snapshot":
        """
        Build a snapshot from DataFrames keyed by relation name.

        Missing relations become empty frames.
        """
        unknown = set(frames) - set(SCHEMAS)
        if unknown:
            raise KeyError(f"Unknown relations: {sorted(unknown)}")

        conformed = {
            name: conform(name, frames[name]) if name in frames else empty_frame(name)
            for name in RELATIONS
        }
        if taken_at is not None:
            return cls(taken_at=taken_at, **conformed)
        return cls(**conformed)

    @classmethod
    def from_records(
        cls,
        taken_at: Optional[datetime] = None,
        **records: Iterable[Mapping[str, Any]],
    ) -> "Snapshot":
        """Build a snapshot from row dicts keyed by relation name"""
        frames = {}
        for name, rows in records.items():
            if name not in SCHEMAS:
                raise KeyError(f"Unknown relation: {name}")
            rows = [dict(row) for row in rows]
            frames[name] = pl.from_dicts(rows, schema=SCHEMAS[name]) if rows else empty_frame(name)
        return cls.from_frames(taken_at=taken_at, **frames)

    @classmethod
    def from_source(cls, source: SnapshotSource) -> "Snapshot":
        """Materialize every relation from a data-access collaborator"""
        frames = {name: source.fetch(name) for name in RELATIONS}
        snapshot = cls.from_frames(**frames)
        logger.info("Snapshot materialized", **snapshot.row_counts())
        return snapshot


class InMemorySource:
    """SnapshotSource over row dicts held in memory"""

    def __init__(self, records: Mapping[str, List[Mapping[str, Any]]]):
        self._records = records

    def fetch(self, relation: str) -> pl.DataFrame:
        rows = [dict(row) for row in self._records.get(relation, [])]
        if not rows:
            return empty_frame(relation)
        return pl.from_dicts(rows, schema=SCHEMAS[relation])
