"""
Sample Dataset

The simulated marketplace rows used for demos, the seed job and tests:
three customers, three products, two warehouses and a handful of orders,
items, inventory rows and shipments.
"""

from datetime import date
from typing import Any, Dict, List

from src.analytics.snapshot import InMemorySource, Snapshot

SEED_RECORDS: Dict[str, List[Dict[str, Any]]] = {
    "customers": [
        {"customer_id": 1, "customer_name": "Amit Sharma", "email": "amit@gmail.com",
         "phone": "9876543210", "city": "Delhi", "registration_date": date(2022, 1, 1)},
        {"customer_id": 2, "customer_name": "Riya Verma", "email": "riya@gmail.com",
         "phone": "9988776655", "city": "Mumbai", "registration_date": date(2022, 3, 15)},
        {"customer_id": 3, "customer_name": "John Doe", "email": "john@gmail.com",
         "phone": "7788994455", "city": "Bangalore", "registration_date": date(2022, 4, 10)},
    ],
    "products": [
        {"product_id": 101, "product_name": "iPhone 14", "category": "Mobiles",
         "brand": "Apple", "cost_price": 60000.0, "selling_price": 70000.0},
        {"product_id": 102, "product_name": "Samsung M32", "category": "Mobiles",
         "brand": "Samsung", "cost_price": 12000.0, "selling_price": 15000.0},
        {"product_id": 103, "product_name": "Nike Shoes", "category": "Fashion",
         "brand": "Nike", "cost_price": 2000.0, "selling_price": 3500.0},
    ],
    "warehouses": [
        {"warehouse_id": 1, "warehouse_name": "Del NCR WH", "city": "Delhi", "capacity": 5000},
        {"warehouse_id": 2, "warehouse_name": "Mumbai West WH", "city": "Mumbai", "capacity": 4500},
    ],
    "inventory": [
        {"inventory_id": 1, "product_id": 101, "warehouse_id": 1, "quantity": 120,
         "last_updated": date(2024, 1, 10)},
        {"inventory_id": 2, "product_id": 102, "warehouse_id": 1, "quantity": 80,
         "last_updated": date(2024, 1, 10)},
        {"inventory_id": 3, "product_id": 103, "warehouse_id": 2, "quantity": 200,
         "last_updated": date(2024, 1, 9)},
    ],
    "orders": [
        {"order_id": 1001, "customer_id": 1, "order_date": date(2024, 1, 10),
         "order_status": "Delivered", "payment_mode": "UPI"},
        {"order_id": 1002, "customer_id": 2, "order_date": date(2024, 1, 11),
         "order_status": "Delivered", "payment_mode": "Card"},
        {"order_id": 1003, "customer_id": 1, "order_date": date(2024, 1, 12),
         "order_status": "Cancelled", "payment_mode": "COD"},
    ],
    "order_items": [
        {"order_item_id": 1, "order_id": 1001, "product_id": 101, "quantity": 1, "unit_price": 70000.0},
        {"order_item_id": 2, "order_id": 1002, "product_id": 102, "quantity": 2, "unit_price": 15000.0},
        {"order_item_id": 3, "order_id": 1003, "product_id": 103, "quantity": 1, "unit_price": 3500.0},
    ],
    "shipments": [
        {"shipment_id": 501, "order_id": 1001, "warehouse_id": 1, "dispatch_date": date(2024, 1, 11),
         "delivery_date": date(2024, 1, 15), "delivery_status": "Delivered"},
        {"shipment_id": 502, "order_id": 1002, "warehouse_id": 2, "dispatch_date": date(2024, 1, 12),
         "delivery_date": date(2024, 1, 17), "delivery_status": "Delivered"},
    ],
    "vendors": [],
}


def seed_source() -> InMemorySource:
    """In-memory data-access source over the sample rows"""
    return InMemorySource(SEED_RECORDS)


def seed_snapshot() -> Snapshot:
    """Snapshot of the sample dataset"""
    return Snapshot.from_source(seed_source())
