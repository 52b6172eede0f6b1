"""
Unit Tests - Report Catalog
"""
import json
from datetime import date
from typing import Any, Dict

import pytest

from src.analytics import (
    REPORT_NAMES,
    DivisionByZero,
    MissingReference,
    ReportEngine,
    ReportKind,
    ReportStatus,
)
from src.analytics.catalog import build_catalog


def order(order_id: int, customer_id: int, status: str = "Delivered",
          order_date: date = date(2024, 1, 10), payment_mode: str = "UPI") -> Dict[str, Any]:
    return {
        "order_id": order_id,
        "customer_id": customer_id,
        "order_date": order_date,
        "order_status": status,
        "payment_mode": payment_mode,
    }


def item(order_item_id: int, order_id: int, product_id: int, quantity: int, unit_price: float) -> Dict[str, Any]:
    return {
        "order_item_id": order_item_id,
        "order_id": order_id,
        "product_id": product_id,
        "quantity": quantity,
        "unit_price": unit_price,
    }


def shipment(shipment_id: int, dispatch: date, delivery: date, status: str = "Delivered") -> Dict[str, Any]:
    return {
        "shipment_id": shipment_id,
        "order_id": 1001,
        "warehouse_id": 1,
        "dispatch_date": dispatch,
        "delivery_date": delivery,
        "delivery_status": status,
    }


CUSTOMERS = [
    {"customer_id": 1, "customer_name": "Amit Sharma", "city": "Delhi"},
    {"customer_id": 2, "customer_name": "Riya Verma", "city": "Mumbai"},
]

PRODUCTS = [
    {"product_id": 101, "product_name": "iPhone 14", "category": "Mobiles"},
    {"product_id": 102, "product_name": "Samsung M32", "category": "Mobiles"},
    {"product_id": 103, "product_name": "Nike Shoes", "category": "Fashion"},
]


class TestCatalog:
    """Tests for the report catalog"""

    def test_catalog_has_24_reports_in_order(self, report_settings):
        catalog = build_catalog(report_settings)

        assert len(catalog) == 24
        assert [spec.number for spec in catalog.values()] == list(range(1, 25))
        assert tuple(catalog) == REPORT_NAMES

    def test_scalar_reports(self, report_settings):
        catalog = build_catalog(report_settings)
        scalar = {name for name, spec in catalog.items() if spec.kind == ReportKind.SCALAR}

        assert scalar == {
            "average_order_value",
            "repeat_purchase_rate",
            "cancellation_rate",
            "late_deliveries",
            "on_time_delivery_rate",
            "average_basket_size",
            "business_health",
        }


class TestRevenueReports:
    """Tests for revenue reports"""

    def test_daily_revenue_single_order(self, make_snapshot, report_settings):
        """One delivered order of 70000 gives one day of 70000"""
        snapshot = make_snapshot(
            orders=[order(1001, 1)],
            order_items=[item(1, 1001, 101, 1, 70000.0)],
        )

        result = ReportEngine(snapshot, report_settings).run_report("daily_revenue")

        assert result.status == ReportStatus.OK
        assert result.columns == ["order_date", "daily_revenue"]
        assert result.rows == [(date(2024, 1, 10), 70000.0)]

    def test_daily_revenue_ignores_undelivered(self, make_snapshot, report_settings):
        snapshot = make_snapshot(
            orders=[order(1001, 1), order(1002, 1, status="Cancelled"), order(1003, 1, status="delivered")],
            order_items=[
                item(1, 1001, 101, 1, 100.0),
                item(2, 1002, 101, 1, 999.0),
                item(3, 1003, 101, 1, 999.0),
            ],
        )

        result = ReportEngine(snapshot, report_settings).run_report("daily_revenue")

        # Status match is exact and case-sensitive
        assert result.rows == [(date(2024, 1, 10), 100.0)]

    def test_revenue_totals_are_exact_to_the_cent(self, make_snapshot, report_settings):
        snapshot = make_snapshot(
            customers=CUSTOMERS,
            orders=[order(1001, 1), order(1002, 1), order(1003, 2)],
            order_items=[item(1, 1001, 101, 1, 0.1), item(2, 1002, 101, 1, 0.1), item(3, 1003, 101, 1, 0.1)],
        )
        engine = ReportEngine(snapshot, report_settings)

        assert engine.run_report("daily_revenue").rows == [(date(2024, 1, 10), 0.3)]
        assert engine.run_report("business_health").value("gmv") == 0.3
        assert engine.run_report("average_order_value").value() == pytest.approx(0.1)
        assert engine.run_report("city_sales").rows == [("Delhi", 0.2), ("Mumbai", 0.1)]

    def test_seed_daily_revenue(self, seed, report_settings):
        result = ReportEngine(seed, report_settings).run_report("daily_revenue")

        assert result.rows == [
            (date(2024, 1, 10), 70000.0),
            (date(2024, 1, 11), 30000.0),
        ]

    def test_seed_monthly_gmv(self, seed, report_settings):
        result = ReportEngine(seed, report_settings).run_report("monthly_gmv")

        assert result.rows == [("2024-01", 100000.0)]

    def test_seed_category_revenue_includes_all_statuses(self, seed, report_settings):
        result = ReportEngine(seed, report_settings).run_report("category_revenue")

        assert result.rows == [("Mobiles", 100000.0), ("Fashion", 3500.0)]

    def test_seed_city_sales(self, seed, report_settings):
        result = ReportEngine(seed, report_settings).run_report("city_sales")

        assert result.rows == [("Delhi", 70000.0), ("Mumbai", 30000.0)]

    def test_seed_revenue_by_payment_mode(self, seed, report_settings):
        result = ReportEngine(seed, report_settings).run_report("revenue_by_payment_mode")

        assert result.records() == [
            {"payment_mode": "Card", "revenue": 30000.0},
            {"payment_mode": "UPI", "revenue": 70000.0},
        ]

    def test_weekday_vs_weekend(self, make_snapshot, report_settings):
        """2024-01-13 is a Saturday, 2024-01-14 a Sunday, 2024-01-15 a Monday"""
        snapshot = make_snapshot(
            orders=[
                order(1, 1, order_date=date(2024, 1, 13)),
                order(2, 1, order_date=date(2024, 1, 14)),
                order(3, 1, order_date=date(2024, 1, 15)),
            ],
            order_items=[
                item(1, 1, 101, 1, 10.0),
                item(2, 2, 101, 2, 10.0),
                item(3, 3, 101, 4, 10.0),
            ],
        )

        result = ReportEngine(snapshot, report_settings).run_report("weekday_vs_weekend")

        assert dict(result.rows) == {"Weekend": 30.0, "Weekday": 40.0}

    def test_revenue_is_non_negative(self, seed, report_settings):
        engine = ReportEngine(seed, report_settings)
        for name in ("daily_revenue", "monthly_gmv", "top_skus_by_revenue", "category_revenue",
                     "customer_lifetime_revenue", "city_sales", "revenue_by_payment_mode",
                     "weekday_vs_weekend"):
            result = engine.run_report(name)
            assert all(value >= 0 for value in (row[-1] for row in result.rows)), name


class TestTopReports:
    """Tests for top-N and product movement reports"""

    def _snapshot(self, make_snapshot):
        return make_snapshot(
            products=PRODUCTS,
            orders=[order(1, 1)],
            order_items=[
                item(1, 1, 101, 1, 70000.0),
                item(2, 1, 102, 2, 15000.0),
                item(3, 1, 103, 5, 3500.0),
                item(4, 1, 103, 1, 3500.0),
            ],
        )

    def test_top_skus_by_revenue_order_and_limit(self, make_snapshot, report_settings):
        engine = ReportEngine(self._snapshot(make_snapshot), report_settings, top_n=2)

        result = engine.run_report("top_skus_by_revenue")

        assert result.rows == [("iPhone 14", 70000.0), ("Samsung M32", 30000.0)]

    @pytest.mark.parametrize("top_n", [0, 1, 3, 10])
    def test_top_n_bounds_and_ordering(self, make_snapshot, report_settings, top_n):
        engine = ReportEngine(self._snapshot(make_snapshot), report_settings, top_n=top_n)

        for name in ("top_skus_by_revenue", "top_skus_by_units"):
            values = [row[1] for row in engine.run_report(name).rows]
            assert len(values) == min(top_n, 3)
            assert values == sorted(values, reverse=True)

    def test_top_skus_by_units(self, make_snapshot, report_settings):
        result = ReportEngine(self._snapshot(make_snapshot), report_settings).run_report("top_skus_by_units")

        assert result.rows == [("Nike Shoes", 6), ("Samsung M32", 2), ("iPhone 14", 1)]

    def test_ties_break_on_product_name(self, seed, report_settings):
        result = ReportEngine(seed, report_settings).run_report("top_skus_by_units")

        assert result.rows == [("Samsung M32", 2), ("Nike Shoes", 1), ("iPhone 14", 1)]

    def test_slow_moving_threshold_is_strict(self, make_snapshot, report_settings):
        engine = ReportEngine(self._snapshot(make_snapshot), report_settings, slow_moving_units_threshold=2)

        result = engine.run_report("slow_moving_products")

        assert result.rows == [("iPhone 14", 1)]

    def test_fast_moving_products_unlimited(self, make_snapshot, report_settings):
        engine = ReportEngine(self._snapshot(make_snapshot), report_settings, top_n=1)

        result = engine.run_report("fast_moving_products")

        assert len(result.rows) == 3


class TestOrderMetrics:
    """Tests for order-level scalar reports"""

    def test_average_order_value(self, make_snapshot, report_settings):
        snapshot = make_snapshot(
            orders=[order(1001, 1), order(1002, 2)],
            order_items=[
                item(1, 1001, 101, 1, 70000.0),
                item(2, 1002, 102, 2, 15000.0),
            ],
        )

        result = ReportEngine(snapshot, report_settings).run_report("average_order_value")

        assert result.status == ReportStatus.OK
        assert result.value() == pytest.approx(50000.0)

    def test_average_order_value_no_delivered_orders(self, make_snapshot, report_settings):
        snapshot = make_snapshot(
            orders=[order(1001, 1, status="Cancelled")],
            order_items=[item(1, 1001, 101, 1, 70000.0)],
        )

        result = ReportEngine(snapshot, report_settings).run_report("average_order_value")

        assert result.status == ReportStatus.UNDEFINED
        assert result.value() is None
        assert result.error is None
        assert isinstance(result.warnings[0], DivisionByZero)
        assert result.undefined_metrics == ["average_order_value"]

    def test_repeat_purchase_rate(self, make_snapshot, report_settings):
        snapshot = make_snapshot(
            customers=CUSTOMERS + [{"customer_id": 3, "customer_name": "John Doe"},
                                   {"customer_id": 4, "customer_name": "Jane Roe"}],
            orders=[
                order(1, 1), order(2, 1),
                order(3, 2), order(4, 2, status="Cancelled"),
                order(5, 3),
            ],
        )

        result = ReportEngine(snapshot, report_settings).run_report("repeat_purchase_rate")

        assert result.value() == pytest.approx(25.0)

    def test_repeat_purchase_rate_without_customers(self, make_snapshot, report_settings):
        result = ReportEngine(make_snapshot(), report_settings).run_report("repeat_purchase_rate")

        assert result.status == ReportStatus.UNDEFINED
        assert result.value() is None

    def test_seed_cancellation_rate(self, seed, report_settings):
        result = ReportEngine(seed, report_settings).run_report("cancellation_rate")

        assert result.value() == pytest.approx(100 / 3)

    def test_cancellation_rate_without_orders(self, make_snapshot, report_settings):
        result = ReportEngine(make_snapshot(), report_settings).run_report("cancellation_rate")

        assert result.status == ReportStatus.UNDEFINED

    def test_order_status_mix_counts_sum_to_orders(self, seed, report_settings):
        result = ReportEngine(seed, report_settings).run_report("order_status_mix")

        assert result.rows == [("Cancelled", 1), ("Delivered", 2)]
        assert sum(count for _, count in result.rows) == seed.orders.height

    def test_unrecognized_status_counted_in_mix_only(self, make_snapshot, report_settings):
        snapshot = make_snapshot(
            orders=[order(1001, 1), order(1002, 1, status="Lost")],
            order_items=[item(1, 1001, 101, 1, 100.0), item(2, 1002, 101, 1, 250.0)],
        )
        engine = ReportEngine(snapshot, report_settings)

        assert engine.run_report("order_status_mix").rows == [("Delivered", 1), ("Lost", 1)]
        assert engine.run_report("daily_revenue").rows == [(date(2024, 1, 10), 100.0)]

    def test_seed_basket_size(self, seed, report_settings):
        result = ReportEngine(seed, report_settings).run_report("average_basket_size")

        assert result.value("avg_items_per_order") == pytest.approx(4 / 3)

    def test_seed_business_health(self, seed, report_settings):
        result = ReportEngine(seed, report_settings).run_report("business_health")

        assert result.metrics == {"total_orders": 2, "active_customers": 2, "gmv": 100000.0}

    def test_business_health_on_empty_snapshot(self, make_snapshot, report_settings):
        result = ReportEngine(make_snapshot(), report_settings).run_report("business_health")

        assert result.status == ReportStatus.OK
        assert result.metrics["total_orders"] == 0


class TestCustomerReports:
    """Tests for customer value reports"""

    def test_high_value_threshold_is_strict(self, make_snapshot, report_settings):
        snapshot = make_snapshot(
            customers=CUSTOMERS,
            orders=[order(1, 1), order(2, 2)],
            order_items=[
                item(1, 1, 101, 1, 50000.0),
                item(2, 2, 101, 1, 50000.01),
            ],
        )

        result = ReportEngine(snapshot, report_settings).run_report("high_value_customers")

        assert [row[1] for row in result.rows] == ["Riya Verma"]

    def test_seed_high_value_customers(self, seed, report_settings):
        result = ReportEngine(seed, report_settings).run_report("high_value_customers")

        assert result.rows == [(1, "Amit Sharma", 70000.0)]

    def test_seed_customer_lifetime_revenue(self, seed, report_settings):
        result = ReportEngine(seed, report_settings).run_report("customer_lifetime_revenue")

        assert result.rows == [(1, "Amit Sharma", 70000.0), (2, "Riya Verma", 30000.0)]


class TestInventoryReports:
    """Tests for stock reports"""

    def test_seed_stock_availability(self, seed, report_settings):
        result = ReportEngine(seed, report_settings).run_report("stock_availability")

        # Byte order: upper case sorts before lower case
        assert result.rows == [
            ("Del NCR WH", "Samsung M32", 80),
            ("Del NCR WH", "iPhone 14", 120),
            ("Mumbai West WH", "Nike Shoes", 200),
        ]

    def test_seed_has_no_stockouts(self, seed, report_settings):
        engine = ReportEngine(seed, report_settings)

        assert engine.run_report("stockout_skus").rows == []
        assert engine.run_report("stockout_lost_revenue").rows == []

    def test_stockout_lost_revenue_uses_current_stock(self, make_snapshot, report_settings):
        """Items sold before the stockout still count as lost revenue"""
        snapshot = make_snapshot(
            products=PRODUCTS,
            warehouses=[{"warehouse_id": 1, "warehouse_name": "Del NCR WH"}],
            inventory=[
                {"inventory_id": 1, "product_id": 103, "warehouse_id": 1, "quantity": 0},
                {"inventory_id": 2, "product_id": 101, "warehouse_id": 1, "quantity": 5},
            ],
            orders=[order(1, 1), order(2, 1)],
            order_items=[
                item(1, 1, 103, 2, 3500.0),
                item(2, 2, 103, 1, 3500.0),
                item(3, 2, 101, 1, 70000.0),
            ],
        )
        engine = ReportEngine(snapshot, report_settings)

        assert engine.run_report("stockout_skus").rows == [("Nike Shoes", "Del NCR WH")]
        assert engine.run_report("stockout_lost_revenue").rows == [("Nike Shoes", 10500.0)]

    def test_stockout_lost_revenue_counts_each_empty_warehouse(self, make_snapshot, report_settings):
        snapshot = make_snapshot(
            products=PRODUCTS,
            inventory=[
                {"inventory_id": 1, "product_id": 103, "warehouse_id": 1, "quantity": 0},
                {"inventory_id": 2, "product_id": 103, "warehouse_id": 2, "quantity": 0},
            ],
            orders=[order(1, 1)],
            order_items=[item(1, 1, 103, 1, 3500.0)],
        )

        result = ReportEngine(snapshot, report_settings).run_report("stockout_lost_revenue")

        assert result.rows == [("Nike Shoes", 7000.0)]


class TestDeliveryReports:
    """Tests for shipment reports"""

    def test_late_delivery_boundary(self, make_snapshot, report_settings):
        snapshot = make_snapshot(
            shipments=[
                shipment(1, date(2024, 1, 1), date(2024, 1, 7)),
                shipment(2, date(2024, 1, 1), date(2024, 1, 6)),
            ],
        )
        engine = ReportEngine(snapshot, report_settings)

        assert engine.run_report("late_deliveries").value() == 1
        assert engine.run_report("on_time_delivery_rate").value() == pytest.approx(50.0)

    def test_late_deliveries_ignore_undelivered(self, make_snapshot, report_settings):
        snapshot = make_snapshot(
            shipments=[shipment(1, date(2024, 1, 1), date(2024, 1, 20), status="In Transit")],
        )

        result = ReportEngine(snapshot, report_settings).run_report("late_deliveries")

        assert result.value() == 0

    def test_sla_override(self, make_snapshot, report_settings):
        snapshot = make_snapshot(shipments=[shipment(1, date(2024, 1, 1), date(2024, 1, 5))])

        result = ReportEngine(snapshot, report_settings, sla_days=3).run_report("late_deliveries")

        assert result.value() == 1

    def test_on_time_rate_without_shipments(self, make_snapshot, report_settings):
        result = ReportEngine(make_snapshot(), report_settings).run_report("on_time_delivery_rate")

        assert result.status == ReportStatus.UNDEFINED

    def test_seed_warehouse_lead_time(self, seed, report_settings):
        engine = ReportEngine(seed, report_settings)

        assert engine.run_report("warehouse_lead_time").rows == [("Del NCR WH", 4.0), ("Mumbai West WH", 5.0)]
        assert engine.run_report("on_time_delivery_rate").value() == pytest.approx(100.0)
        assert engine.run_report("late_deliveries").value() == 0


class TestMissingReferences:
    """Tests for unresolved foreign keys"""

    def _snapshot(self, make_snapshot):
        return make_snapshot(
            products=PRODUCTS,
            orders=[order(1, 1)],
            order_items=[
                item(1, 1, 101, 1, 100.0),
                item(2, 1, 999, 1, 500.0),
                item(3, 7, 101, 1, 900.0),
            ],
        )

    def test_warning_and_row_excluded(self, make_snapshot, report_settings):
        result = ReportEngine(self._snapshot(make_snapshot), report_settings).run_report("top_skus_by_revenue")

        assert result.status == ReportStatus.OK
        assert result.rows == [("iPhone 14", 1000.0)]
        missing = [w for w in result.warnings if isinstance(w, MissingReference)]
        assert len(missing) == 1
        assert missing[0].relation == "order_items"
        assert missing[0].column == "product_id"
        assert missing[0].missing_count == 1
        assert missing[0].sample == [999]

    def test_strict_mode_fails_report(self, make_snapshot, report_settings):
        engine = ReportEngine(self._snapshot(make_snapshot), report_settings, strict_references=True)

        result = engine.run_report("daily_revenue")

        assert result.status == ReportStatus.FAILED
        assert isinstance(result.error, MissingReference)
        assert result.error.referenced == "orders"

    def test_strict_mode_does_not_abort_batch(self, make_snapshot, report_settings):
        engine = ReportEngine(self._snapshot(make_snapshot), report_settings, strict_references=True)

        batch = engine.run_batch(["daily_revenue", "order_status_mix"])

        assert batch["daily_revenue"].status == ReportStatus.FAILED
        assert batch["order_status_mix"].status == ReportStatus.OK


class TestDeterminism:
    """Tests for repeatable output"""

    @staticmethod
    def _output(result) -> str:
        data = result.to_dict()
        data.pop("duration_ms")
        return json.dumps(data, sort_keys=True, default=str)

    def test_reports_are_idempotent(self, seed, report_settings):
        engine = ReportEngine(seed, report_settings)

        for name in REPORT_NAMES:
            assert self._output(engine.run_report(name)) == self._output(engine.run_report(name)), name

    def test_reports_with_warnings_are_idempotent(self, make_snapshot, report_settings):
        snapshot = make_snapshot(
            products=PRODUCTS,
            orders=[order(1, 1)],
            order_items=[item(1, 1, 101, 1, 100.0), item(2, 1, 999, 1, 500.0)],
        )
        engine = ReportEngine(snapshot, report_settings)

        first = engine.run_report("top_skus_by_revenue")
        second = engine.run_report("top_skus_by_revenue")

        assert first.warnings
        assert self._output(first) == self._output(second)

    def test_snapshot_is_not_mutated(self, seed, report_settings):
        before = {name: seed.relation(name).clone() for name in seed.row_counts()}

        ReportEngine(seed, report_settings).run_batch()

        for name, frame in before.items():
            assert seed.relation(name).equals(frame), name
