"""
Report Catalog

The 24 reports expressed as data. Each ReportSpec describes a pipeline of
join -> derive -> filter -> group -> aggregate -> having -> order -> limit,
optionally reduced to scalar metrics. A single evaluator runs every spec, so
edge cases (zero denominators, strict thresholds, unresolved keys) are handled
the same way everywhere.

Conventions:
- Revenue is always quantity * unit_price at order item grain.
- Money totals are rounded to cents after aggregation, matching DECIMAL sums.
- Status filters are exact, case-sensitive matches.
- Day type uses ISO weekday numbers (Monday=1 ... Sunday=7); Saturday and
  Sunday are the weekend.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

import polars as pl

from src.analytics.results import ReportKind
from src.config.settings import ReportSettings

DELIVERED = "Delivered"
CANCELLED = "Cancelled"
WEEKEND_DAYS = [6, 7]
# Money columns are DECIMAL(10, 2) in the store
MONEY_DECIMALS = 2


# =============================================================================
# SPEC TYPES
# =============================================================================

@dataclass(frozen=True)
class JoinStep:
    """
    Inner join of the working frame with a snapshot relation.

    When enforce_reference is set, rows of `owner` whose `on` value has no
    match in `relation` are reported as MissingReference.
    """
    relation: str
    on: str
    owner: str
    right_on: Optional[str] = None
    columns: Tuple[str, ...] = ()  # Right-side columns to keep; empty keeps all
    rename: Mapping[str, str] = field(default_factory=dict)
    enforce_reference: bool = True

    @property
    def right_key(self) -> str:
        return self.right_on or self.on


@dataclass(frozen=True)
class Metric:
    """
    Named scalar computed over the final frame.

    With a denominator, the value is value / denominator * scale and is
    undefined when the denominator is zero. The denominator is evaluated on
    the final frame, or on a whole snapshot relation when
    denominator_relation is set.
    """
    name: str
    value: pl.Expr
    denominator: Optional[pl.Expr] = None
    denominator_relation: Optional[str] = None
    denominator_label: str = "denominator"
    scale: float = 1.0


@dataclass(frozen=True)
class ReportSpec:
    """Declarative definition of one report"""
    number: int
    name: str
    title: str
    base: str
    joins: Tuple[JoinStep, ...] = ()
    derive: Tuple[pl.Expr, ...] = ()
    where: Optional[pl.Expr] = None
    group_by: Tuple[str, ...] = ()
    aggregations: Tuple[pl.Expr, ...] = ()
    having: Optional[pl.Expr] = None
    select: Tuple[str, ...] = ()
    order_by: Tuple[Tuple[str, bool], ...] = ()  # (column, descending)
    limit: Optional[int] = None
    metrics: Tuple[Metric, ...] = ()

    @property
    def kind(self) -> ReportKind:
        return ReportKind.SCALAR if self.metrics else ReportKind.TABLE


# =============================================================================
# SHARED BUILDING BLOCKS
# =============================================================================

REVENUE = (pl.col("quantity") * pl.col("unit_price")).alias("revenue")
LEAD_TIME = (pl.col("delivery_date") - pl.col("dispatch_date")).dt.total_days().alias("lead_time_days")
def money(expr: pl.Expr) -> pl.Expr:
    return expr.round(MONEY_DECIMALS)


IS_DELIVERED = pl.col("order_status") == DELIVERED
SHIPMENT_DELIVERED = pl.col("delivery_status") == DELIVERED

ITEM_ORDER = JoinStep(relation="orders", on="order_id", owner="order_items")
ITEM_PRODUCT = JoinStep(relation="products", on="product_id", owner="order_items")
ORDER_CUSTOMER = JoinStep(relation="customers", on="customer_id", owner="orders")
INVENTORY_PRODUCT = JoinStep(
    relation="products", on="product_id", owner="inventory", columns=("product_name",)
)
INVENTORY_WAREHOUSE = JoinStep(
    relation="warehouses", on="warehouse_id", owner="inventory", columns=("warehouse_name",)
)
SHIPMENT_WAREHOUSE = JoinStep(
    relation="warehouses", on="warehouse_id", owner="shipments", columns=("warehouse_name",)
)
# Current on-hand stock per product; many rows per product when stocked in several warehouses
ITEM_INVENTORY = JoinStep(
    relation="inventory",
    on="product_id",
    owner="order_items",
    columns=("quantity",),
    rename={"quantity": "on_hand"},
    enforce_reference=False,
)


def _delivered_revenue_by(
    number: int,
    name: str,
    title: str,
    key: str,
    alias: str,
    key_expr: Optional[pl.Expr] = None,
    order_by: Tuple[Tuple[str, bool], ...] = (),
    joins: Tuple[JoinStep, ...] = (ITEM_ORDER,),
) -> ReportSpec:
    derive = (REVENUE,) if key_expr is None else (REVENUE, key_expr.alias(key))
    return ReportSpec(
        number=number,
        name=name,
        title=title,
        base="order_items",
        joins=joins,
        derive=derive,
        where=IS_DELIVERED,
        group_by=(key,),
        aggregations=(money(pl.col("revenue").sum()).alias(alias),),
        order_by=order_by,
    )


def _customer_ltv(number: int, name: str, title: str, having: Optional[pl.Expr] = None) -> ReportSpec:
    return ReportSpec(
        number=number,
        name=name,
        title=title,
        base="order_items",
        joins=(ITEM_ORDER, ORDER_CUSTOMER),
        derive=(REVENUE,),
        where=IS_DELIVERED,
        group_by=("customer_id", "customer_name"),
        aggregations=(money(pl.col("revenue").sum()).alias("lifetime_value"),),
        having=having,
        order_by=(("lifetime_value", True),),
    )


def _product_units(
    number: int,
    name: str,
    title: str,
    descending: bool,
    having: Optional[pl.Expr] = None,
    limit: Optional[int] = None,
) -> ReportSpec:
    return ReportSpec(
        number=number,
        name=name,
        title=title,
        base="order_items",
        joins=(ITEM_PRODUCT,),
        group_by=("product_name",),
        aggregations=(pl.col("quantity").sum().alias("units_sold"),),
        having=having,
        order_by=(("units_sold", descending),),
        limit=limit,
    )


# =============================================================================
# CATALOG
# =============================================================================

def build_catalog(settings: ReportSettings) -> Dict[str, ReportSpec]:
    """
    Build the report catalog for the given thresholds.

    Returns:
        Mapping of report name to spec, in catalog order
    """
    sla = settings.sla_days

    specs: List[ReportSpec] = [
        _delivered_revenue_by(
            1, "daily_revenue", "Daily Revenue Trend",
            key="order_date", alias="daily_revenue",
            order_by=(("order_date", False),),
        ),
        _delivered_revenue_by(
            2, "monthly_gmv", "Monthly GMV",
            key="month", alias="gmv",
            key_expr=pl.col("order_date").dt.strftime("%Y-%m"),
            order_by=(("month", False),),
        ),
        ReportSpec(
            number=3,
            name="top_skus_by_revenue",
            title="Top Selling SKUs by Revenue",
            base="order_items",
            joins=(ITEM_PRODUCT,),
            derive=(REVENUE,),
            group_by=("product_name",),
            aggregations=(money(pl.col("revenue").sum()).alias("revenue"),),
            order_by=(("revenue", True),),
            limit=settings.top_n,
        ),
        _product_units(
            4, "top_skus_by_units", "Top Selling SKUs by Units",
            descending=True, limit=settings.top_n,
        ),
        ReportSpec(
            number=5,
            name="category_revenue",
            title="Category-Wise Revenue Contribution",
            base="order_items",
            joins=(ITEM_PRODUCT,),
            derive=(REVENUE,),
            group_by=("category",),
            aggregations=(money(pl.col("revenue").sum()).alias("revenue"),),
            order_by=(("revenue", True),),
        ),
        ReportSpec(
            number=6,
            name="average_order_value",
            title="Average Order Value",
            base="order_items",
            joins=(ITEM_ORDER,),
            derive=(REVENUE,),
            where=IS_DELIVERED,
            metrics=(
                Metric(
                    name="average_order_value",
                    value=money(pl.col("revenue").sum()),
                    denominator=pl.col("order_id").n_unique(),
                    denominator_label="delivered order count",
                ),
            ),
        ),
        ReportSpec(
            number=7,
            name="repeat_purchase_rate",
            title="Repeat Purchase Rate",
            base="orders",
            where=IS_DELIVERED,
            group_by=("customer_id",),
            aggregations=(pl.len().alias("delivered_orders"),),
            having=pl.col("delivered_orders") > 1,
            metrics=(
                Metric(
                    name="repeat_purchase_rate",
                    value=pl.len(),
                    denominator=pl.len(),
                    denominator_relation="customers",
                    denominator_label="customer count",
                    scale=100.0,
                ),
            ),
        ),
        _customer_ltv(8, "customer_lifetime_revenue", "Customer Lifetime Revenue"),
        _customer_ltv(
            9, "high_value_customers", "High-Value Customers",
            having=pl.col("lifetime_value") > settings.high_value_ltv_threshold,
        ),
        ReportSpec(
            number=10,
            name="order_status_mix",
            title="Order Status Mix",
            base="orders",
            group_by=("order_status",),
            aggregations=(pl.len().alias("total_orders"),),
        ),
        ReportSpec(
            number=11,
            name="cancellation_rate",
            title="Cancellation Rate",
            base="orders",
            metrics=(
                Metric(
                    name="cancellation_rate",
                    value=(pl.col("order_status") == CANCELLED).sum(),
                    denominator=pl.len(),
                    denominator_label="order count",
                    scale=100.0,
                ),
            ),
        ),
        ReportSpec(
            number=12,
            name="stock_availability",
            title="Warehouse Stock Availability",
            base="inventory",
            joins=(INVENTORY_WAREHOUSE, INVENTORY_PRODUCT),
            select=("warehouse_name", "product_name", "quantity"),
            order_by=(("warehouse_name", False), ("product_name", False)),
        ),
        ReportSpec(
            number=13,
            name="stockout_skus",
            title="Stockout SKUs",
            base="inventory",
            joins=(INVENTORY_PRODUCT, INVENTORY_WAREHOUSE),
            where=pl.col("quantity") == 0,
            select=("product_name", "warehouse_name"),
        ),
        ReportSpec(
            number=14,
            name="stockout_lost_revenue",
            title="Potential Lost Revenue Due to Stockouts",
            base="order_items",
            joins=(ITEM_INVENTORY, ITEM_PRODUCT),
            derive=(REVENUE,),
            where=pl.col("on_hand") == 0,
            group_by=("product_name",),
            aggregations=(money(pl.col("revenue").sum()).alias("lost_revenue"),),
        ),
        ReportSpec(
            number=15,
            name="warehouse_lead_time",
            title="Warehouse Fulfillment Lead Time",
            base="shipments",
            joins=(SHIPMENT_WAREHOUSE,),
            derive=(LEAD_TIME,),
            where=SHIPMENT_DELIVERED,
            group_by=("warehouse_name",),
            aggregations=(pl.col("lead_time_days").mean().alias("avg_lead_time_days"),),
        ),
        ReportSpec(
            number=16,
            name="late_deliveries",
            title="Late Deliveries Count",
            base="shipments",
            derive=(LEAD_TIME,),
            where=SHIPMENT_DELIVERED & (pl.col("lead_time_days") > sla),
            metrics=(Metric(name="late_deliveries", value=pl.len()),),
        ),
        ReportSpec(
            number=17,
            name="on_time_delivery_rate",
            title="On-Time Delivery Rate",
            base="shipments",
            derive=(LEAD_TIME,),
            metrics=(
                Metric(
                    name="on_time_delivery_rate",
                    value=(pl.col("lead_time_days") <= sla).sum(),
                    denominator=pl.len(),
                    denominator_label="shipment count",
                    scale=100.0,
                ),
            ),
        ),
        _delivered_revenue_by(
            18, "city_sales", "City-Wise Sales Performance",
            key="city", alias="revenue",
            order_by=(("revenue", True),),
            joins=(ITEM_ORDER, ORDER_CUSTOMER),
        ),
        _product_units(19, "fast_moving_products", "Fast-Moving Products", descending=True),
        _product_units(
            20, "slow_moving_products", "Slow-Moving Products",
            descending=False,
            having=pl.col("units_sold") < settings.slow_moving_units_threshold,
        ),
        _delivered_revenue_by(
            21, "revenue_by_payment_mode", "Revenue by Payment Mode",
            key="payment_mode", alias="revenue",
        ),
        _delivered_revenue_by(
            22, "weekday_vs_weekend", "Weekday vs Weekend Revenue",
            key="day_type", alias="revenue",
            key_expr=(
                pl.when(pl.col("order_date").dt.weekday().is_in(WEEKEND_DAYS))
                .then(pl.lit("Weekend"))
                .otherwise(pl.lit("Weekday"))
            ),
        ),
        ReportSpec(
            number=23,
            name="average_basket_size",
            title="Basket Size (Average Items per Order)",
            base="order_items",
            group_by=("order_id",),
            aggregations=(pl.col("quantity").sum().alias("item_count"),),
            metrics=(
                Metric(
                    name="avg_items_per_order",
                    value=pl.col("item_count").sum(),
                    denominator=pl.len(),
                    denominator_label="order count",
                ),
            ),
        ),
        ReportSpec(
            number=24,
            name="business_health",
            title="Overall Business Health Summary",
            base="order_items",
            joins=(ITEM_ORDER,),
            derive=(REVENUE,),
            where=IS_DELIVERED,
            metrics=(
                Metric(name="total_orders", value=pl.col("order_id").n_unique()),
                Metric(name="active_customers", value=pl.col("customer_id").n_unique()),
                Metric(name="gmv", value=money(pl.col("revenue").sum())),
            ),
        ),
    ]

    return {spec.name: spec for spec in specs}


# Names only; built from defaults without reading the environment
REPORT_NAMES: Tuple[str, ...] = tuple(build_catalog(ReportSettings.model_construct()))
