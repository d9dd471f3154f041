"""Order storage: the ``orders`` table and the ``orders_view`` projection.

Each row is one captured version of a sales-order line. History is kept:
a change or cancellation arrives as a new row sharing the ``order_id`` of
the rows it supersedes, and nothing is ever deleted.

Uniqueness: two rows are duplicates iff every business field matches
(``uq_orders_composite_key``). Nulls compare equal for this purpose.

``is_countable`` is derived. It is recomputed across the whole table after
every ingested batch and is the only column that is ever updated.
"""

import datetime
from decimal import Decimal

from sqlalchemy import (
    DDL,
    Boolean,
    Date,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    column,
    event,
    false,
    table,
)
from sqlalchemy.orm import Mapped, mapped_column

from order_api.core.database import Base

# Wire/field order of an order record. Also the composite key.
BUSINESS_COLUMNS: tuple[str, ...] = (
    "order_id",
    "order_date",
    "sales_dept",
    "customer_name",
    "customer_id",
    "product_code",
    "product_name",
    "quantity",
    "unit_price",
    "total_price",
    "currency",
    "delivery_date",
    "order_status",
    "jpy_value",
    "timestamp",
)

COMPOSITE_KEY_CONSTRAINT = "uq_orders_composite_key"

# Fiscal years start in April and are labelled by their starting year.
FISCAL_YEAR_START_MONTH = 4
FISCAL_YEAR_LABEL_SUFFIX = "年度"

ORDERS_VIEW_NAME = "orders_view"
VIEW_COLUMNS: tuple[str, ...] = (*BUSINESS_COLUMNS, "is_countable", "fiscal_year")


class Order(Base):
    """One captured version of a sales-order line.

    Attributes:
        id: Surrogate primary key.
        order_id: Business order identifier shared by all versions of an order.
        order_date: Date the order was placed.
        sales_dept: Sales department.
        customer_name: Customer display name.
        customer_id: Customer identifier; a reserved prefix marks internal accounts.
        product_code: Product code.
        product_name: Product name.
        quantity: Ordered units.
        unit_price: Price per unit in ``currency``.
        total_price: Line total in ``currency``.
        currency: Currency code.
        delivery_date: Requested/expected delivery date.
        order_status: Free text; empty for a plain order, or a change/cancel marker.
        jpy_value: Line value in the reference currency.
        timestamp: When this version of the record was captured.
        is_countable: Derived; True for exactly the active version of a live order.
    """

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_id: Mapped[str] = mapped_column(String(50))
    order_date: Mapped[datetime.date | None] = mapped_column(Date, nullable=True)
    sales_dept: Mapped[str | None] = mapped_column(String(100), nullable=True)
    customer_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    customer_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    product_code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    product_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    quantity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    unit_price: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    total_price: Mapped[Decimal | None] = mapped_column(Numeric(16, 2), nullable=True)
    currency: Mapped[str | None] = mapped_column(String(10), nullable=True)
    delivery_date: Mapped[datetime.date | None] = mapped_column(Date, nullable=True)
    order_status: Mapped[str | None] = mapped_column(String(30), nullable=True)
    jpy_value: Mapped[Decimal | None] = mapped_column(Numeric(16, 2), nullable=True)
    timestamp: Mapped[datetime.datetime | None] = mapped_column(DateTime, nullable=True)
    is_countable: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=false(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint(
            *BUSINESS_COLUMNS,
            name=COMPOSITE_KEY_CONSTRAINT,
            postgresql_nulls_not_distinct=True,
        ),
        # Reclassification partitions by order_id and orders by timestamp
        Index("ix_orders_order_id_timestamp", "order_id", "timestamp"),
        Index("ix_orders_order_date", "order_date"),
    )


# ============================================================================
# orders_view
# ============================================================================


def _fiscal_year_label_sql(date_column: str) -> str:
    """SQL expression labelling a date with its fiscal year, NULL-safe."""
    shift = FISCAL_YEAR_START_MONTH - 1
    return (
        f"(EXTRACT(YEAR FROM {date_column} - INTERVAL '{shift} months'))::int::text"
        f" || '{FISCAL_YEAR_LABEL_SUFFIX}'"
    )


def _create_view_sql() -> str:
    projected = ",\n    ".join(f'"{name}"' for name in (*BUSINESS_COLUMNS, "is_countable"))
    fiscal_year = _fiscal_year_label_sql('"order_date"')
    return (
        f"CREATE OR REPLACE VIEW {ORDERS_VIEW_NAME} AS\n"
        f"SELECT\n    {projected},\n"
        f"    {fiscal_year} AS fiscal_year\n"
        f"FROM {Order.__tablename__}"
    )


CREATE_ORDERS_VIEW = DDL(_create_view_sql())
DROP_ORDERS_VIEW = DDL(f"DROP VIEW IF EXISTS {ORDERS_VIEW_NAME}")

event.listen(
    Order.__table__,
    "after_create",
    CREATE_ORDERS_VIEW.execute_if(dialect="postgresql"),
)
event.listen(
    Order.__table__,
    "before_drop",
    DROP_ORDERS_VIEW.execute_if(dialect="postgresql"),
)

# Read-only handle on the view for query building; not part of Base.metadata
# so create_all never tries to create it as a table.
orders_view = table(ORDERS_VIEW_NAME, *(column(name) for name in VIEW_COLUMNS))
