"""Unit tests for the order table definition and view DDL."""

from sqlalchemy import UniqueConstraint, select
from sqlalchemy.dialects import postgresql
from sqlalchemy.schema import CreateTable

from order_api.features.orders.models import (
    BUSINESS_COLUMNS,
    COMPOSITE_KEY_CONSTRAINT,
    CREATE_ORDERS_VIEW,
    VIEW_COLUMNS,
    Order,
    orders_view,
)


class TestOrderTable:
    """Tests for the orders table definition."""

    def test_business_columns_are_the_wire_fields(self):
        assert BUSINESS_COLUMNS == (
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
        assert set(BUSINESS_COLUMNS) < set(Order.__table__.columns.keys())

    def test_composite_key_covers_every_business_column(self):
        constraint = next(
            c
            for c in Order.__table__.constraints
            if isinstance(c, UniqueConstraint) and c.name == COMPOSITE_KEY_CONSTRAINT
        )
        assert [col.name for col in constraint.columns] == list(BUSINESS_COLUMNS)
        assert "is_countable" not in constraint.columns

    def test_composite_key_treats_nulls_as_equal(self):
        ddl = str(CreateTable(Order.__table__).compile(dialect=postgresql.dialect()))
        assert f"CONSTRAINT {COMPOSITE_KEY_CONSTRAINT} UNIQUE NULLS NOT DISTINCT" in ddl

    def test_is_countable_defaults_false(self):
        column = Order.__table__.c.is_countable
        assert column.nullable is False
        assert column.server_default is not None


class TestOrdersView:
    """Tests for the fiscal-year view."""

    def test_view_projects_business_columns_flag_and_label(self):
        assert VIEW_COLUMNS == (*BUSINESS_COLUMNS, "is_countable", "fiscal_year")

    def test_view_ddl_labels_fiscal_year_from_order_date(self):
        sql = CREATE_ORDERS_VIEW.statement
        assert sql.startswith("CREATE OR REPLACE VIEW orders_view AS")
        assert "INTERVAL '3 months'" in sql
        assert "'年度'" in sql
        assert sql.rstrip().endswith("FROM orders")

    def test_view_is_not_created_as_a_table(self):
        assert "orders_view" not in Order.metadata.tables

    def test_view_query_selects_columns_in_order(self):
        stmt = select(orders_view).where(orders_view.c.fiscal_year == "2024年度")
        compiled = stmt.compile(dialect=postgresql.dialect())
        assert list(stmt.selected_columns.keys()) == list(VIEW_COLUMNS)
        assert "FROM orders_view" in str(compiled)
