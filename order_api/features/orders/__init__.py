"""Order storage: table, composite key and fiscal-year view."""

from order_api.features.orders.models import (
    BUSINESS_COLUMNS,
    COMPOSITE_KEY_CONSTRAINT,
    FISCAL_YEAR_LABEL_SUFFIX,
    FISCAL_YEAR_START_MONTH,
    VIEW_COLUMNS,
    Order,
    orders_view,
)

__all__ = [
    "BUSINESS_COLUMNS",
    "COMPOSITE_KEY_CONSTRAINT",
    "FISCAL_YEAR_LABEL_SUFFIX",
    "FISCAL_YEAR_START_MONTH",
    "VIEW_COLUMNS",
    "Order",
    "orders_view",
]
