"""Countability classification of stored orders.

Rows sharing an ``order_id`` form a group (every captured version of one
order line). Per row:

1. A customer id starting with the reserved prefix is never countable.
2. If any row of the group carries the cancelled status, no row of the
   group is countable.
3. Otherwise only the group's latest row is countable.

"Latest" means the greatest capture timestamp (missing timestamps rank
last). A cancellation and the order it cancels are often captured in the
same instant, so equal timestamps are broken by status: cancelled, then
changed, then anything else. Anything still tied goes to the row stored
last (greatest ``id``).

The same rules exist twice: as a single window-function UPDATE run inside
PostgreSQL, and as an in-memory pass over the loaded rows. Which one runs
is chosen by ``Settings.reclassify_strategy``.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import Update, case, false, func, select, true, update

from order_api.core.config import Settings
from order_api.features.orders.models import Order

# Tie-break ranks at equal timestamps; lower wins.
CANCELLED_RANK = 1
CHANGED_RANK = 2
DEFAULT_RANK = 3


@dataclass(frozen=True)
class CountabilityPolicy:
    """Status literals and customer prefix the classification keys on."""

    cancelled_status: str = "cancelled"
    changed_status: str = "changed"
    reserved_customer_prefix: str = "Z"

    @classmethod
    def from_settings(cls, settings: Settings) -> CountabilityPolicy:
        """Build the policy from application settings."""
        return cls(
            cancelled_status=settings.order_status_cancelled,
            changed_status=settings.order_status_changed,
            reserved_customer_prefix=settings.reserved_customer_prefix,
        )

    def status_rank(self, status: str | None) -> int:
        """Tie-break rank of a status at equal timestamps."""
        if status == self.cancelled_status:
            return CANCELLED_RANK
        if status == self.changed_status:
            return CHANGED_RANK
        return DEFAULT_RANK

    def is_reserved_customer(self, customer_id: str | None) -> bool:
        """Whether the customer id marks an internal/test account."""
        return customer_id is not None and customer_id.startswith(self.reserved_customer_prefix)


@dataclass(frozen=True)
class OrderVersion:
    """The columns classification needs from one stored row."""

    id: int
    order_id: str
    customer_id: str | None
    order_status: str | None
    timestamp: datetime | None


# =============================================================================
# In-memory classification
# =============================================================================


def latest_key(row: OrderVersion, policy: CountabilityPolicy) -> tuple[bool, datetime, int, int]:
    """Ordering key under which the group's latest row is the maximum."""
    return (
        row.timestamp is not None,
        row.timestamp or datetime.min,
        -policy.status_rank(row.order_status),
        row.id,
    )


def classify_countable(
    rows: Iterable[OrderVersion],
    policy: CountabilityPolicy,
) -> dict[int, bool]:
    """Compute ``is_countable`` for every row.

    Partitions rows by order id, ranks each group to find its latest row,
    then classifies every row against its group.

    Args:
        rows: Every stored row; a partial set gives partial groups.
        policy: Status literals and reserved customer prefix.

    Returns:
        Mapping of row id to its countable flag.
    """
    groups: dict[str, list[OrderVersion]] = defaultdict(list)
    for row in rows:
        groups[row.order_id].append(row)

    flags: dict[int, bool] = {}
    for group in groups.values():
        has_cancelled = any(r.order_status == policy.cancelled_status for r in group)
        latest_id = max(group, key=lambda r: latest_key(r, policy)).id

        for row in group:
            flags[row.id] = (
                not policy.is_reserved_customer(row.customer_id)
                and not has_cancelled
                and row.id == latest_id
            )

    return flags


# =============================================================================
# In-database classification
# =============================================================================


def build_reclassify_statement(policy: CountabilityPolicy) -> Update:
    """Build the UPDATE that reclassifies the whole table in one statement.

    Renders as::

        UPDATE orders SET is_countable = CASE ... END
        FROM (SELECT id,
                     max(<is cancelled>) OVER (PARTITION BY order_id),
                     row_number() OVER (PARTITION BY order_id ORDER BY
                         timestamp DESC NULLS LAST, <status rank>, id DESC)
              FROM orders) AS order_status_analysis
        WHERE orders.id = order_status_analysis.id

    Args:
        policy: Status literals and reserved customer prefix.

    Returns:
        Executable UPDATE statement; its rowcount is the number of rows touched.
    """
    is_cancelled = Order.order_status == policy.cancelled_status
    status_rank = case(
        (is_cancelled, CANCELLED_RANK),
        (Order.order_status == policy.changed_status, CHANGED_RANK),
        else_=DEFAULT_RANK,
    )

    analysis = select(
        Order.id.label("id"),
        func.max(case((is_cancelled, 1), else_=0))
        .over(partition_by=Order.order_id)
        .label("has_cancelled"),
        func.row_number()
        .over(
            partition_by=Order.order_id,
            order_by=(Order.timestamp.desc().nulls_last(), status_rank, Order.id.desc()),
        )
        .label("latest_rank"),
    ).subquery("order_status_analysis")

    countable = case(
        (Order.customer_id.startswith(policy.reserved_customer_prefix, autoescape=True), false()),
        (analysis.c.has_cancelled == 1, false()),
        (analysis.c.latest_rank == 1, true()),
        else_=false(),
    )

    return (
        update(Order)
        .where(Order.id == analysis.c.id)
        .values(is_countable=countable)
        .execution_options(synchronize_session=False)
    )
