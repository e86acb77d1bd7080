"""Daily sales report aggregation."""

from collections import Counter
from dataclasses import dataclass, replace
from functools import reduce
from typing import Iterable

from posreport.models import PaymentMethod, SalesReport
from posreport.repositories.base import JoinedSaleRow


@dataclass(frozen=True)
class ReportTotals:
    """Running monetary totals of the report fold."""

    cash: int = 0
    pix: int = 0
    debit: int = 0
    cost: int = 0


_REVENUE_BUCKET = {
    PaymentMethod.CASH: "cash",
    PaymentMethod.PIX: "pix",
    PaymentMethod.DEBIT: "debit",
}


def fold_row(totals: ReportTotals, row: JoinedSaleRow) -> ReportTotals:
    """Add one sale line to the running totals.

    Revenue goes to exactly one payment bucket; cost is counted for every
    payment method.
    """
    bucket = _REVENUE_BUCKET[PaymentMethod(row.payment_method)]
    line_revenue = row.product_price * row.quantity
    line_cost = row.product_cost * row.quantity
    return replace(
        totals,
        **{bucket: getattr(totals, bucket) + line_revenue},
        cost=totals.cost + line_cost,
    )


def build_sales_report(date: str, rows: Iterable[JoinedSaleRow]) -> SalesReport:
    """Fold the joined sale rows of one day into a SalesReport.

    Args:
        date: Report date, already validated by the caller.
        rows: Sales for that date joined with their products. May be empty.

    Returns:
        The completed report. ``total`` and ``profit`` are derived once,
        after every row has been folded.
    """
    rows = list(rows)
    totals = reduce(fold_row, rows, ReportTotals())
    frequencies = Counter(row.product_name for row in rows)

    total = totals.cash + totals.pix + totals.debit
    return SalesReport(
        date=date,
        total_cash=totals.cash,
        total_pix=totals.pix,
        total_debit=totals.debit,
        total=total,
        total_cost=totals.cost,
        profit=total - totals.cost,
        frequencies=dict(frequencies),
    )
