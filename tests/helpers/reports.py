"""Builders for settlement-style transaction reports used across tests."""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable, Sequence
from pathlib import Path

PREAMBLE: tuple[str, ...] = (
    "Includes Amazon Marketplace, Fulfillment by Amazon (FBA), and Amazon Webstore transactions",
    "All amounts in USD, unless specified",
    "Definitions:",
    "Sales tax collected: Includes sales tax collected from buyers for product sales",
    "Selling fees: Includes variable closing fees and referral fees.",
    "Other transaction fees: Includes sales tax collection fees",
    "Other: Includes non-order transaction amounts.",
)

HEADER: tuple[str, ...] = (
    "date/time",
    "settlement id",
    "type",
    "order id",
    "sku",
    "description",
    "quantity",
    "total",
)


def row(
    kind: str,
    sku: str,
    description: str,
    quantity: str,
    total: str,
    *,
    date_time: str = "Jan 1, 2024 12:00:00 AM PST",
    order_id: str = "",
) -> tuple[str, ...]:
    """A data row in :data:`HEADER` order."""

    return (date_time, "1234567890", kind, order_id, sku, description, quantity, total)


# A small month of activity: repeated sales, a refund, fees and adjustments.
SAMPLE_ROWS: tuple[tuple[str, ...], ...] = (
    row("Order", "SKU-A", "Widget", "3", "38.97", order_id="111-1", date_time="Jan 1, 2024"),
    row("Order", "SKU-A", "Widget", "5", "64.95", order_id="111-2", date_time="Jan 2, 2024"),
    row("Order", "SKU-B", "Gadget", "1", "5.5", order_id="111-3", date_time="Jan 3, 2024"),
    row("Service Fee", "", "Subscription Fee", "", "-39.99", date_time="Jan 4, 2024"),
    row("Adjustment", "", "FBA Inventory Reimbursement", "", "1.50", date_time="Jan 5, 2024"),
    row("Adjustment", "", "FBA Inventory Reimbursement", "", "-5.00", date_time="Jan 6, 2024"),
    row("Refund", "SKU-A", "Widget", "1", "-12.99", order_id="111-1", date_time="Jan 7, 2024"),
)

# Expected TSV for SAMPLE_ROWS, sorted by (type, description).
SAMPLE_TSV = (
    "type\tsku\tdescription\tquantity\ttotal\n"
    "Adjustment\tFBATF\tFBA Inventory Reimbursement\t-1\t-3.5\n"
    "Order\tSKU-B\tGadget\t1\t5.5\n"
    "Order\tSKU-A\tWidget\t8\t103.92\n"
    "Refund\tSKU-A\tWidget\t1\t-12.99\n"
    "Service Fee\tFBATF\tSubscription Fee\t-1\t-39.99\n"
)


def build_report(
    rows: Iterable[Sequence[str]],
    *,
    header: Sequence[str] = HEADER,
    preamble: Sequence[str] = PREAMBLE,
) -> str:
    """Render a report: preamble lines, the header row, then data rows."""

    buf = io.StringIO()
    for line in preamble:
        buf.write(f'"{line}"\n')
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(header)
    for r in rows:
        writer.writerow(r)
    return buf.getvalue()


def write_report(path: Path, rows: Iterable[Sequence[str]], **kwargs) -> Path:
    path.write_text(build_report(rows, **kwargs), encoding="utf-8")
    return path
