"""Choose the consolidation key for a parsed transaction.

Transactions with a product id are consolidated per product and unit price so
their quantities can be summed. Transactions without one (refunds, fees,
reimbursements) have no meaningful unit price and are consolidated by kind and
description only, summing their signed totals.
"""

from __future__ import annotations

from .models import AdjustmentKey, ConsolidationKey, IdentifiedKey, ParsedTransaction


class Classifier:
    """Maps each transaction to exactly one :data:`ConsolidationKey` shape."""

    def classify(self, tx: ParsedTransaction) -> ConsolidationKey:
        if tx.has_sku:
            return IdentifiedKey(
                kind=tx.kind,
                sku=tx.sku,
                description=tx.description,
                unit_cents=tx.unit_cents,
            )
        return AdjustmentKey(kind=tx.kind, description=tx.description)

    def contribution(self, tx: ParsedTransaction, key: ConsolidationKey) -> int:
        """Value folded into the running total for ``key``.

        Identified keys sum quantity; adjustment keys sum signed cents.
        """

        if isinstance(key, IdentifiedKey):
            return tx.quantity
        return tx.total_cents


__all__ = ["Classifier"]
