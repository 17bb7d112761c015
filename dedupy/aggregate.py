"""Running totals for one report run.

The :class:`Aggregator` owns the skip-or-fold decision for each row and two
keyed totals, one per consolidation-key shape. It moves through three states:

- ``EMPTY``: nothing folded yet.
- ``ACCUMULATING``: at least one row folded.
- ``FINALIZED``: totals drained into sorted :class:`OutputRow` objects; any
  further mutation raises :class:`~dedupy.errors.AggregatorFinalized`.

Output order is an explicit sort on (kind, description) with the remaining
row fields as tie-breakers, so identical input in any order yields identical
output.
"""

from __future__ import annotations

from enum import Enum

from .classify import Classifier
from .errors import AggregatorFinalized
from .memory import Fingerprint, Memory
from .models import AdjustmentKey, IdentifiedKey, OutputRow, ParsedTransaction

DEFAULT_ADJUSTMENT_SKU = "FBATF"


class AggregatorState(Enum):
    EMPTY = "empty"
    ACCUMULATING = "accumulating"
    FINALIZED = "finalized"


class Aggregator:
    """Folds non-duplicate transactions into per-key totals."""

    def __init__(
        self,
        memory: Memory,
        *,
        classifier: Classifier | None = None,
        adjustment_sku: str = DEFAULT_ADJUSTMENT_SKU,
    ) -> None:
        self.memory = memory
        self.classifier = classifier or Classifier()
        self.adjustment_sku = adjustment_sku
        self.state = AggregatorState.EMPTY
        # IdentifiedKey -> summed quantity, and summed cents beside it
        self._quantities: dict[IdentifiedKey, int] = {}
        self._totals: dict[IdentifiedKey, int] = {}
        # AdjustmentKey -> summed signed cents
        self._cents: dict[AdjustmentKey, int] = {}
        self.folded = 0
        self.skipped = 0

    def _ensure_open(self) -> None:
        if self.state is AggregatorState.FINALIZED:
            raise AggregatorFinalized("aggregator already finalized")

    def is_duplicate(self, fingerprint: Fingerprint) -> bool:
        """Return ``True`` (and count the skip) when a prior run saw this row."""

        self._ensure_open()
        if self.memory.contains(fingerprint):
            self.skipped += 1
            return True
        return False

    def add(self, fingerprint: Fingerprint, tx: ParsedTransaction) -> None:
        """Fold ``tx`` into its key's total and queue its fingerprint."""

        self._ensure_open()
        key = self.classifier.classify(tx)
        value = self.classifier.contribution(tx, key)
        if isinstance(key, IdentifiedKey):
            self._quantities[key] = self._quantities.get(key, 0) + value
            self._totals[key] = self._totals.get(key, 0) + tx.total_cents
        else:
            self._cents[key] = self._cents.get(key, 0) + value
        self.memory.remember(fingerprint)
        self.folded += 1
        self.state = AggregatorState.ACCUMULATING

    def __len__(self) -> int:
        return len(self._quantities) + len(self._cents)

    def finalize(self) -> list[OutputRow]:
        """Drain both totals into one sorted list of output rows."""

        self._ensure_open()
        rows: list[OutputRow] = [
            OutputRow(
                kind=key.kind,
                sku=key.sku,
                description=key.description,
                quantity=quantity,
                # Summed row totals; unit price x quantity when every row divides evenly
                total_cents=self._totals[key],
            )
            for key, quantity in self._quantities.items()
        ]
        rows.extend(
            OutputRow(
                kind=key.kind,
                sku=self.adjustment_sku,
                description=key.description,
                # Adjustments have no unit price; only the sign survives.
                quantity=-1 if cents < 0 else 1,
                total_cents=cents,
            )
            for key, cents in self._cents.items()
        )
        self._quantities = {}
        self._totals = {}
        self._cents = {}
        self.state = AggregatorState.FINALIZED
        return sorted(rows, key=OutputRow.sort_key)


__all__ = ["DEFAULT_ADJUSTMENT_SKU", "AggregatorState", "Aggregator"]
