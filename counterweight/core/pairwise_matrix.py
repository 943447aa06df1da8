"""
Pairwise Matrix Builder — Immutable reciprocal comparison matrices.

Judgments are entered one pair at a time. Every edit returns a new snapshot
with a bumped version, so a solver result can always be tied to the exact
matrix state it was computed from.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping

from counterweight.errors import InvalidScaleValue, UnknownItem
from counterweight.models.consequence_models import CONSEQUENCE_KEYS

logger = logging.getLogger("counterweight.matrix")


def item_key(item: str | Enum) -> str:
    """Plain string key for an item (enum members use their value)."""
    if isinstance(item, Enum):
        return str(item.value)
    return str(item)


def generate_pairs(items: Iterable[str | Enum]) -> list[tuple[str, str]]:
    """All n·(n-1)/2 unordered pairs, in nested enumeration order."""
    keys = [item_key(i) for i in items]
    return [
        (keys[i], keys[j])
        for i in range(len(keys) - 1)
        for j in range(i + 1, len(keys))
    ]


def group_pairs(items: Iterable[str | Enum]) -> dict[str, list[str]]:
    """Group pairs by their anchor (left-hand) item, one group per wizard page."""
    keys = [item_key(i) for i in items]
    return {keys[i]: keys[i + 1 :] for i in range(len(keys) - 1)}


@dataclass(frozen=True)
class PairwiseMatrix:
    """
    Snapshot of a reciprocal pairwise comparison matrix.

    Only the upper triangle (i < j) is stored; M[j][i] is always 1 / M[i][j]
    and the diagonal is implicitly 1.

    Usage:
        m = PairwiseMatrix.create(["fatalities", "property_damage"])
        m = m.set_comparison("fatalities", "property_damage", 3)
        m.value("property_damage", "fatalities")  # 1/3
    """

    items: tuple[str, ...]
    judgments: Mapping[tuple[int, int], float] = field(
        default_factory=lambda: MappingProxyType({})
    )
    version: int = 0

    @classmethod
    def create(cls, items: Iterable[str | Enum] | None = None) -> PairwiseMatrix:
        """Empty matrix over ``items`` (defaults to all ten consequence types)."""
        keys = tuple(item_key(i) for i in items) if items is not None else CONSEQUENCE_KEYS
        if not keys:
            raise ValueError("A pairwise matrix needs at least one item")
        if len(set(keys)) != len(keys):
            raise ValueError(f"Duplicate items in matrix: {keys}")
        return cls(items=keys)

    @property
    def size(self) -> int:
        return len(self.items)

    def index(self, item: str | Enum) -> int:
        key = item_key(item)
        try:
            return self.items.index(key)
        except ValueError:
            raise UnknownItem(key) from None

    # ── Editing ──

    def set_comparison(self, i: str | Enum, j: str | Enum, value: float) -> PairwiseMatrix:
        """
        Record that ``i`` is ``value`` times as important as ``j``.

        Writes M[i][j] = value and M[j][i] = 1/value in one step and returns
        a new snapshot. Raises InvalidScaleValue for non-positive or
        non-finite values and for self-comparisons.
        """
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidScaleValue(value)
        if not math.isfinite(value) or value <= 0:
            raise InvalidScaleValue(value)

        row, col = self.index(i), self.index(j)
        if row == col:
            raise InvalidScaleValue(
                value, f"Cannot compare '{self.items[row]}' with itself"
            )

        updated = dict(self.judgments)
        if row < col:
            updated[(row, col)] = float(value)
        else:
            updated[(col, row)] = 1.0 / float(value)

        logger.debug(
            f"Comparison set: {self.items[row]} vs {self.items[col]} = {value} "
            f"(version {self.version + 1})"
        )
        return PairwiseMatrix(
            items=self.items,
            judgments=MappingProxyType(updated),
            version=self.version + 1,
        )

    # ── Reading ──

    def value(self, i: str | Enum, j: str | Enum) -> float | None:
        """M[i][j], or None if the pair has not been judged yet."""
        row, col = self.index(i), self.index(j)
        if row == col:
            return 1.0
        if row < col:
            return self.judgments.get((row, col))
        upper = self.judgments.get((col, row))
        return None if upper is None else 1.0 / upper

    def is_set(self, i: str | Enum, j: str | Enum) -> bool:
        return self.value(i, j) is not None

    def rows(self) -> list[list[float | None]]:
        """Dense matrix; unjudged cells are None."""
        n = self.size
        dense: list[list[float | None]] = [[None] * n for _ in range(n)]
        for k in range(n):
            dense[k][k] = 1.0
        for (row, col), upper in self.judgments.items():
            dense[row][col] = upper
            dense[col][row] = 1.0 / upper
        return dense

    def comparisons(self) -> list[tuple[str, str, float]]:
        """Judged pairs as (row item, column item, value), upper triangle only."""
        return [
            (self.items[row], self.items[col], upper)
            for (row, col), upper in sorted(self.judgments.items())
        ]

    def missing_pairs(self) -> list[tuple[str, str]]:
        return [
            (self.items[row], self.items[col])
            for row in range(self.size - 1)
            for col in range(row + 1, self.size)
            if (row, col) not in self.judgments
        ]

    @property
    def total_pairs(self) -> int:
        return self.size * (self.size - 1) // 2

    @property
    def completed_pairs(self) -> int:
        return len(self.judgments)

    @property
    def progress(self) -> float:
        if self.total_pairs == 0:
            return 1.0
        return self.completed_pairs / self.total_pairs

    def is_complete(self) -> bool:
        """True once every off-diagonal cell has been explicitly written."""
        return self.completed_pairs == self.total_pairs

    @classmethod
    def from_comparisons(
        cls,
        items: Iterable[str | Enum],
        comparisons: Iterable[tuple[str, str, float]],
        version: int | None = None,
    ) -> PairwiseMatrix:
        """Rebuild a matrix from stored (row, col, value) triples."""
        matrix = cls.create(items)
        for row, col, value in comparisons:
            matrix = matrix.set_comparison(row, col, value)
        if version is not None:
            matrix = PairwiseMatrix(
                items=matrix.items, judgments=matrix.judgments, version=version
            )
        return matrix


def set_comparison(
    matrix: PairwiseMatrix, i: str | Enum, j: str | Enum, value: float
) -> PairwiseMatrix:
    """Functional form of PairwiseMatrix.set_comparison."""
    return matrix.set_comparison(i, j, value)


def is_complete(matrix: PairwiseMatrix) -> bool:
    """Functional form of PairwiseMatrix.is_complete."""
    return matrix.is_complete()
