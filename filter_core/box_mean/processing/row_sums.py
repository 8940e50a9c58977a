from __future__ import annotations

from collections import deque
from typing import Deque, Iterator, List, Sequence

from filter_core.box_mean.grid import PixelGrid


class RowWindowSums:
    """
    Sliding horizontal sums of width ``d`` along one source row.

    Entry ``k`` is ``sum(samples[k : k + d])``. Only the first entry is computed
    on construction; later entries are produced one at a time by ``extend`` so
    the vertical accumulation can consume them in column order.
    """

    __slots__ = ("_samples", "_d", "_sums", "capacity")

    def __init__(self, samples: Sequence[int], d: int) -> None:
        if d <= 0:
            raise ValueError(f"window width must be positive, got {d}")
        self._samples = samples
        self._d = d
        self.capacity = max(0, len(samples) - d + 1)
        self._sums: List[int] = []
        if self.capacity > 0:
            self._sums.append(sum(samples[:d]))

    def __len__(self) -> int:
        return len(self._sums)

    def __getitem__(self, k: int) -> int:
        if not 0 <= k < len(self._sums):
            raise IndexError(f"row sum {k} not available, {len(self._sums)} of {self.capacity} computed")
        return self._sums[k]

    def __iter__(self) -> Iterator[int]:
        return iter(self._sums)

    @property
    def is_complete(self) -> bool:
        return len(self._sums) == self.capacity

    def extend(self) -> int:
        """Compute the next sum from the previous one in O(1)."""
        k = len(self._sums) - 1
        if k + 1 >= self.capacity:
            raise IndexError(f"row already holds all {self.capacity} sums")
        nxt = self._sums[k] + self._samples[k + self._d] - self._samples[k]
        self._sums.append(nxt)
        return nxt

    def complete(self) -> "RowWindowSums":
        while len(self._sums) < self.capacity:
            self.extend()
        return self

    def to_list(self) -> List[int]:
        return list(self._sums)


def row_window_sums(samples: Sequence[int], d: int) -> List[int]:
    """All ``len(samples) - d + 1`` sliding sums of one row."""
    return RowWindowSums(samples, d).complete().to_list()


class RowBand:
    """The ``d`` most recent rows of horizontal sums, oldest first."""

    def __init__(self, d: int) -> None:
        self.d = d
        self._rows: Deque[RowWindowSums] = deque()

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[RowWindowSums]:
        return iter(self._rows)

    def __getitem__(self, index: int) -> RowWindowSums:
        if not 0 <= index < len(self._rows):
            raise IndexError(f"band row {index} out of range [0, {len(self._rows)})")
        return self._rows[index]

    @property
    def oldest(self) -> RowWindowSums:
        return self[0]

    @property
    def newest(self) -> RowWindowSums:
        return self[len(self._rows) - 1]

    @classmethod
    def seed(cls, grid: PixelGrid, d: int, first_row: int = 0) -> "RowBand":
        """Complete row sums for source rows ``first_row .. first_row + d - 1``."""
        band = cls(d)
        for row in range(first_row, first_row + d):
            band._rows.append(RowWindowSums(grid.row_values(row), d).complete())
        return band

    def advance(self, samples: Sequence[int]) -> RowWindowSums:
        """Append an unextended row and evict the oldest one, which is returned."""
        if len(self._rows) != self.d:
            raise RuntimeError(f"band must be seeded with {self.d} rows before advancing, has {len(self._rows)}")
        self._rows.append(RowWindowSums(samples, self.d))
        return self._rows.popleft()
