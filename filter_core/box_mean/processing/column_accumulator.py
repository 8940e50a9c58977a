from __future__ import annotations

from typing import List

from filter_core.box_mean.processing.row_sums import RowBand, RowWindowSums


class ColumnAccumulator:
    """2-D window sums for one output row at a time, rolled down the image."""

    @staticmethod
    def first_row(band: RowBand, columns: int) -> List[int]:
        """Direct sum of each column across every row in the band, O(d) per column."""
        sums = [0] * columns
        for row_sums in band:
            for k in range(columns):
                sums[k] += row_sums[k]
        return sums

    @staticmethod
    def next_row(previous: List[int], newest: RowWindowSums, evicted: RowWindowSums, columns: int) -> List[int]:
        """
        Roll ``previous`` down by one source row.

        ``newest`` arrives holding only its first horizontal sum. Column ``k``
        reads ``newest[k]`` and only then extends the row to ``k + 1``, so the
        horizontal and vertical windows advance in lockstep.
        """
        sums = [0] * columns
        for k in range(columns):
            sums[k] = previous[k] + newest[k] - evicted[k]
            if k + 1 < columns:
                newest.extend()
        return sums
