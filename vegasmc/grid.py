"""Importance-sampling grid used by the Vegas integrator."""

from __future__ import annotations

import math
from collections.abc import Sequence

NBINS = 128
MAXGRIDS = 10

Grid = list[list[float]]


def initial_grid(ndim: int) -> Grid:
    """Return an equidistant grid: one list of NBINS upper bin edges per dimension."""
    axis = [(b + 1) / NBINS for b in range(NBINS)]
    return [list(axis) for _ in range(ndim)]


def _importance(r: float) -> float:
    if r == 1.0:
        return 1.0
    return ((r - 1) / math.log(r)) ** 1.5


def refine_grid(
    grid: Sequence[float], margsum: Sequence[float], sharp_edges: bool = False
) -> list[float]:
    """Return a new axis of bin edges adapted to the marginal f^2 sums.

    The inputs are left untouched.  If all sums vanish the axis is returned unchanged.
    """
    if len(grid) != NBINS or len(margsum) != NBINS:
        raise ValueError(f"grid and margsum must have {NBINS} bins")

    m = list(margsum)
    smoothed = [0.5 * (m[0] + m[1])]
    smoothed += [(a + b + c) / 3.0 for a, b, c in zip(m, m[1:], m[2:])]
    smoothed.append(0.5 * (m[-2] + m[-1]))

    norm = sum(smoothed)
    if norm == 0:
        return list(grid)
    norm = 1 / norm

    imp = [_importance(s * norm) if s > 0 else 0.0 for s in smoothed]
    avgperbin = sum(imp) / NBINS

    new_grid: list[float] = []
    prev = cur = newcur = 0.0
    thisbin = 0.0
    b = -1
    for _ in range(NBINS - 1):
        while thisbin < avgperbin and b < NBINS - 1:
            b += 1
            thisbin += imp[b]
            prev = cur
            cur = grid[b]
        thisbin -= avgperbin
        delta = (cur - prev) * thisbin
        if sharp_edges:
            new_grid.append(cur - delta / imp[b])
        else:
            newcur = max(newcur, cur - 2 * delta / (imp[b] + imp[max(b - 1, 0)]))
            new_grid.append(newcur)
    new_grid.append(1.0)
    return new_grid


class GridStore:
    """Keeps up to MAXGRIDS grids between integrations, addressed by grid number."""

    def __init__(self) -> None:
        self._grids: dict[int, Grid] = {}

    @staticmethod
    def _slot(gridno: int) -> int | None:
        slot = abs(gridno) - 1
        return slot if 0 <= slot < MAXGRIDS else None

    def get(self, gridno: int, ndim: int) -> Grid:
        """Return a copy of the stored grid, or a fresh one.

        A negative grid number discards what is stored in that slot.
        """
        slot = self._slot(gridno)
        if slot is not None:
            stored = self._grids.get(slot)
            if stored is not None and gridno > 0 and len(stored) == ndim:
                return [list(axis) for axis in stored]
            self._grids.pop(slot, None)
        return initial_grid(ndim)

    def put(self, gridno: int, grid: Sequence[Sequence[float]]) -> None:
        """Store a copy of the grid if the grid number addresses a slot."""
        slot = self._slot(gridno)
        if slot is not None:
            self._grids[slot] = [list(axis) for axis in grid]