import pytest

from vegasmc.grid import MAXGRIDS, NBINS, GridStore, initial_grid, refine_grid


def test_initial_grid_shape_and_edges():
    grid = initial_grid(3)
    assert len(grid) == 3
    for axis in grid:
        assert len(axis) == NBINS
        assert axis[0] == pytest.approx(1 / NBINS)
        assert axis[-1] == 1.0


def test_initial_grid_axes_are_independent():
    grid = initial_grid(2)
    grid[0][0] = 0.9
    assert grid[1][0] == pytest.approx(1 / NBINS)


def test_refine_zero_sums_returns_unchanged():
    axis = initial_grid(1)[0]
    assert refine_grid(axis, [0.0] * NBINS, False) == axis


def test_refine_uniform_sums_keeps_uniform_grid():
    axis = initial_grid(1)[0]
    refined = refine_grid(axis, [1.0] * NBINS, False)
    assert refined == pytest.approx(axis, abs=1e-9)


@pytest.mark.parametrize("sharp", [False, True])
def test_refined_grid_is_monotone_and_ends_at_one(sharp):
    axis = initial_grid(1)[0]
    margsum = [float(b * b) for b in range(NBINS)]
    refined = refine_grid(axis, margsum, sharp)
    assert len(refined) == NBINS
    assert refined[-1] == 1.0
    assert refined[0] > 0
    assert all(a <= b + 1e-12 for a, b in zip(refined, refined[1:]))


def test_refine_moves_bins_towards_importance():
    axis = initial_grid(1)[0]
    margsum = [0.0] * (NBINS // 2) + [1.0] * (NBINS // 2)
    refined = refine_grid(axis, margsum, False)
    assert refined[NBINS // 2 - 1] > 0.5


def test_refine_does_not_mutate_inputs():
    axis = initial_grid(1)[0]
    margsum = [float(b) for b in range(NBINS)]
    axis_copy, margsum_copy = list(axis), list(margsum)
    refine_grid(axis, margsum, False)
    assert axis == axis_copy
    assert margsum == margsum_copy


def test_refine_rejects_wrong_size():
    with pytest.raises(ValueError):
        refine_grid([0.5, 1.0], [1.0, 1.0], False)


def test_store_returns_fresh_grid_when_empty():
    assert GridStore().get(1, 2) == initial_grid(2)


def test_store_round_trip():
    store = GridStore()
    grid = initial_grid(2)
    grid[0][0] = 0.001
    store.put(3, grid)
    assert store.get(3, 2) == grid


def test_store_returns_copy():
    store = GridStore()
    grid = initial_grid(1)
    store.put(1, grid)
    fetched = store.get(1, 1)
    fetched[0][0] = 0.5
    assert store.get(1, 1)[0][0] == pytest.approx(1 / NBINS)


def test_store_dimension_mismatch_gives_fresh_grid():
    store = GridStore()
    grid = initial_grid(2)
    grid[0][0] = 0.001
    store.put(1, grid)
    assert store.get(1, 3) == initial_grid(3)
    assert store.get(1, 2) == initial_grid(2)


def test_store_negative_gridno_discards():
    store = GridStore()
    grid = initial_grid(1)
    grid[0][0] = 0.001
    store.put(2, grid)
    assert store.get(-2, 1) == initial_grid(1)
    assert store.get(2, 1) == initial_grid(1)


@pytest.mark.parametrize("gridno", [0, MAXGRIDS + 1])
def test_store_ignores_out_of_range_slots(gridno):
    store = GridStore()
    grid = initial_grid(1)
    grid[0][0] = 0.001
    store.put(gridno, grid)
    assert store.get(gridno, 1) == initial_grid(1)