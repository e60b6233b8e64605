import math
import os

import pytest

from vegasmc.grid import GridStore
from vegasmc.integrate import (
    KEEP_STATE,
    LAST,
    Cumulants,
    VegasResult,
    chi_square_probability,
    vegas,
)


def product(x):
    return [x[0] * x[1]]


def test_chi_square_degenerate_cases():
    assert chi_square_probability(3.0, 0) == 0.0
    assert chi_square_probability(0.0, 4) == 0.0


def test_chi_square_two_degrees_median():
    assert chi_square_probability(2 * math.log(2), 2) == pytest.approx(0.5)


def test_chi_square_is_increasing_and_bounded():
    values = [chi_square_probability(x, 3) for x in (0.5, 1.0, 3.0, 10.0, 50.0)]
    assert all(a < b for a, b in zip(values, values[1:]))
    assert all(0.0 <= v <= 1.0 for v in values)


def test_cumulants_start_at_zero():
    c = Cumulants()
    assert (c.sum, c.avg, c.err) == (0.0, 0.0, 0.0)


def test_constant_integrand_with_userdata():
    result = vegas(lambda x, k: [k], 2, 1, userdata=3.0, store=GridStore())
    assert isinstance(result, VegasResult)
    assert result.integral[0] == pytest.approx(3.0)
    assert result.fail == 0
    assert result.converged
    assert result.neval == 1000


@pytest.mark.parametrize("seed", [0, 7])
def test_product_integral(seed):
    result = vegas(product, 2, 1, seed=seed, epsrel=1e-2, store=GridStore())
    assert result.fail == 0
    assert result.integral[0] == pytest.approx(0.25, rel=0.02)
    assert result.error[0] > 0
    assert 0.0 <= result.prob[0] <= 1.0


def test_two_components_scale():
    result = vegas(
        lambda x: [x[0] * x[1], 2 * x[0] * x[1]], 2, 2, epsrel=1e-2, store=GridStore()
    )
    assert len(result.integral) == 2
    assert result.integral[1] == pytest.approx(2 * result.integral[0], rel=1e-9)


def test_same_seed_is_reproducible():
    a = vegas(product, 2, seed=11, store=GridStore())
    b = vegas(product, 2, seed=11, store=GridStore())
    assert a == b


def test_vectorized_integrand_matches_scalar():
    scalar = vegas(product, 2, seed=3, store=GridStore())
    vector = vegas(
        lambda pts: [[p[0] * p[1]] for p in pts], 2, nvec=64, seed=3, store=GridStore()
    )
    assert vector.integral == pytest.approx(scalar.integral)
    assert vector.neval == scalar.neval


def test_maxeval_limits_work():
    result = vegas(product, 2, epsrel=1e-12, epsabs=0.0, maxeval=500, store=GridStore())
    assert result.fail == 1
    assert result.neval == 1000


def test_last_flag_still_estimates():
    result = vegas(product, 2, flags=LAST, epsrel=1e-2, store=GridStore())
    assert result.integral[0] == pytest.approx(0.25, rel=0.05)
    assert result.error[0] > 0


@pytest.mark.parametrize(
    "ndim, ncomp, seed",
    [(2, 0, 0), (0, 1, 0), (41, 1, 0), (2, 1025, 1)],
)
def test_bad_arguments_raise(ndim, ncomp, seed):
    with pytest.raises(ValueError):
        vegas(lambda x: [0.0] * max(ncomp, 1), ndim, ncomp, seed=seed, store=GridStore())


def test_wrong_component_count_raises():
    with pytest.raises(ValueError):
        vegas(lambda x: [1.0, 2.0], 2, 1, store=GridStore())


def test_integrand_exception_propagates():
    def broken(x):
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        vegas(broken, 2, store=GridStore())


def test_grid_is_kept_in_store():
    store = GridStore()
    vegas(lambda x: [x[0] ** 4], 1, epsrel=1e-12, epsabs=0.0, maxeval=3000,
          gridno=1, store=store)
    grid = store.get(1, 1)
    assert grid[0][63] > 0.5


def test_state_file_resumes(tmp_path):
    path = tmp_path / "vegas.state"
    first = vegas(product, 2, epsrel=1e-12, epsabs=0.0, maxeval=2000,
                  statefile=path, store=GridStore())
    assert first.fail == 1
    assert os.path.exists(path)
    second = vegas(product, 2, epsrel=1e-12, epsabs=0.0, maxeval=4000,
                   statefile=path, store=GridStore())
    assert second.neval > first.neval


def test_state_file_removed_on_success(tmp_path):
    path = tmp_path / "done.state"
    result = vegas(lambda x: [1.0], 2, statefile=path, store=GridStore())
    assert result.fail == 0
    assert not os.path.exists(path)


def test_state_file_kept_with_flag(tmp_path):
    path = tmp_path / "keep.state"
    result = vegas(product, 2, epsrel=1e-12, epsabs=0.0, maxeval=1000,
                   flags=KEEP_STATE, statefile=path, store=GridStore())
    assert result.fail == 1
    assert os.path.exists(path)


def test_verbose_output(capsys):
    vegas(product, 2, flags=2, epsrel=1e-2, store=GridStore())
    out = capsys.readouterr().out
    assert "Vegas input parameters" in out
    assert "Iteration 1:" in out