"""Vegas Monte Carlo integration over the unit hypercube."""

from __future__ import annotations

import json
import math
import os
import random
import warnings
from dataclasses import asdict, dataclass, field
from typing import Any, Callable

from scipy.stats import chi2, qmc

from .grid import NBINS, Grid, GridStore, refine_grid

MAXDIM = 1024
MAXCOMP = 1024
SOBOL_MINDIM = 1
SOBOL_MAXDIM = 40
NOTZERO = 2.0 ** -104

VERBOSE_MASK = 3
LAST = 4
SHARP_EDGES = 8
KEEP_STATE = 16
ZAP_STATE = 32

_default_store = GridStore()


@dataclass
class Cumulants:
    """Running sums for one integrand component."""

    sum: float = 0.0
    sqsum: float = 0.0
    weightsum: float = 0.0
    avgsum: float = 0.0
    chisum: float = 0.0
    chisqsum: float = 0.0
    guess: float = 0.0
    avg: float = 0.0
    err: float = 0.0
    chisq: float = 0.0


@dataclass(frozen=True)
class VegasResult:
    """Outcome of an integration."""

    integral: tuple[float, ...]
    error: tuple[float, ...]
    prob: tuple[float, ...]
    neval: int
    fail: int

    @property
    def converged(self) -> bool:
        return self.fail == 0


@dataclass
class _State:
    niter: int = 0
    nsamples: int = 0
    neval: int = 0
    cumul: list[Cumulants] = field(default_factory=list)
    grid: Grid = field(default_factory=list)


def chi_square_probability(chisq: float, df: int) -> float:
    """Probability that a chi-square variable with df degrees of freedom stays below chisq."""
    if df < 1 or chisq <= 0:
        return 0.0
    return float(chi2.cdf(chisq, df))


class _RandomSource:
    def __init__(self, ndim: int, seed: int) -> None:
        self._ndim = ndim
        self._sobol = qmc.Sobol(d=ndim, scramble=False) if seed == 0 else None
        self._rng = random.Random(seed)

    def points(self, n: int) -> list[list[float]]:
        if self._sobol is not None:
            with warnings.catch_warnings():
                warnings.simplefilter("ignore", UserWarning)
                return self._sobol.random(n).tolist()
        return [[self._rng.random() for _ in range(self._ndim)] for _ in range(n)]

    def skip(self, n: int) -> None:
        if self._sobol is not None:
            self._sobol.fast_forward(n)
        else:
            for _ in range(n * self._ndim):
                self._rng.random()


def _weight(total: float, sqsum: float, n: int) -> float:
    w = math.sqrt(sqsum * n)
    return (n - 1) / max((w + total) * (w - total), NOTZERO)


def _components(value: Any, ncomp: int) -> list[float]:
    if isinstance(value, (int, float)):
        values = [float(value)]
    else:
        values = [float(v) for v in value]
    if len(values) != ncomp:
        raise ValueError(f"integrand returned {len(values)} components, expected {ncomp}")
    return values


def _evaluate(integrand, points, ncomp, nvec, userdata):
    extra = () if userdata is None else (userdata,)
    values: list[list[float]] = []
    for start in range(0, len(points), nvec):
        chunk = points[start:start + nvec]
        if nvec == 1:
            results = [integrand(chunk[0], *extra)]
        else:
            results = list(integrand(chunk, *extra))
            if len(results) != len(chunk):
                raise ValueError("vectorized integrand returned the wrong number of points")
        values.extend(_components(r, ncomp) for r in results)
    return values


def _signature(ndim: int, ncomp: int) -> dict[str, Any]:
    return {"routine": "vegas", "ndim": ndim, "ncomp": ncomp}


def _read_state(path: str, signature: dict[str, Any]) -> _State | None:
    try:
        with open(path, encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, ValueError):
        return None
    if not isinstance(data, dict) or data.get("signature") != signature:
        return None
    try:
        return _State(
            niter=int(data["niter"]),
            nsamples=int(data["nsamples"]),
            neval=int(data["neval"]),
            cumul=[Cumulants(**c) for c in data["cumul"]],
            grid=[[float(v) for v in axis] for axis in data["grid"]],
        )
    except (KeyError, TypeError, ValueError):
        return None


def _write_state(path: str, signature: dict[str, Any], state: _State) -> None:
    data = {
        "signature": signature,
        "niter": state.niter,
        "nsamples": state.nsamples,
        "neval": state.neval,
        "cumul": [asdict(c) for c in state.cumul],
        "grid": state.grid,
    }
    tmp = f"{path}.tmp"
    with open(tmp, "w", encoding="utf-8") as fh:
        json.dump(data, fh)
    os.replace(tmp, path)


def _check(ndim: int, ncomp: int, seed: int, nvec: int, nstart: int, nbatch: int) -> None:
    if ncomp > MAXCOMP or ncomp < 1:
        raise ValueError(f"invalid number of components: {ncomp}")
    if ndim > MAXDIM or ndim < SOBOL_MINDIM or (seed == 0 and ndim > SOBOL_MAXDIM):
        raise ValueError(f"invalid number of dimensions: {ndim}")
    if nvec < 1 or nstart < 1 or nbatch < 1:
        raise ValueError("nvec, nstart and nbatch must be positive")


def vegas(
    integrand: Callable[..., Any],
    ndim: int,
    ncomp: int = 1,
    *,
    userdata: Any = None,
    nvec: int = 1,
    epsrel: float = 1e-3,
    epsabs: float = 1e-12,
    flags: int = 0,
    seed: int = 0,
    mineval: int = 0,
    maxeval: int = 50000,
    nstart: int = 1000,
    nincrease: int = 500,
    nbatch: int = 1000,
    gridno: int = 0,
    statefile: str | os.PathLike | None = None,
    store: GridStore | None = None,
) -> VegasResult:
    """Integrate an ncomp-valued function over the ndim-dimensional unit hypercube.

    The integrand gets a point (a list of ndim floats), plus userdata if given, and
    returns ncomp values.  With nvec > 1 it gets a list of up to nvec points and
    returns one value vector per point.  seed 0 selects a Sobol sequence, any other
    seed a Mersenne Twister generator.
    """
    verbose = flags & VERBOSE_MASK
    statepath = os.fspath(statefile) if statefile else ""
    store = _default_store if store is None else store

    if verbose > 1:
        print(
            "Vegas input parameters:\n"
            f"  ndim {ndim}\n  ncomp {ncomp}\n  nvec {nvec}\n"
            f"  epsrel {epsrel:g}\n  epsabs {epsabs:g}\n"
            f"  flags {flags}\n  seed {seed}\n"
            f"  mineval {mineval}\n  maxeval {maxeval}\n"
            f"  nstart {nstart}\n  nincrease {nincrease}\n"
            f"  nbatch {nbatch}\n  gridno {gridno}\n"
            f'  statefile "{statepath}"',
            flush=True,
        )

    _check(ndim, ncomp, seed, nvec, nstart, nbatch)

    rng = _RandomSource(ndim, seed)
    signature = _signature(ndim, ncomp)
    state = _read_state(statepath, signature) if statepath else None
    ini = state is None
    neval = 0
    if state is not None:
        neval = state.neval
        rng.skip(neval)
    else:
        state = _State()

    if ini or flags & ZAP_STATE:
        neval = 0
        state.niter = 0
        state.nsamples = nstart
        state.cumul = [Cumulants() for _ in range(ncomp)]
        if ini:
            state.grid = store.get(gridno, ndim)

    fail = 0
    try:
        while True:
            jacobian = 1.0 / state.nsamples
            margsum = [[[0.0] * NBINS for _ in range(ndim)] for _ in range(ncomp)]
            remaining = state.nsamples

            while remaining > 0:
                n = min(nbatch, remaining)
                xs, weights, bins = [], [], []
                for point in rng.points(n):
                    weight = jacobian
                    mapped, pbins = [], []
                    for u, axis in zip(point, state.grid):
                        pos = u * NBINS
                        ipos = min(int(pos), NBINS - 1)
                        prev = axis[ipos - 1] if ipos else 0.0
                        diff = axis[ipos] - prev
                        mapped.append(prev + (pos - ipos) * diff)
                        pbins.append(ipos)
                        weight *= diff * NBINS
                    xs.append(mapped)
                    weights.append(weight)
                    bins.append(pbins)

                values = _evaluate(integrand, xs, ncomp, nvec, userdata)
                neval += n

                for weight, pbins, fvals in zip(weights, bins, values):
                    for c, f, marg in zip(state.cumul, fvals, margsum):
                        wfun = weight * f
                        if wfun:
                            c.sum += wfun
                            wfun *= wfun
                            c.sqsum += wfun
                            for axis_sum, b in zip(marg, pbins):
                                axis_sum[b] += wfun
                remaining -= nbatch

            fail = 0
            for c in state.cumul:
                w = _weight(c.sum, c.sqsum, state.nsamples)
                c.weightsum += w
                sigsq = 1 / c.weightsum
                c.avgsum += w * c.sum
                avg = sigsq * c.avgsum
                if flags & LAST:
                    sigsq = 1 / w
                    c.avg = c.sum
                else:
                    c.avg = avg
                c.err = math.sqrt(sigsq)
                if c.err > max(epsrel * abs(c.avg), epsabs):
                    fail = 1
                if state.niter == 0:
                    c.guess = c.sum
                else:
                    w *= c.sum - c.guess
                    c.chisum += w
                    c.chisqsum += w * c.sum
                c.chisq = c.chisqsum - avg * c.chisum
                c.sum = c.sqsum = 0.0

            if verbose:
                lines = [
                    f"\nIteration {state.niter + 1}:  {neval} integrand evaluations so far"
                ]
                lines += [
                    f"[{comp}] {c.avg:g} +- {c.err:g}  \tchisq {c.chisq:g} ({state.niter} df)"
                    for comp, c in enumerate(state.cumul, start=1)
                ]
                print("\n".join(lines), flush=True)

            if fail == 0 and neval >= mineval:
                break
            if neval >= maxeval and not statepath:
                break

            sharp = bool(flags & SHARP_EDGES)
            if ncomp == 1:
                state.grid = [
                    refine_grid(axis, m, sharp) for axis, m in zip(state.grid, margsum[0])
                ]
            else:
                new_grid = []
                for dim, axis in enumerate(state.grid):
                    wmargsum = [0.0] * NBINS
                    for c, marg in zip(state.cumul, margsum):
                        if c.avg != 0:
                            w = 1 / c.avg ** 2
                            wmargsum = [s + w * v for s, v in zip(wmargsum, marg[dim])]
                    new_grid.append(refine_grid(axis, wmargsum, sharp))
                state.grid = new_grid

            state.niter += 1
            state.nsamples += nincrease

            if statepath:
                state.neval = neval
                _write_state(statepath, signature, state)
                if neval >= maxeval:
                    break
    finally:
        store.put(gridno, state.grid)

    if statepath and fail == 0 and not flags & KEEP_STATE:
        try:
            os.remove(statepath)
        except FileNotFoundError:
            pass

    return VegasResult(
        integral=tuple(c.avg for c in state.cumul),
        error=tuple(c.err for c in state.cumul),
        prob=tuple(chi_square_probability(c.chisq, state.niter) for c in state.cumul),
        neval=neval,
        fail=fail,
    )