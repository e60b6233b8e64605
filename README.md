# vegasmc

Adaptive Monte Carlo integration with the Vegas algorithm over the unit
hypercube, plus two small command-line tools: a viewer for region partitions
printed by verbose integration runs, and a packer for source tarballs.

## Installation

```
pip install vegasmc
```

## Integrating

`vegasmc.integrate.vegas` integrates a function with `ncomp` components over
`[0, 1]^ndim`. The integrand receives a point (a list of `ndim` floats), plus
`userdata` if one is given, and returns `ncomp` values (a plain number is
accepted when `ncomp` is 1). With `nvec > 1` it receives a list of up to
`nvec` points and returns one value vector per point.

```python
from vegasmc.integrate import vegas

def integrand(x):
    return [x[0] * x[1], x[0] + x[1]]

result = vegas(integrand, ndim=2, ncomp=2, epsrel=1e-3, maxeval=50000)
print(result.integral, result.error, result.prob, result.neval, result.fail)
```

The returned `VegasResult` holds, per component, the estimate, its error and
the chi-square probability of the iteration results, together with the number
of integrand evaluations and a failure flag, `fail`, which is `0` when the
requested accuracy was reached (`result.converged` says the same).

Keyword arguments and their defaults: `epsrel=1e-3`, `epsabs=1e-12`,
`flags=0`, `seed=0`, `mineval=0`, `maxeval=50000`, `nstart=1000`,
`nincrease=500`, `nbatch=1000`, `gridno=0`, `statefile=None`, `store=None`.

- `seed=0` draws points from a Sobol sequence (at most 40 dimensions); any
  other seed uses a seeded Mersenne Twister generator.
- `flags` combines the constants in `vegasmc.integrate`: the low two bits
  (`VERBOSE_MASK`) set the verbosity printed to standard output, `LAST`
  reports only the last iteration's estimate, `SHARP_EDGES` switches off bin
  smoothing when the grid is refined, `KEEP_STATE` keeps the state file after
  a successful run, and `ZAP_STATE` restarts the sums while keeping the grid
  read from a state file.
- An invalid number of dimensions or components, or a non-positive `nvec`,
  `nstart` or `nbatch`, raises `ValueError`.

The sampling grid is refined between iterations by
`vegasmc.grid.refine_grid`. A `vegasmc.grid.GridStore` keeps up to ten grids
between calls: pass a `gridno` from 1 to 10 (and optionally your own `store`)
to start from the grid left by an earlier call; a negative `gridno` discards
the stored grid first. A `statefile` is written as JSON after each iteration,
so an interrupted run continues where it left off.

`vegasmc.integrate.chi_square_probability(chisq, df)` gives the chi-square
cumulative probability used for `prob`.

## Viewing partitions

`vegasmc-partview` reads partition output on standard input, in which each
region is given as one line per dimension of the form `(lower) - (upper)`,
echoes it to standard output, and draws the chosen planes with matplotlib,
one pair of dimensions per plane:

```
some-integration-run | vegasmc-partview 1 2 1 3
```

With `-o DIRECTORY` the planes are saved as PostScript files named
`dimx-dimy.ps` in that directory instead of being shown on screen. The same
is available from Python through `vegasmc.partview.PartitionViewer`.

## Packing a distribution

`vegasmc-mkdist` builds a tar archive that unpacks into a single directory.
Symbolic links are kept when they point inside the package; other files are
hard-linked into a temporary tree, which is archived with owner and group
`root` and then removed. The flags select compression (`z` gzip, `j` bzip2,
`J` xz) and `v` lists the archived names.

```
vegasmc-mkdist cvfz mypackage-1.0.tar.gz mypackage-1.0 README src
```

From Python, call `vegasmc.mkdist.make_dist(tarflags, tarname, packagedir, files)`.

## What it does not do

Only the Vegas algorithm is provided; there are no other integration
routines. Sampling runs in the calling process only: integrand evaluations
are not spread over worker processes or cores.