"""Viewer for the partitions of the unit hypercube that adaptive integrators print.

The verbose output of an integrator (verbose level 3) lists each region as one line
per dimension of the form ``(lower) - (upper)``.  The viewer reads these lines and
draws the projection of the regions onto chosen planes of two dimensions.
"""

from __future__ import annotations

import argparse
import colorsys
import math
import re
import sys
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO

COORD_SCALE = 1600
HUE = 0.0

_NUMBER = r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?|[-+]?(?:inf(?:inity)?|nan)"
_BOUND_RE = re.compile(
    rf"[^(]+\(\s*({_NUMBER})\)\s*-\s*\(\s*({_NUMBER})", re.IGNORECASE
)
_INT_RE = re.compile(r"\s*([-+]?\d+)")

_USAGE = (
    "Usage:  {prog} dimx dimy ...\n"
    "reads the verbose = 3 output of an integration from stdin and displays\n"
    "the dimx-dimy plane of the tessellation on screen.\n"
    "Each pair of dimensions is shown in a separate window.\n"
)


def parse_bound(line: str) -> tuple[float, float] | None:
    """Return (lower, upper) if the line describes the bounds of one dimension."""
    match = _BOUND_RE.match(line)
    if match is None:
        return None
    return float(match.group(1)), float(match.group(2))


@dataclass(frozen=True)
class Region:
    """A rectangle in plane coordinates (0..COORD_SCALE, y pointing down)."""

    x: int
    y: int
    width: int
    height: int

    @property
    def area(self) -> int:
        return self.width * self.height


@dataclass
class PartitionPlane:
    """The regions seen in the plane spanned by two dimensions, largest first."""

    dimx: int
    dimy: int
    regions: list[Region] = field(default_factory=list)
    _got: int = field(default=0, repr=False)
    _xbounds: tuple[int, int] = field(default=(0, 0), repr=False)
    _ybounds: tuple[int, int] = field(default=(0, 0), repr=False)

    def add_bound(self, dim: int, lower: float, upper: float) -> Region | None:
        """Record the bounds of one dimension.

        Once both dimensions of the plane are known, the region is added and
        returned; duplicates are ignored and give None.
        """
        if dim == self.dimx:
            self._xbounds = (int(COORD_SCALE * lower), int(COORD_SCALE * upper))
            self._got |= 1
        if dim == self.dimy:
            self._ybounds = (int(COORD_SCALE * lower), int(COORD_SCALE * upper))
            self._got |= 2

        if self._got != 3:
            return None
        self._got = 0

        xlower, xupper = self._xbounds
        ylower, yupper = self._ybounds
        rect = Region(
            xlower, COORD_SCALE - yupper, xupper - xlower + 1, yupper - ylower + 1
        )

        position = len(self.regions)
        for index, existing in enumerate(self.regions):
            if existing == rect:
                return None
            if rect.area > existing.area:
                position = index
                break
        self.regions.insert(position, rect)
        return rect

    def saturation(self, region: Region) -> int:
        """Colour saturation (0..255) of a region: small regions are more saturated."""
        ratio = region.area / float(COORD_SCALE * COORD_SCALE)
        arg = min(1.0, max(-1.0, 1 - ratio))
        return int(255 / (math.pi / 2) * math.asin(arg))

    def filename(self) -> str:
        return f"{self.dimx}-{self.dimy}.ps"

    def draw(self, ax) -> None:
        """Draw all regions onto a matplotlib Axes."""
        from matplotlib.patches import Rectangle

        ax.set_xlim(0, COORD_SCALE)
        ax.set_ylim(COORD_SCALE, 0)
        ax.set_aspect("equal")
        ax.set_title(f"{self.dimx}-{self.dimy} plane")
        for region in self.regions:
            colour = colorsys.hsv_to_rgb(HUE, self.saturation(region) / 255, 1.0)
            ax.add_patch(
                Rectangle(
                    (region.x, region.y),
                    region.width,
                    region.height,
                    facecolor=colour,
                    edgecolor="black",
                    linewidth=0.5,
                )
            )


class PartitionViewer:
    """A collection of planes fed from the same stream of region bounds."""

    def __init__(self) -> None:
        self.planes: list[PartitionPlane] = []

    def __len__(self) -> int:
        return len(self.planes)

    def add_plane(self, dimx: int, dimy: int) -> PartitionPlane:
        plane = PartitionPlane(dimx, dimy)
        self.planes.append(plane)
        return plane

    def add_bound(self, dim: int, lower: float, upper: float) -> None:
        for plane in self.planes:
            plane.add_bound(dim, lower, upper)

    def feed(self, lines: Iterable[str], echo: TextIO | None = None) -> None:
        """Read region bounds from lines; any other line starts a new region."""
        dim = 0
        for line in lines:
            if echo is not None:
                echo.write(line)
            bound = parse_bound(line)
            if bound is None:
                dim = 0
            else:
                dim += 1
                self.add_bound(dim, *bound)
        if echo is not None:
            echo.flush()

    def save(self, directory: str | Path = ".") -> list[Path]:
        """Write each plane to a PostScript file in directory; return the paths."""
        from matplotlib.figure import Figure

        directory = Path(directory)
        paths = []
        for plane in self.planes:
            fig = Figure(figsize=(4, 4))
            plane.draw(fig.add_subplot())
            path = directory / plane.filename()
            fig.savefig(path)
            paths.append(path)
        return paths

    def show(self) -> None:
        import matplotlib.pyplot as plt

        for plane in self.planes:
            fig, ax = plt.subplots(figsize=(4, 4))
            fig.canvas.manager.set_window_title("Partition Viewer")
            plane.draw(ax)
        plt.show()


def _atoi(text: str) -> int:
    match = _INT_RE.match(text)
    return int(match.group(1)) if match else 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="partview", add_help=True)
    parser.add_argument("dims", nargs="*")
    parser.add_argument("-o", "--output", help="save the planes to this directory")
    args = parser.parse_args(argv)

    viewer = PartitionViewer()
    dims = args.dims[: len(args.dims) & -2]
    for sx, sy in zip(dims[::2], dims[1::2]):
        dimx, dimy = _atoi(sx), _atoi(sy)
        if dimx > 0 and dimy > 0:
            viewer.add_plane(dimx, dimy)

    if not viewer.planes:
        sys.stderr.write(_USAGE.format(prog=parser.prog) + "\n")
        return 1

    viewer.feed(sys.stdin, echo=sys.stdout)

    if args.output:
        viewer.save(args.output)
    else:
        viewer.show()
    return 0


if __name__ == "__main__":
    sys.exit(main())