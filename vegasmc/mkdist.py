"""Build a distribution tarball that unpacks into a single package directory.

A temporary tree is set up in which symlinks are kept if they point to files inside
the tree and all other files are hard-linked; the tree is archived with owner and
group root, and removed again.
"""

from __future__ import annotations

import os
import shutil
import sys
import tarfile
from collections.abc import Iterable
from pathlib import Path

_USAGE = (
    "Usage:\t{prog} tarflags packagename.tar[.gz] packagedir files\n\n"
    "Creates packagename.tar[.gz] for distribution which contains\n"
    '"files" and unpacks into the directory "packagedir".\n'
    "Symlinks are preserved if they point to files in the package.\n"
)


def depth(path: str) -> int:
    """Directory depth a relative path descends to; negative if it leaves its root."""
    n = 0
    while True:
        if path.startswith("./"):
            path = path[2:]
        elif path.startswith("../"):
            path = path[3:]
            n -= 1
            if n < 0:
                return n
        else:
            slash = path.find("/")
            if slash < 0:
                return n
            path = path[slash:]
            n += 1
        path = path.lstrip("/")


def _dirpart(path: str) -> str:
    slash = path.rfind("/")
    return path[: slash + 1] if slash >= 0 else ""


def _mkdirhier(target: str) -> None:
    parts = target.split("/")[:-1]
    for i in range(1, len(parts) + 1):
        prefix = "/".join(parts[:i])
        if not prefix:
            continue
        if os.path.exists(prefix):
            if not os.path.isdir(prefix):
                raise NotADirectoryError(f"Cannot create {prefix}")
        else:
            os.mkdir(prefix)


def _link(source: str, target: str) -> bool:
    try:
        os.link(source, target)
    except OSError:
        return False
    return True


def _inspect(file: str, phase: int, root: str) -> None:
    try:
        st = os.lstat(file)
    except OSError:
        print(f"Cannot stat {file}", file=sys.stderr)
        return

    target = root + file
    if phase == 0:
        _mkdirhier(target)

    if os.path.isdir(file) and not os.path.islink(file):
        try:
            names = sorted(os.listdir(file))
        except OSError as exc:
            raise NotADirectoryError(f"Cannot read directory {file}") from exc
        for name in names:
            if not name.startswith("."):
                _inspect(f"{file}/{name}", phase, root)
        return

    if os.path.islink(file):
        try:
            lnrel = os.readlink(file)
        except OSError as exc:
            raise OSError(f"Cannot read link {file}") from exc
        src = _dirpart(file) + lnrel

        if not lnrel.startswith("/") and depth(src) >= 0:
            if phase == 0:
                return
            if os.path.exists(_dirpart(target) + lnrel):
                os.symlink(lnrel, target)
                return
            lnabs = src
        else:
            if phase == 1:
                return
            lnabs = lnrel if lnrel.startswith("/") else src

        resolved = os.path.realpath(lnabs)
        if not os.path.exists(resolved) or not _link(resolved, target):
            print(f"Dangling link {file}", file=sys.stderr)
        return

    if phase == 0 and st.st_mode:
        _link(file, target)


def _compression(tarflags: str) -> str:
    if "z" in tarflags:
        return "gz"
    if "j" in tarflags:
        return "bz2"
    if "J" in tarflags:
        return "xz"
    return ""


def _as_root(info: tarfile.TarInfo) -> tarfile.TarInfo:
    info.uid = info.gid = 0
    info.uname = info.gname = "root"
    return info


def make_dist(
    tarflags: str, tarname: str | os.PathLike, packagedir: str, files: Iterable[str]
) -> Path:
    """Create the tarball tarname holding files under packagedir; return its path.

    File names are taken relative to the current directory.
    """
    tarname = os.fspath(tarname)
    if ".tar" not in tarname:
        raise ValueError(f"{tarname} is not a tar file")
    if os.path.exists(packagedir):
        raise FileExistsError(f"{packagedir} exists already")

    files = list(files)
    if os.path.isdir(tarname):
        shutil.rmtree(tarname)
    elif os.path.lexists(tarname):
        os.remove(tarname)

    root = packagedir + "/"
    verbose = "v" in tarflags
    try:
        for phase in (0, 1):
            for file in files:
                _inspect(file, phase, root)

        def _filter(info: tarfile.TarInfo) -> tarfile.TarInfo:
            if verbose:
                print(info.name + ("/" if info.isdir() else ""))
            return _as_root(info)

        mode = "w:" + _compression(tarflags)
        with tarfile.open(tarname, mode) as tar:
            tar.add(packagedir, arcname=packagedir.strip("/"), filter=_filter)
    finally:
        shutil.rmtree(packagedir, ignore_errors=True)
    return Path(tarname)


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) < 4:
        sys.stderr.write(_USAGE.format(prog="mkdist") + "\n")
        return 1
    tarflags, tarname, packagedir, *files = args
    try:
        make_dist(tarflags, tarname, packagedir, files)
    except (OSError, ValueError) as exc:
        print(exc, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())