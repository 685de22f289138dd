"""Filesystem utilities for sitekit."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Iterable, Iterator, Union

PathLike = Union[str, Path]

MIN_MARKER = ".min"


def ensure_dir(path: PathLike) -> Path:
    """Ensure that a directory exists and return the Path object."""

    directory = Path(path)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def write_text(path: PathLike, content: str, *, encoding: str = "utf-8") -> Path:
    """Write text content to a file, creating parent directories as needed."""

    file_path = Path(path)
    if file_path.parent != Path(""):
        file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(content, encoding=encoding)
    return file_path


def write_bytes(path: PathLike, content: bytes) -> Path:
    """Write binary content to a file, creating parent directories as needed."""

    file_path = Path(path)
    if file_path.parent != Path(""):
        file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_bytes(content)
    return file_path


def copy_file(source: Path, target: Path) -> Path:
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(source, target)
    return target


def copy_tree(source: Path, destination: Path) -> list[Path]:
    """Copy every file under ``source`` into ``destination``, overwriting."""

    copied: list[Path] = []
    for path in sorted(source.rglob("*")):
        if path.is_dir():
            continue
        copied.append(copy_file(path, destination / path.relative_to(source)))
    return copied


def is_minified_name(name: str) -> bool:
    """Return True for names such as ``app.min.css``."""

    stem, dot, _ = name.rpartition(".")
    return bool(dot) and stem.endswith(MIN_MARKER)


def min_name(name: str) -> str:
    """Insert the ``.min`` marker before the final extension.

    Works on bare names and on relative POSIX paths (``data/x.json`` becomes
    ``data/x.min.json``). Names without an extension get the marker appended.
    """

    directory, slash, filename = name.rpartition("/")
    stem, dot, suffix = filename.rpartition(".")
    if not dot or not stem:
        renamed = f"{filename}{MIN_MARKER}"
    else:
        renamed = f"{stem}{MIN_MARKER}.{suffix}"
    return f"{directory}{slash}{renamed}"


def iter_files(
    root: Path,
    suffix: str,
    *,
    recursive: bool = False,
    excluded_dirs: Iterable[str] = (),
) -> Iterator[Path]:
    """Yield files under ``root`` whose name ends with ``suffix``, sorted.

    Suffix matching is case-insensitive. Directories named in
    ``excluded_dirs`` are not descended into.
    """

    if not root.is_dir():
        return
    excluded = set(excluded_dirs)
    suffix = suffix.lower()
    for entry in sorted(root.iterdir(), key=lambda p: p.name):
        if entry.is_dir():
            if recursive and entry.name not in excluded:
                yield from iter_files(entry, suffix, recursive=True, excluded_dirs=excluded)
        elif entry.is_file() and entry.name.lower().endswith(suffix):
            yield entry


def relative_posix(path: Path, root: Path) -> str:
    return path.relative_to(root).as_posix()


__all__ = [
    "MIN_MARKER",
    "PathLike",
    "copy_file",
    "copy_tree",
    "ensure_dir",
    "is_minified_name",
    "iter_files",
    "min_name",
    "relative_posix",
    "write_bytes",
    "write_text",
]
