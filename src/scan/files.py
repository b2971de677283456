"""Discovery of SystemVerilog and Verilog sources in a workspace."""

from __future__ import annotations

import os
from fnmatch import fnmatch
from pathlib import Path
from typing import TYPE_CHECKING, cast

from gitignore_parser import parse_gitignore  # type: ignore[import-untyped]

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator

# Design units (.sv, .v) and include headers (.svh, .vh).
HDL_EXTENSIONS = (".sv", ".svh", ".v", ".vh")


def normalize_suffixes(extensions: Iterable[str] | None) -> frozenset[str]:
    """Lower-cased suffix set; ``None`` or empty means ``HDL_EXTENSIONS``."""
    return frozenset(suffix.lower() for suffix in (extensions or HDL_EXTENSIONS))


def is_hdl_file(path: Path, suffixes: frozenset[str]) -> bool:
    """True for a visible file whose suffix is one of ``suffixes``.

    Suffixes compare case-insensitively, so ``LEGACY.V`` counts as Verilog.
    Dot files such as editor lock files (``.#top.sv``) never do.
    """
    return not path.name.startswith(".") and path.suffix.lower() in suffixes


def _iter_candidates(
    directory: Path, output_dir: str, suffixes: frozenset[str]
) -> Iterator[Path]:
    """Walk ``directory`` without entering hidden dirs or the output dir.

    Symlinked directories are listed by ``os.walk`` but not descended into.
    """
    for current, dirnames, filenames in os.walk(directory):
        at_root = Path(current) == directory
        dirnames[:] = [
            name
            for name in dirnames
            if not name.startswith(".") and not (at_root and name == output_dir)
        ]
        for filename in filenames:
            path = Path(current) / filename
            if is_hdl_file(path, suffixes):
                yield path


def _should_include_file(
    path: Path,
    directory: Path,
    gitignore_matches: Callable[[str], bool] | None,
    include_patterns: list[str] | None,
    exclude_patterns: list[str] | None,
) -> bool:
    """Apply symlink, root, gitignore and glob rules to one candidate."""
    if not path.is_file() or path.is_symlink():
        return False

    if not _is_within_root(path, directory):
        return False

    rel_path_str = path.relative_to(directory).as_posix()

    if gitignore_matches is not None and gitignore_matches(str(path)):
        return False

    if include_patterns and not any(
        fnmatch(rel_path_str, pat) for pat in include_patterns
    ):
        return False

    return not (
        exclude_patterns and any(fnmatch(rel_path_str, pat) for pat in exclude_patterns)
    )


def _is_within_root(path: Path, root: Path) -> bool:
    """Return True when the resolved path stays within the resolved root."""
    try:
        path.resolve().relative_to(root.resolve())
    except (OSError, ValueError):
        return False
    return True


def _iter_gitignore_files(root: Path) -> list[Path]:
    """Sorted ``.gitignore`` files under root, skipping symlinked ones."""
    candidates = [root / ".gitignore", *root.rglob(".gitignore")]
    unique_paths = {
        path for path in candidates if path.is_file() and not path.is_symlink()
    }
    return sorted(unique_paths, key=lambda p: p.relative_to(root).as_posix())


def _build_gitignore_matcher(
    root: Path,
    *,
    nested_gitignore: bool,
) -> Callable[[str], bool] | None:
    if not nested_gitignore:
        gitignore_path = root / ".gitignore"
        if gitignore_path.is_file():
            return cast("Callable[[str], bool]", parse_gitignore(gitignore_path))
        return None

    matchers = [parse_gitignore(path) for path in _iter_gitignore_files(root)]
    if not matchers:
        return None

    def matches(path_str: str) -> bool:
        for matcher in matchers:
            try:
                if matcher(path_str):
                    return True
            except ValueError:
                # A nested matcher raises for paths outside its directory.
                continue
        return False

    return matches


def find_hdl_files(
    directory: Path,
    *,
    extensions: list[str] | None = None,
    output_dir: str = ".svindex",
    include_patterns: list[str] | None = None,
    exclude_patterns: list[str] | None = None,
    nested_gitignore: bool = False,
) -> Iterator[Path]:
    """Find all HDL source files in a directory, respecting .gitignore.

    Args:
        directory: Workspace root to search
        extensions: File suffixes to accept (default: ``HDL_EXTENSIONS``)
        output_dir: Top-level directory name to skip (default ".svindex")
        include_patterns: Optional list of fnmatch patterns; if provided,
            files must match at least one pattern to be included
        exclude_patterns: Optional list of fnmatch patterns; files matching
            any pattern are excluded
        nested_gitignore: Compose every ``.gitignore`` under the root
            instead of reading the root one only

    Yields:
        Path objects for each HDL file found, sorted lexicographically
        by relative path for deterministic ordering.
    """
    suffixes = normalize_suffixes(extensions)
    gitignore_matches = _build_gitignore_matcher(
        directory,
        nested_gitignore=nested_gitignore,
    )

    matched_files = [
        path
        for path in _iter_candidates(directory, output_dir, suffixes)
        if _should_include_file(
            path,
            directory,
            gitignore_matches,
            include_patterns,
            exclude_patterns,
        )
    ]

    matched_files.sort(key=lambda p: p.relative_to(directory).as_posix())

    yield from matched_files


__all__ = ["HDL_EXTENSIONS", "find_hdl_files", "is_hdl_file", "normalize_suffixes"]
