"""Command-line interface for sv-index."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from artifacts.write import definition_record, dumps, write_index_artifacts
from config.settings import load_config, resolve_output_dir
from core.errors import ConfigError
from core.logging import configure_logging
from db.workspace import load_workspace
from semantic.position import DocumentPosition, Position


def _add_common_paths(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "root",
        nargs="?",
        default=".",
        help="Workspace root (default: .)",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="svindex")
    subparsers = parser.add_subparsers(dest="command", required=True)

    index_parser = subparsers.add_parser("index", help="Index a workspace")
    _add_common_paths(index_parser)
    index_parser.add_argument(
        "--out-dir",
        default=None,
        help="Output directory for index artifacts (default: config output dir)",
    )

    goto_parser = subparsers.add_parser(
        "goto", help="Find the definition of the symbol at a position"
    )
    goto_parser.add_argument("file", help="File containing the position")
    goto_parser.add_argument("row", type=int, help="Zero-based row")
    goto_parser.add_argument("col", type=int, help="Zero-based byte column")
    goto_parser.add_argument(
        "--root",
        default=".",
        help="Workspace root (default: .)",
    )

    return parser


def _output_dir_name(out_dir: Path, root: Path) -> str:
    """First path component of out_dir under root, or "" when it is external."""
    try:
        rel = out_dir.relative_to(root)
    except ValueError:
        return ""
    return rel.parts[0] if rel.parts else ""


def _handle_index(root: Path, out_dir: str | None) -> int:
    config = load_config(root)
    configure_logging(config=config.logging)

    if out_dir is None:
        resolved_out_dir = resolve_output_dir(root, config.output_dir)
    else:
        resolved_out_dir = Path(out_dir).expanduser().resolve()

    workspace = load_workspace(
        root, config, output_dir_name=_output_dir_name(resolved_out_dir, root)
    )
    summary = write_index_artifacts(workspace, resolved_out_dir)
    sys.stdout.write(dumps(summary).decode("utf-8") + "\n")

    for failure in workspace.failures:
        sys.stderr.write(f"{failure.path}: {failure.message}\n")
    return 0 if workspace.ok else 1


def _handle_goto(root: Path, file: str, row: int, col: int) -> int:
    config = load_config(root)
    configure_logging(config=config.logging)

    workspace = load_workspace(root, config)
    request = DocumentPosition(
        document=Path(file).expanduser().resolve(),
        position=Position(row=row, col=col),
    )
    result = workspace.database.goto_definition(request)
    if result is None:
        sys.stderr.write(f"no definition found at {file}:{row}:{col}\n")
        return 1

    record = definition_record(request, result, root)
    sys.stdout.write(dumps(record).decode("utf-8") + "\n")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        if args.command == "index":
            root = Path(args.root).expanduser().resolve()
            return _handle_index(root, args.out_dir)

        if args.command == "goto":
            root = Path(args.root).expanduser().resolve()
            return _handle_goto(root, args.file, args.row, args.col)
    except ConfigError as exc:
        sys.stderr.write(f"error: {exc}\n")
        return 2

    raise AssertionError


if __name__ == "__main__":
    raise SystemExit(main())
