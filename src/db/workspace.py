"""Index every HDL file of a workspace into one Database."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

from core.errors import ErrorCode, IndexingError
from db.database import Database
from scan.files import find_hdl_files

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from config.settings import SvIndexConfig
    from parse.syntax import SyntaxTree

logger = structlog.get_logger()


@dataclass(frozen=True)
class FileFailure:
    """A file that could not be read or indexed."""

    path: Path
    code: ErrorCode | None
    message: str

    def to_dict(self) -> dict[str, object]:
        return {
            "path": self.path.as_posix(),
            "code": self.code.value if self.code is not None else None,
            "error": self.code.name if self.code is not None else "OS_ERROR",
            "message": self.message,
        }


@dataclass
class Workspace:
    root: Path
    database: Database
    indexed: list[Path] = field(default_factory=list)
    failures: list[FileFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def load_workspace(
    root: Path,
    config: SvIndexConfig,
    *,
    parse: Callable[[Path], SyntaxTree] | None = None,
    output_dir_name: str | None = None,
) -> Workspace:
    """Parse and index every HDL file under ``root``.

    Failures are collected per file; the remaining files are still indexed.
    """
    if parse is None:
        from parse.treesitter_verilog import parse_verilog_file

        parse = parse_verilog_file

    workspace = Workspace(root=root, database=Database(strict=config.strict))

    for file_path in find_hdl_files(
        root,
        extensions=config.extensions,
        output_dir=output_dir_name if output_dir_name is not None else config.output_dir,
        include_patterns=config.include,
        exclude_patterns=config.exclude,
        nested_gitignore=config.nested_gitignore,
    ):
        try:
            syntax_tree = parse(file_path)
            workspace.database.update(file_path, syntax_tree)
        except OSError as exc:
            logger.warning("file_read_failed", path=str(file_path), error=str(exc))
            workspace.failures.append(
                FileFailure(path=file_path, code=None, message=str(exc))
            )
            continue
        except IndexingError as exc:
            workspace.failures.append(
                FileFailure(path=file_path, code=exc.code, message=exc.message)
            )
            continue
        workspace.indexed.append(file_path)

    logger.info(
        "workspace_indexed",
        root=str(root),
        indexed=len(workspace.indexed),
        failed=len(workspace.failures),
        modules=len(workspace.database.symbols),
    )
    return workspace


__all__ = ["FileFailure", "Workspace", "load_workspace"]
