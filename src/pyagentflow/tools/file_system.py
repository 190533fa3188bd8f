"""File system operations tool.

Blocking file I/O runs in worker threads via asyncio.to_thread() so a
slow disk never stalls the event loop. Relative paths resolve against
the run's working directory.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pyagentflow.core.context import ToolContext
from pyagentflow.core.errors import PermissionDeniedError, ToolExecutionError
from pyagentflow.tools.base import Tool

logger = logging.getLogger(__name__)

__all__ = ["FileSystemTool", "VALID_ACTIONS", "is_sensitive_path"]

VALID_ACTIONS = ("write", "read", "create_dir", "list", "exists", "delete", "copy")

SENSITIVE_PATHS = (
    "/etc/passwd",
    "/etc/shadow",
    "/root",
    "c:/windows/system32",
    "/system",
    "/library",
)


def _normalize(path: str) -> str:
    return os.path.normpath(path.replace("\\", "/")).replace("\\", "/").lower()


def is_sensitive_path(path: str) -> bool:
    """True if path is, or lies under, one of SENSITIVE_PATHS (segment-wise)."""
    normalized = _normalize(path)
    return any(
        normalized == sensitive or normalized.startswith(sensitive + "/")
        for sensitive in SENSITIVE_PATHS
    )


class FileSystemTool(Tool):
    """Create, read, write, list, copy and delete files and directories.

    Params:
        action: One of VALID_ACTIONS (required)
        path: Target path (required)
        content: Text to write (write only)
        destination: Target path (copy only)
        encoding: Text encoding (default utf-8)

    Raises:
        PermissionDeniedError: OS refused access, or the resolved path is sensitive
        ToolExecutionError: Path missing or wrong type (not retried)
    """

    name = "file_system"
    description = "File system operations including read, write, create directories"

    def validate(self, params: Mapping[str, Any]) -> bool:
        if not params:
            return False

        action = params.get("action")
        path = params.get("path")
        if not isinstance(action, str) or not isinstance(path, str) or not path:
            return False

        if action not in VALID_ACTIONS:
            return False

        if action == "copy" and not isinstance(params.get("destination"), str):
            return False

        for candidate in (path, params.get("destination") or ""):
            if isinstance(candidate, str) and is_sensitive_path(candidate):
                logger.warning(f"Blocked access to sensitive path: {candidate}")
                return False

        return True

    async def execute(self, params: Mapping[str, Any], context: ToolContext) -> Any:
        action = params["action"]
        full_path = self._resolve(params["path"], context)
        logger.info(f"FileSystem {action}: {full_path}")

        self._guard(full_path)
        handler = getattr(self, f"_{action}")
        try:
            return await asyncio.to_thread(handler, full_path, params, context)
        except PermissionError as e:
            raise PermissionDeniedError(f"{action} {full_path}: permission denied") from e
        except (FileNotFoundError, NotADirectoryError, IsADirectoryError) as e:
            raise ToolExecutionError(f"{action} {full_path}: {e.strerror or e}", retryable=False) from e

    @staticmethod
    def _resolve(path: str, context: ToolContext) -> Path:
        candidate = Path(path)
        if candidate.is_absolute():
            return candidate
        return Path(context.working_directory) / candidate

    @staticmethod
    def _guard(path: Path) -> None:
        """Re-check the resolved path, so relative paths and symlinks cannot escape."""
        if is_sensitive_path(str(path.resolve())):
            raise PermissionDeniedError(f"Access to sensitive path blocked: {path}")

    def _write(self, path: Path, params: Mapping[str, Any], context: ToolContext) -> dict[str, Any]:
        content = params.get("content") or ""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding=params.get("encoding", "utf-8"))
        return {"type": "file_created", "path": str(path), "size": len(content)}

    def _read(self, path: Path, params: Mapping[str, Any], context: ToolContext) -> dict[str, Any]:
        content = path.read_text(encoding=params.get("encoding", "utf-8"))
        return {"type": "file_read", "path": str(path), "content": content, "size": len(content)}

    def _create_dir(
        self, path: Path, params: Mapping[str, Any], context: ToolContext
    ) -> dict[str, Any]:
        path.mkdir(parents=True, exist_ok=True)
        return {"type": "directory_created", "path": str(path)}

    def _list(self, path: Path, params: Mapping[str, Any], context: ToolContext) -> dict[str, Any]:
        items = [
            {
                "name": entry.name,
                "type": "directory" if entry.is_dir() else "file",
                "path": str(entry),
            }
            for entry in sorted(path.iterdir())
        ]
        return {"type": "directory_listing", "path": str(path), "items": items, "count": len(items)}

    def _exists(self, path: Path, params: Mapping[str, Any], context: ToolContext) -> dict[str, Any]:
        return {"type": "file_exists", "path": str(path), "exists": path.exists()}

    def _delete(self, path: Path, params: Mapping[str, Any], context: ToolContext) -> dict[str, Any]:
        was_directory = path.is_dir()
        if was_directory:
            shutil.rmtree(path)
        else:
            path.unlink()
        return {"type": "file_deleted", "path": str(path), "was_directory": was_directory}

    def _copy(self, path: Path, params: Mapping[str, Any], context: ToolContext) -> dict[str, Any]:
        destination = self._resolve(params["destination"], context)
        self._guard(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(path, destination)
        return {"type": "file_copied", "source_path": str(path), "destination_path": str(destination)}
