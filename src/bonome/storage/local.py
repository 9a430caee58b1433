"""Document store backed by a local checkout of the data repository."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

from bonome.core.exceptions import DocumentFetchError, DocumentNotFoundError
from bonome.core.logging import get_logger
from bonome.storage.base import BaseDocumentStore


logger = get_logger(__name__)


class LocalDocumentStore(BaseDocumentStore):
    """Serve JSON documents from a directory tree.

    Repository paths are POSIX paths relative to ``root``; paths escaping
    the root are treated as missing.

    Attributes:
        root: Root directory of the data tree.
    """

    def __init__(
        self,
        root: Path | str,
        *,
        scan_folders: list[str] | tuple[str, ...] | None = None,
    ) -> None:
        super().__init__(scan_folders=scan_folders)
        self.root = Path(root).resolve()

    def _resolve(self, repo_path: str) -> Path:
        target = (self.root / repo_path.strip("/")).resolve()
        if target != self.root and self.root not in target.parents:
            raise DocumentNotFoundError("Path escapes the data root", path=repo_path)
        return target

    async def list_files_in_path(self, path: str) -> list[dict[str, Any]]:
        directory = self._resolve(path)
        if not directory.is_dir():
            raise DocumentNotFoundError("Directory not found", path=path)
        entries = []
        for child in sorted(directory.iterdir()):
            entries.append(
                {
                    "type": "dir" if child.is_dir() else "file",
                    "name": child.name,
                    "path": child.relative_to(self.root).as_posix(),
                }
            )
        return entries

    async def fetch_json_from_repo_path(self, path: str) -> Any:
        file_path = self._resolve(path)
        if not file_path.is_file():
            raise DocumentNotFoundError("Document not found", path=path)
        try:
            text = await asyncio.to_thread(file_path.read_text, encoding="utf-8")
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise DocumentFetchError(
                f"Invalid JSON document: {exc.msg}",
                path=path,
                details={"line": exc.lineno},
            ) from exc
        except OSError as exc:
            raise DocumentFetchError(f"Cannot read document: {exc}", path=path) from exc


__all__ = ["LocalDocumentStore"]
