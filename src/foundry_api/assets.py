"""Static asset loader for the bundled admin UI."""

from __future__ import annotations

import mimetypes
from pathlib import Path

from fastapi.responses import FileResponse

from foundry.errors import NotFoundError


class AssetLoader:
    """Serves files from ``root`` by request path.

    An empty path or ``/`` maps to ``/index.html``.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root).resolve()

    def resolve(self, path: str) -> Path:
        name = "/index.html" if path in ("", "/") else path
        candidate = (self.root / name.lstrip("/")).resolve()
        if not candidate.is_relative_to(self.root) or not candidate.is_file():
            raise NotFoundError(f"No admin asset at {name}")
        return candidate

    def load(self, path: str) -> FileResponse:
        file_path = self.resolve(path)
        media_type, _ = mimetypes.guess_type(file_path.name)
        return FileResponse(file_path, media_type=media_type or "application/octet-stream")
