"""Local-disk file access used by the report exporter."""
import os
from pathlib import Path


class LocalFileStorage:
    """Writes text files to the local filesystem. Errors surface as OSError."""

    def create_directory_if_missing(self, path: str | os.PathLike) -> None:
        os.makedirs(path, exist_ok=True)

    def write_text(self, path: str | os.PathLike, content: str) -> None:
        # newline="" keeps "\n" line endings on every platform
        with open(Path(path), "w", encoding="utf-8", newline="") as f:
            f.write(content)

    def read_text(self, path: str | os.PathLike) -> str:
        with open(Path(path), "r", encoding="utf-8", newline="") as f:
            return f.read()
