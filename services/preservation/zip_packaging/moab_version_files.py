"""Size and readability checks over one Moab version directory."""

from __future__ import annotations

from pathlib import Path

from services.preservation.zip_packaging.errors import MoabVersionNotFound, UnreadableFile


class MoabVersionFiles:
    """Regular files below one ``<object>/vNNNN`` directory."""

    def __init__(self, version_path: Path) -> None:
        self.version_path = version_path

    def paths(self) -> list[Path]:
        """Return every regular file under the version directory, sorted."""
        if not self.version_path.is_dir():
            raise MoabVersionNotFound(f"Moab version does not exist: {self.version_path}")
        return sorted(path for path in self.version_path.rglob("*") if path.is_file())

    def ensure_readable(self) -> None:
        """Stat every file, raising ``UnreadableFile`` on the first failure."""
        for path in self.paths():
            try:
                path.stat()
            except OSError as exc:
                raise UnreadableFile(
                    f"unable to stat {path}: {type(exc).__name__}: {exc}"
                ) from exc

    def size(self) -> int:
        """Return the summed byte size of every file in the version."""
        total = 0
        for path in self.paths():
            try:
                total += path.stat().st_size
            except OSError as exc:
                raise UnreadableFile(
                    f"unable to stat {path}: {type(exc).__name__}: {exc}"
                ) from exc
        return total
