"""Cassette storage and persistence using JSON files."""

import json
import logging
import os
import tempfile
from functools import partial
from pathlib import Path, PurePosixPath

from anyio import to_thread

from .cassette import Cassette
from .config import get_settings
from .exceptions import CassetteWriteError, CorruptCassetteError

logger = logging.getLogger(__name__)

CASSETTE_SUFFIX = ".json"


def _atomic_write_text(path: Path, content: str) -> None:
    """Atomically write text to `path` using temp + fsync + os.replace."""
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.tmp.", dir=path.parent)
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        try:
            tmp_path.unlink(missing_ok=True)
        except OSError:
            pass
        raise


def _validate_name(name: str) -> PurePosixPath:
    if not name or not name.strip():
        raise ValueError("Cassette name must be non-empty")
    rel = PurePosixPath(name.replace("\\", "/"))
    if not rel.parts or rel.is_absolute() or ".." in rel.parts:
        raise ValueError(f"Cassette name must stay inside the cassettes directory: {name!r}")
    return rel


class CassetteStore:
    """Manages cassette files under a single directory.

    One file per cassette name: ``<directory>/<name>.json``. Names may contain
    ``/`` to group cassettes in sub-directories.
    """

    def __init__(self, directory: str | Path | None = None):
        """Initialize cassette store.

        Args:
            directory: Path to cassettes directory. If None, uses the configured one.
                The directory is created on the first save, not here.
        """
        if directory:
            self.directory = Path(directory).expanduser()
        else:
            self.directory = get_settings().get_cassettes_dir()
        logger.debug(f"Cassettes directory: {self.directory}")

    def path_for(self, name: str) -> Path:
        """Get the file path backing a cassette name."""
        rel = _validate_name(name)
        return self.directory.joinpath(*rel.parts).with_name(rel.name + CASSETTE_SUFFIX)

    def exists(self, name: str) -> bool:
        return self.path_for(name).is_file()

    async def exists_async(self, name: str) -> bool:
        """Async wrapper for exists() to avoid blocking the event loop."""
        return await to_thread.run_sync(self.exists, name)

    def load(self, name: str) -> Cassette:
        """Load a cassette by name.

        Raises:
            FileNotFoundError: No cassette file exists for `name`.
            CorruptCassetteError: The file exists but does not hold a valid cassette.
        """
        path = self.path_for(name)

        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise CorruptCassetteError(path, f"not UTF-8 text: {e}") from e

        try:
            data = json.loads(text)
        except (json.JSONDecodeError, RecursionError) as e:
            raise CorruptCassetteError(path, f"invalid JSON: {e}") from e

        try:
            cassette = Cassette.from_dict(name, data)
        except KeyError as e:
            raise CorruptCassetteError(path, f"missing field {e}") from e
        except (TypeError, ValueError) as e:
            raise CorruptCassetteError(path, str(e)) from e

        logger.debug(f"Loaded cassette {name!r} with {len(cassette)} entries from {path}")
        return cassette

    async def load_async(self, name: str) -> Cassette:
        """Async wrapper for load() to avoid blocking the event loop."""
        return await to_thread.run_sync(self.load, name)

    def save(self, cassette: Cassette, name: str | None = None) -> Path:
        """Write a cassette, replacing any existing file for the name.

        Args:
            cassette: Cassette to save
            name: Target name; defaults to ``cassette.name``

        Returns:
            Path to saved file

        Raises:
            CassetteWriteError: The directory or file could not be written.
        """
        path = self.path_for(name or cassette.name)
        content = json.dumps(cassette.to_dict(), indent=2, ensure_ascii=False) + "\n"
        try:
            _atomic_write_text(path, content)
        except OSError as e:
            raise CassetteWriteError(e.errno, f"Failed to write cassette {path}: {e.strerror or e}", str(path)) from e

        logger.debug(f"Saved cassette {cassette.name!r} ({len(cassette)} entries) to {path}")
        return path

    async def save_async(self, cassette: Cassette, name: str | None = None) -> Path:
        """Async wrapper for save() to avoid blocking the event loop."""
        return await to_thread.run_sync(partial(self.save, cassette, name))

    def delete(self, name: str) -> bool:
        """Delete a cassette by name.

        Returns:
            True if deleted, False if not found
        """
        path = self.path_for(name)

        if not path.is_file():
            return False

        path.unlink()
        logger.info(f"Deleted cassette: {name}")
        return True

    def list_names(self) -> list[str]:
        """List cassette names (relative to the directory, without suffix)."""
        if not self.directory.is_dir():
            return []
        names = []
        for path in self.directory.rglob(f"*{CASSETTE_SUFFIX}"):
            if not path.is_file() or path.name.startswith("."):
                continue
            rel = path.relative_to(self.directory).with_suffix("")
            names.append(rel.as_posix())
        return sorted(names)
