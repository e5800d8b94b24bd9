"""Durable storage for snapshot artifacts.

Artifacts are JSON files in one directory, named
``backup-<ISO-8601 UTC timestamp>.json`` with ``:`` and ``.`` replaced by
``-``.  Writes go to a hidden temp file in the same directory.  A new
artifact is hard-linked to its final name, which fails instead of
overwriting when another writer claimed the name first; an upload is
moved into place with ``os.replace``.  A half-written artifact is never
visible under its final name.

Usage:
    from db_snapshot.backup.storage import SnapshotStorage

    storage = SnapshotStorage("backups")
    filename = storage.write(document)
    for info in storage.list():
        print(info.filename, info.size_bytes)
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import re
import tempfile
from collections.abc import Iterator
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from db_snapshot.backup.models import BackupInfo, SnapshotDocument
from db_snapshot.errors import (
    CorruptSnapshotError,
    SnapshotNotFoundError,
    ValidationFailedError,
    WriteFailedError,
)

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class SnapshotStorage:
    """Filesystem-backed snapshot artifact store.

    Args:
        directory: Directory holding the artifacts.  Created on first use.
        extension: File extension of artifacts (default ``.json``).  Files
            with other extensions in the directory are ignored.

    Example:
        storage = SnapshotStorage("/var/backups/backoffice")
        document = storage.read("backup-2026-10-17T02-00-00-000Z.json")
    """

    def __init__(self, directory: str | Path, extension: str = ".json") -> None:
        self.directory = Path(directory)
        self.extension = extension

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def list(self) -> list[BackupInfo]:
        """List artifacts, newest first.

        ``created_at`` is the file birth time where the platform reports
        it, otherwise the modification time.
        """
        if not self.directory.is_dir():
            return []

        infos: list[BackupInfo] = []
        for entry in self.directory.iterdir():
            if entry.name.startswith(".") or entry.suffix != self.extension:
                continue
            if not entry.is_file():
                continue
            try:
                stat = entry.stat()
            except FileNotFoundError:
                continue
            infos.append(
                BackupInfo(
                    filename=entry.name,
                    size_bytes=stat.st_size,
                    created_at=datetime.fromtimestamp(_created_time(stat), tz=timezone.utc),
                )
            )

        return sorted(infos, key=lambda i: (i.created_at, i.filename), reverse=True)

    def write(self, document: SnapshotDocument) -> str:
        """Serialize *document* to a new timestamped artifact.

        Returns:
            The new artifact's filename.

        Raises:
            WriteFailedError: If the directory or file cannot be written.
        """
        self._ensure_directory()
        stamp = document.timestamp or datetime.now(timezone.utc)
        payload = document.model_dump_json(indent=2).encode("utf-8")
        filename = self._claim_new(_base_name(stamp), payload)
        logger.info("Wrote backup %s (%d bytes)", filename, len(payload))
        return filename

    def read(self, filename: str) -> SnapshotDocument:
        """Load and parse an artifact.

        Raises:
            SnapshotNotFoundError: If the artifact does not exist.
            CorruptSnapshotError: If it is not a JSON snapshot document.
        """
        path = self._existing(filename)
        try:
            raw = json.loads(path.read_bytes())
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise CorruptSnapshotError(f"Backup {filename} is not valid JSON: {e}") from e

        try:
            return SnapshotDocument.model_validate(raw)
        except ValidationError as e:
            raise CorruptSnapshotError(
                f"Backup {filename} is not a snapshot document: {e}"
            ) from e

    def delete(self, filename: str) -> None:
        """Remove an artifact.

        Raises:
            SnapshotNotFoundError: If the artifact does not exist.
        """
        path = self._existing(filename)
        try:
            path.unlink()
        except FileNotFoundError as e:
            raise SnapshotNotFoundError(filename) from e
        logger.info("Deleted backup %s", filename)

    def download(self, filename: str, chunk_size: int = CHUNK_SIZE) -> Iterator[bytes]:
        """Stream an artifact's bytes verbatim.

        Existence is checked before the iterator is returned.

        Raises:
            SnapshotNotFoundError: If the artifact does not exist.
        """
        path = self._existing(filename)
        return _iter_file(path, chunk_size)

    def upload(self, content: bytes, filename: str) -> str:
        """Store externally produced content under *filename*.

        Only the extension is validated; the content is parsed later, at
        restore time.  An existing artifact with the same name is replaced.

        Raises:
            ValidationFailedError: If the extension does not match or the
                name is not a bare file name.
            WriteFailedError: If the file cannot be written.
        """
        if not filename.endswith(self.extension):
            raise ValidationFailedError(
                f"Invalid file type. Only {self.extension} allowed"
            )
        path = self._path(filename)
        self._ensure_directory()
        self._atomic_write(path, content)
        logger.info("Uploaded backup %s (%d bytes)", filename, len(content))
        return filename

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _path(self, filename: str) -> Path:
        """Resolve a bare artifact name inside the storage directory."""
        if (
            not filename
            or filename.startswith(".")
            or "/" in filename
            or "\\" in filename
            or Path(filename).name != filename
        ):
            raise ValidationFailedError(f"Invalid backup filename: {filename!r}")
        return self.directory / filename

    def _existing(self, filename: str) -> Path:
        path = self._path(filename)
        if not path.is_file():
            raise SnapshotNotFoundError(filename)
        return path

    def _ensure_directory(self) -> None:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise WriteFailedError(
                f"Cannot create backup directory {self.directory}: {e}"
            ) from e

    def _claim_new(self, base: str, payload: bytes) -> str:
        """Link a complete temp file to the first free ``base[-N]`` name."""
        tmp_path = self._write_temp(base, payload)
        try:
            filename = f"{base}{self.extension}"
            counter = 1
            while True:
                try:
                    os.link(tmp_path, self.directory / filename)
                    return filename
                except FileExistsError:
                    filename = f"{base}-{counter}{self.extension}"
                    counter += 1
        except OSError as e:
            raise WriteFailedError(f"Failed to write {base}{self.extension}: {e}") from e
        finally:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp_path)

    def _write_temp(self, name: str, payload: bytes) -> str:
        """Write *payload* to a synced hidden temp file and return its path."""
        tmp_path: str | None = None
        try:
            fd, tmp_path = tempfile.mkstemp(dir=self.directory, prefix=f".{name}.", suffix=".tmp")
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
        except OSError as e:
            if tmp_path is not None:
                with contextlib.suppress(FileNotFoundError):
                    os.unlink(tmp_path)
            raise WriteFailedError(f"Failed to write {name}: {e}") from e
        return tmp_path

    def _atomic_write(self, target: Path, payload: bytes) -> None:
        """Write to a temp file in the same directory, then rename into place."""
        tmp_path = self._write_temp(target.name, payload)
        try:
            os.replace(tmp_path, target)
        except OSError as e:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp_path)
            raise WriteFailedError(f"Failed to write {target.name}: {e}") from e


def _base_name(stamp: datetime) -> str:
    """``backup-<timestamp>`` with ``:`` and ``.`` replaced by ``-``."""
    iso = stamp.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    iso = iso.replace("+00:00", "Z")
    return f"backup-{re.sub(r'[:.]', '-', iso)}"


def _created_time(stat: os.stat_result) -> float:
    return getattr(stat, "st_birthtime", stat.st_mtime)


def _iter_file(path: Path, chunk_size: int) -> Iterator[bytes]:
    try:
        f = open(path, "rb")
    except FileNotFoundError as e:
        raise SnapshotNotFoundError(path.name) from e
    with f:
        while chunk := f.read(chunk_size):
            yield chunk
