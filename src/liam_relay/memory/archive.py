"""Memory ZIP handling — the ingestion log and safe extraction.

The log is a flat JSON list with one entry per extracted archive.  It is
the duplicate-detection list: an archive whose name already appears in it
is never extracted again.
"""

from __future__ import annotations

import io
import logging
import shutil
import uuid
import zipfile
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath

from pydantic import BaseModel, Field

from liam_relay.config import settings
from liam_relay.storage import path_lock, read_json, write_json

logger = logging.getLogger(__name__)

# Names currently being ingested, keyed by resolved log path.
_PENDING: dict[Path, set[str]] = {}


class ArchiveError(ValueError):
    """The uploaded payload is not an acceptable memory archive."""


class DuplicateArchiveError(ArchiveError):
    """An archive with the same name has already been ingested."""


class ArchiveEntry(BaseModel):
    """One ingested archive as recorded in the log."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    name: str
    folder: str
    zip_path: str | None = None
    extracted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    files: list[str] = Field(default_factory=list)
    chunks: int = 0


class ArchiveLog:
    """Whole-file JSON log of ingested archives.

    Parameters
    ----------
    path:
        Location of the log file.  Defaults to ``settings.archive_log_path``.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else settings.archive_log_path

    def entries(self) -> list[ArchiveEntry]:
        with path_lock(self.path):
            raw = read_json(self.path, default=[])
        return [ArchiveEntry(**item) for item in raw]

    def contains(self, name: str) -> bool:
        return any(entry.name == name for entry in self.entries())

    def get(self, archive_id: str) -> ArchiveEntry | None:
        for entry in self.entries():
            if entry.id == archive_id:
                return entry
        return None

    def latest(self) -> ArchiveEntry | None:
        entries = self.entries()
        if not entries:
            return None
        return max(entries, key=lambda entry: entry.extracted_at)

    @contextmanager
    def reserve(self, name: str) -> Iterator[None]:
        """Claim *name* for the duration of one ingestion.

        Raises :class:`DuplicateArchiveError` if the name is already logged
        or another ingestion currently holds it.  The claim is released on
        exit whether or not the entry was recorded.
        """
        key = self.path.resolve()
        with path_lock(self.path):
            pending = _PENDING.setdefault(key, set())
            if name in pending or self.contains(name):
                raise DuplicateArchiveError(f"Archive already ingested: {name}")
            pending.add(name)
        try:
            yield
        finally:
            with path_lock(self.path):
                pending.discard(name)

    def record(self, entry: ArchiveEntry) -> ArchiveEntry:
        """Append *entry*; raises :class:`DuplicateArchiveError` if its name is taken."""
        with path_lock(self.path):
            raw = read_json(self.path, default=[])
            if any(item.get("name") == entry.name for item in raw):
                raise DuplicateArchiveError(f"Archive already ingested: {entry.name}")
            raw.append(entry.model_dump(mode="json"))
            write_json(self.path, raw)
        logger.info("Recorded archive %s (%s) -> %s", entry.name, entry.id, entry.folder)
        return entry


def _safe_member_path(name: str) -> PurePosixPath | None:
    """Return a relative member path, or ``None`` if it escapes the target folder."""
    member = PurePosixPath(name.replace("\\", "/"))
    if member.is_absolute():
        return None
    parts = [p for p in member.parts if p not in ("", ".")]
    if not parts or any(p == ".." for p in parts) or ":" in parts[0]:
        return None
    return PurePosixPath(*parts)


def extract_archive(
    payload: bytes,
    name: str,
    *,
    memory_dir: str | Path | None = None,
    log: ArchiveLog | None = None,
    max_files: int | None = None,
    max_bytes: int | None = None,
) -> ArchiveEntry:
    """Extract *payload* into a new timestamped folder under *memory_dir*.

    The returned entry is **not** recorded in the log yet; the caller does
    that once indexing has succeeded.

    Raises
    ------
    DuplicateArchiveError
        If *name* already appears in the log.
    ArchiveError
        If the payload is not a ZIP, is empty or too large, contains member
        paths that would escape the extraction folder or collide with each
        other, or cannot be written to disk.
    """
    memory_dir = Path(memory_dir) if memory_dir is not None else settings.memory_dir
    log = log or ArchiveLog()
    max_files = max_files or settings.max_archive_files
    max_bytes = max_bytes or settings.max_archive_bytes

    if log.contains(name):
        raise DuplicateArchiveError(f"Archive already ingested: {name}")

    try:
        archive = zipfile.ZipFile(io.BytesIO(payload))
    except zipfile.BadZipFile as exc:
        raise ArchiveError("Invalid ZIP archive") from exc

    staged: dict[PurePosixPath, bytes] = {}
    dirs: set[PurePosixPath] = set()
    total = 0
    with archive:
        members = [m for m in archive.infolist() if not m.is_dir()]
        if not members:
            raise ArchiveError("Archive has no files")
        if len(members) > max_files:
            raise ArchiveError(f"Archive has too many files (max {max_files})")
        for member in members:
            rel = _safe_member_path(member.filename)
            if rel is None:
                raise ArchiveError(f"Unsafe path in archive: {member.filename}")
            if rel in staged:
                raise ArchiveError(f"Duplicate path in archive: {rel}")
            if rel in dirs or any(parent in staged for parent in rel.parents):
                raise ArchiveError(f"Path is both a file and a folder in archive: {rel}")
            total += member.file_size
            if total > max_bytes:
                raise ArchiveError(f"Archive uncompressed size exceeds {max_bytes} bytes")
            staged[rel] = archive.read(member)
            dirs.update(rel.parents)

    now = datetime.now(timezone.utc)
    stem = Path(name).stem or "memory"
    folder = memory_dir / f"{stem}-{now:%Y%m%dT%H%M%SZ}"
    try:
        folder.mkdir(parents=True)
    except FileExistsError:
        folder = folder.with_name(f"{folder.name}-{uuid.uuid4().hex[:6]}")
        folder.mkdir()
    zip_path = folder.with_name(f"{folder.name}.zip")

    try:
        for rel, data in staged.items():
            dest = folder.joinpath(*rel.parts)
            dest.parent.mkdir(parents=True, exist_ok=True)
            dest.write_bytes(data)
        zip_path.write_bytes(payload)
    except OSError as exc:
        shutil.rmtree(folder, ignore_errors=True)
        zip_path.unlink(missing_ok=True)
        raise ArchiveError(f"Could not extract archive: {exc}") from exc

    logger.info("Extracted %d files from %s into %s", len(staged), name, folder)
    return ArchiveEntry(
        name=name,
        folder=str(folder),
        zip_path=str(zip_path),
        extracted_at=now,
        files=[str(rel) for rel in staged],
    )


def discard_extraction(entry: ArchiveEntry) -> None:
    """Remove the folder and ZIP copy of an extraction that will not be recorded."""
    shutil.rmtree(entry.folder, ignore_errors=True)
    if entry.zip_path:
        Path(entry.zip_path).unlink(missing_ok=True)
    logger.info("Discarded extraction of %s at %s", entry.name, entry.folder)
