"""Creates, seeds, and appends to per-file revision logs."""
import asyncio
import logging
import time
from pathlib import PurePosixPath

from core.filesystem import LocalFileSystem
from schemas.revision import RevisionInfo, RevisionRecord
from services.diff_service import DiffService
from services.exceptions import RevisionLogNotFoundError, RevisionOrderError
from services.path_mapper import PathMapper
from services.revision_reconstructor import RevisionReconstructor, parse_log

logger = logging.getLogger(__name__)


def now_ms() -> int:
    """Current wall-clock time in integer milliseconds."""
    return time.time_ns() // 1_000_000


class RevisionLogStore:
    """
    Owns the on-disk revision logs.

    Logs are append-only: a log is written in full exactly once (when it is seeded)
    and afterwards only ever grows by whole lines.
    """

    def __init__(
        self,
        fs: LocalFileSystem,
        mapper: PathMapper,
        diff: DiffService,
        reconstructor: RevisionReconstructor,
        dir_mode: int = 0o755,
        append_first_payload: bool = False,
    ) -> None:
        self.fs = fs
        self.mapper = mapper
        self.diff = diff
        self.reconstructor = reconstructor
        self.dir_mode = dir_mode
        self.append_first_payload = append_first_payload
        # Serializes log creation per path; independent of the global save queue
        self._creation_locks: dict[PurePosixPath, asyncio.Lock] = {}
        # Highest ts written to each log, filled on seeding or on the first append
        self._last_ts: dict[PurePosixPath, int] = {}

    def forget_last_ts(self) -> None:
        """Drop cached ts values; logs may have been moved or removed on disk."""
        self._last_ts.clear()

    async def log_exists(self, logical_path: str) -> bool:
        """Return True if the file already has a revision log."""
        return await self.fs.exists(self.mapper.map_path(logical_path))

    async def ensure_log(self, logical_path: str) -> dict[int, RevisionRecord] | None:
        """
        Create and seed the revision log for a file if it doesn't exist.

        The seed record is a diff from the empty string to the live file's current
        content, so replaying a log always starts from "".

        Args:
            logical_path: Path of the tracked file.

        Returns:
            The one-record seed map if the log was created, None if it already existed.
            An existing log is not read here; callers that need its records follow up
            with `RevisionReconstructor.load_all`, as `get_revisions` does.

        Raises:
            FileNotFoundError: If the tracked file itself doesn't exist.
        """
        log_path = self.mapper.map_path(logical_path)
        lock = self._creation_locks.setdefault(log_path, asyncio.Lock())
        try:
            async with lock:
                seed = await self._create_log(logical_path, log_path)
        finally:
            # The exclusive create is the final guard, so dropping an idle lock is safe
            if not lock.locked():
                self._creation_locks.pop(log_path, None)

        if seed is None:
            return None
        logger.info("Created revision log %s", log_path)
        return {seed.ts: seed}

    async def _create_log(
        self, logical_path: str, log_path: PurePosixPath,
    ) -> RevisionRecord | None:
        if await self.fs.exists(log_path):
            return None

        content = await self.fs.read_text(logical_path)
        await self.fs.makedirs(log_path.parent, mode=self.dir_mode)
        seed = RevisionRecord(
            ts=now_ms(),
            silentsave=True,
            restoring=False,
            patch=[self.diff.make_patch("", content)],
            length=len(content),
        )
        if not await self.fs.create_exclusive(log_path, seed.to_line()):
            # Created by another writer between the check and the write
            logger.info("Revision log %s appeared during creation", log_path)
            return None
        self._last_ts[log_path] = seed.ts
        return seed

    async def _read_last_ts(self, log_path: PurePosixPath) -> int | None:
        if log_path not in self._last_ts:
            revisions = parse_log(str(log_path), await self.fs.read_text(log_path))
            if not revisions:
                return None
            self._last_ts[log_path] = max(revisions)
        return self._last_ts[log_path]

    async def append_record(self, logical_path: str, record: RevisionRecord) -> RevisionInfo:
        """
        Append one record to an existing revision log.

        The record's ts must be greater than every ts already in the log, so the seed
        stays the oldest record and replay order matches write order. Callers are
        expected to serialize appends (the save queue does).

        Raises:
            RevisionLogNotFoundError: If the log hasn't been created.
            RevisionOrderError: If the record's ts isn't greater than the log's last ts.
            RevisionLogParseError: If the existing log can't be read to find its last ts.
        """
        log_path = self.mapper.map_path(logical_path)
        try:
            last_ts = await self._read_last_ts(log_path)
            if last_ts is not None and record.ts <= last_ts:
                raise RevisionOrderError(str(log_path), record.ts, last_ts)
            await self.fs.append_text(log_path, record.to_line())
        except FileNotFoundError as e:
            self._last_ts.pop(log_path, None)
            raise RevisionLogNotFoundError(str(log_path)) from e
        self._last_ts[log_path] = record.ts
        return RevisionInfo(log_path=str(log_path), logical_path=logical_path, ts=record.ts)

    async def save_revision(self, logical_path: str, record: RevisionRecord) -> RevisionInfo:
        """
        Persist a submitted revision, creating the log on first save.

        When the log has to be created, only the seed record (empty -> live content) is
        written and its metadata returned; the submitted record is dropped unless
        append_first_payload is enabled, in which case it is appended after the seed.
        """
        if await self.log_exists(logical_path):
            return await self.append_record(logical_path, record)

        seed = await self.ensure_log(logical_path)
        if seed is None:
            # Lost the creation race; the log exists now
            return await self.append_record(logical_path, record)

        if self.append_first_payload:
            return await self.append_record(logical_path, record)

        (seed_ts,) = seed
        return RevisionInfo(
            log_path=str(self.mapper.map_path(logical_path)),
            logical_path=logical_path,
            ts=seed_ts,
        )

    async def get_revisions(self, logical_path: str) -> dict[int, RevisionRecord]:
        """
        Return the full revision map for a file, seeding a new log if none exists.

        Raises:
            FileNotFoundError: If neither the log nor the tracked file exists.
            RevisionLogParseError: If the existing log is malformed.
        """
        seed = await self.ensure_log(logical_path)
        if seed is not None:
            return seed
        return await self.reconstructor.load_all(logical_path)
