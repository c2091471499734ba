"""Revision storage engine wiring the log store, reconstructor, queue, and lifecycle."""
from core.config import Settings
from core.filesystem import LocalFileSystem
from schemas.revision import RevisionInfo, RevisionRecord
from services.diff_service import DiffService
from services.lifecycle_service import LifecycleService
from services.path_mapper import PathMapper
from services.revision_reconstructor import RevisionReconstructor
from services.revision_store import RevisionLogStore
from services.save_queue import SaveQueue


class RevisionEngine:
    """
    Owns every collaborator of the revision storage system.

    One engine serves one workspace. Saves go through the engine's save queue;
    reads, moves, and removals run directly.
    """

    def __init__(
        self,
        fs: LocalFileSystem,
        mapper: PathMapper,
        diff: DiffService | None = None,
        dir_mode: int = 0o755,
        append_first_payload: bool = False,
    ) -> None:
        self.fs = fs
        self.mapper = mapper
        self.diff = diff or DiffService()
        self.reconstructor = RevisionReconstructor(fs, mapper, self.diff)
        self.store = RevisionLogStore(
            fs,
            mapper,
            self.diff,
            self.reconstructor,
            dir_mode=dir_mode,
            append_first_payload=append_first_payload,
        )
        self.lifecycle = LifecycleService(fs, mapper, dir_mode=dir_mode)
        self.save_queue = SaveQueue(self.store.save_revision)

    @classmethod
    def from_settings(cls, settings: Settings) -> "RevisionEngine":
        """Build an engine for the configured workspace."""
        return cls(
            fs=LocalFileSystem(settings.workspace_dir),
            mapper=PathMapper(settings.revisions_folder_name, settings.revisions_file_suffix),
            dir_mode=settings.revisions_dir_mode,
            append_first_payload=settings.append_first_payload,
        )

    async def start(self) -> None:
        """Start processing saves."""
        self.save_queue.start()

    async def close(self) -> None:
        """Finish queued saves and stop."""
        await self.save_queue.close()

    async def save_revision(self, logical_path: str, revision: RevisionRecord) -> RevisionInfo:
        """Queue a revision save and wait for it to be persisted."""
        return await self.save_queue.enqueue(logical_path, revision)

    async def get_revisions(self, logical_path: str) -> dict[int, RevisionRecord]:
        """Return a file's revision map, seeding its log on first access."""
        return await self.store.get_revisions(logical_path)

    async def load_all(self, logical_path: str) -> dict[int, RevisionRecord]:
        """Return a file's revision map without creating a log."""
        return await self.reconstructor.load_all(logical_path)

    def reconstruct(
        self,
        revisions: dict[int, RevisionRecord],
        upper_bound_ts: int | None = None,
    ) -> str:
        """Rebuild content from a revision map, optionally up to an exact ts."""
        return self.reconstructor.reconstruct(revisions, upper_bound_ts)

    async def get_previous_revision_content(self, logical_path: str) -> str:
        """Return the content of the latest saved revision of a file."""
        revisions = await self.get_revisions(logical_path)
        return self.reconstruct(revisions)

    async def read_file_contents(self, logical_path: str) -> str:
        """Read the live content of a tracked file."""
        return await self.fs.read_text(logical_path)

    async def move_revisions(self, from_path: str, to_path: str, is_folder: bool = False) -> bool:
        """Move history along with a moved file or folder."""
        moved = await self.lifecycle.move(from_path, to_path, is_folder)
        self.store.forget_last_ts()
        return moved

    async def remove_revisions(self, logical_path: str, is_folder: bool = False) -> bool:
        """Delete history of a deleted file or folder."""
        removed = await self.lifecycle.remove(logical_path, is_folder)
        self.store.forget_last_ts()
        return removed
