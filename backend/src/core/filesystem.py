"""
Async filesystem access rooted at the workspace directory.

Every operation runs the blocking call in a worker thread via asyncio.to_thread,
so each call is a suspension point for the event loop. Paths are relative to the
workspace root; leading slashes are ignored. Errors surface as OSError subclasses.
"""
import asyncio
import os
import shutil
from collections.abc import Iterator
from pathlib import Path, PurePosixPath


def _relative(path: PurePosixPath | str) -> PurePosixPath:
    return PurePosixPath(str(path).lstrip("/"))


class LocalFileSystem:
    """Filesystem collaborator backed by the local disk."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def resolve(self, path: PurePosixPath | str) -> Path:
        """Map a workspace-relative path to an absolute path on disk."""
        return self.root / _relative(path)

    async def exists(self, path: PurePosixPath | str) -> bool:
        """Return True if the path exists (file or directory)."""
        return await asyncio.to_thread(self.resolve(path).exists)

    async def read_text(self, path: PurePosixPath | str) -> str:
        """Read a whole file as UTF-8 text."""
        return await asyncio.to_thread(self.resolve(path).read_text, encoding="utf-8")

    async def write_text(self, path: PurePosixPath | str, data: str) -> None:
        """Create or truncate a file and write data to it."""
        await asyncio.to_thread(self.resolve(path).write_text, data, encoding="utf-8")

    async def create_exclusive(self, path: PurePosixPath | str, data: str) -> bool:
        """
        Create a file with data only if it does not exist yet.

        Returns:
            True if the file was created, False if it already existed.
        """
        target = self.resolve(path)

        def _create() -> bool:
            try:
                with target.open("x", encoding="utf-8") as f:
                    f.write(data)
            except FileExistsError:
                return False
            return True

        return await asyncio.to_thread(_create)

    async def append_text(self, path: PurePosixPath | str, data: str) -> None:
        """
        Append data to an existing file with a single write call.

        Raises:
            FileNotFoundError: If the file does not exist (it is never created here).
        """
        target = self.resolve(path)
        payload = data.encode("utf-8")

        def _append() -> None:
            fd = os.open(target, os.O_WRONLY | os.O_APPEND)
            try:
                os.write(fd, payload)
            finally:
                os.close(fd)

        await asyncio.to_thread(_append)

    async def rename(self, src: PurePosixPath | str, dst: PurePosixPath | str) -> None:
        """Rename a file or directory."""
        await asyncio.to_thread(os.rename, self.resolve(src), self.resolve(dst))

    async def makedirs(self, path: PurePosixPath | str, mode: int = 0o755) -> None:
        """Create a directory and its parents; no error if it already exists."""
        await asyncio.to_thread(self.resolve(path).mkdir, mode=mode, parents=True, exist_ok=True)

    async def unlink(self, path: PurePosixPath | str) -> None:
        """Delete a single file."""
        await asyncio.to_thread(self.resolve(path).unlink)

    async def remove_tree(self, path: PurePosixPath | str) -> None:
        """Recursively delete a directory."""
        await asyncio.to_thread(shutil.rmtree, self.resolve(path))

    async def list_files(self, path: PurePosixPath | str, suffix: str) -> list[PurePosixPath]:
        """List workspace-relative paths of files under a directory ending with suffix."""
        base = self.resolve(path)

        def _walk() -> Iterator[PurePosixPath]:
            for dirpath, _dirnames, filenames in os.walk(base):
                for filename in sorted(filenames):
                    if filename.endswith(suffix):
                        full = Path(dirpath) / filename
                        yield PurePosixPath(full.relative_to(self.root).as_posix())

        return await asyncio.to_thread(lambda: list(_walk()))
