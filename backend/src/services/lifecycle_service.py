"""Mirrors file moves and deletions onto revision logs."""
import logging

from core.filesystem import LocalFileSystem
from services.path_mapper import PathMapper

logger = logging.getLogger(__name__)


class LifecycleService:
    """
    Keeps the revisions tree in step with the workspace tree.

    Failures are logged and reported through the boolean return value only; they are
    never raised to the caller.
    """

    def __init__(self, fs: LocalFileSystem, mapper: PathMapper, dir_mode: int = 0o755) -> None:
        self.fs = fs
        self.mapper = mapper
        self.dir_mode = dir_mode

    async def move(self, from_path: str, to_path: str, is_folder: bool = False) -> bool:
        """
        Move the history of a file (or a whole folder's histories) to a new path.

        A source without history is a no-op. Missing destination parents are created.

        Returns:
            True if history was moved.
        """
        source = self.mapper.map_path(from_path, is_directory=is_folder)
        target = self.mapper.map_path(to_path, is_directory=is_folder)
        try:
            if not await self.fs.exists(source):
                logger.debug("No revisions to move for %s", from_path)
                return False
            if not await self.fs.exists(target.parent):
                await self.fs.makedirs(target.parent, mode=self.dir_mode)
            await self.fs.rename(source, target)
        except OSError:
            logger.exception("There was an error moving %s to %s", source, target)
            return False
        logger.info("Moved revisions %s -> %s", source, target)
        return True

    async def remove(self, logical_path: str, is_folder: bool = False) -> bool:
        """
        Delete the history of a file, or every history under a folder.

        Returns:
            True if history was deleted.
        """
        target = self.mapper.map_path(logical_path, is_directory=is_folder)
        try:
            if is_folder:
                await self.fs.remove_tree(target)
            else:
                await self.fs.unlink(target)
        except FileNotFoundError:
            logger.debug("No revisions to remove at %s", target)
            return False
        except OSError:
            logger.exception("There was an error removing revisions at %s", target)
            return False
        logger.info("Removed revisions %s", target)
        return True
