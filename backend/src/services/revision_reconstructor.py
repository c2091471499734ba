"""Loads revision logs and rebuilds file content by replaying patches."""
import logging

from pydantic import ValidationError

from core.filesystem import LocalFileSystem
from schemas.revision import RevisionRecord
from services.diff_service import DiffService
from services.exceptions import EmptyHistoryError, RevisionLogParseError
from services.path_mapper import PathMapper

logger = logging.getLogger(__name__)


class RevisionReconstructor:
    """Reads revision logs and reconstructs content at a point in history."""

    def __init__(self, fs: LocalFileSystem, mapper: PathMapper, diff: DiffService) -> None:
        self.fs = fs
        self.mapper = mapper
        self.diff = diff

    async def load_all(self, logical_path: str) -> dict[int, RevisionRecord]:
        """
        Load every record of a file's revision log, keyed by timestamp.

        Args:
            logical_path: Path of the tracked file.

        Returns:
            Mapping of ts to record. Iteration order is file order, not ts order.

        Raises:
            FileNotFoundError: If the log doesn't exist.
            RevisionLogParseError: If any non-empty line is not a valid record.
        """
        log_path = self.mapper.map_path(logical_path)
        data = await self.fs.read_text(log_path)
        return parse_log(str(log_path), data)

    def reconstruct(
        self,
        revisions: dict[int, RevisionRecord],
        upper_bound_ts: int | None = None,
    ) -> str:
        """
        Rebuild content by applying each record's patch in ascending ts order.

        If upper_bound_ts matches a record's ts exactly, replay stops after that record.
        A bound that matches no record is ignored and the full history is replayed.

        Raises:
            EmptyHistoryError: If there are no records.
        """
        if not revisions:
            raise EmptyHistoryError()

        timestamps = sorted(revisions)
        if upper_bound_ts is not None and upper_bound_ts in revisions:
            timestamps = timestamps[: timestamps.index(upper_bound_ts) + 1]

        content = ""
        for ts in timestamps:
            content, results = self.diff.apply_patch(revisions[ts].patch[0], content)
            if not all(results):
                # Reconstruction continues with whatever the patch produced
                logger.warning("Partial patch failure at ts %d: %s", ts, results)
        return content


def parse_log(log_path: str, data: str) -> dict[int, RevisionRecord]:
    """Parse newline-delimited JSON records; any bad line fails the whole parse."""
    revisions: dict[int, RevisionRecord] = {}
    for line_number, line in enumerate(data.split("\n"), start=1):
        if not line:
            continue
        try:
            record = RevisionRecord.model_validate_json(line)
        except ValidationError as e:
            raise RevisionLogParseError(log_path, line_number, str(e)) from e
        revisions[record.ts] = record
    return revisions
