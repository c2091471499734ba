"""
Offline verification of every revision log in a workspace.

Loads each log under the revisions folder and replays it to make sure the
history can still be reconstructed. Nothing is modified.

Run with:
    python -m tasks.verify_revisions
"""
import asyncio
import logging
from dataclasses import dataclass, field

from core.config import get_settings
from services.exceptions import EmptyHistoryError, RevisionLogParseError
from services.revision_engine import RevisionEngine
from services.revision_reconstructor import parse_log

logger = logging.getLogger(__name__)


@dataclass
class VerifyStats:
    """Statistics from a verification run."""

    checked: int = 0
    corrupted: int = 0
    empty: int = 0
    corrupted_logs: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary for logging/serialization."""
        return {
            "checked": self.checked,
            "corrupted": self.corrupted,
            "empty": self.empty,
            "corrupted_logs": self.corrupted_logs,
        }


async def verify_revisions(engine: RevisionEngine) -> VerifyStats:
    """
    Parse and replay every revision log managed by an engine.

    A log counts as corrupted if a line fails to parse or a patch can't be applied,
    and as empty if it has no records.
    """
    stats = VerifyStats()
    root = engine.mapper.revisions_root
    if not await engine.fs.exists(root):
        logger.info("No revisions folder at %s", root)
        return stats

    for log_path in await engine.fs.list_files(root, f".{engine.mapper.suffix}"):
        stats.checked += 1
        try:
            data = await engine.fs.read_text(log_path)
            revisions = parse_log(str(log_path), data)
            engine.reconstruct(revisions)
        except EmptyHistoryError:
            stats.empty += 1
            logger.warning("Revision log %s has no records", log_path)
        except (RevisionLogParseError, ValueError, OSError) as e:
            stats.corrupted += 1
            stats.corrupted_logs.append(str(log_path))
            logger.warning("Revision log %s is corrupted: %s", log_path, e)

    return stats


async def run_verify() -> VerifyStats:
    """Verify the revision logs of the configured workspace."""
    engine = RevisionEngine.from_settings(get_settings())
    logger.info("Starting revision log verification")
    stats = await verify_revisions(engine)
    logger.info("Verification complete: %s", stats.to_dict())
    return stats


def main() -> None:
    """Entry point for running verification as a script."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    stats = asyncio.run(run_verify())
    raise SystemExit(1 if stats.corrupted else 0)


if __name__ == "__main__":
    main()
