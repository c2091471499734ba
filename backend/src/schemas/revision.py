"""Pydantic schemas for revision records and save results."""
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# A patch set is the JSON form of a list of diff-match-patch patch objects:
# [{"diffs": [[op, text], ...], "start1": int, "start2": int, "length1": int, "length2": int}]
# It is opaque to the storage layer and only interpreted by the diff service.
PatchSet = list[dict[str, Any]]


class RevisionRecord(BaseModel):
    """A single line of a revision log."""

    # Clients may attach extra fields (e.g. contributor info); keep them on round-trip
    model_config = ConfigDict(extra="allow")

    ts: int  # Millisecond timestamp, unique sort key within a log
    silentsave: bool = False
    restoring: bool = False
    patch: list[PatchSet] = Field(min_length=1)  # Single element: diff from previous ts
    length: int  # Length of the content after applying this record

    def to_line(self) -> str:
        """Serialize the record as one newline-terminated log line."""
        return self.model_dump_json() + "\n"


class RevisionInfo(BaseModel):
    """Metadata about a persisted revision record."""

    log_path: str  # Workspace-relative path of the revision log
    logical_path: str  # Path of the tracked file
    ts: int
