"""Shared validation functions for Pydantic schemas."""
from pathlib import PurePosixPath


def validate_logical_path(path: str) -> str:
    """
    Validate a workspace path sent by a client.

    Paths are workspace-relative; a leading slash is allowed and means the workspace
    root. Parent-directory segments are rejected so a path can never point outside
    the workspace or its revisions folder.

    Raises:
        ValueError: If the path is empty or contains '..' segments.
    """
    if not path or not path.strip("/"):
        raise ValueError("Path cannot be empty")
    if "\x00" in path:
        raise ValueError("Path cannot contain NUL characters")
    if ".." in PurePosixPath(path).parts:
        raise ValueError(f"Path cannot contain '..' segments: '{path}'")
    return path
