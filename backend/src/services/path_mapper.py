"""Maps tracked workspace paths to their mirrored revision log paths."""
from pathlib import PurePosixPath


class PathMapper:
    """
    Mirrors the workspace tree under a hidden revisions folder.

    A file `<dir>/<name>` maps to `<revisions_root>/<dir>/<name>.<suffix>`; a directory
    maps to `<revisions_root>/<dir>` so that whole subtrees can be moved or removed.
    """

    def __init__(self, revisions_root: str, suffix: str) -> None:
        self.revisions_root = PurePosixPath(revisions_root)
        self.suffix = suffix

    def map_path(self, logical_path: str, is_directory: bool = False) -> PurePosixPath:
        """Return the workspace-relative revisions path for a logical path."""
        mapped = self.revisions_root / logical_path.lstrip("/")
        if is_directory:
            return mapped
        return mapped.with_name(f"{mapped.name}.{self.suffix}")
