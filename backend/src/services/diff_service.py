"""Diff collaborator: builds and applies patch sets with diff-match-patch."""
from diff_match_patch import diff_match_patch, patch_obj

from schemas.revision import PatchSet


class DiffService:
    """Produces patch sets between two texts and applies them to a base text."""

    def __init__(self) -> None:
        """Initialize the diff service with diff-match-patch."""
        self.dmp = diff_match_patch()

    def make_patch(self, old_text: str, new_text: str) -> PatchSet:
        """
        Compute the patch set transforming old_text into new_text.

        The result is JSON-ready: each patch is a dict with the same fields as a
        diff-match-patch patch object.
        """
        patches = self.dmp.patch_make(old_text, new_text)
        return [
            {
                "diffs": [[op, text] for op, text in patch.diffs],
                "start1": patch.start1,
                "start2": patch.start2,
                "length1": patch.length1,
                "length2": patch.length2,
            }
            for patch in patches
        ]

    def apply_patch(self, patch_set: PatchSet, base_text: str) -> tuple[str, list[bool]]:
        """
        Apply a patch set to base_text.

        Returns:
            Tuple of (new text, per-hunk success flags).

        Raises:
            ValueError: If the patch set is not a list of well-formed patch dicts.
        """
        patches = [_to_patch_obj(item) for item in patch_set]
        new_text, results = self.dmp.patch_apply(patches, base_text)
        return new_text, list(results)


def _to_patch_obj(item: dict) -> patch_obj:
    """Rebuild a patch object from its JSON dict form."""
    try:
        patch = patch_obj()
        patch.diffs = [_to_diff(diff) for diff in item["diffs"]]
        patch.start1 = int(item["start1"] or 0)
        patch.start2 = int(item["start2"] or 0)
        patch.length1 = int(item["length1"])
        patch.length2 = int(item["length2"])
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Malformed patch object: {e}") from e
    return patch


def _to_diff(diff: list | dict) -> tuple[int, str]:
    # Browser clients serialize diff tuples either as [op, text] or as {"0": op, "1": text}
    if isinstance(diff, dict):
        return int(diff["0"]), str(diff["1"])
    op, text = diff
    return int(op), str(text)
