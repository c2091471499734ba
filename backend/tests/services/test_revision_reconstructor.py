"""Tests for loading revision logs and reconstructing content."""
from collections.abc import Callable

import pytest

from core.filesystem import LocalFileSystem
from schemas.revision import RevisionRecord
from services.diff_service import DiffService
from services.exceptions import EmptyHistoryError, RevisionLogParseError
from services.path_mapper import PathMapper
from services.revision_reconstructor import RevisionReconstructor, parse_log

RevisionFactory = Callable[[str, str, int], RevisionRecord]


@pytest.fixture
def reconstructor(
    fs: LocalFileSystem, mapper: PathMapper, diff: DiffService,
) -> RevisionReconstructor:
    """Reconstructor for the test workspace."""
    return RevisionReconstructor(fs, mapper, diff)


@pytest.fixture
def history(make_revision: RevisionFactory) -> dict[int, RevisionRecord]:
    """Three revisions: '' -> 'one' -> 'one two' -> 'one two three'."""
    records = [
        make_revision("", "one", 1000),
        make_revision("one", "one two", 2000),
        make_revision("one two", "one two three", 3000),
    ]
    return {r.ts: r for r in records}


class TestReconstruct:
    """Tests for RevisionReconstructor.reconstruct()."""

    def test__reconstruct__replays_all_records(
        self, reconstructor: RevisionReconstructor, history: dict[int, RevisionRecord],
    ) -> None:
        """Without a bound, the latest content is produced."""
        assert reconstructor.reconstruct(history) == "one two three"

    def test__reconstruct__insertion_order_does_not_matter(
        self, reconstructor: RevisionReconstructor, history: dict[int, RevisionRecord],
    ) -> None:
        """Records are replayed by ascending ts regardless of map order."""
        shuffled = {ts: history[ts] for ts in (3000, 1000, 2000)}
        assert reconstructor.reconstruct(shuffled) == "one two three"

    def test__reconstruct__sorts_numerically_not_lexically(
        self, reconstructor: RevisionReconstructor, make_revision: RevisionFactory,
    ) -> None:
        """ts 900 comes before ts 10000 even though '10000' < '900' as strings."""
        first = make_revision("", "a", 900)
        second = make_revision("a", "ab", 10000)
        assert reconstructor.reconstruct({10000: second, 900: first}) == "ab"

    def test__reconstruct__stops_at_exact_bound(
        self, reconstructor: RevisionReconstructor, history: dict[int, RevisionRecord],
    ) -> None:
        """A bound matching a ts includes that record and excludes later ones."""
        assert reconstructor.reconstruct(history, 2000) == "one two"
        assert reconstructor.reconstruct(history, 1000) == "one"

    def test__reconstruct__unmatched_bound_is_ignored(
        self, reconstructor: RevisionReconstructor, history: dict[int, RevisionRecord],
    ) -> None:
        """A bound between two records does not select the nearest one."""
        assert reconstructor.reconstruct(history, 2500) == "one two three"

    def test__reconstruct__empty_history_raises(
        self, reconstructor: RevisionReconstructor,
    ) -> None:
        """Zero records can't be reconstructed."""
        with pytest.raises(EmptyHistoryError):
            reconstructor.reconstruct({})


class TestLoadAll:
    """Tests for RevisionReconstructor.load_all()."""

    async def test__load_all__parses_every_line(
        self,
        reconstructor: RevisionReconstructor,
        fs: LocalFileSystem,
        history: dict[int, RevisionRecord],
    ) -> None:
        """Each line becomes one record keyed by ts."""
        await fs.makedirs(".revisions/docs")
        await fs.write_text(
            ".revisions/docs/a.md.revlog",
            "".join(r.to_line() for r in history.values()),
        )

        revisions = await reconstructor.load_all("docs/a.md")

        assert sorted(revisions) == [1000, 2000, 3000]
        assert revisions[2000] == history[2000]
        assert reconstructor.reconstruct(revisions) == "one two three"

    async def test__load_all__missing_log_raises(
        self, reconstructor: RevisionReconstructor,
    ) -> None:
        """Loading never creates a log."""
        with pytest.raises(FileNotFoundError):
            await reconstructor.load_all("nope.txt")

    async def test__load_all__bad_line_fails_whole_load(
        self,
        reconstructor: RevisionReconstructor,
        fs: LocalFileSystem,
        history: dict[int, RevisionRecord],
    ) -> None:
        """One malformed line aborts the load; no partial map is returned."""
        lines = [r.to_line() for r in history.values()]
        lines.insert(1, '{"ts": 1500, "patch": [[\n')
        await fs.makedirs(".revisions")
        await fs.write_text(".revisions/a.txt.revlog", "".join(lines))

        with pytest.raises(RevisionLogParseError) as exc_info:
            await reconstructor.load_all("a.txt")
        assert exc_info.value.line_number == 2


class TestParseLog:
    """Tests for parse_log()."""

    def test__parse_log__skips_blank_lines(self, history: dict[int, RevisionRecord]) -> None:
        """Blank lines (including the trailing one) are ignored."""
        data = "\n" + history[1000].to_line() + "\n\n" + history[2000].to_line()
        assert sorted(parse_log("log", data)) == [1000, 2000]

    def test__parse_log__later_duplicate_ts_wins(self, make_revision: RevisionFactory) -> None:
        """Records are keyed by ts, so a repeated ts keeps the last line."""
        first = make_revision("", "first", 5)
        second = make_revision("", "second", 5)
        parsed = parse_log("log", first.to_line() + second.to_line())
        assert parsed == {5: second}

    def test__parse_log__record_missing_fields_is_rejected(self) -> None:
        """Valid JSON that isn't a record still fails the parse."""
        with pytest.raises(RevisionLogParseError, match="line 1"):
            parse_log("log", '{"ts": 1}\n')

    def test__parse_log__preserves_extra_fields(self, make_revision: RevisionFactory) -> None:
        """Unknown fields written by clients are kept."""
        record = make_revision("", "x", 7)
        line = record.to_line().rstrip("\n")[:-1] + ', "contributors": ["ann"]}\n'
        parsed = parse_log("log", line)
        assert parsed[7].model_extra == {"contributors": ["ann"]}
